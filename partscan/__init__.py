"""Partition table inspection of raw disk images.

Supports MBR and GPT partitioning.
"""

from .analysis import analyze, analyze_bytes, analyze_file
from .report import Advisory, AdvisoryKind, AnalysisReport
from .source import BufferSource, FileSource
from .table import TableType

__all__ = [
    "analyze",
    "analyze_bytes",
    "analyze_file",
    "Advisory",
    "AdvisoryKind",
    "AnalysisReport",
    "BufferSource",
    "FileSource",
    "TableType",
]
