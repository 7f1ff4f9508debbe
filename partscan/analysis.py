"""Analysis of disk images.

Combines partition table detection and the partition table readers into a single
``AnalysisReport``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from . import gpt, mbr
from .base import SECTOR_SIZE, TruncatedSourceError, ValidationError
from .report import AnalysisReport
from .source import BufferSource, FileSource
from .table import TableType, detect_table_type

if TYPE_CHECKING:
    from .source import ByteSource
    from .typing import ReadableBuffer, StrPath

__all__ = ['analyze', 'analyze_bytes', 'analyze_file']


log = logging.getLogger(__name__)


def _first_sector(source: ByteSource) -> bytes:
    if source.size < SECTOR_SIZE:
        raise TruncatedSourceError('Data too small to contain MBR')
    return source.read_at(0, SECTOR_SIZE)


def analyze(source: ByteSource, label: str) -> AnalysisReport:
    """Analyze the partition table found at the beginning of ``source``.

    ``label`` is only passed through to the report.

    This function does not raise if the data is malformed: an invalid boot sector
    is reported via ``AnalysisReport.error``, all other anomalies are reported
    as advisories.
    """
    log.info(f'Analyzing {label} ({source.size} bytes)')

    try:
        sector = _first_sector(source)
        table_type = detect_table_type(sector)
    except ValidationError as e:
        log.info(f'{label} - {e}')
        return AnalysisReport.failed(label, str(e))

    log.info(f'{label} - Partition table type: {table_type.name}')

    if table_type is TableType.GPT:
        header, records = gpt.read_partitions(source)
        return AnalysisReport(label, table_type, records, gpt_header=header)

    partitions = mbr.read_partitions(sector)
    return AnalysisReport(label, table_type, partitions)


def analyze_bytes(data: ReadableBuffer, label: str) -> AnalysisReport:
    """Analyze a disk image (or the beginning of one) held in memory."""
    return analyze(BufferSource(data), label)


def analyze_file(path: StrPath, label: Optional[str] = None) -> AnalysisReport:
    """Analyze the disk image at ``path``.

    ``label`` defaults to ``path``. ``OSError`` is raised if the file cannot be
    opened.
    """
    if label is None:
        label = str(path)
    with FileSource.open(path) as source:
        return analyze(source, label)
