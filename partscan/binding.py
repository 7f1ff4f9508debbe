"""Host-callable binding returning plain, JSON-serializable objects.

Keys follow the camelCase naming expected by JavaScript hosts. Fields which do
not apply to a record, or which are zero, are left out.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict

from . import gpt, mbr
from .analysis import analyze_bytes
from .report import Advisory

if TYPE_CHECKING:
    from .report import AnalysisReport, Record
    from .typing import ReadableBuffer

__all__ = ['analyze_disk_image', 'report_to_dict', 'record_to_dict']


MISSING_ARGUMENTS = 'Missing arguments: need data and filename'

JsonObject = Dict[str, Any]


def _omit_empty(d: JsonObject) -> JsonObject:
    return {k: v for k, v in d.items() if v not in (None, 0, '')}


def record_to_dict(record: Record, position: int) -> JsonObject:
    """Convert a single partition record or advisory to a ``dict``.

    ``position`` is the 1-based position of ``record`` within its report and is
    used as the number of advisories not tied to a single partition entry.
    """
    if isinstance(record, mbr.Partition):
        d = {
            'number': record.number,
            'status': 'Active' if record.bootable else 'Inactive',
            'type': f'0x{record.type:02X}',
            'startLBA': record.start_lba,
            'sizeGB': record.size_gib,
            'description': record.description,
        }
    elif isinstance(record, gpt.Partition):
        d = {
            'number': record.number,
            'startLBA': record.start_lba,
            'endLBA': record.end_lba,
            'sizeGB': record.size_gib,
            'name': record.name,
        }
    elif isinstance(record, Advisory):
        d = {
            'number': position if record.entry is None else None,
            'entry': record.entry,
            'info': record.info,
            'note': record.note,
            'requiredBytes': record.required_size,
        }
    else:
        raise TypeError(f'Unsupported record type {type(record).__name__}')
    return _omit_empty(d)


def report_to_dict(report: AnalysisReport) -> JsonObject:
    """Convert ``report`` to a ``dict`` holding only JSON-serializable values."""
    d: JsonObject = {
        'filename': report.label,
        'tableType': '' if report.table_type is None else report.table_type.name,
        'partitions': [
            record_to_dict(record, position)
            for position, record in enumerate(report.partitions, start=1)
        ],
    }
    if report.error is not None:
        d['error'] = report.error
    if report.gpt_header is not None:
        header = report.gpt_header
        d['gptRevision'] = f'{header.revision_major}.{header.revision_minor}'
    return d


def analyze_disk_image(data: ReadableBuffer | None, filename: str) -> JsonObject:
    """Analyze a disk image held in memory, named ``filename`` for display only.

    Never raises for malformed data; problems are reported through the ``error``
    key or as advisory entries of ``partitions``.
    """
    if data is None or filename is None:
        return {'error': MISSING_ARGUMENTS}
    return report_to_dict(analyze_bytes(data, filename))
