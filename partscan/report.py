"""Result of the analysis of a disk image."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional, Tuple, Union

from .table import TableType

if TYPE_CHECKING:
    from . import gpt, mbr

__all__ = ['AdvisoryKind', 'Advisory', 'AnalysisReport']


class AdvisoryKind(Enum):
    """Reason why partition data could not be produced in full."""

    INSUFFICIENT_DATA = 'insufficient-data'  # GPT header not available
    INVALID_SIGNATURE = 'invalid-signature'  # GPT header signature mismatch
    INVALID_HEADER = 'invalid-header'  # unusable GPT header values
    TABLE_TRUNCATED = 'table-truncated'  # partition entry array not available
    INVALID_ENTRY = 'invalid-entry'  # single partition entry not usable
    NO_PARTITIONS = 'no-partitions'


@dataclass(frozen=True)
class Advisory:
    """Non-fatal record describing why partition data is missing from a report.

    - ``info``: Short summary of what was found.
    - ``note``: What went wrong or what is needed to go further.
    - ``required_size``: Amount of bytes the disk image must at least hold to be
      analyzed in full, if known.
    - ``entry``: 1-based index of the GPT partition entry the advisory stands in
      for, if any.
    """

    kind: AdvisoryKind
    info: str
    note: str
    required_size: Optional[int] = None
    entry: Optional[int] = None


if TYPE_CHECKING:
    Record = Union[mbr.Partition, gpt.Partition, Advisory]


@dataclass(frozen=True)
class AnalysisReport:
    """Partitions found on a disk image.

    ``partitions`` holds partition records and advisories in the order they were
    found. ``error`` is only set if the analysis had to be aborted, in which case
    ``table_type`` is ``None`` and ``partitions`` is empty.
    """

    label: str
    table_type: Optional[TableType] = None
    partitions: Tuple[Record, ...] = field(default=())
    error: Optional[str] = None
    gpt_header: Optional[gpt.Header] = None

    @classmethod
    def failed(cls, label: str, error: str) -> AnalysisReport:
        """Report of an aborted analysis."""
        return cls(label, error=error)

    @property
    def ok(self) -> bool:
        """Whether the analysis was carried out."""
        return self.error is None

    @property
    def advisories(self) -> tuple[Advisory, ...]:
        return tuple(p for p in self.partitions if isinstance(p, Advisory))

    @property
    def records(self) -> tuple[Record, ...]:
        """Partition records without advisories."""
        return tuple(p for p in self.partitions if not isinstance(p, Advisory))

    def __repr__(self) -> str:
        table_type = None if self.table_type is None else self.table_type.name
        return (
            f'{self.__class__.__name__}({self.label!r}, table_type={table_type}, '
            f'partitions={len(self.partitions)}, error={self.error!r})'
        )
