"""GPT partitioning.

See https://uefi.org/specifications.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

from typing_extensions import Annotated

from .base import SECTOR_SIZE, bytes_to_gib, sectors_to_bytes
from .bytestruct import ByteStruct
from .report import Advisory, AdvisoryKind

if TYPE_CHECKING:
    from .source import ByteSource

__all__ = [
    'Header',
    'PartitionEntry',
    'Partition',
    'decode_name',
    'read_partitions',
]


log = logging.getLogger(__name__)


PRIMARY_HEADER_LBA = 1
MIN_GPT_DATA = (PRIMARY_HEADER_LBA + 1) * SECTOR_SIZE  # protective MBR + header

SIGNATURE = b'EFI PART'
UNUSED_TYPE = b'\x00' * 16

PARTITION_NAME_UNNAMED = 'Unnamed'
PRINTABLE_ASCII = range(0x20, 0x7F)


@dataclass(frozen=True)
class Header(ByteStruct):
    """GPT header.

    CRC32 values and the LBA ranges apart from the location of the partition
    entry array are decoded, but not checked.
    """

    signature: Annotated[bytes, 8]
    revision: Annotated[int, 4]
    header_size: Annotated[int, 4]
    header_crc32: Annotated[int, 4]
    _reserved: Annotated[None, 4]
    header_lba: Annotated[int, 8]
    alternate_header_lba: Annotated[int, 8]
    first_usable_lba: Annotated[int, 8]
    last_usable_lba: Annotated[int, 8]
    disk_guid: Annotated[bytes, 16]
    partition_array_lba: Annotated[int, 8]
    partition_entries_count: Annotated[int, 4]
    partition_entry_size: Annotated[int, 4]
    partition_array_crc32: Annotated[int, 4]

    @property
    def revision_major(self) -> int:
        return self.revision >> 16

    @property
    def revision_minor(self) -> int:
        return self.revision & 0xFFFF

    @property
    def partition_array_offset(self) -> int:
        """Position of the partition entry array in bytes."""
        return sectors_to_bytes(self.partition_array_lba)

    @property
    def partition_array_size(self) -> int:
        """Size of the partition entry array in bytes."""
        return self.partition_entries_count * self.partition_entry_size

    @property
    def required_size(self) -> int:
        """Amount of bytes a disk image must hold to read all partition entries."""
        return self.partition_array_offset + self.partition_array_size


@dataclass(frozen=True)
class PartitionEntry(ByteStruct):
    """Raw GPT partition entry.

    Partition entries might be larger than this structure. Trailing bytes are
    ignored.
    """

    type_guid: Annotated[bytes, 16]
    guid: Annotated[bytes, 16]
    start_lba: Annotated[int, 8]
    end_lba: Annotated[int, 8]
    attributes: Annotated[int, 8]
    name: Annotated[bytes, 72]  # UTF-16LE

    @property
    def empty(self) -> bool:
        """Whether the partition entry is considered empty / unused."""
        return self.type_guid == UNUSED_TYPE


@dataclass(frozen=True)
class Partition:
    """Partition described by a used GPT partition entry."""

    number: int
    start_lba: int
    end_lba: int
    name: str
    type_guid: bytes

    def __post_init__(self) -> None:
        if self.start_lba > self.end_lba:
            raise ValueError(
                f'Starting sector of partition must be less than or equal to the '
                f'ending sector (got starting sector {self.start_lba}, ending sector '
                f'{self.end_lba})'
            )

    @property
    def length_lba(self) -> int:
        return self.end_lba - self.start_lba + 1

    @property
    def size(self) -> int:
        """Size of the partition in bytes."""
        return sectors_to_bytes(self.length_lba)

    @property
    def size_gib(self) -> float:
        """Size of the partition in gibibytes."""
        return bytes_to_gib(self.size)

    def __repr__(self) -> str:
        return (
            f'gpt.{self.__class__.__name__}({self.number}, '
            f'start_lba={self.start_lba}, end_lba={self.end_lba}, '
            f'name={self.name!r})'
        )


def decode_name(b: bytes) -> str:
    """Decode the UTF-16LE name of a GPT partition entry.

    Only the printable ASCII subset of UTF-16LE is kept: decoding stops at the
    first null code unit and all other code units are dropped.
    """
    chars = []
    for i in range(0, len(b) - 1, 2):
        low, high = b[i], b[i + 1]
        if low == 0 and high == 0:
            break
        if high == 0 and low in PRINTABLE_ASCII:
            chars.append(chr(low))
    return ''.join(chars)


def _revision(header: Header) -> str:
    return f'{header.revision_major}.{header.revision_minor}'


def _read_header(
    source: ByteSource,
) -> tuple[Optional[Header], Optional[Advisory]]:
    """Read and check the primary GPT header.

    Returns either the header or an advisory explaining why it can't be used.
    """
    if source.size < MIN_GPT_DATA:
        return None, Advisory(
            AdvisoryKind.INSUFFICIENT_DATA,
            'GPT detected but insufficient data',
            'Need at least 1KB of data to read GPT header',
            MIN_GPT_DATA,
        )

    header_sector = source.read_at(sectors_to_bytes(PRIMARY_HEADER_LBA), SECTOR_SIZE)
    header = Header.from_buffer(header_sector)

    if header.signature != SIGNATURE:
        log.debug(f'Invalid GPT signature {header.signature!r}')
        return None, Advisory(
            AdvisoryKind.INVALID_SIGNATURE,
            'Invalid GPT signature in header',
            'GPT structure may be corrupted',
        )

    log.debug(
        f'GPT header - Revision {_revision(header)}, '
        f'{header.partition_entries_count} partition entries of '
        f'{header.partition_entry_size} bytes at LBA {header.partition_array_lba}'
    )

    if (
        header.partition_entries_count > 0
        and header.partition_entry_size < len(PartitionEntry)
    ):
        return header, Advisory(
            AdvisoryKind.INVALID_HEADER,
            f'GPT detected (Rev {_revision(header)}, '
            f'{header.partition_entries_count} partitions)',
            f'Partition entry size of {header.partition_entry_size} bytes is '
            f'smaller than the minimum of {len(PartitionEntry)} bytes',
        )

    if source.size < header.required_size:
        return header, Advisory(
            AdvisoryKind.TABLE_TRUNCATED,
            f'GPT detected (Rev {_revision(header)}, '
            f'{header.partition_entries_count} partitions)',
            f'Need at least {header.required_size} bytes to read all partition '
            f'entries',
            header.required_size,
        )

    return header, None


def read_partitions(
    source: ByteSource,
) -> tuple[Optional[Header], tuple[Union[Partition, Advisory], ...]]:
    """Parse the partitions found in the partition entry array of a GPT.

    Expects ``source`` to start with a protective MBR. Returns a ``tuple`` of the
    GPT header (``None`` if it could not be read) and the records found.

    Partitions are numbered sequentially in the order of their entries, so unlike
    with MBR, unused entries do not take up a partition number. Anything keeping
    the partition entry array from being read is reported as a single
    ``Advisory``.
    """
    header, advisory = _read_header(source)
    if advisory is not None:
        log.debug(f'Stopping GPT analysis: {advisory.info} - {advisory.note}')
        return header, (advisory,)
    assert header is not None

    entry_size = header.partition_entry_size
    array = source.read_at(header.partition_array_offset, header.partition_array_size)
    records: list[Union[Partition, Advisory]] = []
    count = 0

    for index in range(header.partition_entries_count):
        entry = PartitionEntry.from_buffer(array, index * entry_size)
        if entry.empty:
            continue

        if entry.start_lba > entry.end_lba:
            log.debug(f'Ignoring GPT partition entry {index} with inverted bounds')
            records.append(
                Advisory(
                    AdvisoryKind.INVALID_ENTRY,
                    f'Invalid partition entry {index + 1}',
                    f'Starting sector {entry.start_lba} lies past ending sector '
                    f'{entry.end_lba}',
                    entry=index + 1,
                )
            )
            continue

        count += 1
        name = decode_name(entry.name) or PARTITION_NAME_UNNAMED
        records.append(
            Partition(count, entry.start_lba, entry.end_lba, name, entry.type_guid)
        )

    if count == 0:
        records.append(
            Advisory(
                AdvisoryKind.NO_PARTITIONS,
                f'GPT structure valid (Rev {_revision(header)})',
                'No active partitions found in partition table',
            )
        )

    return header, tuple(records)
