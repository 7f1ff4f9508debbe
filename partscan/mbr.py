"""MBR partitioning.

See https://en.wikipedia.org/wiki/Master_boot_record.
See https://wiki.osdev.org/Partition_Table.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from typing_extensions import Annotated

from . import catalog
from .base import SECTOR_SIZE, ValidationError, bytes_to_gib, sectors_to_bytes
from .bytestruct import ByteStruct
from .table import BOOT_SIGNATURE

__all__ = [
    'PartitionType',
    'PartitionEntry',
    'BootSector',
    'Partition',
    'read_partitions',
]


log = logging.getLogger(__name__)


BOOT_CODE_SIZE = 446

STATUS_ACTIVE = 0x80


class PartitionType(Enum):
    """Common MBR partition type."""

    EMPTY = 0x00
    FAT12 = 0x01
    FAT16 = 0x04
    EXTENDED_CHS = 0x05
    FAT16B = 0x06
    NTFS = 0x07
    FAT32_CHS = 0x0B
    FAT32_LBA = 0x0C
    FAT16B_LBA = 0x0E
    EXTENDED_LBA = 0x0F
    LINUX_SWAP = 0x82
    LINUX = 0x83
    LINUX_EXTENDED = 0x85
    LINUX_LVM = 0x8E
    HFS = 0xAF
    GPT_PROTECTIVE = 0xEE
    EFI_SYSTEM = 0xEF


EXTENDED_TYPES = frozenset(
    (
        PartitionType.EXTENDED_CHS.value,
        PartitionType.EXTENDED_LBA.value,
        PartitionType.LINUX_EXTENDED.value,
    )
)


@dataclass(frozen=True)
class PartitionEntry(ByteStruct):
    """Raw MBR partition entry.

    CHS addresses are kept as raw bytes and never interpreted.
    """

    status: Annotated[int, 1]
    start_chs: Annotated[bytes, 3]
    type: Annotated[int, 1]
    end_chs: Annotated[bytes, 3]
    start_lba: Annotated[int, 4]
    length_lba: Annotated[int, 4]

    @property
    def empty(self) -> bool:
        """Whether the partition entry is considered empty / unused."""
        return self.type == PartitionType.EMPTY.value

    @property
    def bootable(self) -> bool:
        return self.status == STATUS_ACTIVE


@dataclass(frozen=True)
class BootSector(ByteStruct):
    """First sector of a disk partitioned using MBR."""

    boot_code: Annotated[bytes, BOOT_CODE_SIZE]
    entry_1: PartitionEntry
    entry_2: PartitionEntry
    entry_3: PartitionEntry
    entry_4: PartitionEntry
    signature: Annotated[int, 2]

    @property
    def entries(self) -> tuple[PartitionEntry, ...]:
        return self.entry_1, self.entry_2, self.entry_3, self.entry_4


@dataclass(frozen=True)
class Partition:
    """Partition described by a used MBR partition entry."""

    number: int
    bootable: bool
    type: int
    start_lba: int
    length_lba: int
    description: str

    @classmethod
    def from_entry(cls, number: int, entry: PartitionEntry) -> Partition:
        """Partition described by the non-empty ``entry`` found in slot ``number``."""
        if entry.empty:
            raise ValueError('Empty partition entries do not describe a partition')
        return cls(
            number,
            entry.bootable,
            entry.type,
            entry.start_lba,
            entry.length_lba,
            catalog.describe(entry.type),
        )

    @property
    def end_lba(self) -> int:
        """Ending sector of the partition. Inclusive."""
        return self.start_lba + self.length_lba - 1

    @property
    def size(self) -> int:
        """Size of the partition in bytes."""
        return sectors_to_bytes(self.length_lba)

    @property
    def size_gib(self) -> float:
        """Size of the partition in gibibytes."""
        return bytes_to_gib(self.size)

    @property
    def extended(self) -> bool:
        """Whether the partition is an extended partition.

        Logical partitions inside of it are not looked at.
        """
        return self.type in EXTENDED_TYPES

    def __repr__(self) -> str:
        return (
            f'mbr.{self.__class__.__name__}({self.number}, '
            f'start_lba={self.start_lba}, end_lba={self.end_lba}, '
            f'type={hex(self.type)}, bootable={self.bootable})'
        )


def read_partitions(sector: bytes) -> tuple[Partition, ...]:
    """Parse the primary partitions found in the first sector of a disk.

    Empty slots are skipped, but do not shift the numbers of the partitions
    following them, so a partition is always numbered after its slot.
    """
    if len(sector) < SECTOR_SIZE:
        raise ValidationError(
            f'MBR must be {SECTOR_SIZE} bytes long, got {len(sector)} bytes'
        )
    boot_sector = BootSector.from_buffer(sector)

    if boot_sector.signature != BOOT_SIGNATURE:
        raise ValidationError(f'Invalid MBR signature {hex(boot_sector.signature)}')

    partitions = []
    for number, entry in enumerate(boot_sector.entries, start=1):
        if entry.empty:
            log.debug(f'MBR slot {number} is empty')
            continue
        partition = Partition.from_entry(number, entry)
        if partition.extended:
            log.debug(f'Not traversing extended partition {partition}')
        partitions.append(partition)

    return tuple(partitions)
