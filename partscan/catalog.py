"""Descriptions of MBR partition types.

See https://en.wikipedia.org/wiki/Partition_type.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

__all__ = ['UNKNOWN', 'DESCRIPTIONS', 'describe']


UNKNOWN = 'Unknown'

DESCRIPTIONS: Mapping[int, str] = MappingProxyType(
    {
        0x00: 'Empty',
        0x01: 'FAT12',
        0x04: 'FAT16 <32M',
        0x05: 'Extended',
        0x06: 'FAT16',
        0x07: 'HPFS/NTFS/exFAT',
        0x0B: 'W95 FAT32',
        0x0C: 'W95 FAT32 (LBA)',
        0x0E: 'W95 FAT16 (LBA)',
        0x0F: "W95 Ext'd (LBA)",
        0x11: 'Hidden FAT12',
        0x14: 'Hidden FAT16 <32M',
        0x16: 'Hidden FAT16',
        0x17: 'Hidden HPFS/NTFS',
        0x1B: 'Hidden W95 FAT32',
        0x1C: 'Hidden W95 FAT32 (LBA)',
        0x1E: 'Hidden W95 FAT16 (LBA)',
        0x82: 'Linux swap',
        0x83: 'Linux',
        0x85: 'Linux extended',
        0x8E: 'Linux LVM',
        0xA0: 'Hibernation',
        0xA5: 'FreeBSD',
        0xA6: 'OpenBSD',
        0xA8: 'Darwin UFS',
        0xA9: 'NetBSD',
        0xAB: 'Darwin boot',
        0xAF: 'HFS / HFS+',
        0xBE: 'Solaris boot',
        0xBF: 'Solaris',
        0xEB: 'BeOS fs',
        0xEE: 'GPT',
        0xEF: 'EFI (FAT-12/16/32)',
        0xFB: 'VMware VMFS',
        0xFC: 'VMware VMKCORE',
        0xFD: 'Linux raid autodetect',
    }
)


def describe(type_: int) -> str:
    """Return a short description of the MBR partition type ``type_``.

    ``'Unknown'`` is returned for types not found in ``DESCRIPTIONS``.
    """
    if not 0 <= type_ < 1 << 8:
        raise ValueError(f'Invalid partition type {type_}, must be a 1-byte value')
    return DESCRIPTIONS.get(type_, UNKNOWN)
