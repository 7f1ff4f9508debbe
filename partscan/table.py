"""Partition table detection."""

from __future__ import annotations

import logging
from enum import Enum

from .base import SECTOR_SIZE, InvalidBootSignature, TruncatedSourceError

__all__ = [
    'BOOT_SIGNATURE',
    'PROTECTIVE_TYPE',
    'TableType',
    'detect_table_type',
]


log = logging.getLogger(__name__)


BOOT_SIGNATURE = 0xAA55
BOOT_SIGNATURE_OFFSET = 510
PROTECTIVE_TYPE = 0xEE  # protective MBR entry spanning a GPT disk
FIRST_ENTRY_TYPE_OFFSET = 446 + 4


class TableType(Enum):
    """Partition table type."""

    MBR = 0
    GPT = 1


def detect_table_type(sector: bytes) -> TableType:
    """Decide which partition table type the first sector of a disk belongs to.

    Only the boot sector signature and the type of the first partition entry are
    looked at. A first entry of type ``0xEE`` marks a protective MBR, meaning the
    actual partition table is a GPT.

    ``TruncatedSourceError`` is raised if ``sector`` is shorter than one sector,
    ``InvalidBootSignature`` if the signature is not ``0xAA55``.
    """
    if len(sector) < SECTOR_SIZE:
        raise TruncatedSourceError('Data too small to contain MBR')

    signature = int.from_bytes(
        sector[BOOT_SIGNATURE_OFFSET:SECTOR_SIZE], byteorder='little'
    )
    if signature != BOOT_SIGNATURE:
        log.debug(f'Invalid boot sector signature {hex(signature)}')
        raise InvalidBootSignature('Invalid MBR signature')

    if sector[FIRST_ENTRY_TYPE_OFFSET] == PROTECTIVE_TYPE:
        return TableType.GPT
    return TableType.MBR
