"""Exception classes, constants and helper functions used across ``partscan``."""

from __future__ import annotations

__all__ = [
    'SECTOR_SIZE',
    'GIB',
    'ValidationError',
    'InvalidBootSignature',
    'TruncatedSourceError',
    'sectors_to_bytes',
    'bytes_to_gib',
]


SECTOR_SIZE = 512  # all LBA values are expressed in units of this size
GIB = 1 << 30


class ValidationError(ValueError):
    """Exception raised if the data to be parsed as a specific structure -- for
    example a boot sector -- does not conform to the standard of the structure.

    Raising it aborts the analysis of a disk image. Less severe anomalies are
    reported as ``Advisory`` records instead.
    """


class InvalidBootSignature(ValidationError):
    """Exception raised if the boot sector signature is not ``0xAA55``."""


class TruncatedSourceError(ValidationError):
    """Exception raised if a byte source is too small to hold a boot sector."""


def sectors_to_bytes(sectors: int) -> int:
    """Return the size of ``sectors`` logical sectors in bytes."""
    return sectors * SECTOR_SIZE


def bytes_to_gib(size: int) -> float:
    """Return ``size`` bytes expressed in gibibytes (binary gigabytes)."""
    return size / GIB
