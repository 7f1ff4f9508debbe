"""Certain types used across the package."""

from __future__ import annotations

from array import array
from mmap import mmap
from os import PathLike
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    ReadOnlyBuffer = bytes
    WriteableBuffer = Union[bytearray, memoryview, array[Any], mmap]
    ReadableBuffer = Union[ReadOnlyBuffer, WriteableBuffer]

    StrPath = Union[str, PathLike[str]]


__all__ = [
    'NoneType',
    'StrPath',
    'ReadOnlyBuffer',
    'WriteableBuffer',
    'ReadableBuffer',
]


NoneType = type(None)
