"""Byte sources.

A byte source provides read-only access to the raw bytes of a disk image, either
from memory or from a file.
"""

from __future__ import annotations

import logging
import os
from stat import S_ISREG
from types import TracebackType
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from .typing import ReadableBuffer, StrPath

__all__ = ['ByteSource', 'BufferSource', 'FileSource']


log = logging.getLogger(__name__)


if hasattr(os, 'pread'):
    _read = os.pread
else:

    def _read(fd: int, size: int, pos: int) -> bytes:
        """Read ``size`` bytes from file descriptor ``fd`` starting at byte ``pos``."""
        os.lseek(fd, pos, os.SEEK_SET)
        return os.read(fd, size)


def _check_range(offset: int, size: int, available: int) -> None:
    if offset < 0:
        raise ValueError('Position to read from must be zero or positive')
    if size < 0:
        raise ValueError('Amount of bytes to read must be zero or positive')
    if offset + size > available:
        raise ValueError(
            f'Byte range ({offset}, {offset + size}) out of source bounds '
            f'(size is {available} bytes)'
        )


# noinspection PyPropertyDefinition
class ByteSource(Protocol):
    """Read-only sequence of bytes holding (the beginning of) a disk image."""

    @property
    def size(self) -> int:
        """Amount of bytes available."""
        ...

    def read_at(self, offset: int, size: int) -> bytes:
        """Read ``size`` bytes starting at byte ``offset``.

        ``ValueError`` is raised if the range does not fall within the source.
        """
        ...


class BufferSource:
    """Byte source backed by an in-memory buffer.

    The buffer is copied on creation, so later changes to it do not affect the
    source.
    """

    def __init__(self, data: ReadableBuffer):
        with memoryview(data) as view:
            self._data = view.tobytes()

    @property
    def size(self) -> int:
        return len(self._data)

    def read_at(self, offset: int, size: int) -> bytes:
        _check_range(offset, size, len(self._data))
        return self._data[offset : offset + size]

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}(size={len(self._data)})'


class FileSource:
    """Byte source backed by a regular file, read by offset on demand.

    Do not use ``__init__`` directly, use ``FileSource.open()`` instead.
    """

    def __init__(self, fd: int, path: StrPath, size: int):
        self._fd = fd
        self._path = str(path)
        self._size = size
        self._closed = False
        log.debug(f'Opened {self} - Size: {size} bytes')

    @classmethod
    def open(cls, path: StrPath) -> FileSource:
        """Open the disk image at ``path`` for reading."""
        flags = os.O_RDONLY | getattr(os, 'O_BINARY', 0)
        fd = os.open(path, flags)

        try:
            stat = os.fstat(fd)
            if not S_ISREG(stat.st_mode):
                raise ValueError(f'{path} is not a regular file')
            return cls(fd, path, stat.st_size)
        except BaseException:
            os.close(fd)
            raise

    @property
    def size(self) -> int:
        return self._size

    @property
    def path(self) -> str:
        return self._path

    @property
    def closed(self) -> bool:
        return self._closed

    def read_at(self, offset: int, size: int) -> bytes:
        self.check_closed()
        _check_range(offset, size, self._size)
        if size == 0:
            return b''

        b = _read(self._fd, size, offset)

        if len(b) != size:
            raise ValueError(
                f'Did not read the expected amount of bytes (expected {size} bytes, '
                f'got {len(b)} bytes)'
            )
        return b

    def close(self) -> None:
        """Close the underlying file descriptor.

        This method has no effect if the source is already closed.
        """
        if self._closed:
            return
        os.close(self._fd)
        self._closed = True
        log.debug(f'Closed {self}')

    def check_closed(self) -> None:
        """Raise ``ValueError`` if the source is closed."""
        if self._closed:
            raise ValueError('I/O operation on closed source')

    def __enter__(self) -> FileSource:
        self.check_closed()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def __str__(self) -> str:
        return self._path

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self._path}, size={self._size})'
