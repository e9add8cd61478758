"""Local producers: in-memory bytes, files (via mmap) and unseekable streams."""

import asyncio
import io
import logging
import mmap
from pathlib import Path
from typing import BinaryIO, Optional, Union

from .base import DEFAULT_CHUNK_SIZE, END_OF_INPUT, Chunk

logger = logging.getLogger(__name__)

LocalSource = Union[Path, str, bytes, bytearray, memoryview, BinaryIO]


class LocalProducer:
    """Synchronous producer over bytes, a local path or a binary file object."""

    def __init__(self, source: LocalSource, *, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.chunk_size = chunk_size
        self.bytes_fetched = 0
        self.requests_made = 0
        self._pos = 0
        self._file = None
        self._mmap = None
        self._data = None  # For in-memory sources
        self._stream = False  # sequential, unseekable source
        self._should_close_file = False

        if isinstance(source, (bytes, bytearray, memoryview)):
            self._data = bytes(source)
        elif hasattr(source, 'read'):
            # BinaryIO object
            self._file = source
            if isinstance(source, io.BytesIO):
                self._data = source.getvalue()
            elif not (hasattr(source, 'seekable') and source.seekable()):
                self._stream = True
        else:
            # Path or str
            self._file = open(source, 'rb')
            self._should_close_file = True

    def _ensure_mmap(self):
        """Create mmap on first access."""
        if self._mmap is not None or self._data is not None:
            return
        self._file.seek(0, 2)  # Seek to end
        if self._file.tell() == 0:
            # mmap refuses empty files
            self._data = b''
            return
        try:
            self._mmap = mmap.mmap(self._file.fileno(), 0, access=mmap.ACCESS_READ)
        except (io.UnsupportedOperation, OSError, ValueError):
            # Fallback for files that don't support fileno()
            self._file.seek(0)
            self._data = self._file.read()

    def _source(self):
        self._ensure_mmap()
        return self._mmap if self._mmap is not None else self._data

    @property
    def size(self) -> Optional[int]:
        """Total size of the source in bytes, or None for a stream."""
        if self._stream:
            return None
        return len(self._source())

    @property
    def seekable(self) -> bool:
        return not self._stream

    def pull(self, size_hint: Optional[int] = None) -> Chunk:
        """Return up to ``max(chunk_size, size_hint)`` bytes or `END_OF_INPUT`."""
        n = max(self.chunk_size, size_hint or 0)
        self.requests_made += 1
        if self._stream:
            chunk = self._file.read(n)
        else:
            source = self._source()
            chunk = bytes(source[self._pos:self._pos + n])
        if not chunk:
            return END_OF_INPUT
        self._pos += len(chunk)
        self.bytes_fetched += len(chunk)
        logger.debug("Pulled %d bytes, now at offset %d", len(chunk), self._pos)
        return chunk

    def seek(self, position: int) -> bool:
        if position < 0:
            return False
        if self._stream:
            # can only "seek" to where we already are
            return position == self._pos
        if position > len(self._source()):
            return False
        self._pos = position
        return True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Close mmap and file if we opened it."""
        if self._mmap is not None:
            self._mmap.close()
            self._mmap = None
        if self._should_close_file and self._file is not None:
            self._file.close()
            self._file = None


class LocalAsyncProducer:
    """Asynchronous local producer - thin wrapper around the sync one."""

    def __init__(self, source: LocalSource, *, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self._sync_producer = LocalProducer(source, chunk_size=chunk_size)

    @property
    def size(self) -> Optional[int]:
        return self._sync_producer.size

    @property
    def bytes_fetched(self) -> int:
        return self._sync_producer.bytes_fetched

    @property
    def requests_made(self) -> int:
        return self._sync_producer.requests_made

    async def pull(self, size_hint: Optional[int] = None) -> Chunk:
        return await asyncio.to_thread(self._sync_producer.pull, size_hint)

    async def seek(self, position: int) -> bool:
        return self._sync_producer.seek(position)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the underlying sync producer."""
        await asyncio.to_thread(self._sync_producer.close)


def open_local_producer(source: LocalSource, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> LocalProducer:
    """Create a synchronous local producer."""
    return LocalProducer(source, chunk_size=chunk_size)


async def open_local_producer_async(source: LocalSource, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> LocalAsyncProducer:
    """Create an asynchronous local producer."""
    return LocalAsyncProducer(source, chunk_size=chunk_size)
