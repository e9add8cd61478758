"""Growing/compacting byte buffer behind a consumer."""

from __future__ import annotations
import logging

from ..core.input import Input
from ..core.model import BufferLimitError

logger = logging.getLogger(__name__)

COMPACT_THRESHOLD = 64 * 1024  # 64 KiB


class StreamBuffer:
    """Bytes received but not yet confirmed consumed.

    Offsets are absolute stream positions: ``position`` is the first
    unconsumed byte, ``end_position`` one past the last received byte.  Views
    handed out by `view` are windows over one immutable snapshot of the
    buffer, so compaction never invalidates them.  The snapshot is shared by
    every view until the next `append`, `compact` or `reset`; consuming only
    moves the window start.
    """

    def __init__(self, *, max_size: int | None = None, compact_threshold: int = COMPACT_THRESHOLD):
        self._data = bytearray()
        self._snapshot: bytes | None = None
        self._cursor = 0
        self._base = 0
        self.max_size = max_size
        self.compact_threshold = compact_threshold
        self.bytes_received = 0
        self.compactions = 0

    def __len__(self) -> int:
        return len(self._data) - self._cursor

    @property
    def position(self) -> int:
        return self._base + self._cursor

    @property
    def end_position(self) -> int:
        return self._base + len(self._data)

    def append(self, chunk: bytes) -> None:
        if self.max_size is not None and len(self) + len(chunk) > self.max_size:
            raise BufferLimitError(
                f"buffer would hold {len(self) + len(chunk)} bytes, limit is {self.max_size}"
            )
        if not chunk:
            return
        self._data.extend(chunk)
        self._snapshot = None
        self.bytes_received += len(chunk)

    def view(self, *, final: bool = False) -> Input:
        if self._snapshot is None:
            self._snapshot = bytes(self._data)
        return Input(self._snapshot, self._cursor, len(self._data), self._base, final)

    def consume(self, n: int) -> None:
        if n < 0 or n > len(self):
            raise ValueError(f"cannot consume {n} of {len(self)} buffered bytes")
        self._cursor += n
        if self._cursor >= self.compact_threshold or self._cursor * 2 >= len(self._data):
            self.compact()

    def compact(self) -> None:
        if not self._cursor:
            return
        logger.debug("Compacting buffer: dropping %d bytes before offset %d", self._cursor, self.position)
        del self._data[:self._cursor]
        self._snapshot = None
        self._base += self._cursor
        self._cursor = 0
        self.compactions += 1

    def reset(self, position: int = 0) -> None:
        """Drop everything and continue as if the stream started at ``position``."""
        self._data.clear()
        self._snapshot = None
        self._cursor = 0
        self._base = position
