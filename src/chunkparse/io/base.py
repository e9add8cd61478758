"""Base protocols and shared types for the producer layer."""

from typing import Optional, Protocol, Union, runtime_checkable


class RangeNotSupportedError(RuntimeError):
    """Raised when a server rejects Range and the body cannot be re-read."""


RANGE_FALLBACK_MAX = 10 * 1024 * 1024  # 10 MB
DEFAULT_CHUNK_SIZE = 4096


class EndOfInput:
    """Marker returned by ``pull()`` once the source has no more bytes."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "END_OF_INPUT"


END_OF_INPUT = EndOfInput()

Chunk = Union[bytes, EndOfInput]


@runtime_checkable
class Producer(Protocol):
    """Protocol for synchronous chunk sources."""

    bytes_fetched: int  # running total
    requests_made: int

    def pull(self, size_hint: Optional[int] = None) -> Chunk:
        """Return the next non-empty chunk, or `END_OF_INPUT`.

        ``size_hint`` is how many bytes the caller knows it needs; a producer
        may return more or fewer.
        """
        ...

    def seek(self, position: int) -> bool:
        """Reposition so the next pull starts at absolute ``position``.
        Return False (never raise) when the source cannot do that.
        """
        ...


@runtime_checkable
class AsyncProducer(Protocol):
    """Protocol for asynchronous chunk sources."""

    bytes_fetched: int
    requests_made: int

    async def pull(self, size_hint: Optional[int] = None) -> Chunk:
        ...

    async def seek(self, position: int) -> bool:
        ...
