"""I/O layer for chunkparse - hands out chunks of a source to the consumer."""

# Re-export these for import convenience
from .base import (
    AsyncProducer,
    Chunk,
    DEFAULT_CHUNK_SIZE,
    END_OF_INPUT,
    Producer,
    RANGE_FALLBACK_MAX,
    RangeNotSupportedError,
)
from .local import LocalAsyncProducer, LocalProducer, open_local_producer, open_local_producer_async
from .http_sync import HTTPProducer, open_http_producer
from .http_async import AsyncHTTPProducer, close_global_client, open_http_producer_async


def _is_url(source) -> bool:
    return isinstance(source, str) and source.startswith(('http://', 'https://'))


def open_producer(source, *, chunk_size: int = DEFAULT_CHUNK_SIZE):
    """Factory function to create the appropriate Producer for ``source``."""
    if _is_url(source):
        return open_http_producer(source, chunk_size=chunk_size)
    return open_local_producer(source, chunk_size=chunk_size)


async def open_producer_async(source, *, chunk_size: int = DEFAULT_CHUNK_SIZE):
    """Factory function to create the appropriate AsyncProducer for ``source``."""
    if _is_url(source):
        return await open_http_producer_async(source, chunk_size=chunk_size)
    return await open_local_producer_async(source, chunk_size=chunk_size)
