"""chunkparse - parser combinators that work on input arriving in chunks."""

from __future__ import annotations
from typing import Any, AsyncIterator, Dict, Iterator, List

from .core.model import (                                             # re-export
    UNKNOWN, ConstructionError, ConsumerStateError, BufferLimitError,
    Done, Error, ErrorKind, Failed, Incomplete, Needed, ParseError, ParseResult, Report,
)
from .core.input import Input
from .core.parser_base import Parser, as_parser, parser
from .core.util import b64
from .io import DEFAULT_CHUNK_SIZE, END_OF_INPUT, RangeNotSupportedError, open_producer, open_producer_async
from .stream import Consumer, ConsumerState, StreamBuffer


def _source_name(source) -> str | None:
    if isinstance(source, (bytes, bytearray, memoryview)):
        return None
    return getattr(source, "name", None) if hasattr(source, "read") else str(source)


def parse_source_sync(
    p: Any,
    source,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    offset: int = 0,
    max_buffer_size: int | None = None,
) -> ParseResult:
    """Run ``p`` once over a source (path, URL, bytes or file-like object)."""
    with open_producer(source, chunk_size=chunk_size) as producer:
        consumer = Consumer(p, max_buffer_size=max_buffer_size)
        if offset and not consumer.seek(producer, offset):
            raise IOError(f"cannot seek to offset {offset}")
        return consumer.run_to_completion(producer)


async def parse_source(
    p: Any,
    source,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    offset: int = 0,
    max_buffer_size: int | None = None,
) -> ParseResult:
    """Run ``p`` once over a source asynchronously."""
    producer = await open_producer_async(source, chunk_size=chunk_size)
    async with producer:
        consumer = Consumer(p, max_buffer_size=max_buffer_size)
        if offset and not await consumer.seek_async(producer, offset):
            raise IOError(f"cannot seek to offset {offset}")
        return await consumer.run_to_completion_async(producer)


def iter_source(
    p: Any,
    source,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    offset: int = 0,
    max_buffer_size: int | None = None,
) -> Iterator[Any]:
    """Yield successive values parsed by ``p`` until the source is used up."""
    with open_producer(source, chunk_size=chunk_size) as producer:
        consumer = Consumer(p, max_buffer_size=max_buffer_size)
        if offset and not consumer.seek(producer, offset):
            raise IOError(f"cannot seek to offset {offset}")
        yield from consumer.iter_values(producer)


async def aiter_source(
    p: Any,
    source,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    offset: int = 0,
    max_buffer_size: int | None = None,
) -> AsyncIterator[Any]:
    producer = await open_producer_async(source, chunk_size=chunk_size)
    async with producer:
        consumer = Consumer(p, max_buffer_size=max_buffer_size)
        if offset and not await consumer.seek_async(producer, offset):
            raise IOError(f"cannot seek to offset {offset}")
        async for value in consumer.aiter_values(producer):
            yield value


class _FrameTally:
    """Accumulates what the command line reports about the frames of one source."""

    def __init__(self, source, offset: int, peek: int | None):
        self.source = _source_name(source)
        self.offset = offset
        self.peek = peek
        self.frames = 0
        self.frame_bytes = 0
        self.largest_frame = 0
        self.peeks: List[str] = []

    def add(self, frame: bytes) -> None:
        self.frames += 1
        self.frame_bytes += len(frame)
        self.largest_frame = max(self.largest_frame, len(frame))
        if self.peek is not None:
            self.peeks.append(b64(frame[:self.peek]))

    def data(self, end_offset: int) -> Dict[str, Any]:
        return {
            "source": self.source,
            "offset": self.offset,
            "end_offset": end_offset,
            "frames": self.frames,
            "frame_bytes": self.frame_bytes,
            "largest_frame": self.largest_frame,
            "peek": self.peeks if self.peek is not None else None,
        }


def read_frames_sync(
    framer: Any,
    source,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    offset: int = 0,
    peek: int | None = None,
    max_buffer_size: int | None = None,
) -> Report:
    """Frame a whole source with ``framer`` and summarise the result."""
    tally = _FrameTally(source, offset, peek)
    with open_producer(source, chunk_size=chunk_size) as producer:
        consumer = Consumer(framer, max_buffer_size=max_buffer_size)
        error = None
        if offset and not consumer.seek(producer, offset):
            error = f"cannot seek to offset {offset}"
        else:
            try:
                for frame in consumer.iter_values(producer):
                    tally.add(frame)
            except ParseError as e:
                error = str(e)
    return Report(
        success=error is None,
        data=tally.data(consumer.position),
        error=error,
        bytes_fetched=producer.bytes_fetched,
        requests_made=producer.requests_made,
    )


async def read_frames(
    framer: Any,
    source,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    offset: int = 0,
    peek: int | None = None,
    max_buffer_size: int | None = None,
) -> Report:
    """Asynchronous `read_frames_sync`."""
    tally = _FrameTally(source, offset, peek)
    producer = await open_producer_async(source, chunk_size=chunk_size)
    async with producer:
        consumer = Consumer(framer, max_buffer_size=max_buffer_size)
        error = None
        if offset and not await consumer.seek_async(producer, offset):
            error = f"cannot seek to offset {offset}"
        else:
            try:
                async for frame in consumer.aiter_values(producer):
                    tally.add(frame)
            except ParseError as e:
                error = str(e)
    return Report(
        success=error is None,
        data=tally.data(consumer.position),
        error=error,
        bytes_fetched=producer.bytes_fetched,
        requests_made=producer.requests_made,
    )


__all__ = [
    "parse_source", "parse_source_sync", "iter_source", "aiter_source",
    "read_frames", "read_frames_sync",
    "Parser", "parser", "as_parser", "Input",
    "Done", "Failed", "Incomplete", "Needed", "UNKNOWN", "ParseResult",
    "Error", "ErrorKind", "Report",
    "ParseError", "ConstructionError", "ConsumerStateError", "BufferLimitError", "RangeNotSupportedError",
    "Consumer", "ConsumerState", "StreamBuffer", "END_OF_INPUT",
]
