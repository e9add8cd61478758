"""Drive one parser over a growing buffer fed from a producer."""

from __future__ import annotations
import logging
from enum import Enum
from typing import Any, AsyncIterator, Generic, Iterator, TypeVar

from ..core.model import (
    BufferLimitError,
    ConsumerStateError,
    Done,
    Error,
    ErrorKind,
    Failed,
    Incomplete,
    Needed,
    ParseError,
    ParseResult,
)
from ..core.parser_base import Parser, as_parser
from ..io.base import AsyncProducer, Producer
from .buffer import COMPACT_THRESHOLD, StreamBuffer

logger = logging.getLogger(__name__)

O = TypeVar("O")


class ConsumerState(str, Enum):
    RUNNING = "running"
    AWAITING_MORE = "awaiting_more"
    DONE = "done"
    FAILED = "failed"


_TERMINAL = (ConsumerState.DONE, ConsumerState.FAILED)


class Consumer(Generic[O]):
    """State machine applying ``parser`` to the unconsumed part of a buffer.

    Every attempt re-runs the parser from the start of the unconsumed window,
    so the outcome does not depend on how the bytes were split into chunks.
    After ``Incomplete(Size(n))`` the parser is not retried until ``n`` more
    bytes have arrived.
    """

    def __init__(
        self,
        parser: Any,
        *,
        max_buffer_size: int | None = None,
        compact_threshold: int = COMPACT_THRESHOLD,
    ) -> None:
        self.parser: Parser[O] = as_parser(parser)
        self.buffer = StreamBuffer(max_size=max_buffer_size, compact_threshold=compact_threshold)
        self.state = ConsumerState.RUNNING
        self.result: ParseResult[O] | None = None
        self.consumed = 0           # bytes consumed by the last Done
        self.exhausted = False      # the producer has signalled end of input
        self._ended = False
        self._needed: Needed | None = None
        self._arrived = 0           # bytes received since the last Incomplete

    @property
    def position(self) -> int:
        """Absolute stream offset of the first unconsumed byte."""
        return self.buffer.position

    def _check_live(self, action: str) -> None:
        if self.state in _TERMINAL:
            raise ConsumerStateError(f"cannot {action}: consumer is {self.state.value}")

    def _finish(self, res: ParseResult[O], state: ConsumerState) -> ParseResult[O]:
        self.state = state
        self.result = res
        if isinstance(res, Failed):
            logger.debug("Parser %s failed: %s", self.parser.name, res.error.describe())
        return res

    # ------------------------------------------------------------------ #
    def step(self) -> ParseResult[O]:
        """Apply the parser once to everything buffered but not consumed."""
        self._check_live("step")
        self.state = ConsumerState.RUNNING
        view = self.buffer.view(final=self.exhausted)
        res = self.parser.parse(view)

        if isinstance(res, Done):
            self.consumed = len(view) - len(res.remaining)
            self.buffer.consume(self.consumed)
            logger.debug("Parser %s done at offset %d (%d bytes)", self.parser.name, self.position, self.consumed)
            return self._finish(res, ConsumerState.DONE)
        if isinstance(res, Failed):
            return self._finish(res, ConsumerState.FAILED)
        if self.exhausted:
            err = Error(
                ErrorKind.UNEXPECTED_EOF,
                self.buffer.end_position,
                message=f"input ended while {self.parser.name} needed {res.needed!r}",
            )
            return self._finish(Failed(err), ConsumerState.FAILED)

        self.state = ConsumerState.AWAITING_MORE
        self.result = res
        self._needed = res.needed
        self._arrived = 0
        return res

    def feed(self, chunk: bytes) -> ParseResult[O]:
        """Append ``chunk`` and retry the parser if enough bytes have arrived."""
        self._check_live("feed")
        if self.exhausted:
            raise ConsumerStateError("cannot feed: end of input already signalled")
        try:
            self.buffer.append(chunk)
        except BufferLimitError as e:
            err = Error(ErrorKind.BUFFER_LIMIT, self.buffer.end_position, message=str(e))
            return self._finish(Failed(err), ConsumerState.FAILED)

        self._arrived += len(chunk)
        needed = self._needed
        if (
            self.state is ConsumerState.AWAITING_MORE
            and needed is not None
            and needed.size is not None
            and self._arrived < needed.size
        ):
            self.result = Incomplete(Needed(needed.size - self._arrived))
            return self.result
        return self.step()

    def end(self) -> ParseResult[O]:
        """Signal end of input and let the parser decide on what is left.

        A parser still asking for bytes at this point has failed.
        """
        if self._ended:
            raise ConsumerStateError("end() already called")
        self._ended = True
        self.exhausted = True
        logger.debug("End of input at offset %d, %d bytes buffered", self.buffer.end_position, len(self.buffer))
        if self.state in _TERMINAL:
            return self.result
        return self.step()

    def next_session(self) -> None:
        """Start parsing the next value from the bytes left after a `Done`."""
        if self.state is not ConsumerState.DONE:
            raise ConsumerStateError(f"next_session() needs a finished session, consumer is {self.state.value}")
        self.state = ConsumerState.RUNNING
        self.result = None
        self._needed = None
        self._arrived = 0

    # ------------------------------------------------------------------ #
    def run_to_completion(self, producer: Producer) -> ParseResult[O]:
        """Pull chunks from ``producer`` until the session is done or failed."""
        if self.state in _TERMINAL:
            return self.result
        res = self.result if self.state is ConsumerState.AWAITING_MORE else self.step()
        while isinstance(res, Incomplete):
            chunk = producer.pull(res.needed.size)
            if not chunk:
                return self.end()
            res = self.feed(chunk)
        return res

    async def run_to_completion_async(self, producer: AsyncProducer) -> ParseResult[O]:
        if self.state in _TERMINAL:
            return self.result
        res = self.result if self.state is ConsumerState.AWAITING_MORE else self.step()
        while isinstance(res, Incomplete):
            chunk = await producer.pull(res.needed.size)
            if not chunk:
                return self.end()
            res = self.feed(chunk)
        return res

    def _after_session(self, res: ParseResult[O]) -> bool:
        """Return True if ``res`` is a value to hand out, False at a clean end."""
        clean_end = self.exhausted and not len(self.buffer)
        if clean_end and (isinstance(res, Failed) or self.consumed == 0):
            return False
        if isinstance(res, Failed):
            raise ParseError(res.error.describe(), res.error)
        if self.consumed == 0:
            err = Error(ErrorKind.NO_PROGRESS, self.position, message=f"{self.parser.name} consumed nothing")
            raise ParseError(err.describe(), err)
        return True

    def iter_values(self, producer: Producer) -> Iterator[O]:
        """Yield successive values until the source ends between two values.

        Raises `ParseError` when a value fails to parse.
        """
        while not (self.exhausted and not len(self.buffer)):
            res = self.run_to_completion(producer)
            if not self._after_session(res):
                return
            yield res.output
            self.next_session()

    async def aiter_values(self, producer: AsyncProducer) -> AsyncIterator[O]:
        while not (self.exhausted and not len(self.buffer)):
            res = await self.run_to_completion_async(producer)
            if not self._after_session(res):
                return
            yield res.output
            self.next_session()

    # ------------------------------------------------------------------ #
    def seek(self, producer: Producer, position: int) -> bool:
        """Reposition ``producer`` and restart with an empty buffer there."""
        if not producer.seek(position):
            logger.info("Producer %s cannot seek to %d", type(producer).__name__, position)
            return False
        self._restart(position)
        return True

    async def seek_async(self, producer: AsyncProducer, position: int) -> bool:
        if not await producer.seek(position):
            logger.info("Producer %s cannot seek to %d", type(producer).__name__, position)
            return False
        self._restart(position)
        return True

    def _restart(self, position: int) -> None:
        self.buffer.reset(position)
        self.state = ConsumerState.RUNNING
        self.result = None
        self.consumed = 0
        self.exhausted = False
        self._ended = False
        self._needed = None
        self._arrived = 0
