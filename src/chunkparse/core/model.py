from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, NoReturn, TypeVar, Union

from .input import Input

O = TypeVar("O")


class ErrorKind(str, Enum):
    TAG_MISMATCH = "TagMismatch"
    PREDICATE_FAILED = "PredicateFailed"
    MAP_CONVERSION_FAILED = "MapConversionFailed"
    REPETITION_EXHAUSTED = "RepetitionExhausted"
    CUSTOM = "Custom"
    # finer grained kinds used by individual combinators
    ALT = "Alt"
    COUNT = "Count"
    MANY_M_N = "ManyMN"
    MANY_TILL = "ManyTill"
    SEPARATED_LIST = "SeparatedList"
    LENGTH_VALUE = "LengthValue"
    VERIFY = "Verify"
    NOT = "Not"
    EOF = "Eof"
    NO_PROGRESS = "NoProgress"
    UNEXPECTED_EOF = "UnexpectedEof"
    BUFFER_LIMIT = "BufferLimit"


@dataclass(frozen=True, slots=True)
class Error:
    """A parse failure: what went wrong, where, and (optionally) why."""

    kind: ErrorKind
    position: int
    cause: Any = None           # Error, tuple[Error, ...] or an exception
    message: str | None = None

    def chain(self) -> list[tuple[ErrorKind, int]]:
        """Flatten the first-cause chain into ``(kind, position)`` pairs."""
        out = []
        err: Any = self
        while isinstance(err, Error):
            out.append((err.kind, err.position))
            cause = err.cause
            if isinstance(cause, tuple):
                cause = cause[0] if cause else None
            err = cause
        return out

    def describe(self) -> str:
        parts = []
        err: Any = self
        while isinstance(err, Error):
            text = f"{err.kind.value} at offset {err.position}"
            if err.message:
                text += f": {err.message}"
            parts.append(text)
            cause = err.cause
            if isinstance(cause, tuple):
                if len(cause) > 1:
                    parts.append(f"({len(cause)} alternatives failed)")
                cause = cause[0] if cause else None
            elif isinstance(cause, BaseException):
                parts.append(f"{type(cause).__name__}: {cause}")
            err = cause
        return " <- ".join(parts)


@dataclass(frozen=True, slots=True)
class Needed:
    """How many more bytes a parser wants. ``size=None`` means unknown."""

    size: int | None = None

    def __post_init__(self) -> None:
        if self.size is not None and self.size < 1:
            raise ValueError(f"Needed size must be positive, got {self.size}")

    @classmethod
    def of(cls, size: int | None) -> "Needed":
        return UNKNOWN if size is None else cls(size)

    @property
    def is_unknown(self) -> bool:
        return self.size is None

    def __add__(self, other: "Needed") -> "Needed":
        if self.size is None or other.size is None:
            return UNKNOWN
        return Needed(self.size + other.size)

    def __repr__(self) -> str:
        return "Needed(Unknown)" if self.size is None else f"Needed(Size({self.size}))"


UNKNOWN = Needed()


@dataclass(frozen=True, slots=True)
class Done(Generic[O]):
    remaining: Input
    output: O

    @property
    def rest(self) -> bytes:
        return self.remaining.tobytes()

    def consumed(self, inp: Input) -> int:
        return len(inp) - len(self.remaining)


@dataclass(frozen=True, slots=True)
class Failed:
    error: Error

    def unwrap(self) -> NoReturn:
        raise ParseError(self.error.describe(), self.error)


@dataclass(frozen=True, slots=True)
class Incomplete:
    needed: Needed


ParseResult = Union[Done[O], Failed, Incomplete]


def fail(kind: ErrorKind, inp: Input, cause: Any = None, message: str | None = None) -> Failed:
    return Failed(Error(kind, inp.position, cause, message))


class ParseError(RuntimeError):
    """Raised when a failed parse is surfaced to the caller as an exception."""

    def __init__(self, message: str, error: Error | None = None):
        super().__init__(message)
        self.error = error


class ConstructionError(ValueError):
    """Raised when a combinator is built with arguments that cannot work."""
    pass


class ConsumerStateError(RuntimeError):
    """Raised when a consumer is driven from a state that does not allow it."""
    pass


class BufferLimitError(ParseError):
    """Raised when appending a chunk would grow a buffer past its cap."""
    pass




@dataclass(slots=True)
class Report:
    """Outcome of framing one source, as reported by the command line."""

    success: bool
    data: Dict[str, Any] | None
    error: str | None
    bytes_fetched: int         # filled from the producer counters
    requests_made: int = 0
