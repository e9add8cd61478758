"""Byte-level primitives: literal tags, fixed takes and bounded scanning.

Every parser here follows the same rule for running out of input: if the view
is not `final` more bytes could still change the answer, so the parser reports
`Incomplete` (with an exact `Needed` size when one is known).  Once the view
is final the same situation is a failure, except for scanners whose region may
legitimately end at the end of input.
"""

from __future__ import annotations
from typing import Callable, Iterable

from ..core.input import Input
from ..core.model import (
    UNKNOWN,
    ConstructionError,
    Done,
    ErrorKind,
    Incomplete,
    Needed,
    ParseResult,
    fail,
)
from ..core.parser_base import Parser

BytePredicate = Callable[[int], bool]


def _as_bytes(value: bytes | bytearray | str) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def _byte_set(chars: bytes | bytearray | str | Iterable[int]) -> frozenset[int]:
    if isinstance(chars, (bytes, bytearray, str)):
        return frozenset(_as_bytes(chars))
    return frozenset(chars)


def _short(inp: Input, missing: int | None, message: str) -> ParseResult:
    """Out of bytes: defer while more may come, fail once the input is final."""
    if inp.final:
        return fail(ErrorKind.UNEXPECTED_EOF, inp, message=message)
    return Incomplete(Needed.of(missing))


def _first(inp: Input, pred: BytePredicate) -> int:
    data = inp.data
    for i in range(inp.start, inp.end):
        if pred(data[i]):
            return i - inp.start
    return -1


# --------------------------------------------------------------------------- #
def tag(pattern: bytes | str) -> Parser[bytes]:
    """Match ``pattern`` exactly and return it."""
    pat = _as_bytes(pattern)
    n = len(pat)

    def _tag(inp: Input) -> ParseResult[bytes]:
        avail = len(inp)
        if avail >= n:
            if inp.startswith(pat):
                return Done(inp.advance(n), pat)
            return fail(ErrorKind.TAG_MISMATCH, inp, message=f"expected {pat!r}")
        if not pat.startswith(inp.tobytes()):
            return fail(ErrorKind.TAG_MISMATCH, inp, message=f"expected {pat!r}")
        return _short(inp, n - avail, f"expected {pat!r}")

    return Parser(_tag, name=f"tag({pat!r})", nullable=n == 0)


def tag_no_case(pattern: bytes | str) -> Parser[bytes]:
    """ASCII case-insensitive `tag`; returns the bytes as they appear in the input."""
    pat = _as_bytes(pattern).lower()
    n = len(pat)

    def _tag_no_case(inp: Input) -> ParseResult[bytes]:
        head = inp.peek(n)
        if not pat.startswith(head.lower()):
            return fail(ErrorKind.TAG_MISMATCH, inp, message=f"expected {pat!r} (any case)")
        if len(head) < n:
            return _short(inp, n - len(head), f"expected {pat!r} (any case)")
        return Done(inp.advance(n), head)

    return Parser(_tag_no_case, name=f"tag_no_case({pat!r})", nullable=n == 0)


def char(c: bytes | str) -> Parser[bytes]:
    pat = _as_bytes(c)
    if len(pat) != 1:
        raise ConstructionError(f"char() expects a single byte, got {pat!r}")
    return tag(pat).named(f"char({pat!r})")


def take(n: int) -> Parser[bytes]:
    """Take exactly ``n`` bytes."""
    if n < 0:
        raise ConstructionError(f"take() needs a non-negative count, got {n}")

    def _take(inp: Input) -> ParseResult[bytes]:
        avail = len(inp)
        if avail < n:
            return _short(inp, n - avail, f"expected {n} bytes, {avail} available")
        return Done(inp.advance(n), inp.peek(n))

    return Parser(_take, name=f"take({n})", nullable=n == 0)


# --- single byte classes --------------------------------------------------- #
def _single(name: str, accept: BytePredicate) -> Parser[bytes]:
    def _one(inp: Input) -> ParseResult[bytes]:
        if not len(inp):
            return _short(inp, 1, f"{name}: expected one byte")
        if not accept(inp[0]):
            return fail(ErrorKind.PREDICATE_FAILED, inp, message=f"{name}: unexpected {inp.peek(1)!r}")
        return Done(inp.advance(1), inp.peek(1))

    return Parser(_one, name=name)


def one_of(chars: bytes | str | Iterable[int]) -> Parser[bytes]:
    allowed = _byte_set(chars)
    return _single(f"one_of({bytes(sorted(allowed))!r})", allowed.__contains__)


def none_of(chars: bytes | str | Iterable[int]) -> Parser[bytes]:
    banned = _byte_set(chars)
    return _single(f"none_of({bytes(sorted(banned))!r})", lambda b: b not in banned)


def satisfy(pred: BytePredicate) -> Parser[bytes]:
    return _single(getattr(pred, "__name__", "satisfy"), pred)


# --- scanning -------------------------------------------------------------- #
def _take_while(pred: BytePredicate, min_len: int, name: str) -> Parser[bytes]:
    def _scan(inp: Input) -> ParseResult[bytes]:
        i = _first(inp, lambda b: not pred(b))
        if i < 0:
            if not inp.final:
                return Incomplete(UNKNOWN)
            i = len(inp)
        if i < min_len:
            return fail(ErrorKind.PREDICATE_FAILED, inp, message=f"{name}: no matching byte")
        return Done(inp.advance(i), inp.peek(i))

    return Parser(_scan, name=name, nullable=min_len == 0)


def take_while(pred: BytePredicate) -> Parser[bytes]:
    """Longest prefix whose bytes all satisfy ``pred`` (may be empty)."""
    return _take_while(pred, 0, "take_while")


def take_while1(pred: BytePredicate) -> Parser[bytes]:
    return _take_while(pred, 1, "take_while1")


def is_a(chars: bytes | str | Iterable[int]) -> Parser[bytes]:
    """Non-empty run of bytes drawn from ``chars``."""
    allowed = _byte_set(chars)
    return _take_while(allowed.__contains__, 1, f"is_a({bytes(sorted(allowed))!r})")


def _take_till(pred: BytePredicate, min_len: int, consume: bool, name: str) -> Parser[bytes]:
    def _scan(inp: Input) -> ParseResult[bytes]:
        i = _first(inp, pred)
        if i < 0:
            if not inp.final:
                return Incomplete(UNKNOWN)
            if consume:
                return fail(ErrorKind.PREDICATE_FAILED, inp, message=f"{name}: boundary not found")
            i = step = len(inp)
        else:
            step = i + 1 if consume else i
        if i < min_len:
            return fail(ErrorKind.PREDICATE_FAILED, inp, message=f"{name}: empty match")
        return Done(inp.advance(step), inp.peek(i))

    return Parser(_scan, name=name, nullable=min_len == 0 and not consume)


def take_till(pred: BytePredicate, *, consume: bool = False) -> Parser[bytes]:
    """Bytes up to the first one satisfying ``pred``.

    With ``consume=True`` the boundary byte is consumed as well (it is never
    part of the output); otherwise it is left for the next parser.
    """
    return _take_till(pred, 0, consume, "take_till")


def take_till1(pred: BytePredicate, *, consume: bool = False) -> Parser[bytes]:
    return _take_till(pred, 1, consume, "take_till1")


def is_not(chars: bytes | str | Iterable[int], *, consume: bool = False) -> Parser[bytes]:
    """Non-empty run of bytes not in ``chars``; see `take_till` for ``consume``."""
    banned = _byte_set(chars)
    return _take_till(banned.__contains__, 1, consume, f"is_not({bytes(sorted(banned))!r})")


def take_until(terminator: bytes | str, *, consume: bool = False) -> Parser[bytes]:
    """Bytes up to the first occurrence of ``terminator``.

    The terminator must be seen: at end of input its absence is a
    `PredicateFailed`, before that it is `Incomplete(Unknown)`.
    """
    term = _as_bytes(terminator)
    if not term:
        raise ConstructionError("take_until() needs a non-empty terminator")

    def _take_until(inp: Input) -> ParseResult[bytes]:
        i = inp.find(term)
        if i < 0:
            if inp.final:
                return fail(ErrorKind.PREDICATE_FAILED, inp, message=f"terminator {term!r} not found")
            return Incomplete(UNKNOWN)
        step = i + len(term) if consume else i
        return Done(inp.advance(step), inp.peek(i))

    return Parser(_take_until, name=f"take_until({term!r})", nullable=not consume)


def take_until_and_consume(terminator: bytes | str) -> Parser[bytes]:
    return take_until(terminator, consume=True)


# --- whole-input ----------------------------------------------------------- #
def rest() -> Parser[bytes]:
    """Everything up to the end of input; only decidable once input is final."""
    def _rest(inp: Input) -> ParseResult[bytes]:
        if not inp.final:
            return Incomplete(UNKNOWN)
        return Done(inp.advance(len(inp)), inp.tobytes())

    return Parser(_rest, name="rest", nullable=True)


def eof() -> Parser[bytes]:
    def _eof(inp: Input) -> ParseResult[bytes]:
        if len(inp):
            return fail(ErrorKind.EOF, inp, message=f"{len(inp)} trailing bytes")
        if not inp.final:
            return Incomplete(UNKNOWN)
        return Done(inp, b"")

    return Parser(_eof, name="eof", nullable=True)
