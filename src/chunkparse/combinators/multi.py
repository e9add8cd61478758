"""Applying parsers multiple times.

Repetition bodies must consume input on every successful iteration.  Bodies
that are statically known to be able to succeed on nothing are refused when
the combinator is built; a body that slips through and succeeds without
consuming at run time produces ``Failed(NoProgress)`` instead of looping.

An ``Incomplete`` from a body is always propagated: stopping there would make
the result depend on where a chunk boundary happened to fall.
"""

from __future__ import annotations
import math
from typing import Any, Callable, TypeVar

from ..core.input import Input
from ..core.model import (
    ConstructionError,
    Done,
    ErrorKind,
    Failed,
    Incomplete,
    Needed,
    ParseResult,
    fail,
)
from ..core.parser_base import Parser, as_parser
from .bytes import _short

R = TypeVar("R")


def _require_progress(p: Parser, who: str) -> None:
    if p.nullable:
        raise ConstructionError(f"{who}: {p.name} can succeed without consuming input")


def _no_progress(inp: Input, p: Parser) -> Failed:
    return fail(ErrorKind.NO_PROGRESS, inp, message=f"{p.name} succeeded without consuming input")


def _append(acc: list, item: Any) -> list:
    acc.append(item)
    return acc


# --------------------------------------------------------------------------- #
def _fold(
    p: Any,
    m: int,
    n: float,
    init: Callable[[], R],
    fold: Callable[[R, Any], R],
    kind: ErrorKind,
    name: str,
) -> Parser[R]:
    p = as_parser(p)
    if m < 0 or n < m:
        raise ConstructionError(f"{name}: invalid bounds m={m}, n={n}")
    _require_progress(p, name)

    def _run(inp: Input) -> ParseResult[R]:
        acc = init()
        cur = inp
        count = 0
        while count < n:
            res = p.parse(cur)
            if isinstance(res, Done):
                if len(res.remaining) == len(cur):
                    return _no_progress(cur, p)
                acc = fold(acc, res.output)
                cur = res.remaining
                count += 1
            elif isinstance(res, Failed):
                if count < m:
                    return fail(kind, inp, cause=res.error, message=f"{name}: matched {count} of at least {m}")
                break
            else:
                return res
        return Done(cur, acc)

    return Parser(_run, name=f"{name}({p.name})", nullable=m == 0)


def many0(p: Any) -> Parser[list]:
    """Apply ``p`` until it fails; always succeeds, possibly with ``[]``."""
    return _fold(p, 0, math.inf, list, _append, ErrorKind.MANY_M_N, "many0")


def many1(p: Any) -> Parser[list]:
    """Like `many0` but at least one match is required (`RepetitionExhausted`)."""
    return _fold(p, 1, math.inf, list, _append, ErrorKind.REPETITION_EXHAUSTED, "many1")


def many_m_n(m: int, n: int, p: Any) -> Parser[list]:
    """Between ``m`` and ``n`` matches (inclusive); stops after ``n``."""
    return _fold(p, m, n, list, _append, ErrorKind.MANY_M_N, "many_m_n")


def fold_many0(p: Any, init: Callable[[], R], fold: Callable[[R, Any], R]) -> Parser[R]:
    """`many0` folding each output into an accumulator built by ``init()``."""
    return _fold(p, 0, math.inf, init, fold, ErrorKind.MANY_M_N, "fold_many0")


def fold_many1(p: Any, init: Callable[[], R], fold: Callable[[R, Any], R]) -> Parser[R]:
    return _fold(p, 1, math.inf, init, fold, ErrorKind.REPETITION_EXHAUSTED, "fold_many1")


def fold_many_m_n(m: int, n: int, p: Any, init: Callable[[], R], fold: Callable[[R, Any], R]) -> Parser[R]:
    return _fold(p, m, n, init, fold, ErrorKind.MANY_M_N, "fold_many_m_n")


# --------------------------------------------------------------------------- #
def many_till(p: Any, end: Any) -> Parser[tuple]:
    """Apply ``p`` until ``end`` matches; returns ``(outputs, end_output)``."""
    p, end = as_parser(p), as_parser(end)
    _require_progress(p, "many_till")

    def _many_till(inp: Input) -> ParseResult[tuple]:
        outs: list = []
        cur = inp
        while True:
            stop = end.parse(cur)
            if isinstance(stop, Done):
                return Done(stop.remaining, (outs, stop.output))
            if isinstance(stop, Incomplete):
                return stop
            res = p.parse(cur)
            if isinstance(res, Failed):
                return fail(ErrorKind.MANY_TILL, inp, cause=res.error, message=f"neither {end.name} nor {p.name} matched")
            if isinstance(res, Incomplete):
                return res
            if len(res.remaining) == len(cur):
                return _no_progress(cur, p)
            outs.append(res.output)
            cur = res.remaining

    return Parser(_many_till, name=f"many_till({p.name}, {end.name})", nullable=end.nullable)


def _separated(sep: Any, p: Any, nonempty: bool) -> Parser[list]:
    sep, p = as_parser(sep), as_parser(p)
    name = "separated_list1" if nonempty else "separated_list0"
    if sep.nullable and p.nullable:
        raise ConstructionError(f"{name}: {sep.name} and {p.name} can both succeed without consuming input")

    def _run(inp: Input) -> ParseResult[list]:
        first = p.parse(inp)
        if isinstance(first, Failed):
            if nonempty:
                return fail(ErrorKind.SEPARATED_LIST, inp, cause=first.error, message=f"{name}: no first element")
            return Done(inp, [])
        if isinstance(first, Incomplete):
            return first
        outs = [first.output]
        cur = first.remaining
        while True:
            s = sep.parse(cur)
            if isinstance(s, Failed):
                break
            if isinstance(s, Incomplete):
                return s
            item = p.parse(s.remaining)
            if isinstance(item, Failed):
                # the separator is left unconsumed
                break
            if isinstance(item, Incomplete):
                return item
            if len(item.remaining) == len(cur):
                return _no_progress(cur, p)
            outs.append(item.output)
            cur = item.remaining
        return Done(cur, outs)

    return Parser(_run, name=f"{name}({sep.name}, {p.name})", nullable=not nonempty or p.nullable)


def separated_list0(sep: Any, p: Any) -> Parser[list]:
    return _separated(sep, p, False)


def separated_list1(sep: Any, p: Any) -> Parser[list]:
    return _separated(sep, p, True)


# --- counted --------------------------------------------------------------- #
def _negative_length(inp: Input, n: int) -> Failed:
    return fail(ErrorKind.LENGTH_VALUE, inp, message=f"length prefix decoded to {n}")


def _check_size(name: str, size: int | None) -> None:
    if size is not None and size < 1:
        raise ConstructionError(f"{name} must be at least 1, got {size}")


def count(p: Any, n: int, *, total_size: int | None = None) -> Parser[list]:
    """Apply ``p`` exactly ``n`` times.

    ``total_size`` declares how many bytes the ``n`` repetitions span in total,
    so that running out of input reports the whole deficit at once rather than
    one repetition at a time.
    """
    p = as_parser(p)
    if n < 0:
        raise ConstructionError(f"count() needs a non-negative count, got {n}")
    if n:
        _check_size("total_size", total_size)
    elif total_size:
        raise ConstructionError(f"count() of zero repetitions cannot span {total_size} bytes")

    def _count(inp: Input) -> ParseResult[list]:
        outs = []
        cur = inp
        for _ in range(n):
            res = p.parse(cur)
            if isinstance(res, Failed):
                return fail(ErrorKind.COUNT, inp, cause=res.error, message=f"repetition {len(outs) + 1} of {n} failed")
            if isinstance(res, Incomplete):
                if total_size is not None and total_size > len(inp):
                    return Incomplete(Needed(total_size - len(inp)))
                return res
            outs.append(res.output)
            cur = res.remaining
        return Done(cur, outs)

    return Parser(_count, name=f"count({p.name}, {n})", nullable=n == 0 or p.nullable)


def length_count(n_parser: Any, p: Any, *, item_size: int | None = None) -> Parser[list]:
    """Read a count with ``n_parser``, then apply ``p`` that many times.

    With ``item_size`` the deficit of a short buffer is the current item's
    deficit plus the size of every repetition not yet started.
    """
    n_parser, p = as_parser(n_parser), as_parser(p)
    _check_size("item_size", item_size)

    def _length_count(inp: Input) -> ParseResult[list]:
        head = n_parser.parse(inp)
        if not isinstance(head, Done):
            return head
        n = int(head.output)
        if n < 0:
            return _negative_length(inp, n)
        outs = []
        cur = head.remaining
        for i in range(n):
            res = p.parse(cur)
            if isinstance(res, Failed):
                return fail(ErrorKind.LENGTH_VALUE, inp, cause=res.error, message=f"item {i + 1} of {n} failed")
            if isinstance(res, Incomplete):
                untouched = n - i - 1
                if item_size is not None and untouched:
                    return Incomplete(res.needed + Needed(untouched * item_size))
                return res
            outs.append(res.output)
            cur = res.remaining
        return Done(cur, outs)

    return Parser(_length_count, name=f"length_count({n_parser.name}, {p.name})", nullable=n_parser.nullable)


def length_data(n_parser: Any) -> Parser[bytes]:
    """Read a length with ``n_parser``, then take that many bytes."""
    n_parser = as_parser(n_parser)

    def _length_data(inp: Input) -> ParseResult[bytes]:
        head = n_parser.parse(inp)
        if not isinstance(head, Done):
            return head
        n = int(head.output)
        if n < 0:
            return _negative_length(inp, n)
        body = head.remaining
        if len(body) < n:
            return _short(body, n - len(body), f"length prefix announced {n} bytes, {len(body)} available")
        return Done(body.advance(n), body.peek(n))

    return Parser(_length_data, name=f"length_data({n_parser.name})", nullable=n_parser.nullable)


def length_value(n_parser: Any, p: Any) -> Parser:
    """Read a length, then run ``p`` on exactly that many bytes as complete input."""
    n_parser, p = as_parser(n_parser), as_parser(p)

    def _length_value(inp: Input) -> ParseResult:
        head = n_parser.parse(inp)
        if not isinstance(head, Done):
            return head
        n = int(head.output)
        if n < 0:
            return _negative_length(inp, n)
        body = head.remaining
        if len(body) < n:
            return _short(body, n - len(body), f"length prefix announced {n} bytes, {len(body)} available")
        res = p.parse(body.window(n, final=True))
        if isinstance(res, Done):
            return Done(body.advance(n), res.output)
        cause = res.error if isinstance(res, Failed) else None
        return fail(ErrorKind.LENGTH_VALUE, inp, cause=cause, message=f"{p.name} did not parse the {n}-byte value")

    return Parser(_length_value, name=f"length_value({n_parser.name}, {p.name})", nullable=n_parser.nullable)
