from __future__ import annotations
from typing import Any, Callable, Optional, TypeVar

from ..core.input import Input
from ..core.model import UNKNOWN, Done, ErrorKind, Failed, Incomplete, ParseResult, fail
from ..core.parser_base import Parser, as_parser

T = TypeVar("T")
R = TypeVar("R")

# exceptions `map_res` treats as a failed conversion rather than a bug
CONVERSION_ERRORS: tuple[type[BaseException], ...] = (ValueError, TypeError, LookupError, ArithmeticError)


def opt(p: Any) -> Parser:
    """Run ``p``; a `Failed` becomes ``Done(original input, None)``."""
    p = as_parser(p)

    def _opt(inp: Input) -> ParseResult:
        res = p.parse(inp)
        if isinstance(res, Failed):
            return Done(inp, None)
        return res

    return Parser(_opt, name=f"opt({p.name})", nullable=True)


def peek(p: Any) -> Parser:
    """Run ``p`` and keep its output without consuming anything."""
    p = as_parser(p)

    def _peek(inp: Input) -> ParseResult:
        res = p.parse(inp)
        if isinstance(res, Done):
            return Done(inp, res.output)
        return res

    return Parser(_peek, name=f"peek({p.name})", nullable=True)


def not_(p: Any) -> Parser[None]:
    """Succeed, consuming nothing, only where ``p`` fails."""
    p = as_parser(p)

    def _not(inp: Input) -> ParseResult[None]:
        res = p.parse(inp)
        if isinstance(res, Done):
            return fail(ErrorKind.NOT, inp, message=f"{p.name} matched")
        if isinstance(res, Failed):
            return Done(inp, None)
        return res

    return Parser(_not, name=f"not({p.name})", nullable=True)


def map_(p: Any, fn: Callable[[Any], R]) -> Parser[R]:
    p = as_parser(p)

    def _map(inp: Input) -> ParseResult[R]:
        res = p.parse(inp)
        if isinstance(res, Done):
            return Done(res.remaining, fn(res.output))
        return res

    return Parser(_map, name=f"map({p.name})", nullable=p.nullable)


def map_opt(p: Any, fn: Callable[[Any], Optional[R]]) -> Parser[R]:
    """Like `map_`, but ``fn`` returning ``None`` is a `MapConversionFailed`."""
    p = as_parser(p)

    def _map_opt(inp: Input) -> ParseResult[R]:
        res = p.parse(inp)
        if not isinstance(res, Done):
            return res
        out = fn(res.output)
        if out is None:
            return fail(ErrorKind.MAP_CONVERSION_FAILED, inp, message=f"{p.name}: conversion returned None")
        return Done(res.remaining, out)

    return Parser(_map_opt, name=f"map_opt({p.name})", nullable=p.nullable)


def map_res(
    p: Any,
    fn: Callable[[Any], R],
    *,
    errors: tuple[type[BaseException], ...] = CONVERSION_ERRORS,
) -> Parser[R]:
    """Like `map_`, but an exception from ``errors`` raised by ``fn`` becomes a
    `MapConversionFailed` whose cause is the exception."""
    p = as_parser(p)

    def _map_res(inp: Input) -> ParseResult[R]:
        res = p.parse(inp)
        if not isinstance(res, Done):
            return res
        try:
            out = fn(res.output)
        except errors as e:
            return fail(ErrorKind.MAP_CONVERSION_FAILED, inp, cause=e, message=f"{p.name}: {e}")
        return Done(res.remaining, out)

    return Parser(_map_res, name=f"map_res({p.name})", nullable=p.nullable)


def value(p: Any, val: T) -> Parser[T]:
    return map_(p, lambda _: val).named(f"value({as_parser(p).name})")


def success(val: T) -> Parser[T]:
    return Parser(lambda inp: Done(inp, val), name="success", nullable=True)


def cond(flag: bool, p: Any) -> Parser:
    """Run ``p`` only when ``flag`` is true; otherwise succeed with ``None``."""
    return as_parser(p) if flag else success(None)


def verify(p: Any, check: Callable[[Any], bool]) -> Parser:
    p = as_parser(p)

    def _verify(inp: Input) -> ParseResult:
        res = p.parse(inp)
        if isinstance(res, Done) and not check(res.output):
            return fail(ErrorKind.VERIFY, inp, message=f"{p.name}: output rejected")
        return res

    return Parser(_verify, name=f"verify({p.name})", nullable=p.nullable)


def recognize(p: Any) -> Parser[bytes]:
    """Return the bytes ``p`` consumed instead of its output."""
    p = as_parser(p)

    def _recognize(inp: Input) -> ParseResult[bytes]:
        res = p.parse(inp)
        if isinstance(res, Done):
            return Done(res.remaining, inp.peek(res.consumed(inp)))
        return res

    return Parser(_recognize, name=f"recognize({p.name})", nullable=p.nullable)


def complete(p: Any) -> Parser:
    """Treat ``Incomplete`` from ``p`` as a failure: the input is all there is."""
    p = as_parser(p)

    def _complete(inp: Input) -> ParseResult:
        res = p.parse(inp)
        if isinstance(res, Incomplete):
            return fail(ErrorKind.UNEXPECTED_EOF, inp, message=f"{p.name}: {res.needed!r}")
        return res

    return Parser(_complete, name=f"complete({p.name})", nullable=p.nullable)


def all_consuming(p: Any) -> Parser:
    """Run ``p`` and require that it leaves nothing behind."""
    p = as_parser(p)

    def _all_consuming(inp: Input) -> ParseResult:
        res = p.parse(inp)
        if not isinstance(res, Done):
            return res
        if len(res.remaining):
            return fail(ErrorKind.EOF, res.remaining, message=f"{len(res.remaining)} trailing bytes")
        if not inp.final:
            return Incomplete(UNKNOWN)
        return res

    return Parser(_all_consuming, name=f"all_consuming({p.name})", nullable=p.nullable)


def lazy(factory: Callable[[], Any], *, nullable: bool = False) -> Parser:
    """Defer building a parser until first use, for recursive grammars."""
    resolved: list[Parser] = []

    def _lazy(inp: Input) -> ParseResult:
        if not resolved:
            resolved.append(as_parser(factory()))
        return resolved[0].parse(inp)

    return Parser(_lazy, name="lazy", nullable=nullable)
