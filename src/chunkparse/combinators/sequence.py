from __future__ import annotations
from typing import Any, Callable

from ..core.input import Input
from ..core.model import Done, ParseResult
from ..core.parser_base import Parser, as_parser


def chain(*parsers: Any, combine: Callable[..., Any] | None = None) -> Parser:
    """Run ``parsers`` left to right on successive remainders.

    The first `Failed` or `Incomplete` is returned unchanged.  On success the
    outputs are passed to ``combine`` as positional arguments, or returned as a
    tuple when no combiner is given.
    """
    ps = [as_parser(p) for p in parsers]

    def _chain(inp: Input) -> ParseResult:
        outputs = []
        cur = inp
        for p in ps:
            res = p.parse(cur)
            if not isinstance(res, Done):
                return res
            outputs.append(res.output)
            cur = res.remaining
        return Done(cur, combine(*outputs) if combine else tuple(outputs))

    name = "chain(" + ", ".join(p.name for p in ps) + ")"
    return Parser(_chain, name=name, nullable=all(p.nullable for p in ps))


def tuple_(*parsers: Any) -> Parser[tuple]:
    return chain(*parsers)


def pair(first: Any, second: Any) -> Parser[tuple]:
    return chain(first, second)


def preceded(prefix: Any, p: Any) -> Parser:
    """Run both, keep the output of ``p``."""
    return chain(prefix, p, combine=lambda _a, b: b)


def terminated(p: Any, suffix: Any) -> Parser:
    return chain(p, suffix, combine=lambda a, _b: a)


def delimited(left: Any, p: Any, right: Any) -> Parser:
    return chain(left, p, right, combine=lambda _a, b, _c: b)


def separated_pair(first: Any, sep: Any, second: Any) -> Parser[tuple]:
    return chain(first, sep, second, combine=lambda a, _s, b: (a, b))
