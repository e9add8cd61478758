from __future__ import annotations
from typing import Any

from ..core.input import Input
from ..core.model import ConstructionError, Done, ErrorKind, Failed, Incomplete, ParseResult, fail
from ..core.parser_base import Parser, as_parser


def alt(*branches: Any) -> Parser:
    """Try ``branches`` in order against the same input.

    The first `Done` wins.  A `Failed` branch moves on to the next one.  If
    no branch succeeds, the first `Incomplete` seen is returned, otherwise a
    `Failed(Alt)` whose cause is the tuple of every branch error.
    """
    if not branches:
        raise ConstructionError("alt() needs at least one branch")
    ps = [as_parser(p) for p in branches]

    def _alt(inp: Input) -> ParseResult:
        errors = []
        pending: Incomplete | None = None
        for p in ps:
            res = p.parse(inp)
            if isinstance(res, Done):
                return res
            if isinstance(res, Failed):
                errors.append(res.error)
            elif pending is None:
                pending = res
        if pending is not None:
            return pending
        return fail(ErrorKind.ALT, inp, cause=tuple(errors), message=f"no alternative of {len(ps)} matched")

    name = "alt(" + ", ".join(p.name for p in ps) + ")"
    return Parser(_alt, name=name, nullable=any(p.nullable for p in ps))
