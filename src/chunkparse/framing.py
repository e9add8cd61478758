"""Ready-made record framers.

A framer is a parser that yields the payload of one record and is meant to be
run repeatedly by `Consumer.iter_values`.
"""

from __future__ import annotations

from .combinators import alt, length_data, rest, take_until, verify
from .combinators.number import NUMBER_PARSERS
from .core.model import ConstructionError
from .core.parser_base import Parser


def delimited_frame(delimiter: bytes | str, *, max_frame: int | None = None) -> Parser[bytes]:
    """Records terminated by ``delimiter``; the last one may lack it."""
    if isinstance(delimiter, str):
        delimiter = delimiter.encode("utf-8")
    # a missing terminator only counts as a record end once input is final
    last = verify(rest(), bool)
    frame = alt(take_until(delimiter, consume=True), last)
    if max_frame is not None:
        frame = verify(frame, lambda out: len(out) <= max_frame)
    return frame.named(f"delimited_frame({delimiter!r})")


def length_prefixed_frame(prefix: str, *, max_frame: int | None = None) -> Parser[bytes]:
    """Records preceded by a length read with the number parser called ``prefix``."""
    try:
        n_parser = NUMBER_PARSERS[prefix]
    except KeyError:
        raise ConstructionError(
            f"unknown length prefix {prefix!r}, expected one of {', '.join(sorted(NUMBER_PARSERS))}"
        ) from None
    if prefix.endswith(("f32", "f64")):
        raise ConstructionError(f"length prefix {prefix!r} is not an integer type")
    if max_frame is not None:
        n_parser = verify(n_parser, lambda n: 0 <= n <= max_frame)
    else:
        n_parser = verify(n_parser, lambda n: n >= 0)
    return length_data(n_parser).named(f"length_prefixed_frame({prefix})")


def make_framer(
    *,
    delimiter: bytes | str | None = None,
    length_prefix: str | None = None,
    max_frame: int | None = None,
) -> Parser[bytes]:
    """Pick a framer from command line style options; newline-delimited by default."""
    if delimiter is not None and length_prefix is not None:
        raise ConstructionError("choose either a delimiter or a length prefix, not both")
    if length_prefix is not None:
        return length_prefixed_frame(length_prefix, max_frame=max_frame)
    if delimiter is not None and not delimiter:
        raise ConstructionError("delimiter must not be empty")
    return delimited_frame(delimiter if delimiter is not None else b"\n", max_frame=max_frame)
