"""Fixed-width numeric primitives in a declared byte order."""

from __future__ import annotations
import struct
from typing import Dict

from ..core.input import Input
from ..core.model import Done, ParseResult
from ..core.parser_base import Parser
from .bytes import _short


def _fixed(name: str, fmt: str) -> Parser:
    codec = struct.Struct(fmt)
    size = codec.size

    def _number(inp: Input) -> ParseResult:
        avail = len(inp)
        if avail < size:
            return _short(inp, size - avail, f"{name}: expected {size} bytes, {avail} available")
        return Done(inp.advance(size), codec.unpack(inp.peek(size))[0])

    return Parser(_number, name=name)


u8 = _fixed("u8", "B")
i8 = _fixed("i8", "b")

be_u16 = _fixed("be_u16", ">H")
be_u32 = _fixed("be_u32", ">I")
be_u64 = _fixed("be_u64", ">Q")
be_i16 = _fixed("be_i16", ">h")
be_i32 = _fixed("be_i32", ">i")
be_i64 = _fixed("be_i64", ">q")
be_f32 = _fixed("be_f32", ">f")
be_f64 = _fixed("be_f64", ">d")

le_u16 = _fixed("le_u16", "<H")
le_u32 = _fixed("le_u32", "<I")
le_u64 = _fixed("le_u64", "<Q")
le_i16 = _fixed("le_i16", "<h")
le_i32 = _fixed("le_i32", "<i")
le_i64 = _fixed("le_i64", "<q")
le_f32 = _fixed("le_f32", "<f")
le_f64 = _fixed("le_f64", "<d")

# lookup by name, e.g. for command line options
NUMBER_PARSERS: Dict[str, Parser] = {
    p.name: p
    for p in (
        u8, i8,
        be_u16, be_u32, be_u64, be_i16, be_i32, be_i64, be_f32, be_f64,
        le_u16, le_u32, le_u64, le_i16, le_i32, le_i64, le_f32, le_f64,
    )
}
