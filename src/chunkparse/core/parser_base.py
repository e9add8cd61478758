from __future__ import annotations
from typing import Any, Callable, Generic, TypeVar, Union

from .input import Input
from .model import ParseResult

O = TypeVar("O")

ParseFn = Callable[[Input], ParseResult]
InputLike = Union[Input, bytes, bytearray, memoryview, str]


class Parser(Generic[O]):
    """A first-class parsing function ``Input -> ParseResult``.

    ``nullable`` records whether the parser may succeed without consuming any
    input.  Repetition combinators refuse nullable bodies at construction time.
    """

    __slots__ = ("_fn", "name", "nullable")

    def __init__(self, fn: ParseFn, *, name: str | None = None, nullable: bool = False) -> None:
        self._fn = fn
        self.name = name or getattr(fn, "__name__", "parser")
        self.nullable = nullable

    def parse(self, inp: InputLike) -> ParseResult[O]:
        if not isinstance(inp, Input):
            inp = Input.of(inp)
        return self._fn(inp)

    __call__ = parse

    def named(self, name: str) -> "Parser[O]":
        return Parser(self._fn, name=name, nullable=self.nullable)

    def __repr__(self) -> str:
        return f"<Parser {self.name}>"


def as_parser(p: Any) -> Parser:
    """Accept a `Parser` or a plain ``Input -> ParseResult`` callable."""
    if isinstance(p, Parser):
        return p
    if callable(p):
        return Parser(p)
    raise TypeError(f"expected a parser or callable, got {type(p).__name__}")


def parser(fn: ParseFn | None = None, *, name: str | None = None, nullable: bool = False):
    """Decorator turning a plain parse function into a `Parser`."""
    def wrap(f: ParseFn) -> Parser:
        return Parser(f, name=name, nullable=nullable)
    return wrap(fn) if fn is not None else wrap
