"""Result model, input views and the parser value type."""

from .input import Input
from .model import (
    UNKNOWN,
    BufferLimitError,
    ConstructionError,
    ConsumerStateError,
    Done,
    Error,
    ErrorKind,
    Failed,
    Incomplete,
    Needed,
    ParseError,
    ParseResult,
    Report,
    fail,
)
from .parser_base import Parser, as_parser, parser
