"""Combinator engine: parsers built by composing smaller parsers."""

from .bytes import (
    tag, tag_no_case, char, take, one_of, none_of, satisfy,
    take_while, take_while1, take_till, take_till1, is_a, is_not,
    take_until, take_until_and_consume, rest, eof,
)
from .sequence import chain, tuple_, pair, preceded, terminated, delimited, separated_pair
from .branch import alt
from .combinator import (
    opt, peek, not_, map_, map_opt, map_res, value, success, cond, verify,
    recognize, complete, all_consuming, lazy,
)
from .multi import (
    many0, many1, many_m_n, fold_many0, fold_many1, fold_many_m_n, many_till,
    separated_list0, separated_list1, count, length_count, length_data, length_value,
)
from . import number
