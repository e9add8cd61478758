"""Tests for byte-level primitives."""

import pytest

from chunkparse.combinators import (
    char, eof, is_a, is_not, none_of, one_of, rest, satisfy, tag, tag_no_case, take,
    take_till, take_till1, take_until, take_until_and_consume, take_while, take_while1,
)
from chunkparse.core.input import Input
from chunkparse.core.model import UNKNOWN, ConstructionError, Done, ErrorKind, Failed, Incomplete, Needed


def final(data):
    return Input.of(data, final=True)


class TestTag:
    """Test literal matching, including the basic scenarios."""

    def test_match(self):
        res = tag("abc").parse(b"abcdef")
        assert isinstance(res, Done)
        assert res.rest == b"def"
        assert res.output == b"abc"

    def test_short_prefix_is_incomplete(self):
        assert tag("abc").parse(b"ab") == Incomplete(Needed(1))
        assert tag("abc").parse(b"") == Incomplete(Needed(3))

    def test_mismatch(self):
        res = tag("abc").parse(b"xyz")
        assert isinstance(res, Failed)
        assert res.error.kind is ErrorKind.TAG_MISMATCH
        assert res.error.position == 0

    def test_mismatching_short_input_fails_immediately(self):
        res = tag("abc").parse(b"ax")
        assert isinstance(res, Failed)
        assert res.error.kind is ErrorKind.TAG_MISMATCH

    def test_short_prefix_at_end_of_input(self):
        res = tag("abc").parse(final(b"ab"))
        assert isinstance(res, Failed)
        assert res.error.kind is ErrorKind.UNEXPECTED_EOF

    def test_determinism(self):
        inp = Input.of(b"abcd")
        p = tag("ab")
        assert p.parse(inp) == p.parse(inp)

    def test_suffix_invariant(self):
        inp = Input.of(b"abcd")
        res = tag("ab").parse(inp)
        assert res.remaining.is_suffix_of(inp)
        assert res.consumed(inp) == 2

    def test_tag_no_case(self):
        res = tag_no_case("GET").parse(b"get /")
        assert res.output == b"get"
        assert res.rest == b" /"
        assert tag_no_case("GET").parse(b"Ge") == Incomplete(Needed(1))
        assert isinstance(tag_no_case("GET").parse(b"PUT"), Failed)

    def test_char(self):
        assert char("a").parse(b"ab").output == b"a"
        with pytest.raises(ConstructionError):
            char("ab")

    def test_empty_tag_is_nullable(self):
        assert tag(b"").nullable
        assert not tag(b"a").nullable


class TestTake:
    """Test fixed-size takes and single byte classes."""

    def test_take(self):
        res = take(3).parse(b"abcd")
        assert res.output == b"abc"
        assert take(3).parse(b"a") == Incomplete(Needed(2))
        assert take(3).parse(final(b"a")).error.kind is ErrorKind.UNEXPECTED_EOF

    def test_take_negative(self):
        with pytest.raises(ConstructionError):
            take(-1)

    def test_one_of_none_of(self):
        assert one_of(b"xyz").parse(b"yes").output == b"y"
        assert one_of(b"xyz").parse(b"abc").error.kind is ErrorKind.PREDICATE_FAILED
        assert none_of(b"xyz").parse(b"abc").output == b"a"
        assert one_of(b"xyz").parse(b"") == Incomplete(Needed(1))

    def test_satisfy(self):
        digit = satisfy(lambda b: 0x30 <= b <= 0x39)
        assert digit.parse(b"7a").output == b"7"
        assert isinstance(digit.parse(b"a7"), Failed)


class TestScanning:
    """Test scanners in streaming and final mode."""

    def test_take_while_stops_at_boundary(self):
        res = take_while(lambda b: b == ord("a")).parse(b"aaab")
        assert res.output == b"aaa"
        assert res.rest == b"b"

    def test_take_while_needs_boundary_unless_final(self):
        p = take_while(lambda b: b == ord("a"))
        assert p.parse(b"aaa") == Incomplete(UNKNOWN)
        assert p.parse(final(b"aaa")).output == b"aaa"
        assert p.parse(final(b"")).output == b""

    def test_take_while1(self):
        p = take_while1(lambda b: b == ord("a"))
        assert p.parse(b"bbb").error.kind is ErrorKind.PREDICATE_FAILED
        assert p.parse(final(b"")).error.kind is ErrorKind.PREDICATE_FAILED

    def test_is_a(self):
        assert is_a(b"0123456789").parse(b"123,").output == b"123"

    def test_take_till_keeps_boundary(self):
        res = take_till(lambda b: b == ord(";")).parse(b"abc;def")
        assert res.output == b"abc"
        assert res.rest == b";def"

    def test_take_till_consumes_boundary(self):
        res = take_till(lambda b: b == ord(";"), consume=True).parse(b"abc;def")
        assert res.output == b"abc"
        assert res.rest == b"def"

    def test_take_till_at_end_of_input(self):
        keep = take_till(lambda b: b == ord(";"))
        eat = take_till(lambda b: b == ord(";"), consume=True)
        assert keep.parse(b"abc") == Incomplete(UNKNOWN)
        assert keep.parse(final(b"abc")).output == b"abc"
        assert eat.parse(final(b"abc")).error.kind is ErrorKind.PREDICATE_FAILED

    def test_take_till1_and_is_not(self):
        assert take_till1(lambda b: b == ord(";")).parse(b";x").error.kind is ErrorKind.PREDICATE_FAILED
        assert is_not(b" \t").parse(b"word next").output == b"word"
        res = is_not(b" ", consume=True).parse(b"word next")
        assert res.rest == b"next"

    def test_take_until(self):
        p = take_until(b"\r\n")
        res = p.parse(b"line\r\nrest")
        assert res.output == b"line"
        assert res.rest == b"\r\nrest"
        res = take_until_and_consume(b"\r\n").parse(b"line\r\nrest")
        assert res.output == b"line"
        assert res.rest == b"rest"

    def test_take_until_split_terminator(self):
        p = take_until(b"\r\n", consume=True)
        assert p.parse(b"line\r") == Incomplete(UNKNOWN)
        assert p.parse(final(b"line\r")).error.kind is ErrorKind.PREDICATE_FAILED

    def test_take_until_empty_terminator(self):
        with pytest.raises(ConstructionError):
            take_until(b"")

    def test_nullable_flags(self):
        assert take_while(lambda b: True).nullable
        assert not take_while1(lambda b: True).nullable
        assert take_till(lambda b: True).nullable
        assert not take_till(lambda b: True, consume=True).nullable
        assert take_until(b";").nullable
        assert not take_until(b";", consume=True).nullable


class TestWholeInput:
    """Test rest and eof."""

    def test_rest(self):
        assert rest().parse(b"abc") == Incomplete(UNKNOWN)
        res = rest().parse(final(b"abc"))
        assert res.output == b"abc"
        assert res.rest == b""

    def test_eof(self):
        assert eof().parse(b"x").error.kind is ErrorKind.EOF
        assert eof().parse(b"") == Incomplete(UNKNOWN)
        assert isinstance(eof().parse(final(b"")), Done)
