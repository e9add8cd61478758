"""Tests for input views."""

import pytest

from chunkparse.core.input import Input


class TestInput:
    """Test the immutable input window."""

    def test_of_accepts_several_types(self):
        assert Input.of("héllo").tobytes() == "héllo".encode("utf-8")
        assert Input.of(bytearray(b"ab")).tobytes() == b"ab"
        assert Input.of(memoryview(b"ab")).tobytes() == b"ab"
        assert not Input.of(b"").final
        assert Input.of(b"", final=True).final

    def test_advance_and_position(self):
        inp = Input.of(b"0123456789", base=50)
        rest = inp.advance(4)
        assert rest.tobytes() == b"456789"
        assert rest.position == 54
        assert len(rest) == 6
        # original untouched
        assert inp.tobytes() == b"0123456789"

    def test_advance_out_of_range(self):
        with pytest.raises(ValueError):
            Input.of(b"ab").advance(3)
        with pytest.raises(ValueError):
            Input.of(b"ab").advance(-1)

    def test_indexing(self):
        inp = Input.of(b"abc").advance(1)
        assert inp[0] == ord("b")
        assert inp[-1] == ord("c")
        with pytest.raises(IndexError):
            inp[2]

    def test_peek_and_find(self):
        inp = Input.of(b"key=value;").advance(4)
        assert inp.peek(3) == b"val"
        assert inp.peek(100) == b"value;"
        assert inp.find(b";") == 5
        assert inp.find(b"=") == -1
        assert inp.startswith(b"value")

    def test_window(self):
        inp = Input.of(b"abcdef")
        win = inp.window(2, final=True)
        assert win.tobytes() == b"ab"
        assert win.final
        assert inp.window(10).tobytes() == b"abcdef"

    def test_as_final(self):
        inp = Input.of(b"ab")
        fin = inp.as_final()
        assert fin.final and not inp.final
        assert fin.as_final() is fin

    def test_is_suffix_of(self):
        inp = Input.of(b"abcdef")
        assert inp.advance(2).is_suffix_of(inp)
        assert inp.is_suffix_of(inp)
        assert not inp.is_suffix_of(inp.advance(1))
        assert not Input.of(b"def").is_suffix_of(inp)

    def test_repr(self):
        assert "final" in repr(Input.of(b"x", final=True))
        assert "@ 3" in repr(Input.of(b"abcd").advance(3))
