"""Tests for record framers and the top-level helpers."""

import struct

import pytest

from chunkparse import (
    aiter_source, iter_source, parse_source, parse_source_sync, read_frames, read_frames_sync,
)
from chunkparse.combinators import tag, take
from chunkparse.core.model import ConstructionError, Done, ErrorKind, Failed, Incomplete, UNKNOWN
from chunkparse.core.input import Input
from chunkparse.framing import delimited_frame, length_prefixed_frame, make_framer


def records(*bodies, fmt=">H"):
    return b"".join(struct.pack(fmt, len(b)) + b for b in bodies)


class TestFramers:
    """Test the ready-made framers on their own."""

    def test_delimited(self):
        frame = delimited_frame(b"\n")
        res = frame.parse(b"abc\ndef")
        assert res.output == b"abc"
        assert res.rest == b"def"
        assert frame.parse(b"def") == Incomplete(UNKNOWN)
        assert frame.parse(Input.of(b"def", final=True)).output == b"def"

    def test_delimited_max_frame(self):
        frame = delimited_frame(b"\n", max_frame=3)
        assert frame.parse(b"abc\n").output == b"abc"
        assert frame.parse(b"abcd\n").error.kind is ErrorKind.VERIFY

    def test_length_prefixed(self):
        frame = length_prefixed_frame("be_u16")
        res = frame.parse(records(b"hello", b"x"))
        assert res.output == b"hello"

    def test_length_prefixed_max_frame(self):
        frame = length_prefixed_frame("le_u32", max_frame=4)
        res = frame.parse(records(b"hello", fmt="<I"))
        assert isinstance(res, Failed)
        assert res.error.kind is ErrorKind.VERIFY

    def test_bad_prefix(self):
        with pytest.raises(ConstructionError):
            length_prefixed_frame("be_u24")
        with pytest.raises(ConstructionError):
            length_prefixed_frame("be_f32")

    def test_make_framer(self):
        assert make_framer().parse(b"a\nb").output == b"a"
        assert make_framer(delimiter=b"|").parse(b"a|b").output == b"a"
        assert make_framer(length_prefix="u8").parse(b"\x01ab").output == b"a"
        with pytest.raises(ConstructionError):
            make_framer(delimiter=b"|", length_prefix="u8")
        with pytest.raises(ConstructionError):
            make_framer(delimiter=b"")


class TestSourceHelpers:
    """Test parse_source / iter_source over local sources."""

    def test_parse_source_sync_bytes(self):
        res = parse_source_sync(tag("abc"), b"abcdef", chunk_size=1)
        assert isinstance(res, Done)
        assert res.output == b"abc"

    def test_parse_source_sync_path(self, tmp_path):
        path = tmp_path / "data.bin"
        path.write_bytes(b"0123456789")
        res = parse_source_sync(take(4), path, offset=3)
        assert res.output == b"3456"

    def test_parse_source_sync_failure(self):
        res = parse_source_sync(take(10), b"abc")
        assert res.error.kind is ErrorKind.UNEXPECTED_EOF

    def test_iter_source(self, tmp_path):
        path = tmp_path / "lines.txt"
        path.write_bytes(b"a\nbb\nccc")
        assert list(iter_source(delimited_frame(b"\n"), str(path), chunk_size=2)) == [b"a", b"bb", b"ccc"]

    @pytest.mark.asyncio
    async def test_parse_source_async(self):
        res = await parse_source(tag("ab"), b"abc")
        assert res.output == b"ab"

    @pytest.mark.asyncio
    async def test_aiter_source(self):
        values = [v async for v in aiter_source(length_prefixed_frame("be_u16"), records(b"x", b"yz"), chunk_size=1)]
        assert values == [b"x", b"yz"]


class TestReadFrames:
    """Test the summaries behind the command line."""

    def test_read_frames_sync(self, tmp_path):
        path = tmp_path / "frames.bin"
        path.write_bytes(records(b"hello", b"", b"world!"))
        res = read_frames_sync(length_prefixed_frame("be_u16"), path, chunk_size=3, peek=2)
        assert res.success
        assert res.data["frames"] == 3
        assert res.data["frame_bytes"] == 11
        assert res.data["largest_frame"] == 6
        assert res.data["peek"] == ["aGU=", "", "d28="]
        assert res.data["end_offset"] == 17
        assert res.data["source"] == str(path)
        assert res.bytes_fetched == 17

    def test_read_frames_sync_truncated(self):
        res = read_frames_sync(length_prefixed_frame("be_u16"), records(b"ok") + b"\x00\x09abc")
        assert not res.success
        assert res.data["frames"] == 1
        assert "UnexpectedEof" in res.error

    def test_read_frames_sync_bad_offset(self):
        res = read_frames_sync(delimited_frame(b"\n"), b"abc", offset=10)
        assert not res.success
        assert "offset" in res.error

    @pytest.mark.asyncio
    async def test_read_frames_async(self):
        res = await read_frames(delimited_frame(b";"), b"a;b;c", chunk_size=2)
        assert res.success
        assert res.data["frames"] == 3
        assert res.data["source"] is None
