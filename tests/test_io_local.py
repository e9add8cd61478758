"""Tests for local producers."""

import io
import tempfile
from pathlib import Path

import pytest

from chunkparse.io.base import END_OF_INPUT, AsyncProducer, Producer
from chunkparse.io.local import LocalAsyncProducer, LocalProducer, open_local_producer, open_local_producer_async


class Pipe:
    """Non-seekable file object, like stdin or a socket file."""

    def __init__(self, data):
        self._buf = io.BytesIO(data)

    def read(self, n=-1):
        return self._buf.read(n)

    def seekable(self):
        return False


def drain(producer, size_hint=None):
    chunks = []
    while True:
        chunk = producer.pull(size_hint)
        if not chunk:
            return chunks
        chunks.append(chunk)


class TestLocalProducer:
    """Test synchronous local producer."""

    def test_path_in_chunks(self):
        """Test pulling a file in fixed chunks."""
        with tempfile.NamedTemporaryFile() as f:
            f.write(b"0123456789")
            f.flush()

            producer = LocalProducer(f.name, chunk_size=4)
            assert drain(producer) == [b"0123", b"4567", b"89"]
            assert producer.bytes_fetched == 10
            assert producer.requests_made == 4  # 3 chunks + end of input
            assert producer.size == 10
            producer.close()

    def test_size_hint_enlarges_chunk(self):
        producer = LocalProducer(b"0123456789", chunk_size=2)
        assert producer.pull(7) == b"0123456"
        assert producer.pull() == b"78"

    def test_end_of_input_marker(self):
        producer = LocalProducer(b"")
        chunk = producer.pull()
        assert chunk is END_OF_INPUT
        assert not chunk
        assert repr(chunk) == "END_OF_INPUT"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.bin"
        path.write_bytes(b"")
        with LocalProducer(path) as producer:
            assert producer.pull() is END_OF_INPUT

    def test_binary_io_source(self):
        producer = LocalProducer(io.BytesIO(b"abcdef"), chunk_size=4)
        assert drain(producer) == [b"abcd", b"ef"]

    def test_seek(self):
        producer = LocalProducer(b"0123456789", chunk_size=3)
        assert producer.seek(5)
        assert producer.pull() == b"567"
        assert producer.seek(10)
        assert producer.pull() is END_OF_INPUT
        assert not producer.seek(11)
        assert not producer.seek(-1)

    def test_pipe_is_not_seekable(self):
        producer = LocalProducer(Pipe(b"abcdef"), chunk_size=4)
        assert not producer.seekable
        assert producer.size is None
        assert producer.seek(0)
        assert not producer.seek(3)
        assert drain(producer) == [b"abcd", b"ef"]

    def test_chunk_size_must_be_positive(self):
        with pytest.raises(ValueError):
            LocalProducer(b"abc", chunk_size=0)

    def test_protocol(self):
        assert isinstance(LocalProducer(b"x"), Producer)

    def test_context_manager_closes_file(self):
        with tempfile.NamedTemporaryFile(delete=False) as f:
            f.write(b"data")
            temp_path = Path(f.name)
        try:
            with open_local_producer(temp_path) as producer:
                assert producer.pull() == b"data"
            assert producer._file is None
        finally:
            temp_path.unlink()


class TestLocalAsyncProducer:
    """Test asynchronous local producer."""

    @pytest.mark.asyncio
    async def test_pull(self):
        producer = await open_local_producer_async(b"0123456789", chunk_size=6)
        assert await producer.pull() == b"012345"
        assert await producer.pull() == b"6789"
        assert await producer.pull() is END_OF_INPUT
        assert producer.bytes_fetched == 10
        assert producer.requests_made == 3
        await producer.close()

    @pytest.mark.asyncio
    async def test_seek_and_context_manager(self):
        async with LocalAsyncProducer(b"0123456789", chunk_size=2) as producer:
            assert await producer.seek(8)
            assert await producer.pull() == b"89"
            assert not await producer.seek(20)

    def test_protocol(self):
        assert isinstance(LocalAsyncProducer(b"x"), AsyncProducer)
