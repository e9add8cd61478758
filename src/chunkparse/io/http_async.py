"""Asynchronous HTTP producer using httpx."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx

from .base import DEFAULT_CHUNK_SIZE, END_OF_INPUT, RANGE_FALLBACK_MAX, Chunk, RangeNotSupportedError
from .http_sync import _decide_full_get

logger = logging.getLogger(__name__)

# Global async client
_client: Optional[httpx.AsyncClient] = None


@asynccontextmanager
async def _get_client():
    """Get or create the global httpx AsyncClient."""
    global _client
    if _client is None:
        _client = httpx.AsyncClient(timeout=60.0)

    try:
        yield _client
    finally:
        # Don't close the client here - it's shared
        pass


class AsyncHTTPProducer:
    """Asynchronous HTTP producer with the same three modes as `HTTPProducer`."""

    def __init__(self, url: str, *, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.url = url
        self.chunk_size = chunk_size
        self.bytes_fetched = 0
        self.requests_made = 0
        self.content_length: Optional[int] = None
        self._accept_ranges = False
        self._full_content: Optional[bytes] = None
        self._stream: Optional[httpx.Response] = None
        self._stream_iter: Optional[AsyncIterator[bytes]] = None
        self._pending = b''  # streamed bytes not handed out yet
        self._pos = 0
        self._eof = False
        self._initialized = False

    async def _ensure_initialized(self):
        """Perform HEAD request to check capabilities if not already done."""
        if self._initialized:
            return

        async with _get_client() as client:
            try:
                response = await client.head(self.url)
                self.requests_made += 1
                if response.status_code >= 400:
                    raise IOError(f"HEAD request failed with status {response.status_code}")

                content_length_header = response.headers.get('content-length')
                if content_length_header:
                    self.content_length = int(content_length_header)

                accept_ranges = response.headers.get('accept-ranges', '').lower()
                self._accept_ranges = accept_ranges == 'bytes'

                self._initialized = True

            except httpx.RequestError as e:
                raise IOError(f"HEAD request failed: {e}")

    @property
    def seekable(self) -> bool:
        return self._accept_ranges or self._full_content is not None or _decide_full_get(
            self.content_length, self._accept_ranges)

    async def _fetch_full_content(self):
        """Download entire file content for small files without range support."""
        if self._full_content is not None:
            return
        logger.info("%s does not accept ranges, downloading %s bytes at once", self.url, self.content_length)
        async with _get_client() as client:
            try:
                response = await client.get(self.url)
                self.requests_made += 1
                if response.status_code >= 400:
                    raise IOError(f"GET request failed with status {response.status_code}")

                self._full_content = response.content
                self.bytes_fetched = len(self._full_content)

            except httpx.RequestError as e:
                raise IOError(f"GET request failed: {e}")

    async def _fetch_range(self, start: int, length: int, retry_count: int = 0) -> bytes:
        """Fetch a specific byte range; an empty result means end of input."""
        end = start + length - 1
        headers = {'Range': f'bytes={start}-{end}'}

        async with _get_client() as client:
            try:
                response = await client.get(self.url, headers=headers)
                self.requests_made += 1

                if response.status_code == 206:
                    data = response.content
                    self.bytes_fetched += len(data)
                    return data
                elif response.status_code == 416:
                    return b''
                elif response.status_code == 200:
                    # Server ignored the range and sent everything
                    if self.content_length and self.content_length >= RANGE_FALLBACK_MAX:
                        raise RangeNotSupportedError("Server ignored the Range header and the file is too large")
                    self._full_content = response.content
                    self.bytes_fetched = len(self._full_content)
                    return self._full_content[start:start + length]
                else:
                    raise IOError(f"Range request failed with status {response.status_code}")

            except httpx.RequestError as e:
                if retry_count == 0:
                    # One automatic retry
                    return await self._fetch_range(start, length, retry_count + 1)
                raise IOError(f"Range request failed: {e}")

    async def _pull_stream(self, n: int) -> bytes:
        if self._stream is None:
            logger.info("%s does not accept ranges, streaming the body", self.url)
            async with _get_client() as client:
                try:
                    request = client.build_request("GET", self.url)
                    self._stream = await client.send(request, stream=True)
                    self.requests_made += 1
                except httpx.RequestError as e:
                    raise IOError(f"GET request failed: {e}")
            if self._stream.status_code >= 400:
                await self.close()
                raise IOError(f"GET request failed with status {self._stream.status_code}")
            self._stream_iter = self._stream.aiter_bytes()

        if not self._pending:
            async for piece in self._stream_iter:
                if piece:
                    self._pending = piece
                    break
        chunk, self._pending = self._pending[:n], self._pending[n:]
        self.bytes_fetched += len(chunk)
        return chunk

    async def pull(self, size_hint: Optional[int] = None) -> Chunk:
        """Return the next chunk starting at the current offset, or `END_OF_INPUT`."""
        await self._ensure_initialized()
        if self._eof:
            return END_OF_INPUT
        n = max(self.chunk_size, size_hint or 0)
        if self.content_length is not None:
            n = min(n, max(self.content_length - self._pos, 0))

        if n == 0:
            chunk = b''
        elif self._full_content is not None:
            chunk = self._full_content[self._pos:self._pos + n]
        elif _decide_full_get(self.content_length, self._accept_ranges):
            await self._fetch_full_content()
            chunk = self._full_content[self._pos:self._pos + n]
        elif self._accept_ranges:
            chunk = await self._fetch_range(self._pos, n)
        else:
            chunk = await self._pull_stream(n)

        if not chunk:
            self._eof = True
            await self.close()
            return END_OF_INPUT
        self._pos += len(chunk)
        logger.debug("Pulled %d bytes from %s, now at offset %d", len(chunk), self.url, self._pos)
        return chunk

    async def seek(self, position: int) -> bool:
        try:
            await self._ensure_initialized()
        except IOError:
            return False
        if position < 0 or not self.seekable or self._stream is not None:
            return position == self._pos
        if self.content_length is not None and position > self.content_length:
            return False
        self._pos = position
        self._eof = False
        return True

    async def close(self):
        if self._stream is not None:
            await self._stream.aclose()

    async def __aenter__(self):
        await self._ensure_initialized()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        # Client is shared, only the streamed response is ours
        await self.close()


async def open_http_producer_async(url: str, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncHTTPProducer:
    """Create an asynchronous HTTP producer."""
    producer = AsyncHTTPProducer(url, chunk_size=chunk_size)
    await producer._ensure_initialized()
    return producer


async def close_global_client():
    """Close the global httpx client. Call this at application shutdown."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
