"""Synchronous HTTP producer using requests."""

import logging
from typing import Iterator, Optional

import requests

from .base import DEFAULT_CHUNK_SIZE, END_OF_INPUT, RANGE_FALLBACK_MAX, Chunk, RangeNotSupportedError

logger = logging.getLogger(__name__)

# Module-level session for connection pooling
_session = None


def _get_session():
    """Get or create the global requests session."""
    global _session
    if _session is None:
        _session = requests.Session()
    return _session


def _decide_full_get(content_length: Optional[int], accept_ranges: bool) -> bool:
    """Return True only when not accept_ranges and content_length and content_length < RANGE_FALLBACK_MAX."""
    return (not accept_ranges and
            content_length is not None and
            content_length < RANGE_FALLBACK_MAX)


class HTTPProducer:
    """Synchronous HTTP producer.

    Depending on what the HEAD probe reports, chunks come from Range requests
    (seekable), from one full download for small files without range support
    (seekable) or from a sequentially streamed body (not seekable).
    """

    def __init__(self, url: str, *, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.url = url
        self.chunk_size = chunk_size
        self.bytes_fetched = 0
        self.requests_made = 0
        self.content_length: Optional[int] = None
        self._accept_ranges = False
        self._full_content: Optional[bytes] = None
        self._stream: Optional[requests.Response] = None
        self._stream_iter: Optional[Iterator[bytes]] = None
        self._pos = 0
        self._eof = False
        self._session = _get_session()

        # Perform HEAD request immediately
        self._perform_head()

    def _perform_head(self):
        """Perform HEAD request to check capabilities."""
        try:
            response = self._session.head(self.url, timeout=30)
            self.requests_made += 1
            if response.status_code >= 400:
                raise IOError(f"HEAD request failed with status {response.status_code}")

            content_length_header = response.headers.get('content-length')
            if content_length_header:
                self.content_length = int(content_length_header)

            accept_ranges = response.headers.get('accept-ranges', '').lower()
            self._accept_ranges = accept_ranges == 'bytes'

        except requests.RequestException as e:
            raise IOError(f"HEAD request failed: {e}")

    @property
    def seekable(self) -> bool:
        return self._accept_ranges or self._full_content is not None or _decide_full_get(
            self.content_length, self._accept_ranges)

    def _fetch_full_content(self):
        """Download entire file content for small files without range support."""
        if self._full_content is not None:
            return
        logger.info("%s does not accept ranges, downloading %s bytes at once", self.url, self.content_length)
        try:
            response = self._session.get(self.url, timeout=60)
            self.requests_made += 1
            if response.status_code >= 400:
                raise IOError(f"GET request failed with status {response.status_code}")

            self._full_content = response.content
            self.bytes_fetched = len(self._full_content)

        except requests.RequestException as e:
            raise IOError(f"GET request failed: {e}")

    def _fetch_range(self, start: int, length: int, retry_count: int = 0) -> bytes:
        """Fetch a specific byte range; an empty result means end of input."""
        end = start + length - 1
        headers = {'Range': f'bytes={start}-{end}'}

        try:
            response = self._session.get(self.url, headers=headers, timeout=30)
            self.requests_made += 1

            if response.status_code == 206:
                data = response.content
                self.bytes_fetched += len(data)
                return data
            elif response.status_code == 416:
                # Range starts past the end
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

        except requests.RequestException as e:
            if retry_count == 0:
                # One automatic retry
                return self._fetch_range(start, length, retry_count + 1)
            raise IOError(f"Range request failed: {e}")

    def _pull_stream(self, n: int) -> bytes:
        if self._stream is None:
            logger.info("%s does not accept ranges, streaming the body", self.url)
            try:
                self._stream = self._session.get(self.url, stream=True, timeout=60)
                self.requests_made += 1
            except requests.RequestException as e:
                raise IOError(f"GET request failed: {e}")
            if self._stream.status_code >= 400:
                raise IOError(f"GET request failed with status {self._stream.status_code}")
            self._stream_iter = self._stream.iter_content(chunk_size=n)
        chunk = next(self._stream_iter, b'')
        self.bytes_fetched += len(chunk)
        return chunk

    def pull(self, size_hint: Optional[int] = None) -> Chunk:
        """Return the next chunk starting at the current offset, or `END_OF_INPUT`."""
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
            self._fetch_full_content()
            chunk = self._full_content[self._pos:self._pos + n]
        elif self._accept_ranges:
            chunk = self._fetch_range(self._pos, n)
        else:
            chunk = self._pull_stream(n)

        if not chunk:
            self._eof = True
            self.close()
            return END_OF_INPUT
        self._pos += len(chunk)
        logger.debug("Pulled %d bytes from %s, now at offset %d", len(chunk), self.url, self._pos)
        return chunk

    def seek(self, position: int) -> bool:
        if position < 0 or not self.seekable or self._stream is not None:
            return position == self._pos
        if self.content_length is not None and position > self.content_length:
            return False
        self._pos = position
        self._eof = False
        return True

    def close(self):
        if self._stream is not None:
            self._stream.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        # Session is shared, don't close it here
        self.close()


def open_http_producer(url: str, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> HTTPProducer:
    """Create a synchronous HTTP producer."""
    return HTTPProducer(url, chunk_size=chunk_size)
