"""Streaming driver: feeds chunked input to a parser."""

from .buffer import StreamBuffer, COMPACT_THRESHOLD
from .consumer import Consumer, ConsumerState
