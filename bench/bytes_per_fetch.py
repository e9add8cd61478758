"""Chunk size sanity benchmark for the streaming driver.

Frames a synthetic length-prefixed file with several chunk sizes and prints how
many pulls, compactions and seconds each run took. Meant for manual runs.
"""

import struct
import sys
import tempfile
import time
from pathlib import Path

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from chunkparse import Consumer
from chunkparse.framing import length_prefixed_frame
from chunkparse.io import open_producer


def make_records(count: int = 20000, size: int = 300) -> bytes:
    body = bytes(range(256)) * (size // 256 + 1)
    return b"".join(struct.pack(">I", size) + body[:size] for _ in range(count))


def run(path: Path, chunk_size: int) -> None:
    framer = length_prefixed_frame("be_u32")
    started = time.perf_counter()
    with open_producer(path, chunk_size=chunk_size) as producer:
        consumer = Consumer(framer)
        frames = sum(1 for _ in consumer.iter_values(producer))
    elapsed = time.perf_counter() - started
    print(f"chunk={chunk_size:>7}  frames={frames}  pulls={producer.requests_made:>6}  "
          f"compactions={consumer.buffer.compactions:>6}  {elapsed:.3f}s")


def main() -> None:
    with tempfile.NamedTemporaryFile(suffix=".bin", delete=False) as f:
        f.write(make_records())
        path = Path(f.name)
    try:
        for chunk_size in (64, 512, 4096, 65536):
            run(path, chunk_size)
    finally:
        path.unlink()


if __name__ == "__main__":
    main()
