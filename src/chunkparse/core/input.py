from __future__ import annotations
from dataclasses import dataclass, replace


@dataclass(frozen=True, slots=True)
class Input:
    """Immutable window ``data[start:end]`` over a byte string.

    ``base`` is the absolute stream offset of ``data[0]`` so that errors can be
    reported against the whole stream, not just the current buffer.  ``final``
    is set once no further bytes can follow ``end``.
    """

    data: bytes
    start: int
    end: int
    base: int = 0
    final: bool = False

    @classmethod
    def of(cls, data: bytes | bytearray | memoryview | str, *, final: bool = False, base: int = 0) -> "Input":
        if isinstance(data, str):
            data = data.encode("utf-8")
        elif not isinstance(data, bytes):
            data = bytes(data)
        return cls(data, 0, len(data), base, final)

    # --- size / position ---
    def __len__(self) -> int:
        return self.end - self.start

    @property
    def position(self) -> int:
        return self.base + self.start

    def tobytes(self) -> bytes:
        return self.data[self.start:self.end]

    __bytes__ = tobytes

    def __getitem__(self, index: int) -> int:
        if index < 0:
            index += len(self)
        if not 0 <= index < len(self):
            raise IndexError("input index out of range")
        return self.data[self.start + index]

    # --- narrowing ---
    def advance(self, n: int) -> "Input":
        if n < 0 or n > len(self):
            raise ValueError(f"cannot advance {n} bytes over a view of {len(self)}")
        return replace(self, start=self.start + n)

    def peek(self, n: int) -> bytes:
        return self.data[self.start:min(self.start + n, self.end)]

    def as_final(self) -> "Input":
        return self if self.final else replace(self, final=True)

    def window(self, n: int, *, final: bool | None = None) -> "Input":
        """Return the first ``n`` bytes as a view of their own."""
        n = min(n, len(self))
        return replace(self, end=self.start + n, final=self.final if final is None else final)

    # --- searching ---
    def startswith(self, prefix: bytes) -> bool:
        return self.data.startswith(prefix, self.start, self.end)

    def find(self, sub: bytes) -> int:
        """Index of ``sub`` relative to the view start, or -1."""
        idx = self.data.find(sub, self.start, self.end)
        return idx if idx < 0 else idx - self.start

    def is_suffix_of(self, other: "Input") -> bool:
        return (
            self.data is other.data
            and self.base == other.base
            and self.end == other.end
            and other.start <= self.start
        )

    def __repr__(self) -> str:
        preview = self.peek(16)
        more = "..." if len(self) > 16 else ""
        flag = ", final" if self.final else ""
        return f"Input({preview!r}{more} @ {self.position}{flag})"
