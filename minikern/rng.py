"""Multiply-with-carry pseudo-random number generator."""

from __future__ import annotations

from collections.abc import Iterator

_MASK32 = 0xFFFFFFFF


class Random:
    """Marsaglia's multiply-with-carry generator producing 32-bit values."""

    def __init__(self, seed: int) -> None:
        self.w = seed & _MASK32
        self.z = ~seed & _MASK32
        if self.w in (0, 0x464FFFFF):
            self.w += 1
        if self.z in (0, 0x9068FFFF):
            self.z += 1

    def next(self) -> int:
        """Return the next 32-bit value."""
        self.z = (36969 * (self.z & 0xFFFF) + (self.z >> 16)) & _MASK32
        self.w = (18000 * (self.w & 0xFFFF) + (self.w >> 16)) & _MASK32
        return ((self.z << 16) + self.w) & _MASK32

    def __iter__(self) -> Iterator[int]:
        while True:
            yield self.next()