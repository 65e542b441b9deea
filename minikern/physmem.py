"""Physical frame arithmetic and a simple frame allocator."""

from __future__ import annotations

import threading

FRAME_SIZE = 1 << 12


def offset(pa: int) -> int:
    """Byte offset within the frame."""
    return pa & 0xFFF


def ppn(pa: int) -> int:
    """Physical page number."""
    return pa >> 12


def framedown(pa: int) -> int:
    """Round down to the start of the frame."""
    return (pa // FRAME_SIZE) * FRAME_SIZE


def frameup(pa: int) -> int:
    """Round up to a frame boundary."""
    return framedown(pa + FRAME_SIZE - 1)


class OutOfFrames(Exception):
    """Raised when every frame in the range has been handed out."""


class FrameAllocator:
    """Hands out frames from a range, reusing released frames first."""

    def __init__(self, start: int, size: int) -> None:
        if offset(start) != 0 or offset(size) != 0:
            raise ValueError("frame range must be frame aligned")
        self._avail = start
        self._limit = start + size
        self._free: list[int] = []
        self._lock = threading.Lock()

    def alloc_frame(self) -> int:
        """Return the address of a free frame."""
        with self._lock:
            if self._free:
                return self._free.pop()
            if self._avail == self._limit:
                raise OutOfFrames("no more frames")
            pa = self._avail
            self._avail += FRAME_SIZE
            return pa

    def dealloc_frame(self, pa: int) -> None:
        """Give a frame back; it is the next one handed out."""
        if offset(pa) != 0:
            raise ValueError(f"address {pa:#x} is not frame aligned")
        with self._lock:
            self._free.append(pa)