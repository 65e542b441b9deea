"""Block devices: byte-addressed reads on top of fixed-size block reads."""

from __future__ import annotations

import struct
from abc import ABC, abstractmethod
from typing import Any

SECTOR_SIZE = 512


class BlockIO(ABC):
    """Something that stores data in fixed-size blocks (disks, files, directories).

    The block size must be a power of two. Subclasses supply the total size
    and a way to read one whole block; byte-range reads are built on top.
    """

    def __init__(self, block_size: int) -> None:
        if block_size <= 0 or block_size & (block_size - 1):
            raise ValueError(f"block size {block_size} is not a power of two")
        self.block_size = block_size

    @abstractmethod
    def size_in_bytes(self) -> int:
        """Number of bytes of data."""

    def size_in_blocks(self) -> int:
        """Number of blocks, counting a trailing partial block."""
        return (self.size_in_bytes() + self.block_size - 1) // self.block_size

    @abstractmethod
    def read_block(self, block_number: int) -> bytes:
        """Return the ``block_size`` bytes of one block."""

    def read(self, offset: int, n: int) -> bytes:
        """Read up to ``n`` bytes at ``offset``, never crossing a block boundary.

        Returns an empty result at the end of the data and raises ValueError
        when ``offset`` lies beyond it.
        """
        size = self.size_in_bytes()
        if offset > size:
            raise ValueError(f"offset {offset} beyond end of data ({size} bytes)")
        if offset == size:
            return b""
        n = min(n, size - offset)
        block_number, offset_in_block = divmod(offset, self.block_size)
        actual = min(self.block_size - offset_in_block, n)
        block = self.read_block(block_number)
        return bytes(block[offset_in_block : offset_in_block + actual])

    def read_all(self, offset: int, n: int) -> bytes:
        """Read ``min(n, size - offset)`` bytes starting at ``offset``."""
        chunks: list[bytes] = []
        while n > 0:
            chunk = self.read(offset, n)
            if not chunk:
                break
            chunks.append(chunk)
            offset += len(chunk)
            n -= len(chunk)
        return b"".join(chunks)

    def read_struct(self, offset: int, fmt: str) -> tuple[Any, ...]:
        """Read and unpack a ``struct`` layout at ``offset``.

        Raises EOFError when the data ends before the whole layout is read.
        """
        size = struct.calcsize(fmt)
        data = self.read_all(offset, size)
        if len(data) != size:
            raise EOFError(f"needed {size} bytes at offset {offset}, got {len(data)}")
        return struct.unpack(fmt, data)


class MemoryDisk(BlockIO):
    """A disk whose contents are held in memory, read in sectors."""

    def __init__(self, image: bytes, block_size: int = SECTOR_SIZE) -> None:
        super().__init__(block_size)
        self._image = bytes(image)

    def size_in_bytes(self) -> int:
        return len(self._image)

    def read_block(self, block_number: int) -> bytes:
        """Return one block; a trailing partial block is padded with zeros."""
        if not 0 <= block_number < self.size_in_blocks():
            raise IndexError(f"block {block_number} out of range")
        start = block_number * self.block_size
        return self._image[start : start + self.block_size].ljust(self.block_size, b"\0")