import struct

import pytest

from minikern.block_io import BlockIO, MemoryDisk

IMAGE = bytes(range(256)) * 8


@pytest.fixture
def disk():
    return MemoryDisk(IMAGE, 512)


class CountingDevice(BlockIO):
    def __init__(self, data, block_size):
        super().__init__(block_size)
        self.data = data
        self.reads = []

    def size_in_bytes(self):
        return len(self.data)

    def read_block(self, block_number):
        self.reads.append(block_number)
        start = block_number * self.block_size
        return self.data[start : start + self.block_size].ljust(self.block_size, b"\0")


def test_size_in_blocks_exact(disk):
    assert disk.size_in_blocks() == len(IMAGE) // 512


def test_size_in_blocks_rounds_up():
    assert MemoryDisk(IMAGE + b"x", 512).size_in_blocks() == len(IMAGE) // 512 + 1


def test_read_within_block(disk):
    assert disk.read(10, 5) == IMAGE[10:15]


def test_read_stops_at_block_boundary(disk):
    assert disk.read(510, 10) == IMAGE[510:512]


def test_read_whole_block(disk):
    assert disk.read(512, 512) == IMAGE[512:1024]


def test_read_at_end_is_empty(disk):
    assert disk.read(len(IMAGE), 10) == b""


def test_read_past_end_raises(disk):
    with pytest.raises(ValueError):
        disk.read(len(IMAGE) + 1, 10)


def test_read_all_crosses_blocks(disk):
    assert disk.read_all(510, 700) == IMAGE[510:1210]


def test_read_all_truncated_at_end(disk):
    assert disk.read_all(2000, 100) == IMAGE[2000:]


def test_read_all_past_end_raises(disk):
    with pytest.raises(ValueError):
        disk.read_all(len(IMAGE) + 5, 1)


def test_read_struct(disk):
    assert disk.read_struct(510, "<IH") == struct.unpack("<IH", IMAGE[510:516])


def test_read_struct_short_raises(disk):
    with pytest.raises(EOFError):
        disk.read_struct(len(IMAGE) - 2, "<I")


def test_read_block_pads_partial_last_block():
    assert MemoryDisk(b"abc", 4).read_block(0) == b"abc\0"


def test_read_block_out_of_range(disk):
    with pytest.raises(IndexError):
        disk.read_block(disk.size_in_blocks())


def test_block_size_must_be_power_of_two():
    with pytest.raises(ValueError):
        MemoryDisk(IMAGE, 500)


def test_read_all_uses_block_reads_in_order():
    dev = CountingDevice(IMAGE, 256)
    result = dev.read_all(100, 600)
    assert result == MemoryDisk(IMAGE, 256).read_all(100, 600)
    assert result == IMAGE[100:700]
    assert dev.reads == [0, 1, 2]