import pytest

from minikern.physmem import (
    FRAME_SIZE,
    FrameAllocator,
    OutOfFrames,
    framedown,
    frameup,
    offset,
    ppn,
)


@pytest.mark.parametrize("pa", [0, 1, 0xFFF, 0x1000, 0x1001, 0x12345678])
def test_ppn_and_offset_round_trip(pa):
    assert ppn(pa) * FRAME_SIZE + offset(pa) == pa
    assert 0 <= offset(pa) < FRAME_SIZE


@pytest.mark.parametrize("pa", [0, 1, 0xFFF, 0x1000, 0x1001, 0x12345678])
def test_framedown_and_frameup_bracket(pa):
    down = framedown(pa)
    up = frameup(pa)
    assert down % FRAME_SIZE == 0
    assert up % FRAME_SIZE == 0
    assert down <= pa <= up
    assert up - down in (0, FRAME_SIZE)


def test_aligned_address_is_fixed_point():
    assert framedown(0x3000) == 0x3000
    assert frameup(0x3000) == 0x3000


def test_allocates_whole_range_then_fails():
    start = 0x100000
    alloc = FrameAllocator(start, 3 * FRAME_SIZE)
    frames = [alloc.alloc_frame() for _ in range(3)]
    assert sorted(frames) == [start, start + FRAME_SIZE, start + 2 * FRAME_SIZE]
    with pytest.raises(OutOfFrames):
        alloc.alloc_frame()


def test_released_frame_is_reused_first():
    alloc = FrameAllocator(0x200000, 4 * FRAME_SIZE)
    a = alloc.alloc_frame()
    alloc.alloc_frame()
    alloc.dealloc_frame(a)
    assert alloc.alloc_frame() == a


def test_misaligned_range_rejected():
    with pytest.raises(ValueError):
        FrameAllocator(0x100010, FRAME_SIZE)


def test_misaligned_release_rejected():
    alloc = FrameAllocator(0, FRAME_SIZE)
    with pytest.raises(ValueError):
        alloc.dealloc_frame(0x10)