import pytest

from minikern.display import (
    BLUE,
    WHITE,
    X_RES,
    Y_RES,
    Framebuffer,
    Window,
    convert_to_6_bit,
)


def _font_with(code, rows):
    font = bytearray(256 * 16)
    font[code * 16 : code * 16 + len(rows)] = bytes(rows)
    return bytes(font)


def test_convert_extremes():
    assert convert_to_6_bit(WHITE) == 0b111111
    assert convert_to_6_bit(0) == 0


@pytest.mark.parametrize("color", [0x9999FF, 0xFF6666, 0x66FF66, 0x3F3F3F, 0x123456])
def test_convert_channels(color):
    packed = convert_to_6_bit(color)
    assert packed < 64
    assert packed >> 4 == ((color >> 16) & 0xFF) >> 6
    assert (packed >> 2) & 3 == ((color >> 8) & 0xFF) >> 6
    assert packed & 3 == (color & 0xFF) >> 6


def test_default_size_and_blank():
    fb = Framebuffer()
    assert len(fb.buffer) == X_RES * Y_RES
    assert fb.get(0, 0) == 0


def test_pixel_out_of_bounds_ignored():
    fb = Framebuffer(4, 4)
    fb.pixel(-1, 0, 9)
    fb.pixel(4, 0, 9)
    fb.pixel(0, 4, 9)
    assert set(fb.buffer) == {0}
    with pytest.raises(IndexError):
        fb.get(4, 0)


def test_draw_rect_uses_end_coordinates():
    fb = Framebuffer(10, 10)
    fb.draw_rect(2, 3, 5, 6, 7)
    for y in range(10):
        for x in range(10):
            inside = 2 <= x < 5 and 3 <= y < 6
            assert fb.get(x, y) == (7 if inside else 0)


def test_background_fills_everything():
    fb = Framebuffer(8, 6)
    fb.setup_background()
    assert set(fb.buffer) == {convert_to_6_bit(BLUE)}


def test_draw_char_bit_order():
    font = _font_with(ord("A"), [0x80, 0x01])
    fb = Framebuffer(20, 20)
    fb.draw_char("A", 3, 4, 5, font)
    assert fb.get(3, 4) == 5
    assert fb.get(10, 5) == 5
    assert sum(1 for v in fb.buffer if v) == 2


def test_draw_char_baseline_shifts_up():
    font = _font_with(1, [0xFF])
    fb = Framebuffer(20, 20)
    fb.draw_char(1, 0, 10, 3, font, baseline=4)
    assert all(fb.get(x, 6) == 3 for x in range(8))
    assert fb.get(0, 10) == 0


def test_write_line_advances_and_stops_at_nul():
    font = _font_with(ord("x"), [0x80])
    fb = Framebuffer(40, 4)
    fb.write_line("xx\0x", 0, 0, 2, font)
    assert fb.get(0, 0) == 2
    assert fb.get(8, 0) == 2
    assert fb.get(16, 0) == 0


def test_window_draw_uses_width_for_both_ends():
    fb = Framebuffer(10, 10)
    Window(1, 1, 4, 8).draw(fb)
    white = convert_to_6_bit(WHITE)
    assert fb.get(1, 1) == white
    assert fb.get(3, 3) == white
    assert fb.get(3, 5) == 0