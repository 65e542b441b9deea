"""An 8-bit 320x200 framebuffer with rectangles, bitmap text and windows."""

from __future__ import annotations

from dataclasses import dataclass

BYTE_MASK = 0xFF
RED = 0xFF6666
GREEN = 0x66FF66
BLUE = 0x9999FF
WHITE = 0xFFFFFF
BLACK = 0x0
GREY = 0x3F3F3F

X_RES = 320
Y_RES = 200
X_TEXT = 8
Y_TEXT = 16
BYTES_PER_PIXEL = 1


def convert_to_6_bit(color: int) -> int:
    """Reduce a 24-bit RGB colour to two bits per channel (RRGGBB)."""
    r = ((color >> 16) & BYTE_MASK) >> 6
    g = ((color >> 8) & BYTE_MASK) >> 6
    b = (color & BYTE_MASK) >> 6
    return (r << 4) + (g << 2) + b


class Framebuffer:
    """A width x height array of 8-bit pixels."""

    def __init__(self, width: int = X_RES, height: int = Y_RES) -> None:
        self.width = width
        self.height = height
        self.buffer = bytearray(width * height * BYTES_PER_PIXEL)

    def pixel(self, x: int, y: int, color: int) -> None:
        """Set one pixel; coordinates outside the buffer are ignored."""
        if x < 0 or y < 0 or x >= self.width or y >= self.height:
            return
        self.buffer[y * self.width + x] = color & BYTE_MASK

    def get(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside the framebuffer")
        return self.buffer[y * self.width + x]

    def draw_rect(self, x: int, y: int, width: int, height: int, color: int) -> None:
        """Fill columns x..width-1 and rows y..height-1.

        ``width`` and ``height`` are the exclusive end coordinates, not extents.
        """
        for i in range(x, width):
            for j in range(y, height):
                self.pixel(i, j, color)

    def setup_background(self) -> None:
        """Paint the whole screen in the desktop colour."""
        self.draw_rect(0, 0, self.width, self.height, convert_to_6_bit(BLUE))

    def draw_char(
        self, chr: str | int, x: int, y: int, color: int, font: bytes, baseline: int = 0
    ) -> None:
        """Draw an 8x16 glyph; bit 7 of each font row is the leftmost column."""
        code = ord(chr) if isinstance(chr, str) else chr
        code &= 0xFF
        glyph = font[code * Y_TEXT : (code + 1) * Y_TEXT]
        for row, bits in enumerate(glyph):
            for col in range(X_TEXT):
                if bits & (1 << (X_TEXT - 1 - col)):
                    self.pixel(x + col, y + row - baseline, color)

    def write_line(
        self, text: str, x: int, y: int, color: int, font: bytes, baseline: int = 0
    ) -> None:
        """Draw characters left to right, stopping at a NUL."""
        for index, ch in enumerate(text.split("\0", 1)[0]):
            self.draw_char(ch, x + index * X_TEXT, y, color, font, baseline)


@dataclass
class Window:
    """A window on the desktop."""

    x: int
    y: int
    width: int
    height: int

    def draw(self, framebuffer: Framebuffer) -> None:
        """Paint the window's area white (square, using the width for both ends)."""
        framebuffer.draw_rect(self.x, self.y, self.width, self.width, convert_to_6_bit(WHITE))