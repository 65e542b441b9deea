"""printf-style formatting with the kernel's conversion rules, plus small string helpers."""

from __future__ import annotations

import operator
from collections.abc import Callable, Iterable, Iterator
from enum import Enum, IntFlag, auto
from typing import Any

Sink = Callable[[str], object]

_NUL = "\0"
_MASK32 = 0xFFFFFFFF
_LOWER = "0123456789abcdef"
_UPPER = "0123456789ABCDEF"
_MAX_DIGITS = 20
_DEFAULT_MAXLEN = 1000


class _Flag(IntFlag):
    NONE = 0
    MINUS = auto()
    PLUS = auto()
    SPACE = auto()
    NUM = auto()
    ZERO = auto()
    UP = auto()
    UNSIGNED = auto()


class _State(Enum):
    DEFAULT = auto()
    FLAGS = auto()
    MIN = auto()
    DOT = auto()
    MAX = auto()
    MOD = auto()
    CONV = auto()


class _Length(Enum):
    NONE = auto()
    SHORT = auto()
    LONG = auto()
    LDOUBLE = auto()


_FLAG_CHARS = {
    "-": _Flag.MINUS,
    "+": _Flag.PLUS,
    " ": _Flag.SPACE,
    "#": _Flag.NUM,
    "0": _Flag.ZERO,
}

_LENGTH_CHARS = {"h": _Length.SHORT, "l": _Length.LONG, "L": _Length.LDOUBLE}

_UNSIGNED_BASES = {"o": 8, "u": 10, "x": 16, "X": 16}


def _int32(value: Any) -> int:
    """Reinterpret an integer as a signed 32-bit value."""
    v = operator.index(value) & _MASK32
    return v - (1 << 32) if v & 0x80000000 else v


def _char(value: Any) -> str:
    if isinstance(value, str):
        if len(value) != 1:
            raise TypeError("%c requires a single character")
        return value
    return chr(operator.index(value) & 0xFF)


def _digits(value: int, base: int, upper: bool) -> str:
    """Digits of a non-negative value, most significant first, at most 19 of them."""
    alphabet = _UPPER if upper else _LOWER
    out: list[str] = []
    while True:
        value, rem = divmod(value, base)
        out.append(alphabet[rem])
        if not value or len(out) >= _MAX_DIGITS:
            break
    if len(out) == _MAX_DIGITS:
        out.pop()
    return "".join(reversed(out))


def _xround(value: float) -> int:
    whole = int(value)
    return whole + 1 if value - whole >= 0.5 else whole


class _Formatter:
    def __init__(self, sink: Sink, maxlen: int, fmt: str, args: Iterable[Any]) -> None:
        self._sink = sink
        self._maxlen = maxlen
        self._fmt = fmt
        self._pos = 0
        self._args: Iterator[Any] = iter(args)
        self.count = 0

    def _next_char(self) -> str:
        ch = self._fmt[self._pos] if self._pos < len(self._fmt) else _NUL
        self._pos += 1
        return ch

    def _arg(self) -> Any:
        try:
            return next(self._args)
        except StopIteration:
            raise TypeError("not enough arguments for format string") from None

    def _emit(self, text: str) -> None:
        for ch in text:
            self.count += 1
            self._sink(ch)

    def run(self) -> int:
        state = _State.DEFAULT
        flags = _Flag.NONE
        length = _Length.NONE
        min_width = 0
        precision = -1
        ch = self._next_char()

        while True:
            if ch == _NUL or self.count >= self._maxlen:
                break
            if state is _State.DEFAULT:
                if ch == "%":
                    state = _State.FLAGS
                else:
                    self._emit(ch)
                ch = self._next_char()
            elif state is _State.FLAGS:
                flag = _FLAG_CHARS.get(ch)
                if flag is None:
                    state = _State.MIN
                else:
                    flags |= flag
                    ch = self._next_char()
            elif state is _State.MIN:
                if isdigit(ch):
                    min_width = 10 * min_width + int(ch)
                    ch = self._next_char()
                elif ch == "*":
                    min_width = _int32(self._arg())
                    ch = self._next_char()
                    state = _State.DOT
                else:
                    state = _State.DOT
            elif state is _State.DOT:
                if ch == ".":
                    state = _State.MAX
                    ch = self._next_char()
                else:
                    state = _State.MOD
            elif state is _State.MAX:
                if isdigit(ch):
                    precision = 10 * max(precision, 0) + int(ch)
                    ch = self._next_char()
                elif ch == "*":
                    precision = _int32(self._arg())
                    ch = self._next_char()
                    state = _State.MOD
                else:
                    state = _State.MOD
            elif state is _State.MOD:
                if ch in _LENGTH_CHARS:
                    length = _LENGTH_CHARS[ch]
                    ch = self._next_char()
                state = _State.CONV
            else:
                self._convert(ch, flags, min_width, precision)
                ch = self._next_char()
                state = _State.DEFAULT
                flags = _Flag.NONE
                length = _Length.NONE
                min_width = 0
                precision = -1
        return self.count

    def _convert(self, conv: str, flags: _Flag, min_width: int, precision: int) -> None:
        if conv in ("d", "i"):
            self._fmt_int(_int32(self._arg()), 10, min_width, precision, flags)
        elif conv in _UNSIGNED_BASES:
            flags |= _Flag.UNSIGNED
            if conv == "X":
                flags |= _Flag.UP
            self._fmt_int(_int32(self._arg()), _UNSIGNED_BASES[conv], min_width, precision, flags)
        elif conv == "f":
            self._fmt_fp(float(self._arg()), min_width, precision, flags)
        elif conv in ("e", "E", "g", "G"):
            self._arg()
        elif conv == "c":
            self._emit(_char(self._arg()))
        elif conv == "s":
            if precision < 0:
                precision = self._maxlen
            self._fmt_str(self._arg(), min_width, precision, flags)
        elif conv == "p":
            self._fmt_int(_int32(self._arg()), 16, min_width, precision, flags)
        elif conv == "n":
            target = self._arg()
            if not hasattr(target, "append"):
                raise TypeError("%n requires a list to receive the count")
            target.append(self.count)
        elif conv == "%":
            self._emit("%")
        elif conv == "w":
            self._next_char()

    def _fmt_str(self, value: Any, min_width: int, budget: int, flags: _Flag) -> None:
        text = "<NULL>" if value is None else str(value).split(_NUL, 1)[0]
        padlen = max(min_width - len(text), 0)
        if not flags & _Flag.MINUS:
            lead = min(padlen, budget)
            self._emit(" " * lead)
            budget -= lead
        body = text[: max(budget, 0)]
        self._emit(body)
        budget -= len(body)
        if flags & _Flag.MINUS:
            self._emit(" " * max(min(padlen, budget), 0))

    def _fmt_int(self, value: int, base: int, min_width: int, precision: int, flags: _Flag) -> None:
        precision = max(precision, 0)
        uvalue = value & _MASK32
        sign = ""
        if not flags & _Flag.UNSIGNED:
            if value < 0:
                sign = "-"
                uvalue = (-value) & _MASK32
            elif flags & _Flag.PLUS:
                sign = "+"
            elif flags & _Flag.SPACE:
                sign = " "
        digits = _digits(uvalue, base, bool(flags & _Flag.UP))
        zpad = max(precision - len(digits), 0)
        spad = max(min_width - max(precision, len(digits)) - len(sign), 0)
        if flags & _Flag.ZERO:
            zpad = max(zpad, spad)
            spad = 0
        leading, trailing = (0, spad) if flags & _Flag.MINUS else (spad, 0)
        self._emit(" " * leading + sign + "0" * zpad + digits + " " * trailing)

    def _fmt_fp(self, value: float, min_width: int, precision: int, flags: _Flag) -> None:
        if precision < 0:
            precision = 6
        magnitude = abs(value)
        if value < 0:
            sign = "-"
        elif flags & _Flag.PLUS:
            sign = "+"
        elif flags & _Flag.SPACE:
            sign = " "
        else:
            sign = ""
        intpart = int(magnitude)
        precision = min(precision, 9)
        scale = 10**precision
        fracpart = _xround(scale * (magnitude - intpart))
        if fracpart >= scale:
            intpart += 1
            fracpart -= scale
        idigits = _digits(intpart, 10, False)
        fdigits = _digits(fracpart, 10, False)

        padlen = max(min_width - len(idigits) - precision - 1 - len(sign), 0)
        zpadlen = max(precision - len(fdigits), 0)
        if flags & _Flag.MINUS:
            padlen = -padlen

        parts: list[str] = []
        if flags & _Flag.ZERO and padlen > 0:
            if sign:
                parts.append(sign)
                padlen -= 1
                sign = ""
            parts.append("0" * padlen)
            padlen = 0
        parts.append(" " * max(padlen, 0))
        parts.append(sign)
        parts.append(idigits)
        if precision > 0:
            parts.append(".")
            parts.append(fdigits)
        parts.append("0" * zpadlen)
        parts.append(" " * max(-padlen, 0))
        self._emit("".join(parts))


def snprintf(sink: Sink, maxlen: int, fmt: str, *args: Any) -> int:
    """Format into ``sink`` one character at a time; return the number of characters sent.

    Output stops once ``maxlen`` characters have been produced, but only between
    directives, so a conversion that starts below the limit is written out in full.
    """
    return _Formatter(sink, maxlen, fmt, args).run()


def sprintf(fmt: str, *args: Any, maxlen: int = _DEFAULT_MAXLEN) -> str:
    """Format into a new string."""
    out: list[str] = []
    snprintf(out.append, maxlen, fmt, *args)
    return "".join(out)


def streq(left: str, right: str) -> bool:
    """Compare two strings as NUL-terminated strings."""
    return left.split(_NUL, 1)[0] == right.split(_NUL, 1)[0]


def isdigit(c: str | int) -> bool:
    """True for the ASCII digits '0' to '9', given as a character or a code."""
    if isinstance(c, int):
        return ord("0") <= c <= ord("9")
    return len(c) == 1 and "0" <= c <= "9"