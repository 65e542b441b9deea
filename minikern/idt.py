"""Interrupt descriptor table entries for 32-bit x86."""

from __future__ import annotations

_MASK32 = 0xFFFFFFFF
_INTERRUPT_GATE = 0x8E00
_TRAP_GATE = 0x8F00


class InterruptTable:
    """A table of gate descriptors, each stored as a (low, high) pair of words."""

    def __init__(self, kernel_cs: int, size: int = 256) -> None:
        self.kernel_cs = kernel_cs
        self.size = size
        self._words = [0] * (2 * size)

    def _check(self, index: int) -> None:
        if not 0 <= index < self.size:
            raise IndexError(f"vector {index} out of range")

    def _low(self, handler: int) -> int:
        return ((self.kernel_cs << 16) + (handler & 0xFFFF)) & _MASK32

    def interrupt(self, index: int, handler: int) -> None:
        """Install an interrupt gate (interrupts disabled on entry)."""
        self._check(index)
        self._words[2 * index] = self._low(handler)
        self._words[2 * index + 1] = (handler & 0xFFFF0000) | _INTERRUPT_GATE

    def trap(self, index: int, handler: int, dpl: int) -> None:
        """Install a trap gate callable from privilege level ``dpl``."""
        self._check(index)
        self._words[2 * index] = self._low(handler)
        self._words[2 * index + 1] = ((handler & 0xFFFF0000) | _TRAP_GATE | (dpl << 13)) & _MASK32

    def entry(self, index: int) -> tuple[int, int]:
        """The (low, high) words of a descriptor."""
        self._check(index)
        return self._words[2 * index], self._words[2 * index + 1]