"""Kernel console: formatted output, assertions, panics and shutdown."""

from __future__ import annotations

import threading
from typing import Any

from minikern.kformat import Sink, sprintf

_LIMIT = 1000


class KernelPanic(Exception):
    """Raised when the kernel panics; carries the formatted message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ShutdownRequested(Exception):
    """Raised when a core asks for the system to shut down."""

    def __init__(self, core: int) -> None:
        super().__init__(f"core {core} requested shutdown")
        self.core = core


class Console:
    """Serialised formatted output to a character sink."""

    def __init__(self, sink: Sink | None) -> None:
        self.sink = sink
        self.debug_all = False
        self.shutdown_called = False
        self.core = 0
        self._checks = 0
        self._checks_lock = threading.Lock()
        self._lock = threading.Lock()

    @property
    def checks(self) -> int:
        """Number of checks performed so far."""
        return self._checks

    def _write(self, text: str) -> None:
        if self.sink is None:
            return
        with self._lock:
            for ch in text:
                self.sink(ch)

    def printf(self, fmt: str, *args: Any) -> None:
        if self.sink is None:
            return
        self._write(sprintf(fmt, *args, maxlen=_LIMIT))

    def _force_unlock(self) -> None:
        if self._lock.locked():
            try:
                self._lock.release()
            except RuntimeError:
                pass

    def panic(self, fmt: str, *args: Any) -> None:
        """Print the message, mark the system as shut down and raise KernelPanic."""
        self._force_unlock()
        message = sprintf(fmt, *args, maxlen=_LIMIT)
        self._write(message)
        self.printf("| processor %d halting\n", self.core)
        self.shutdown_called = True
        raise KernelPanic(message)

    def missing(self, file: str, line: int) -> None:
        self.panic("*** Missing code at %s:%d\n", file, line)

    def check(self, invariant: bool, text: str, file: str, line: int) -> None:
        """Count a check and panic if it does not hold."""
        with self._checks_lock:
            self._checks += 1
        if not invariant:
            self.panic("*** Check [%s] failed at %s:%d\n", text, file, line)

    def ensure(self, invariant: bool, text: str, file: str, line: int) -> None:
        """Panic if an assertion does not hold."""
        if not invariant:
            self.panic("*** Assertion [%s] failed at %s:%d\n", text, file, line)

    def shutdown(self, core: int) -> None:
        """Report checks, announce the shutdown and raise ShutdownRequested."""
        if self.checks > 0:
            self.printf("*** passed %d checkes\n", self.checks)
        self.printf("core %d requested shutdown\n", core)
        self.shutdown_called = True
        raise ShutdownRequested(core)


class DebugChannel:
    """Named debug output that can be switched on and off."""

    def __init__(self, console: Console, what: str) -> None:
        self.console = console
        self.what = what
        self.flag = False

    def debug(self, fmt: str, *args: Any) -> None:
        if self.console.debug_all or self.flag:
            self.console.printf("[%s] ", self.what)
            self.console.printf(fmt, *args)
            self.console.printf("\n")

    def on(self) -> None:
        self.flag = True

    def off(self) -> None:
        self.flag = False