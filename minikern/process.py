"""Processes: tables of files, semaphores and children, identified by encoded ids."""

from __future__ import annotations

import io
import threading
from abc import ABC, abstractmethod

from minikern.kformat import Sink
from minikern.sync import Future

NSEM = 10
NCHILD = 10
NFILE = 10

FL = 0x00000000
PROC = 0x10000000
SEM = 0x20000000
INDEX_MASK = 0x0FFFFFFF
KIND_MASK = 0xF0000000
_MASK32 = 0xFFFFFFFF


class File(ABC):
    """Something a process can read from and write to through a descriptor."""

    @abstractmethod
    def is_file(self) -> bool:
        """True for a regular file."""

    @abstractmethod
    def is_directory(self) -> bool:
        """True for a directory."""

    @abstractmethod
    def size(self) -> int:
        """Size in bytes."""

    @abstractmethod
    def seek(self, offset: int) -> int:
        """Move to ``offset`` and return the new position."""

    @abstractmethod
    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes."""

    @abstractmethod
    def write(self, data: bytes) -> int:
        """Write ``data`` and return the number of bytes written."""


class _ConsoleFile(File):
    """The console: writes go to a character sink, reads take pending input.

    The console is a stream: its position is the number of bytes that have
    passed through it, and it can only be "sought" to where it already is.
    """

    def __init__(self, sink: Sink) -> None:
        self._sink = sink
        self._input = bytearray()
        self._position = 0

    def feed(self, data: bytes) -> None:
        """Queue ``data`` as typed input for later reads."""
        self._input.extend(data)

    def is_file(self) -> bool:
        return True

    def is_directory(self) -> bool:
        return False

    def size(self) -> int:
        return 0

    def seek(self, offset: int) -> int:
        if offset != self._position:
            raise io.UnsupportedOperation("the console is not seekable")
        return self._position

    def read(self, size: int) -> bytes:
        if size < 0:
            raise ValueError("size must not be negative")
        chunk = bytes(self._input[:size])
        del self._input[:size]
        self._position += len(chunk)
        return chunk

    def write(self, data: bytes) -> int:
        for byte in bytes(data):
            self._sink(chr(byte))
        self._position += len(data)
        return len(data)


def _kind(id: int) -> int:
    return id & _MASK32 & KIND_MASK


def _index(id: int) -> int:
    return id & INDEX_MASK


class Process:
    """A process with its private pages and its file, semaphore and child tables.

    ``console`` is a character sink; when given, descriptors 0, 1 and 2 all
    refer to one console file writing to it.
    """

    def __init__(self, console: Sink | None = None) -> None:
        self._files: list[File | None] = [None] * NFILE
        self._sems: list[threading.Semaphore | None] = [None] * NSEM
        self._children: list[Future[int] | None] = [None] * NCHILD
        self._mutex = threading.Lock()
        self.output: Future[int] = Future()
        self.pages: dict[int, bytearray] = {}
        if console is not None:
            console_file = _ConsoleFile(console)
            self._files[0] = self._files[1] = self._files[2] = console_file

    @staticmethod
    def _semaphore_index(id: int) -> int | None:
        index = _index(id)
        if _kind(id) != SEM or index >= NSEM:
            return None
        return index

    @staticmethod
    def _child_index(id: int) -> int | None:
        index = _index(id)
        if _kind(id) != PROC or index >= NCHILD:
            return None
        return index

    @staticmethod
    def _file_index(id: int) -> int | None:
        index = _index(id)
        if _kind(id) != FL or index >= NFILE:
            return None
        return index

    def new_semaphore(self, init: int) -> int:
        """Create a semaphore and return its id."""
        with self._mutex:
            for i, sem in enumerate(self._sems):
                if sem is None:
                    self._sems[i] = threading.Semaphore(init)
                    return SEM | (i & INDEX_MASK)
        raise RuntimeError("semaphore table is full")

    def get_semaphore(self, id: int) -> threading.Semaphore | None:
        """The semaphore with this id, or None."""
        with self._mutex:
            idx = _index(id)
            if idx >= NSEM or _kind(id) == 0:
                return None
            return self._sems[idx]

    def get_file(self, fd: int) -> File | None:
        """The file open on descriptor ``fd``, or None."""
        index = self._file_index(fd)
        if index is None:
            return None
        return self._files[index]

    def set_file(self, file: File) -> int:
        """Open ``file`` on the lowest free descriptor and return it."""
        for i, existing in enumerate(self._files):
            if existing is None:
                self._files[i] = file
                return i
        raise RuntimeError("file table is full")

    def fork(self) -> tuple[Process, int]:
        """Create a child with a copy of the pages; return the child and its id.

        The child shares this process's semaphores and open files.
        """
        with self._mutex:
            try:
                index = self._children.index(None)
            except ValueError:
                raise RuntimeError("child table is full") from None
            child = Process()
            child.pages = {vpn: bytearray(page) for vpn, page in self.pages.items()}
            child._sems = list(self._sems)
            child._files = list(self._files)
            self._children[index] = child.output
            return child, PROC | index

    def close(self, id: int) -> None:
        """Release the semaphore, child or file with this id."""
        for table, index in (
            (self._sems, self._semaphore_index(id)),
            (self._children, self._child_index(id)),
            (self._files, self._file_index(id)),
        ):
            if index is not None:
                if table[index] is None:
                    raise LookupError(f"nothing open for id {id:#x}")
                table[index] = None
                return
        raise ValueError(f"invalid id {id:#x}")

    def exit(self, value: int) -> None:
        """Publish the exit value to the parent."""
        self.output.set(value)

    def wait(self, id: int) -> int:
        """Wait for a child to exit, return its exit value and forget it."""
        index = self._child_index(id)
        if index is None:
            raise ValueError(f"{id:#x} is not a child id")
        child = self._children[index]
        if child is None:
            raise LookupError(f"no child for id {id:#x}")
        value = child.get()
        self._children[index] = None
        return value

    def remove_semaphores_and_children(self) -> None:
        """Drop every semaphore and child."""
        self._sems = [None] * NSEM
        self._children = [None] * NCHILD