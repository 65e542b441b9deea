import io
import threading

import pytest

from minikern.process import NCHILD, NSEM, PROC, SEM, File, Process


class _MemoryFile(File):
    def __init__(self, data: bytes) -> None:
        self.data = bytearray(data)
        self.pos = 0

    def is_file(self):
        return True

    def is_directory(self):
        return False

    def size(self):
        return len(self.data)

    def seek(self, offset):
        self.pos = offset
        return offset

    def read(self, size):
        out = bytes(self.data[self.pos : self.pos + size])
        self.pos += len(out)
        return out

    def write(self, data):
        self.data[self.pos : self.pos + len(data)] = data
        self.pos += len(data)
        return len(data)


def test_file_is_abstract():
    with pytest.raises(TypeError):
        File()


def test_init_process_console_files():
    out = []
    p = Process(out.append)
    assert p.get_file(0) is p.get_file(1) is p.get_file(2)
    assert p.get_file(1).write(b"hi") == 2
    assert out == ["h", "i"]
    assert p.get_file(0).read(5) == b""
    with pytest.raises(io.UnsupportedOperation):
        p.get_file(0).seek(0)


def test_plain_process_has_no_files():
    p = Process()
    assert p.get_file(0) is None


def test_set_file_uses_lowest_free_descriptor():
    p = Process(lambda c: None)
    f = _MemoryFile(b"abc")
    assert p.set_file(f) == 3
    assert p.get_file(3) is f
    p.close(1)
    assert p.get_file(1) is None
    assert p.set_file(f) == 1


def test_file_table_full():
    p = Process()
    for _ in range(10):
        p.set_file(_MemoryFile(b""))
    with pytest.raises(RuntimeError):
        p.set_file(_MemoryFile(b""))


def test_semaphore_ids_and_lookup():
    p = Process()
    sid = p.new_semaphore(1)
    assert sid == SEM
    sem = p.get_semaphore(sid)
    assert sem.acquire(blocking=False) is True
    assert sem.acquire(blocking=False) is False
    assert p.new_semaphore(0) == SEM | 1


def test_semaphore_table_full():
    p = Process()
    ids = [p.new_semaphore(0) for _ in range(NSEM)]
    assert len(set(ids)) == NSEM
    with pytest.raises(RuntimeError):
        p.new_semaphore(0)


def test_get_semaphore_invalid_ids():
    p = Process()
    p.new_semaphore(0)
    assert p.get_semaphore(0) is None
    assert p.get_semaphore(SEM | NSEM) is None


def test_close_semaphore():
    p = Process()
    sid = p.new_semaphore(0)
    p.close(sid)
    assert p.get_semaphore(sid) is None
    with pytest.raises(LookupError):
        p.close(sid)


def test_close_invalid_id():
    p = Process()
    with pytest.raises(ValueError):
        p.close(0x30000000)


def test_fork_exit_wait():
    parent = Process()
    child, pid = parent.fork()
    assert pid == PROC
    child.exit(7)
    assert parent.wait(pid) == 7
    with pytest.raises(LookupError):
        parent.wait(pid)


def test_wait_blocks_until_exit():
    parent = Process()
    child, pid = parent.fork()
    timer = threading.Timer(0.05, child.exit, args=(42,))
    timer.start()
    assert parent.wait(pid) == 42
    timer.join()


def test_wait_rejects_non_child_id():
    p = Process()
    with pytest.raises(ValueError):
        p.wait(SEM)


def test_fork_copies_pages():
    parent = Process()
    parent.pages[5] = bytearray(b"abc")
    child, _ = parent.fork()
    assert child.pages[5] == b"abc"
    child.pages[5][0] = ord("z")
    assert parent.pages[5] == b"abc"


def test_fork_shares_semaphores_and_files():
    parent = Process(lambda c: None)
    sid = parent.new_semaphore(3)
    child, _ = parent.fork()
    assert child.get_semaphore(sid) is parent.get_semaphore(sid)
    assert child.get_file(1) is parent.get_file(1)


def test_child_table_full():
    p = Process()
    pids = [p.fork()[1] for _ in range(NCHILD)]
    assert pids[-1] == PROC | (NCHILD - 1)
    with pytest.raises(RuntimeError):
        p.fork()
    p.close(pids[0])
    assert p.fork()[1] == pids[0]


def test_remove_semaphores_and_children():
    p = Process()
    sid = p.new_semaphore(0)
    _, pid = p.fork()
    p.remove_semaphores_and_children()
    assert p.get_semaphore(sid) is None
    with pytest.raises(LookupError):
        p.wait(pid)