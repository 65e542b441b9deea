"""Synchronisation primitives: atomics, locks, barriers, conditions, buffers and futures."""

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable
from typing import Any, Generic, Protocol, TypeVar

from minikern.debug import KernelPanic

T = TypeVar("T")


class _Lockable(Protocol):
    def lock(self) -> None: ...

    def unlock(self) -> None: ...

    def is_mine(self) -> bool: ...


class Atomic(Generic[T]):
    """A value whose every operation is performed atomically."""

    def __init__(self, value: T) -> None:
        self._value = value
        self._guard = threading.Lock()

    def get(self) -> T:
        with self._guard:
            return self._value

    def set(self, value: T) -> None:
        with self._guard:
            self._value = value

    def fetch_add(self, inc: Any) -> T:
        """Add ``inc`` and return the value from before the addition."""
        with self._guard:
            old = self._value
            self._value = old + inc
            return old

    def add_fetch(self, inc: Any) -> T:
        """Add ``inc`` and return the new value."""
        with self._guard:
            self._value = self._value + inc
            return self._value

    def exchange(self, value: T) -> T:
        """Store ``value`` and return the previous one."""
        with self._guard:
            old = self._value
            self._value = value
            return old


class SpinLock:
    """A lock taken by spinning on an atomic flag."""

    def __init__(self) -> None:
        self._taken: Atomic[bool] = Atomic(False)

    def is_mine(self) -> bool:
        """True while the lock is held by anyone (allows false positives)."""
        return self._taken.get()

    def lock(self) -> None:
        while self._taken.exchange(True):
            time.sleep(0)

    def unlock(self) -> None:
        self._taken.set(False)

    def __enter__(self) -> SpinLock:
        self.lock()
        return self

    def __exit__(self, *exc: object) -> None:
        self.unlock()


class BlockingLock:
    """A lock that puts waiters to sleep: a semaphore with one permit."""

    def __init__(self) -> None:
        self._sem = threading.Semaphore(1)

    def lock(self) -> None:
        self._sem.acquire()

    def unlock(self) -> None:
        self._sem.release()

    def is_mine(self) -> bool:
        """Ownership is not tracked; always True."""
        return True

    def __enter__(self) -> BlockingLock:
        self.lock()
        return self

    def __exit__(self, *exc: object) -> None:
        self.unlock()


class Barrier:
    """A one-shot barrier: every caller of sync waits until ``count`` have arrived."""

    def __init__(self, count: int) -> None:
        self._count: Atomic[int] = Atomic(count)
        self._sem = threading.Semaphore(0)

    def sync(self) -> None:
        x = self._count.add_fetch(-1)
        if x < 0:
            raise KernelPanic("count went negative in barrier")
        if x == 0:
            self._sem.release()
        else:
            self._sem.acquire()
            self._sem.release()


class Condition:
    """A Mesa-style condition variable bound to a lock.

    Waiters must re-check their condition after waking: the lock is not
    handed over from the notifier, so the state may change in between.
    """

    def __init__(self, lock: _Lockable) -> None:
        self._lock = lock
        self._epoch = 0
        self._queue: deque[threading.Event] = deque()

    @property
    def epoch(self) -> int:
        """Number of notifications so far."""
        return self._epoch

    def _require_lock(self) -> None:
        if not self._lock.is_mine():
            raise RuntimeError("condition used without holding its lock")

    def wait(self) -> None:
        """Release the lock, sleep until notified, and take the lock again."""
        self._require_lock()
        event = threading.Event()
        self._queue.append(event)
        self._lock.unlock()
        event.wait()
        self._lock.lock()

    def notify(self, limit: int) -> None:
        """Wake at most ``limit`` waiters; the lock stays held."""
        self._require_lock()
        self._epoch += 1
        for _ in range(min(limit, len(self._queue))):
            self._queue.popleft().set()

    def notify_one(self) -> None:
        self.notify(1)

    def notify_all(self) -> None:
        self.notify(len(self._queue))


class ReusableBarrier:
    """A barrier that resets itself after each round of ``count`` arrivals."""

    def __init__(self, count: int) -> None:
        if count <= 0:
            raise ValueError("barrier count must be positive")
        self._lock = SpinLock()
        self._new_epoch = Condition(self._lock)
        self._initial_count = count
        self._count = count
        self._epoch = 0

    def sync(self) -> None:
        self._lock.lock()
        try:
            if self._count == 0:
                raise RuntimeError("reusable barrier count is zero")
            t = self._epoch
            self._count -= 1
            if self._count == 0:
                self._epoch += 1
                self._count = self._initial_count
                self._new_epoch.notify_all()
            else:
                while self._epoch <= t:
                    self._new_epoch.wait()
        finally:
            self._lock.unlock()


class BoundedBuffer(Generic[T]):
    """A FIFO of fixed capacity: put blocks when full, get blocks when empty."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._items: deque[T] = deque()
        self._n_empty = threading.Semaphore(capacity)
        self._n_full = threading.Semaphore(0)
        self._mutex = threading.Lock()

    def put(self, item: T) -> None:
        self._n_empty.acquire()
        with self._mutex:
            self._items.append(item)
        self._n_full.release()

    def get(self) -> T:
        self._n_full.acquire()
        with self._mutex:
            item = self._items.popleft()
        self._n_empty.release()
        return item


class Future(Generic[T]):
    """A value that is set once and can be waited for."""

    def __init__(self) -> None:
        self._ready = threading.Event()
        self._value: T | None = None

    def set(self, value: T) -> None:
        if self._ready.is_set():
            raise RuntimeError("future already set")
        self._value = value
        self._ready.set()

    def get(self) -> T:
        """Block until the value is set, then return it."""
        self._ready.wait()
        return self._value  # type: ignore[return-value]


def future(work: Callable[[], T]) -> Future[T]:
    """Run ``work`` on a new thread; its result is delivered through a Future."""
    result: Future[T] = Future()
    threading.Thread(target=lambda: result.set(work()), daemon=True).start()
    return result


def stream(capacity: int, work: Callable[[BoundedBuffer[T]], object]) -> BoundedBuffer[T]:
    """Run ``work`` on a new thread, handing it a buffer that the caller reads from."""
    buffer: BoundedBuffer[T] = BoundedBuffer(capacity)
    threading.Thread(target=work, args=(buffer,), daemon=True).start()
    return buffer