"""Cached quote count shared between threads."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from threading import Condition, Lock


class ReadWriteLock:
    """Lock allowing many concurrent readers or a single writer."""

    def __init__(self) -> None:
        self._cond = Condition(Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            while self._writing or self._readers:
                self._cond.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


class RecordCounter:
    """Mirror of ``COUNT(*)`` over the quotes table.

    Rebuilt from the store when the engine opens and adjusted only after a
    mutating transaction has committed, so it can lag the store but never
    run ahead of it.
    """

    def __init__(self, value: int = 0) -> None:
        self._lock = ReadWriteLock()
        self._value = value

    def get(self) -> int:
        with self._lock.read():
            return self._value

    def reset(self, value: int) -> None:
        with self._lock.write():
            self._value = value

    def adjust(self, delta: int) -> int:
        with self._lock.write():
            self._value += delta
            return self._value
