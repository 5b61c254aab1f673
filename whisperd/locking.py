"""Reader/writer lock guarding the in-memory settings value."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

from .errors import LockPoisonedError


class ReadWriteLock:
    """Many concurrent readers or one writer.

    Waiting writers block new readers so a steady stream of ``get`` calls
    cannot starve a save. If a block guarded by :meth:`write_locked` raises,
    the protected value may be half-updated: the lock is poisoned and every
    later acquisition raises :class:`LockPoisonedError`.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0
        self._poisoned = False

    @property
    def poisoned(self) -> bool:
        with self._cond:
            return self._poisoned

    def _check_poisoned(self) -> None:
        if self._poisoned:
            raise LockPoisonedError("settings lock poisoned by a failed writer")

    def acquire_read(self) -> None:
        with self._cond:
            self._check_poisoned()
            while self._writer or self._waiting_writers:
                self._cond.wait()
                self._check_poisoned()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._check_poisoned()
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
                    self._check_poisoned()
            finally:
                self._waiting_writers -= 1
            self._writer = True

    def release_write(self, *, poison: bool = False) -> None:
        with self._cond:
            self._writer = False
            if poison:
                self._poisoned = True
            self._cond.notify_all()

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        except BaseException:
            self.release_write(poison=True)
            raise
        self.release_write()


__all__ = ["ReadWriteLock"]
