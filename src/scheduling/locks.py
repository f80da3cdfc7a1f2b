"""Per provider-day mutual exclusion for booking and reschedule writes."""

import logging
import threading
from contextlib import contextmanager
from datetime import date
from typing import Iterator

logger = logging.getLogger(__name__)

LockKey = tuple[str, date]


class ProviderDayLocks:
    """
    Registry of one lock per (provider_id, date).

    Writes that touch several days (a reschedule across dates) acquire
    their locks in sorted key order so two writers cannot deadlock.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[LockKey, threading.Lock] = {}

    def _lock_for(self, key: LockKey) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, *keys: LockKey) -> Iterator[None]:
        """Hold the locks for every given provider-day for the duration of the block."""
        ordered = sorted(set(keys))
        acquired: list[threading.Lock] = []
        try:
            for key in ordered:
                lock = self._lock_for(key)
                lock.acquire()
                acquired.append(lock)
            logger.debug("Holding provider-day locks: %s", ordered)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
