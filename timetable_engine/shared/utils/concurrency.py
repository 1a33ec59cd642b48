"""Per-schedule locking and cooperative cancellation"""
import threading
import weakref
from contextlib import contextmanager
from typing import Hashable, MutableMapping


class ScheduleLockRegistry:
    """Hands out one lock per schedule id

    Mutating operations on the same schedule are serialized; different
    schedules proceed in parallel. A lock lives as long as someone holds a
    reference to it, so the registry does not grow with every schedule ever
    touched.
    """

    def __init__(self):
        self._locks: MutableMapping[Hashable, threading.RLock] = weakref.WeakValueDictionary()
        self._guard = threading.Lock()

    def __len__(self) -> int:
        return len(self._locks)

    def lock_for(self, schedule_id: Hashable) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(schedule_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[schedule_id] = lock
            return lock

    @contextmanager
    def hold(self, schedule_id: Hashable):
        """Context manager holding the schedule's lock"""
        lock = self.lock_for(schedule_id)
        with lock:
            yield lock


class CancellationToken:
    """Cancellation flag checked by long-running loops between iterations"""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()
