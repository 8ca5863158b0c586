"""Per-vehicle write serialization."""

import threading
import weakref
from contextlib import contextmanager
from typing import Iterator


class VehicleLocks:
    """
    One lock per vehicle id around read-validate-write sections.

    Two writes for the same vehicle never interleave; different vehicles
    proceed in parallel. Locks are held weakly, so a vehicle's entry
    disappears once no caller holds or waits on its lock.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[str, threading.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def __len__(self) -> int:
        return len(self._locks)

    def lock_for(self, vehicle_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(vehicle_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[vehicle_id] = lock
            return lock

    @contextmanager
    def hold(self, vehicle_id: str) -> Iterator[None]:
        lock = self.lock_for(vehicle_id)
        with lock:
            yield
