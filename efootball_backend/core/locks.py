# locks.py
# In-process per-entity locks, used to serialize read-modify-write cycles on team aggregates.

import threading
from contextlib import contextmanager
from typing import Dict, Tuple

from efootball_backend.core.errors import StorageError


class EntityLockRegistry:
    """
    Hands out one re-entrant lock per (kind, id).
    Several locks are always taken in sorted id order so two requests touching
    the same pair of teams can never deadlock.
    """

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout
        self._guard = threading.Lock()
        self._locks: Dict[Tuple[str, int], threading.RLock] = {}

    def lock_for(self, kind: str, entity_id: int) -> threading.RLock:
        with self._guard:
            key = (kind, entity_id)
            if key not in self._locks:
                self._locks[key] = threading.RLock()
            return self._locks[key]

    @contextmanager
    def hold(self, kind: str, *entity_ids: int):
        """Acquire the locks of every given entity (duplicates and None are ignored)."""
        ids = sorted({i for i in entity_ids if i is not None})
        acquired = []
        try:
            for entity_id in ids:
                lock = self.lock_for(kind, entity_id)
                if not lock.acquire(timeout=self.timeout):
                    raise StorageError(f"Timed out waiting for {kind} {entity_id} lock.")
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
