"""Per-key locks for serializing work on one resource."""

from __future__ import annotations

import threading
from typing import Hashable


class KeyLocks:
    """Hands out one lock per key, created on first use.

    kopf runs the timer and the change handlers of one object independently,
    so they can overlap. Holding ``lock(key)`` around a reconciliation keeps
    passes over the same key strictly sequential.
    """

    def __init__(self) -> None:
        self._locks: dict[Hashable, threading.Lock] = {}
        self._guard = threading.Lock()

    def lock(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def __len__(self) -> int:
        return len(self._locks)
