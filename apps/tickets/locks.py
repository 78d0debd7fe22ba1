# ============================================================================
# apps/tickets/locks.py - Per-key mutual exclusion
# ============================================================================

import threading
import zlib
from contextlib import contextmanager
from datetime import date
from typing import Dict, Hashable, Iterator, Optional, Tuple

from .queue_class import QueueClass


def allocation_key(queue_class: QueueClass, day: date) -> Tuple[str, str]:
    return queue_class.code, day.isoformat()


def capacity_key(queue_class: QueueClass, day: date, rate_limit_scope: str) -> Optional[Tuple[str, str]]:
    """Key shared by every issuance counted against the same Normal tier cap"""
    if not queue_class.is_normal:
        return None
    scope = queue_class.origin_key if rate_limit_scope == "origin" else "*"
    return "cap:" + scope + queue_class.priority.value, day.isoformat()


def advisory_lock_id(key: Tuple[str, str]) -> int:
    """Stable signed 64 bit id for ``pg_advisory_xact_lock``"""
    text = "ticket-seq:" + ":".join(key)
    high = zlib.crc32(text.encode("utf-8"))
    low = zlib.crc32(text[::-1].encode("utf-8"))
    value = (high << 32) | low
    return value - (1 << 64) if value >= (1 << 63) else value


def advisory_lock_name(key: Tuple[str, str]) -> str:
    """Lock name for MySQL ``GET_LOCK`` (64 characters max)"""
    return ("ticket-seq:" + ":".join(key))[:64]


class KeyedLockRegistry:
    """Hands out one lock per key; locks of unused keys are discarded.

    Holders of different keys never contend, holders of the same key are
    serialized.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, threading.Lock] = {}
        self._users: Dict[Hashable, int] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._users[key] = self._users.get(key, 0) + 1
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._users[key] -= 1
                if self._users[key] == 0:
                    del self._users[key]
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
