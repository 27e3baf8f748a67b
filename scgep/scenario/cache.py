# scgep/scenario/cache.py

"""
Warm-start cache of solved scenarios.

Entries expire ``ttl`` seconds after they were written. ``put`` always
overwrites. Every key has its own lock, created under a registry lock, so
scenarios running on different threads never contend on each other's keys.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from ..constants import DEFAULT_CACHE_TTL_SECONDS
from ..interfaces.solution import Solution

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WarmStartEntry:
    """
    Cached solution snapshot.

    Attributes
    ----------
    scenario_id : str
    solution : Solution
        Independent copy of the solution that was stored.
    objective : float
    timestamp : float
        Clock reading when the entry was written (seconds).
    """
    scenario_id: str
    solution: Solution
    objective: float
    timestamp: float

    def age(self, now: float) -> float:
        return now - self.timestamp


class WarmStartCache:
    """
    TTL cache of feasible solutions keyed by scenario id.

    Parameters
    ----------
    ttl : float, optional
        Entry lifetime in seconds (default: 3600).
    clock : callable, optional
        Returns the current time in seconds (default: ``time.monotonic``).

    Example
    -------
    >>> with WarmStartCache(ttl=3600) as cache:
    ...     cache.put('baseline', solution)
    ...     entry = cache.get('baseline')
    """

    def __init__(self, ttl: float = DEFAULT_CACHE_TTL_SECONDS,
                 clock: Optional[Callable[[], float]] = None):
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        self.ttl = float(ttl)
        self._clock = clock or time.monotonic
        self._entries: Dict[str, WarmStartEntry] = {}
        self._key_locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._closed = False

    def _lock_for(self, scenario_id: str) -> threading.Lock:
        with self._registry_lock:
            if self._closed:
                raise RuntimeError("WarmStartCache is closed")
            lock = self._key_locks.get(scenario_id)
            if lock is None:
                lock = self._key_locks[scenario_id] = threading.Lock()
            return lock

    def _count(self, counter: str) -> None:
        with self._registry_lock:
            setattr(self, counter, getattr(self, counter) + 1)

    def get(self, scenario_id: str) -> Optional[WarmStartEntry]:
        """
        Entry for a scenario if it is younger than the TTL.

        Expired entries are evicted and reported as a miss.
        """
        with self._lock_for(scenario_id):
            entry = self._entries.get(scenario_id)
            if entry is None:
                self._count('_misses')
                return None
            if entry.age(self._clock()) >= self.ttl:
                del self._entries[scenario_id]
                self._count('_evictions')
                self._count('_misses')
                logger.debug(f"Warm start for '{scenario_id}' expired")
                return None
            self._count('_hits')
            return entry

    def put(self, scenario_id: str, solution: Solution) -> WarmStartEntry:
        """Store a snapshot of ``solution``, replacing any previous entry."""
        entry = WarmStartEntry(scenario_id, solution.copy(), solution.objective_value, self._clock())
        with self._lock_for(scenario_id):
            self._entries[scenario_id] = entry
        logger.debug(f"Warm start stored for '{scenario_id}' (objective {entry.objective:.2f})")
        return entry

    def invalidate(self, scenario_id: str) -> bool:
        """Drop one entry; returns True if it existed."""
        with self._lock_for(scenario_id):
            return self._entries.pop(scenario_id, None) is not None

    def clear(self) -> None:
        with self._registry_lock:
            self._entries.clear()

    def stats(self) -> Dict[str, float]:
        """hits, misses, evictions, size and hit_rate."""
        with self._registry_lock:
            lookups = self._hits + self._misses
            return {
                'hits': self._hits,
                'misses': self._misses,
                'evictions': self._evictions,
                'size': len(self._entries),
                'hit_rate': self._hits / lookups if lookups else 0.0,
            }

    def close(self) -> None:
        """Drop all entries; further use raises RuntimeError."""
        with self._registry_lock:
            self._entries.clear()
            self._key_locks.clear()
            self._closed = True

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._entries)

    def __enter__(self) -> 'WarmStartCache':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
