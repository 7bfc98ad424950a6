from __future__ import annotations
import math
import threading
import time
from typing import Any, Callable, Dict, Generic, Optional, Tuple, TypeVar

V = TypeVar("V")

class TTLCache(Generic[V]):
    """Process-local TTL cache. Expired entries are dropped lazily on read and by size().

    There is no size bound and no background sweep.
    """
    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.time):
        if not (math.isfinite(ttl_seconds) and ttl_seconds > 0):
            raise ValueError(f"ttl_seconds must be a finite number > 0, got {ttl_seconds!r}")
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._store: Dict[str, Tuple[float, V]] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, key: str) -> Optional[V]:
        with self._lock:
            item = self._store.get(key)
            if item is None:
                return None
            exp, val = item
            if self._clock() > exp:
                self._store.pop(key, None)
                return None
            return val

    def set(self, key: str, value: V) -> None:
        with self._lock:
            self._store[key] = (self._clock() + self._ttl, value)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def size(self) -> int:
        with self._lock:
            now = self._clock()
            for key in [k for k, (exp, _) in self._store.items() if now > exp]:
                del self._store[key]
            return len(self._store)

    def __len__(self) -> int:
        return self.size()

    def __repr__(self) -> str:
        return f"TTLCache(ttl_seconds={self._ttl!r}, entries={len(self._store)})"
