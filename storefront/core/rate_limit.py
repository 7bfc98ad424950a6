from __future__ import annotations
import math
import threading
import time
from typing import Callable, Dict, List

class RateLimiter:
    """
    Per-key fixed-window limiter over a list of request timestamps.

    A request at `now` is allowed when fewer than `max_requests` stored
    timestamps satisfy `now - t < window_seconds`. The window is evaluated at
    check time, not aligned to the wall clock, so a burst right at the edge of
    one window and the start of the next is possible.

    Stale timestamps are pruned whenever a bucket is checked and by cleanup().
    Nothing runs on a timer here; callers schedule cleanup() themselves.
    """
    def __init__(self, max_requests: int, window_seconds: float,
                 clock: Callable[[], float] = time.time):
        if isinstance(max_requests, bool) or not isinstance(max_requests, int) or max_requests <= 0:
            raise ValueError(f"max_requests must be a positive int, got {max_requests!r}")
        if not (math.isfinite(window_seconds) and window_seconds > 0):
            raise ValueError(f"window_seconds must be a finite number > 0, got {window_seconds!r}")
        self._max = max_requests
        self._window = float(window_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._buckets: Dict[str, List[float]] = {}

    @property
    def max_requests(self) -> int:
        return self._max

    @property
    def window_seconds(self) -> float:
        return self._window

    def _valid(self, bucket: List[float], now: float) -> List[float]:
        return [ts for ts in bucket if now - ts < self._window]

    def is_allowed(self, key: str) -> bool:
        with self._lock:
            now = self._clock()
            valid = self._valid(self._buckets.get(key, []), now)
            if len(valid) >= self._max:
                # rejected attempts are not recorded, but the pruned bucket is kept
                self._buckets[key] = valid
                return False
            valid.append(now)
            self._buckets[key] = valid
            return True

    def get_remaining_requests(self, key: str) -> int:
        with self._lock:
            valid = self._valid(self._buckets.get(key, []), self._clock())
            return max(0, self._max - len(valid))

    def get_reset_time(self, key: str) -> float:
        """Epoch seconds at which the oldest stored timestamp leaves the window.

        Stale timestamps are not filtered out first; the value is only a retry hint.
        """
        with self._lock:
            bucket = self._buckets.get(key)
            if not bucket:
                return self._clock()
            return min(bucket) + self._window

    def cleanup(self) -> None:
        with self._lock:
            now = self._clock()
            for key, bucket in list(self._buckets.items()):
                valid = self._valid(bucket, now)
                if valid:
                    self._buckets[key] = valid
                else:
                    del self._buckets[key]

    def clear_key(self, key: str) -> None:
        with self._lock:
            self._buckets.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._buckets.clear()

    def get_bucket_count(self) -> int:
        return len(self._buckets)
