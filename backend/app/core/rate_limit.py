from __future__ import annotations

import threading
import time
from dataclasses import dataclass


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """Fixed-window counter keyed by arbitrary strings, local to this process."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, max_requests: int, window_seconds: float) -> RateLimitResult:
        now = self._clock()
        with self._lock:
            self._purge(now)
            window = self._windows.get(key)
            if window is None or window.reset_at < now:
                reset_at = now + window_seconds
                self._windows[key] = _Window(count=1, reset_at=reset_at)
                return RateLimitResult(True, max_requests - 1, reset_at)
            if window.count >= max_requests:
                return RateLimitResult(False, 0, window.reset_at)
            window.count += 1
            return RateLimitResult(True, max_requests - window.count, window.reset_at)

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)

    def _purge(self, now: float) -> None:
        if len(self._windows) < 10_000:
            return
        expired = [k for k, w in self._windows.items() if w.reset_at < now]
        for k in expired:
            del self._windows[k]


limiter = RateLimiter()
