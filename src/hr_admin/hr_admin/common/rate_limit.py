from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from ..core.exceptions import RateLimitError

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    count: int
    reset_at: float


class AttemptThrottle:
    """Per-key attempt counter with a fixed expiry window.

    Each key (typically a source address) may register ``max_attempts`` hits per
    ``window_seconds``. Read-modify-write of an entry happens under one lock, so a
    single instance can be shared by request threads. Construct one per host
    process and hand it to whoever needs it; call ``reset()`` on teardown.
    """

    def __init__(
        self,
        *,
        max_attempts: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self._max_attempts = int(max_attempts)
        self._window = float(window_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, _Window] = {}

    def hit(self, key: str) -> int:
        """Register an attempt for ``key`` and return the attempts used in this window.

        Raises RateLimitError (without counting the attempt) once the key is at its limit.
        """
        key = key or "unknown"
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or now >= entry.reset_at:
                self._entries[key] = _Window(count=1, reset_at=now + self._window)
                self._purge_expired(now)
                return 1
            if entry.count >= self._max_attempts:
                logger.warning("attempt limit reached for %s", key)
                raise RateLimitError("Too many attempts. Please try again later.")
            entry.count += 1
            return entry.count

    def remaining(self, key: str) -> int:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key or "unknown")
            if entry is None or now >= entry.reset_at:
                return self._max_attempts
            return max(self._max_attempts - entry.count, 0)

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()

    def _purge_expired(self, now: float) -> None:
        # caller holds the lock
        expired = [k for k, e in self._entries.items() if now >= e.reset_at]
        for k in expired:
            del self._entries[k]
