"""Client-side sliding-window admission control for outbound requests."""

from __future__ import annotations

import math
import threading
import time
from collections import deque
from collections.abc import Callable

DEFAULT_MAX_REQUESTS = 10
DEFAULT_WINDOW_SECONDS = 60.0


class RateLimiter:
    """Admit at most `max_requests` calls in any trailing `window_seconds`.

    The limit is advisory; the backend proxy enforces its own, coarser limit
    independently. Checking and recording a slot happen under one lock so
    overlapping callers cannot both take the last slot.
    """

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1.")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0.")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._attempts: deque[float] = deque()
        self._lock = threading.Lock()

    def can_make_request(self) -> bool:
        """Record and admit a request if the window has room."""

        with self._lock:
            now = self._clock()
            self._prune(now)
            if len(self._attempts) >= self.max_requests:
                return False
            self._attempts.append(now)
            return True

    def seconds_until_next_request(self) -> float:
        with self._lock:
            now = self._clock()
            self._prune(now)
            if len(self._attempts) < self.max_requests:
                return 0.0
            elapsed = now - self._attempts[0]
            return max(0.0, self.window_seconds - elapsed)

    def wait_time_message(self) -> str:
        """Human-readable wait, e.g. ``"1 second"`` or ``"2 minutes"``."""

        wait_seconds = math.ceil(self.seconds_until_next_request())
        if wait_seconds < 60:
            return f"{wait_seconds} second{'' if wait_seconds == 1 else 's'}"
        wait_minutes = math.ceil(wait_seconds / 60)
        return f"{wait_minutes} minute{'' if wait_minutes == 1 else 's'}"

    def reset(self) -> None:
        with self._lock:
            self._attempts.clear()

    @property
    def active_count(self) -> int:
        with self._lock:
            self._prune(self._clock())
            return len(self._attempts)

    def _prune(self, now: float) -> None:
        while self._attempts and now - self._attempts[0] >= self.window_seconds:
            self._attempts.popleft()
