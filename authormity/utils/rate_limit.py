"""
Advisory per-account throttle for the generation endpoint.
Lives in process memory: it resets on restart and is not shared between workers.
Quota enforcement does not depend on it.
"""
import threading
import time
from typing import Callable, Dict, Tuple

from authormity.core.config import settings


class RateLimiter:
    def __init__(self, limit: int, window_seconds: int, clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock
        self._entries: Dict[str, Tuple[int, float]] = {}  # key -> (count, window end)
        self._lock = threading.Lock()

    def allow(self, key: str) -> bool:
        now = self.clock()
        with self._lock:
            count, resets_at = self._entries.get(key, (0, 0.0))
            if now >= resets_at:
                self._entries[key] = (1, now + self.window_seconds)
                return True
            if count >= self.limit:
                return False
            self._entries[key] = (count + 1, resets_at)
            return True

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()


generation_rate_limiter = RateLimiter(
    limit=settings.GENERATE_RATE_LIMIT,
    window_seconds=settings.GENERATE_RATE_WINDOW_SECONDS,
)
