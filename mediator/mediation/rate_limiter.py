"""
Per-user sliding-window rate limiting for AI-assist calls.

The limiter keeps, per user, the timestamps of accepted calls inside the
trailing window. A call is allowed when fewer than `limit` of them remain
after pruning; the accepted call's timestamp is then appended and persisted.

The read-prune-append-write sequence takes no lock. Two overlapping requests
from the same user can both read the same list, so the effective limit under
concurrency can exceed `limit` by the number of in-flight requests.
"""

from mediator.database.core.funcs import fetch_rate_limit_timestamps, save_rate_limit_timestamps
from typing import Callable, Dict, List, Protocol
import threading
import time
import logging

logger = logging.getLogger(__name__)


class RateLimitStorage(Protocol):
    def load(self, user_id) -> List[float]: ...

    def save(self, user_id, timestamps: List[float]) -> None: ...


class InMemoryRateLimitStorage:
    """Process-local storage. Each instance has its own map."""

    def __init__(self):
        self._timestamps: Dict[str, List[float]] = {}
        self._lock = threading.Lock()

    def load(self, user_id) -> List[float]:
        with self._lock:
            return list(self._timestamps.get(str(user_id), []))

    def save(self, user_id, timestamps: List[float]) -> None:
        with self._lock:
            self._timestamps[str(user_id)] = list(timestamps)


class DatabaseRateLimitStorage:
    """Storage backed by the `rate_limits` table."""

    def load(self, user_id) -> List[float]:
        return fetch_rate_limit_timestamps(user_id=user_id)

    def save(self, user_id, timestamps: List[float]) -> None:
        save_rate_limit_timestamps(user_id=user_id, timestamps=timestamps)


class SlidingWindowRateLimiter:
    """
    Allow at most `limit` calls per user in any `window_seconds` span.

    Parameters
    ----------
    storage : RateLimitStorage
        Where the per-user timestamp lists live.
    limit : int
        Calls allowed per window.
    window_seconds : float
        Window length.
    clock : callable
        Returns the current time in epoch seconds.
    """

    def __init__(
        self,
        storage: RateLimitStorage,
        limit: int = 10,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.time,
    ):
        self.storage = storage
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock

    def allow(self, user_id) -> bool:
        """
        Check and record one call for `user_id`.

        Returns
        -------
        bool
            True if the call is allowed (and recorded); False if the user is
            over the limit, in which case nothing is written.
        """
        now = self.clock()
        recent = [t for t in self.storage.load(user_id) if now - t < self.window_seconds]
        if len(recent) >= self.limit:
            logger.info(f"Rate limit reached for user {user_id}")
            return False
        recent.append(now)
        self.storage.save(user_id, recent)
        return True
