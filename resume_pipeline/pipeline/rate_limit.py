"""Per-user moving-window limit on direct uploads, backed by ``limits``."""

from __future__ import annotations

import math
import time

from limits import RateLimitItem, RateLimitItemPerSecond
from limits.storage import Storage, storage_from_string
from limits.strategies import MovingWindowRateLimiter

from resume_pipeline.pipeline.errors import RateLimitError

NAMESPACE = "resume-uploads"


class SlidingWindowRateLimiter:
    """Allow at most ``limit`` hits per key within ``window_seconds``.

    With the default ``memory://`` storage each process enforces its own
    window; a ``redis://`` URI shares it between processes.
    """

    def __init__(
        self,
        limit: int = 10,
        window_seconds: float = 3600,
        *,
        storage: Storage | None = None,
        storage_uri: str = "memory://",
    ) -> None:
        if limit <= 0:
            raise ValueError("limit must be > 0")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self.limit = limit
        self.window_seconds = window_seconds
        self.item: RateLimitItem = RateLimitItemPerSecond(
            limit, math.ceil(window_seconds), namespace=NAMESPACE
        )
        self.storage = storage if storage is not None else storage_from_string(
            storage_uri
        )
        self._limiter = MovingWindowRateLimiter(self.storage)

    def check(self, key: str) -> None:
        """Record a hit for ``key``, raising RateLimitError when the window is full.

        Refused hits are not recorded.
        """
        if self._limiter.hit(self.item, key):
            return
        stats = self._limiter.get_window_stats(self.item, key)
        raise RateLimitError(
            "Upload limit exceeded. Please try again later.",
            retry_after=max(0.0, stats.reset_time - time.time()),
        )
