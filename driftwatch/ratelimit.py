"""Per-service token-bucket rate limiting for drift alerts."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable


@dataclass
class _Bucket:
    tokens: int
    last_refill: float


class Limiter:
    """Allows at most ``max_burst`` events per service, refilling one token
    every ``rate`` seconds."""

    def __init__(
        self,
        rate: float,
        max_burst: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if rate <= 0:
            raise ValueError("ratelimit: rate must be positive")
        self._rate = float(rate)
        self._max_burst = max(1, max_burst)
        self._clock = clock
        self._lock = threading.Lock()
        self._buckets: dict[str, _Bucket] = {}

    def allow(self, service: str) -> bool:
        """Consume a token for ``service`` if one is available."""
        with self._lock:
            now = self._clock()
            bucket = self._buckets.get(service)
            if bucket is None:
                self._buckets[service] = _Bucket(self._max_burst - 1, now)
                return True

            new_tokens = int((now - bucket.last_refill) // self._rate)
            if new_tokens > 0:
                bucket.tokens = min(bucket.tokens + new_tokens, self._max_burst)
                bucket.last_refill += new_tokens * self._rate

            if bucket.tokens <= 0:
                return False
            bucket.tokens -= 1
            return True

    def reset(self, service: str) -> None:
        """Forget the bucket for ``service``, restoring full burst capacity."""
        with self._lock:
            self._buckets.pop(service, None)