"""Sliding time-window event counter keyed by service name.

Events older than the window are evicted lazily on each add or count,
keeping memory proportional to the event rate.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable


class Counter:
    """Thread-safe sliding-window counter; ``window`` is in seconds."""

    def __init__(self, window: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._window = float(window)
        self._clock = clock
        self._lock = threading.Lock()
        self._events: dict[str, deque[float]] = {}

    def add(self, service: str) -> int:
        """Record one event and return the count within the window."""
        with self._lock:
            now = self._clock()
            self._events.setdefault(service, deque()).append(now)
            self._evict(service, now)
            return len(self._events[service])

    def count(self, service: str) -> int:
        """Return the count within the window without recording an event."""
        with self._lock:
            self._evict(service, self._clock())
            return len(self._events.get(service, ()))

    def reset(self, service: str) -> None:
        """Forget every event for ``service``."""
        with self._lock:
            self._events.pop(service, None)

    def services(self) -> list[str]:
        """Return the names of all tracked services."""
        with self._lock:
            return list(self._events)

    def _evict(self, service: str, now: float) -> None:
        events = self._events.get(service)
        if not events:
            return
        cutoff = now - self._window
        while events and events[0] < cutoff:
            events.popleft()