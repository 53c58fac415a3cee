"""Thread-safe in-memory cache with per-entry time-to-live.

Entries are hidden once expired and removed by a background sweep thread.
Call :meth:`Cache.stop`, or use the cache as a context manager, to end the
sweep.
"""

from __future__ import annotations

import json
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable

from werkzeug.wrappers import Request, Response


def _seconds(value: timedelta | float) -> float:
    return value.total_seconds() if isinstance(value, timedelta) else float(value)


@dataclass(frozen=True)
class _Item:
    value: Any
    expires_at: float


class Cache:
    """Key-value store whose entries expire ``ttl`` after being set.

    ``ttl`` and ``sweep_interval`` are timedeltas or numbers of seconds;
    ``clock`` returns seconds and defaults to a monotonic clock.
    """

    def __init__(
        self,
        ttl: timedelta | float,
        sweep_interval: timedelta | float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        interval = _seconds(sweep_interval)
        if interval <= 0:
            raise ValueError("ttl: sweep interval must be positive")
        self.ttl = _seconds(ttl)
        self.clock = clock
        self._lock = threading.Lock()
        self._items: dict[str, _Item] = {}
        self._stopped = threading.Event()
        self._sweeper = threading.Thread(target=self._sweep, args=(interval,), daemon=True)
        self._sweeper.start()

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key`` with a fresh TTL."""
        with self._lock:
            self._items[key] = _Item(value, self.clock() + self.ttl)

    def get(self, key: str) -> Any:
        """Return the live value for ``key``, or None if absent or expired."""
        with self._lock:
            item = self._items.get(key)
            if item is None or self.clock() > item.expires_at:
                return None
            return item.value

    def delete(self, key: str) -> None:
        """Remove ``key`` immediately."""
        with self._lock:
            self._items.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            now = self.clock()
            return sum(1 for item in self._items.values() if not now > item.expires_at)

    def purge(self) -> None:
        """Remove every expired entry."""
        with self._lock:
            now = self.clock()
            self._items = {k: i for k, i in self._items.items() if not now > i.expires_at}

    def stop(self) -> None:
        """End the background sweep; the cache stays usable."""
        self._stopped.set()

    def __enter__(self) -> Cache:
        return self

    def __exit__(self, *args: Any) -> None:
        self.stop()

    def _sweep(self, interval: float) -> None:
        while not self._stopped.wait(interval):
            self.purge()


def _error(message: str, status: int) -> Response:
    return Response(message + "\n", status=status, mimetype="text/plain")


def make_app(cache: Cache):
    """Return a WSGI application for cache diagnostics.

    GET /ttl/stats reports the live entry count and TTL; DELETE
    /ttl/entry?key=<k> evicts one key.
    """

    @Request.application
    def app(request: Request) -> Response:
        if request.path == "/ttl/stats":
            if request.method != "GET":
                return _error("method not allowed", 405)
            payload = {"live_entries": len(cache), "ttl_seconds": cache.ttl}
            return Response(json.dumps(payload) + "\n", mimetype="application/json")
        if request.path == "/ttl/entry":
            if request.method != "DELETE":
                return _error("method not allowed", 405)
            key = request.args.get("key", "")
            if not key:
                return _error("missing key parameter", 400)
            cache.delete(key)
            return Response(status=204)
        return _error("404 page not found", 404)

    return app