"""Per-service burst throttling for drift notifications.

A single noisy service cannot flood alerting channels: at most
``max_burst`` notifications are let through per service within each window.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

from werkzeug.wrappers import Request, Response


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_timedelta(value: timedelta | float) -> timedelta:
    return value if isinstance(value, timedelta) else timedelta(seconds=value)


@dataclass
class _Record:
    count: int
    window_end: datetime


class Throttler:
    """Limits notifications per service within a window.

    ``window`` is a timedelta or a number of seconds; ``clock`` defaults to
    the current UTC time.
    """

    def __init__(
        self,
        window: timedelta | float,
        max_burst: int,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.window = _as_timedelta(window)
        self.max_burst = max_burst
        self._clock = clock or _utcnow
        self._lock = threading.Lock()
        self._records: dict[str, _Record] = {}

    def allow(self, service: str) -> bool:
        """Report whether a notification for ``service`` may be sent now."""
        with self._lock:
            now = self._clock()
            record = self._records.get(service)
            if record is None or now > record.window_end:
                self._records[service] = _Record(1, now + self.window)
                return True
            if record.count >= self.max_burst:
                return False
            record.count += 1
            return True

    def reset(self, service: str) -> None:
        """Clear throttle state for ``service``."""
        with self._lock:
            self._records.pop(service, None)

    def purge(self) -> None:
        """Drop every record whose window has ended."""
        with self._lock:
            now = self._clock()
            self._records = {
                s: r for s, r in self._records.items() if not now > r.window_end
            }


def _error(message: str, status: int) -> Response:
    return Response(message + "\n", status=status, mimetype="text/plain")


def make_app(throttler: Throttler):
    """Return a WSGI application managing a throttler.

    GET /throttle/status reports the configuration, DELETE
    /throttle/reset?service=<name> resets one service and POST
    /throttle/purge removes expired records.
    """

    @Request.application
    def app(request: Request) -> Response:
        path = request.path
        if path == "/throttle/status":
            if request.method != "GET":
                return _error("method not allowed", 405)
            payload = {
                "window_ms": int(throttler.window / timedelta(milliseconds=1)),
                "max_burst": throttler.max_burst,
            }
            return Response(json.dumps(payload) + "\n", mimetype="application/json")
        if path == "/throttle/reset":
            if request.method != "DELETE":
                return _error("method not allowed", 405)
            service = request.args.get("service", "")
            if not service:
                return _error("service query parameter required", 400)
            throttler.reset(service)
            return Response(status=204)
        if path == "/throttle/purge":
            if request.method != "POST":
                return _error("method not allowed", 405)
            throttler.purge()
            return Response(status=204)
        return _error("404 page not found", 404)

    return app