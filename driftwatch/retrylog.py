"""In-memory log of per-service retry events with age-based filtering.

Entries older than ``max_age`` are excluded from :meth:`RetryLog.summaries`
but stay in memory until :meth:`RetryLog.reset` clears a service.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from werkzeug.exceptions import BadRequest, MethodNotAllowed, NotFound
from werkzeug.wrappers import Request, Response

_PATH = "/retrylog"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _format_time(moment: datetime) -> str:
    text = moment.isoformat()
    if moment.utcoffset() == timedelta(0):
        text = text.replace("+00:00", "Z")
    return text


@dataclass(frozen=True)
class Entry:
    """A single retry event."""

    service: str
    attempt: int
    reason: str
    timestamp: datetime


@dataclass(frozen=True)
class Summary:
    """Aggregate retry statistics for one service."""

    service: str
    total_retries: int
    last_attempt: datetime
    last_reason: str

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form of the summary."""
        return {
            "Service": self.service,
            "TotalRetries": self.total_retries,
            "LastAttempt": _format_time(self.last_attempt),
            "LastReason": self.last_reason,
        }


class RetryLog:
    """Thread-safe record of retry events per service.

    ``max_age`` is a timedelta or a number of seconds.
    """

    def __init__(
        self,
        max_age: timedelta | float,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not isinstance(max_age, timedelta):
            max_age = timedelta(seconds=max_age)
        self._max_age = max_age
        self.clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, list[Entry]] = {}

    def record(self, service: str, reason: str, attempt: int) -> None:
        """Append a retry event for ``service``."""
        if not service:
            raise ValueError("retrylog: service name must not be empty")
        with self._lock:
            self._entries.setdefault(service, []).append(
                Entry(service=service, attempt=attempt, reason=reason, timestamp=self.clock())
            )

    def summaries(self) -> list[Summary]:
        """Return statistics per service over entries within ``max_age``."""
        with self._lock:
            cutoff = self.clock() - self._max_age
            out = []
            for service, entries in self._entries.items():
                recent = [e for e in entries if e.timestamp >= cutoff]
                if recent:
                    out.append(
                        Summary(
                            service=service,
                            total_retries=len(recent),
                            last_attempt=recent[-1].timestamp,
                            last_reason=recent[-1].reason,
                        )
                    )
            return out

    def reset(self, service: str) -> None:
        """Clear every retry event for ``service``."""
        with self._lock:
            self._entries.pop(service, None)


def make_app(log: RetryLog):
    """Return a WSGI application exposing the retry log.

    GET /retrylog lists summaries; DELETE /retrylog?service=<name> resets
    one service's history.
    """

    @Request.application
    def app(request: Request) -> Response:
        if request.path != _PATH:
            raise NotFound()
        if request.method == "GET":
            summaries = log.summaries()
            payload = [s.to_dict() for s in summaries] if summaries else None
            return Response(json.dumps(payload) + "\n", mimetype="application/json")
        if request.method == "DELETE":
            service = request.args.get("service", "")
            if not service:
                raise BadRequest("missing service query parameter")
            log.reset(service)
            return Response(status=204)
        raise MethodNotAllowed(valid_methods=["GET", "DELETE"])

    return app