"""Suppression list for known or accepted configuration drift.

Entries silence drift for a service and field (``*`` matches every field)
and may carry an expiry time. Expired entries are ignored on lookup and can
be removed with :meth:`SuppressionList.purge`. Times are timezone-aware.
"""

from __future__ import annotations

import json
import re
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from werkzeug.wrappers import Request, Response

_PATH = "/suppressions"
_ZERO_TIME = "0001-01-01T00:00:00Z"

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_UNIT_MICROS = {
    "ns": 0.001,
    "us": 1.0,
    "µs": 1.0,
    "μs": 1.0,
    "ms": 1_000.0,
    "s": 1_000_000.0,
    "m": 60_000_000.0,
    "h": 3_600_000_000.0,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _format_time(moment: datetime) -> str:
    text = moment.isoformat()
    if moment.utcoffset() == timedelta(0):
        text = text.replace("+00:00", "Z")
    return text


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as "2h", "30m" or "1h30m" into a timedelta."""
    body = text
    negative = False
    if body.startswith(("-", "+")):
        negative = body[0] == "-"
        body = body[1:]
    if body == "0":
        return timedelta(0)
    if not body:
        raise ValueError(f'invalid duration "{text}"')
    total = 0.0
    pos = 0
    while pos < len(body):
        match = _DURATION_PART.match(body, pos)
        if match is None:
            raise ValueError(f'invalid duration "{text}"')
        total += float(match.group(1)) * _UNIT_MICROS[match.group(2)]
        pos = match.end()
    duration = timedelta(microseconds=total)
    return -duration if negative else duration


@dataclass(frozen=True)
class Entry:
    """A single suppression rule."""

    service: str
    field: str
    reason: str = ""
    expires_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        """Report whether the entry has passed its expiry time."""
        return self.expires_at is not None and now > self.expires_at

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form of the entry."""
        return {
            "Service": self.service,
            "Field": self.field,
            "Reason": self.reason,
            "ExpiresAt": _format_time(self.expires_at) if self.expires_at else _ZERO_TIME,
        }


class SuppressionList:
    """Thread-safe collection of suppression entries."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self.clock = clock
        self._lock = threading.Lock()
        self._entries: list[Entry] = []

    def add(self, entry: Entry) -> None:
        """Append a suppression entry."""
        with self._lock:
            self._entries.append(entry)

    def is_suppressed(self, service: str, field: str) -> bool:
        """Report whether ``service``/``field`` is currently suppressed."""
        with self._lock:
            now = self.clock()
            return any(
                not e.is_expired(now)
                and e.service == service
                and (e.field == "*" or e.field == field)
                for e in self._entries
            )

    def purge(self) -> None:
        """Remove every expired entry."""
        with self._lock:
            now = self.clock()
            self._entries = [e for e in self._entries if not e.is_expired(now)]

    def snapshot(self) -> list[Entry]:
        """Return a copy of all entries that have not expired."""
        with self._lock:
            now = self.clock()
            return [e for e in self._entries if not e.is_expired(now)]


def _error(message: str, status: int) -> Response:
    return Response(message + "\n", status=status, mimetype="text/plain")


def _parse_add(body: str) -> dict[str, str]:
    data = json.loads(body)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("request must be a JSON object")
    out = {}
    for key in ("service", "field", "reason", "expires_in"):
        value = data.get(key)
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise ValueError(f"{key} must be a string")
        out[key] = value
    return out


def _add(suppressions: SuppressionList, request: Request) -> Response:
    try:
        req = _parse_add(request.get_data(as_text=True))
    except ValueError:
        return _error("invalid request body", 400)
    if not req["service"] or not req["field"]:
        return _error("service and field are required", 400)
    expires_at = None
    if req["expires_in"]:
        try:
            expires_at = suppressions.clock() + parse_duration(req["expires_in"])
        except ValueError:
            return _error("invalid expires_in duration", 400)
    suppressions.add(
        Entry(
            service=req["service"],
            field=req["field"],
            reason=req["reason"],
            expires_at=expires_at,
        )
    )
    return Response(status=201)


def make_app(suppressions: SuppressionList):
    """Return a WSGI application managing suppressions.

    GET /suppressions lists active entries, POST adds one (with an optional
    ``expires_in`` duration) and DELETE purges expired entries.
    """

    @Request.application
    def app(request: Request) -> Response:
        if request.path != _PATH:
            return _error("404 page not found", 404)
        if request.method == "GET":
            payload = [e.to_dict() for e in suppressions.snapshot()]
            return Response(json.dumps(payload) + "\n", mimetype="application/json")
        if request.method == "POST":
            return _add(suppressions, request)
        if request.method == "DELETE":
            suppressions.purge()
            return Response(status=204)
        return _error("method not allowed", 405)

    return app