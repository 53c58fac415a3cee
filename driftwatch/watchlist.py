"""The set of services actively monitored for configuration drift.

A :class:`Watchlist` is a thread-safe registry of entries keyed by service
name. Each entry carries optional namespace and label metadata that other
components can consult. :func:`make_app` exposes it over HTTP::

    GET    /watchlist         list all entries
    POST   /watchlist         register a new entry (JSON body)
    DELETE /watchlist/<name>  remove the named service
"""

from __future__ import annotations

import dataclasses
import json
import re
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from werkzeug.wrappers import Request, Response

_COLLECTION_PATH = "/watchlist"
_ITEM_PREFIX = "/watchlist/"
_ZERO_TIME = "0001-01-01T00:00:00Z"
_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _format_time(moment: datetime) -> str:
    text = moment.isoformat()
    if moment.utcoffset() == timedelta(0):
        text = text.replace("+00:00", "Z")
    return text


def _parse_time(text: str) -> datetime | None:
    if text == _ZERO_TIME:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(_EXCESS_FRACTION.sub(r"\1", text))


def _string_field(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


@dataclass
class Entry:
    """A single watched service."""

    service: str
    namespace: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    added_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form of the entry; labels are omitted when empty."""
        data: dict[str, Any] = {"service": self.service, "namespace": self.namespace}
        if self.labels:
            data["labels"] = dict(self.labels)
        data["added_at"] = _format_time(self.added_at) if self.added_at else _ZERO_TIME
        return data

    @classmethod
    def from_dict(cls, data: Any) -> Entry:
        """Build an entry from decoded JSON, raising ValueError on bad shapes."""
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError("entry must be a JSON object")
        labels = data.get("labels")
        if labels is None:
            labels = {}
        if not isinstance(labels, dict) or not all(
            isinstance(v, str) for v in labels.values()
        ):
            raise ValueError("labels must be an object of strings")
        added = data.get("added_at")
        if added is not None and not isinstance(added, str):
            raise ValueError("added_at must be a string")
        return cls(
            service=_string_field(data, "service"),
            namespace=_string_field(data, "namespace"),
            labels=dict(labels),
            added_at=_parse_time(added) if added else None,
        )


class Watchlist:
    """Thread-safe registry of watched services."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, Entry] = {}

    def add(self, entry: Entry) -> Entry:
        """Register ``entry`` and return the stored copy.

        Raises ValueError when the service name is empty or already present.
        The time of addition is filled in when the entry has none.
        """
        if not entry.service:
            raise ValueError("watchlist: service name must not be empty")
        with self._lock:
            if entry.service in self._entries:
                raise ValueError(f"watchlist: service already registered: {entry.service}")
            stored = dataclasses.replace(
                entry,
                labels=dict(entry.labels),
                added_at=entry.added_at or self._clock(),
            )
            self._entries[entry.service] = stored
            return stored

    def remove(self, service: str) -> bool:
        """Delete ``service``; return whether it was present."""
        with self._lock:
            return self._entries.pop(service, None) is not None

    def get(self, service: str) -> Entry | None:
        """Return the entry for ``service``, or None if it is not watched."""
        with self._lock:
            return self._entries.get(service)

    def all(self) -> list[Entry]:
        """Return a snapshot of every registered entry."""
        with self._lock:
            return list(self._entries.values())

    def __contains__(self, service: object) -> bool:
        with self._lock:
            return service in self._entries


def _error(message: str, status: int) -> Response:
    return Response(message + "\n", status=status, mimetype="text/plain")


def _add(watchlist: Watchlist, request: Request) -> Response:
    try:
        entry = Entry.from_dict(json.loads(request.get_data(as_text=True)))
    except ValueError as exc:
        return _error(f"invalid JSON: {exc}", 400)
    try:
        watchlist.add(entry)
    except ValueError as exc:
        return _error(str(exc), 409)
    return Response(status=201)


def make_app(watchlist: Watchlist):
    """Return a WSGI application managing the watchlist."""

    @Request.application
    def app(request: Request) -> Response:
        path = request.path
        if path == _COLLECTION_PATH:
            if request.method == "GET":
                payload = [e.to_dict() for e in watchlist.all()]
                return Response(json.dumps(payload) + "\n", mimetype="application/json")
            if request.method == "POST":
                return _add(watchlist, request)
            return _error("method not allowed", 405)
        if path.startswith(_ITEM_PREFIX):
            if request.method != "DELETE":
                return _error("method not allowed", 405)
            service = path[len(_ITEM_PREFIX):]
            if not service:
                return _error("service name required", 400)
            if not watchlist.remove(service):
                return _error("not found", 404)
            return Response(status=204)
        return _error("404 page not found", 404)

    return app