"""Registry mapping service names to their owning teams and contacts.

During a drift cycle the registry can be queried to annotate drift results
with the owning team, so alerts reach the correct on-call channel. The
registry is safe for concurrent use and can be exposed over HTTP with
:func:`make_app`.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from typing import Any

from werkzeug.exceptions import BadRequest, MethodNotAllowed, NotFound
from werkzeug.wrappers import Request, Response

_COLLECTION_PATH = "/ownership"
_ITEM_PREFIX = "/ownership/"


@dataclass
class Entry:
    """A single ownership record."""

    service: str
    team: str
    contacts: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form of the entry; contacts are omitted when empty."""
        data: dict[str, Any] = {"service": self.service, "team": self.team}
        if self.contacts:
            data["contacts"] = list(self.contacts)
        return data

    @classmethod
    def from_dict(cls, data: Any) -> Entry:
        """Build an entry from decoded JSON, raising ValueError on bad shapes."""
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError("entry must be a JSON object")
        contacts = data.get("contacts")
        if contacts is None:
            contacts = []
        if not isinstance(contacts, list) or not all(isinstance(c, str) for c in contacts):
            raise ValueError("contacts must be a list of strings")
        return cls(
            service=_string_field(data, "service"),
            team=_string_field(data, "team"),
            contacts=list(contacts),
        )


def _string_field(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


class Registry:
    """Thread-safe mapping of service names to ownership entries."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, Entry] = {}

    def set(self, entry: Entry) -> None:
        """Register or replace the entry for ``entry.service``."""
        if not entry.service:
            raise ValueError("ownership: service name must not be empty")
        if not entry.team:
            raise ValueError("ownership: team must not be empty")
        with self._lock:
            self._entries[entry.service] = entry

    def get(self, service: str) -> Entry | None:
        """Return the entry for a service, or None if unknown."""
        with self._lock:
            return self._entries.get(service)

    def remove(self, service: str) -> bool:
        """Delete the entry for a service; return whether it existed."""
        with self._lock:
            return self._entries.pop(service, None) is not None

    def all(self) -> list[Entry]:
        """Return a snapshot of every registered entry."""
        with self._lock:
            return list(self._entries.values())


def _add(registry: Registry, request: Request) -> Response:
    try:
        entry = Entry.from_dict(json.loads(request.get_data(as_text=True)))
    except ValueError:
        raise BadRequest("invalid JSON body") from None
    try:
        registry.set(entry)
    except ValueError as exc:
        raise BadRequest(str(exc)) from None
    return Response(status=204)


def _collection(registry: Registry, request: Request) -> Response:
    if request.method == "GET":
        body = json.dumps([e.to_dict() for e in registry.all()]) + "\n"
        return Response(body, mimetype="application/json")
    if request.method == "POST":
        return _add(registry, request)
    raise MethodNotAllowed(valid_methods=["GET", "POST"])


def _item(registry: Registry, request: Request, service: str) -> Response:
    if request.method == "GET":
        entry = registry.get(service)
        if entry is None:
            raise NotFound("not found")
        return Response(json.dumps(entry.to_dict()) + "\n", mimetype="application/json")
    if request.method == "DELETE":
        if not registry.remove(service):
            raise NotFound("not found")
        return Response(status=204)
    raise MethodNotAllowed(valid_methods=["GET", "DELETE"])


def make_app(registry: Registry):
    """Return a WSGI application exposing ownership CRUD endpoints.

    GET /ownership lists entries, POST /ownership adds or replaces one,
    GET and DELETE /ownership/<service> fetch or remove a single entry.
    """

    @Request.application
    def app(request: Request) -> Response:
        if request.path == _COLLECTION_PATH:
            return _collection(registry, request)
        if request.path.startswith(_ITEM_PREFIX):
            return _item(registry, request, request.path[len(_ITEM_PREFIX):])
        raise NotFound()

    return app