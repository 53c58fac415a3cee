"""In-memory index of services by key-value tags.

Services are registered with arbitrary tags and can then be looked up by
any combination of tags. All operations are safe for concurrent use.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Mapping


@dataclass
class Entry:
    """A service and the tags attached to it."""

    service: str
    tags: dict[str, str] = field(default_factory=dict)


class TagIndex:
    """Thread-safe mapping of services to their tags."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, dict[str, str]] = {}

    def add(self, service: str, tags: Mapping[str, str] | None) -> None:
        """Register ``service`` with ``tags``, replacing any earlier entry."""
        if not service:
            raise ValueError("tagindex: service name must not be empty")
        with self._lock:
            self._entries[service] = dict(tags or {})

    def remove(self, service: str) -> None:
        """Delete ``service`` from the index if present."""
        with self._lock:
            self._entries.pop(service, None)

    def lookup(self, tags: Mapping[str, str]) -> list[str]:
        """Return every service that carries all of ``tags``.

        A tag whose value is empty also matches services lacking that key.
        """
        with self._lock:
            return [
                service
                for service, own in self._entries.items()
                if all(own.get(k, "") == v for k, v in tags.items())
            ]

    def get(self, service: str) -> Entry | None:
        """Return the entry for ``service``, or None if unknown."""
        with self._lock:
            tags = self._entries.get(service)
            if tags is None:
                return None
            return Entry(service=service, tags=dict(tags))