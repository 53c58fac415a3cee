"""Weighted round-robin selection across manifest source endpoints.

Each endpoint carries a name, URL and positive weight; higher-weight
endpoints receive proportionally more selections. The router is safe for
concurrent use and can be inspected over HTTP with :func:`make_app`.
"""

from __future__ import annotations

import dataclasses
import json
import threading
from dataclasses import dataclass
from typing import Any, Iterable

from werkzeug.exceptions import MethodNotAllowed, NotFound
from werkzeug.wrappers import Request, Response


@dataclass
class Endpoint:
    """A named manifest source with a selection weight."""

    name: str
    url: str
    weight: int

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form of the endpoint."""
        return {"Name": self.name, "URL": self.url, "Weight": self.weight}


class Router:
    """Selects endpoints by weighted round-robin."""

    def __init__(self, endpoints: Iterable[Endpoint]) -> None:
        items = [dataclasses.replace(e) for e in endpoints]
        if not items:
            raise ValueError("routing: at least one endpoint required")
        if any(e.weight <= 0 for e in items):
            raise ValueError("routing: endpoint weight must be positive")
        self._lock = threading.Lock()
        self._endpoints = items
        self._current = 0
        self._counts = [0] * len(items)

    def next(self) -> Endpoint:
        """Return the next endpoint in weighted round-robin order."""
        with self._lock:
            while True:
                endpoint = self._endpoints[self._current]
                if self._counts[self._current] < endpoint.weight:
                    self._counts[self._current] += 1
                    return dataclasses.replace(endpoint)
                self._counts[self._current] = 0
                self._current = (self._current + 1) % len(self._endpoints)

    def all(self) -> list[Endpoint]:
        """Return copies of every registered endpoint."""
        with self._lock:
            return [dataclasses.replace(e) for e in self._endpoints]

    def reset(self) -> None:
        """Restart selection from the first endpoint."""
        with self._lock:
            self._current = 0
            self._counts = [0] * len(self._endpoints)


def make_app(router: Router):
    """Return a WSGI application with read-only routing endpoints.

    GET /routing/endpoints lists endpoints; GET /routing/next advances the
    router and returns the selected endpoint.
    """
    views = {
        "/routing/endpoints": lambda: {"endpoints": [e.to_dict() for e in router.all()]},
        "/routing/next": lambda: router.next().to_dict(),
    }

    @Request.application
    def app(request: Request) -> Response:
        view = views.get(request.path)
        if view is None:
            raise NotFound()
        if request.method != "GET":
            raise MethodNotAllowed(valid_methods=["GET"])
        return Response(json.dumps(view()) + "\n", mimetype="application/json")

    return app