"""Probabilistic and deterministic sampling of drift events.

Two strategies are available:

* ``random``: each event is admitted independently with probability ``rate``.
* ``deterministic``: every ``1/rate``-th event per service is admitted,
  spreading admitted events evenly over time.

A rate of 0 blocks every event and a rate of 1 admits every event.
"""

from __future__ import annotations

import json
import random
import threading
from dataclasses import dataclass
from enum import Enum

from werkzeug.exceptions import BadRequest, MethodNotAllowed, NotFound
from werkzeug.wrappers import Request, Response


class Strategy(str, Enum):
    """How events are selected."""

    RANDOM = "random"
    DETERMINISTIC = "deterministic"


@dataclass(frozen=True)
class Config:
    """Sampler configuration; ``rate`` is the fraction of events admitted."""

    rate: float
    strategy: Strategy | str = Strategy.RANDOM


class Sampler:
    """Decides whether a service's drift event should be processed.

    The rate is clamped to [0.0, 1.0]; an empty strategy means random.
    """

    def __init__(self, config: Config, rng: random.Random | None = None) -> None:
        self._rate = min(max(float(config.rate), 0.0), 1.0)
        self._strategy = Strategy(config.strategy) if config.strategy else Strategy.RANDOM
        self._rng = rng if rng is not None else random.Random()
        self._lock = threading.Lock()
        self._counters: dict[str, int] = {}

    def allow(self, service: str) -> bool:
        """Return True if the event for ``service`` should be processed."""
        if self._rate == 0:
            return False
        if self._rate == 1:
            return True
        with self._lock:
            if self._strategy is Strategy.DETERMINISTIC:
                return self._allow_deterministic(service)
            return self._rng.random() < self._rate

    def _allow_deterministic(self, service: str) -> bool:
        count = self._counters.get(service, 0) + 1
        self._counters[service] = count
        period = max(int(1.0 / self._rate), 1)
        return count % period == 1

    def reset(self, service: str) -> None:
        """Clear the per-service counter for ``service``."""
        with self._lock:
            self._counters.pop(service, None)

    def rate(self) -> float:
        """Return the configured sampling rate."""
        return self._rate

    def strategy(self) -> Strategy:
        """Return the configured strategy."""
        return self._strategy


def make_app(sampler: Sampler):
    """Return a WSGI application exposing sampler status.

    GET /sampling returns the rate and strategy; POST
    /sampling/reset?service=<name> resets one service's counter.
    """

    def status(request: Request) -> Response:
        payload = {"rate": sampler.rate(), "strategy": sampler.strategy().value}
        return Response(json.dumps(payload) + "\n", mimetype="application/json")

    def reset(request: Request) -> Response:
        service = request.args.get("service", "")
        if not service:
            raise BadRequest("service query parameter required")
        sampler.reset(service)
        return Response(status=204)

    routes = {"/sampling": ("GET", status), "/sampling/reset": ("POST", reset)}

    @Request.application
    def app(request: Request) -> Response:
        route = routes.get(request.path)
        if route is None:
            raise NotFound()
        method, view = route
        if request.method != method:
            raise MethodNotAllowed(valid_methods=[method])
        return view(request)

    return app