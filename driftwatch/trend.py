"""Drift frequency tracking over a sliding observation window.

A :class:`Tracker` accumulates drift observations (service and field path)
and produces summaries ranked by how often each service drifted.
Observations older than the window are ignored and can be removed with
:meth:`Tracker.purge`.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_timedelta(value: timedelta | float) -> timedelta:
    return value if isinstance(value, timedelta) else timedelta(seconds=value)


@dataclass(frozen=True)
class Observation:
    """A single drift observation."""

    service: str
    field_path: str
    observed_at: datetime


@dataclass
class Summary:
    """Drift trend of one service within the window."""

    service: str
    count: int
    fields: list[str] = field(default_factory=list)
    first: datetime | None = None
    last: datetime | None = None


class Tracker:
    """Accumulates drift observations and reports trending services.

    ``window`` is a timedelta or a number of seconds.
    """

    def __init__(
        self,
        window: timedelta | float,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._window = _as_timedelta(window)
        self.clock = clock
        self._lock = threading.Lock()
        self._observations: list[Observation] = []

    def record(self, service: str, field_path: str) -> None:
        """Add an observation for ``service`` and ``field_path``."""
        with self._lock:
            self._observations.append(Observation(service, field_path, self.clock()))

    def summaries(self) -> list[Summary]:
        """Return per-service summaries within the window, most drifted first."""
        with self._lock:
            cutoff = self.clock() - self._window
            by_service: dict[str, Summary] = {}
            field_sets: dict[str, set[str]] = {}
            for obs in self._observations:
                if obs.observed_at < cutoff:
                    continue
                summary = by_service.get(obs.service)
                if summary is None:
                    summary = by_service[obs.service] = Summary(
                        service=obs.service,
                        count=0,
                        first=obs.observed_at,
                        last=obs.observed_at,
                    )
                    field_sets[obs.service] = set()
                summary.count += 1
                field_sets[obs.service].add(obs.field_path)
                summary.first = min(summary.first, obs.observed_at)
                summary.last = max(summary.last, obs.observed_at)
            for service, summary in by_service.items():
                summary.fields = sorted(field_sets[service])
            return sorted(by_service.values(), key=lambda s: -s.count)

    def purge(self) -> None:
        """Drop observations older than the window."""
        with self._lock:
            cutoff = self.clock() - self._window
            self._observations = [o for o in self._observations if not o.observed_at < cutoff]