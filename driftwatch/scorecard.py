"""Rolling drift health scores per service.

A score of 1.0 means every run in the window was clean; 0.0 means every
run drifted.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import partial
from typing import Any, Callable

_system_clock = partial(datetime.now, timezone.utc)


def _is_drifted(result: Any) -> bool:
    drifted = getattr(result, "drifted", None)
    if drifted is None:
        drifted = getattr(result, "has_drift", False)
    return bool(drifted)


@dataclass(frozen=True)
class Score:
    """Health score of one service over the rolling window."""

    service: str
    score: float
    drift_runs: int
    total_runs: int
    updated_at: datetime


@dataclass(frozen=True)
class _Run:
    at: datetime
    drift: bool


class Scorecard:
    """Accumulates run outcomes and computes rolling health scores.

    ``window`` is a timedelta or a number of seconds.
    """

    def __init__(
        self,
        window: timedelta | float,
        clock: Callable[[], datetime] = _system_clock,
    ) -> None:
        self._window = window if isinstance(window, timedelta) else timedelta(seconds=window)
        self.clock = clock
        self._lock = threading.Lock()
        self._history: dict[str, list[_Run]] = {}

    def record(self, result: Any) -> None:
        """Add a drift result to its service's history."""
        service = getattr(result, "service", "")
        if not service:
            raise ValueError("scorecard: service name must not be empty")
        with self._lock:
            now = self.clock()
            self._history.setdefault(service, []).append(_Run(now, _is_drifted(result)))
            self._evict(service, now)

    def get(self, service: str) -> Score | None:
        """Return the current score for ``service``, or None if it has no runs."""
        with self._lock:
            if not self._history.get(service):
                return None
            self._evict(service, self.clock())
            runs = self._history[service]
            if not runs:
                return None
            drift_runs = sum(r.drift for r in runs)
            return Score(
                service=service,
                score=1.0 - drift_runs / len(runs),
                drift_runs=drift_runs,
                total_runs=len(runs),
                updated_at=runs[-1].at,
            )

    def services(self) -> list[str]:
        """Return the names of all tracked services."""
        with self._lock:
            return list(self._history)

    def _evict(self, service: str, now: datetime) -> None:
        cutoff = now - self._window
        self._history[service] = [r for r in self._history[service] if r.at >= cutoff]