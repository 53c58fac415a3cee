"""Aggregation of drift results into per-service summaries."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable

from driftwatch.policy import Severity


@dataclass
class Summary:
    """Aggregated drift information for one service."""

    service: str
    drift_count: int
    fields: list[str] = field(default_factory=list)
    severity: Severity = Severity.WARN
    at: datetime | None = None


@dataclass
class _Bucket:
    fields: set[str]
    at: datetime | None


class Aggregator:
    """Groups drift results by service, deduplicating drifted fields.

    A summary becomes ``error`` once it has at least ``error_threshold``
    distinct fields; a non-positive threshold means 3.
    """

    def __init__(self, error_threshold: int = 3) -> None:
        self._error_threshold = error_threshold if error_threshold > 0 else 3

    def aggregate(self, results: Iterable[Any]) -> list[Summary]:
        """Return one summary per drifted service, sorted by service name."""
        buckets: dict[str, _Bucket] = {}
        for result in results:
            if not getattr(result, "has_drift", False):
                continue
            detected = getattr(result, "detected_at", None)
            bucket = buckets.get(result.service)
            if bucket is None:
                bucket = buckets[result.service] = _Bucket(set(), detected)
            bucket.fields.update(d.field for d in getattr(result, "diffs", None) or ())
            if detected is not None and (bucket.at is None or detected > bucket.at):
                bucket.at = detected

        summaries = []
        for service in sorted(buckets):
            bucket = buckets[service]
            fields = sorted(bucket.fields)
            severity = Severity.ERROR if len(fields) >= self._error_threshold else Severity.WARN
            summaries.append(
                Summary(
                    service=service,
                    drift_count=len(fields),
                    fields=fields,
                    severity=severity,
                    at=bucket.at,
                )
            )
        return summaries