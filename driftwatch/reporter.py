"""Formatting and output of drift detection results.

Two output formats are supported: ``text``, a human-readable summary for
terminals, and ``json``, a machine-readable report for external tooling.
"""

from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, TextIO


class Format(str, Enum):
    """Output format of a drift report."""

    TEXT = "text"
    JSON = "json"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc)


def _format_time(moment: datetime) -> str:
    text = moment.isoformat()
    if moment.utcoffset() == timedelta(0):
        text = text.replace("+00:00", "Z")
    return text


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return _format_time(value)
    if isinstance(value, Enum):
        return value.value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {str(k): _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_to_jsonable(v) for v in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if hasattr(value, "__dict__"):
        return {k: _to_jsonable(v) for k, v in vars(value).items() if not k.startswith("_")}
    return str(value)


def _plain(value: Any) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _has_drift(result: Any) -> bool:
    return bool(getattr(result, "has_drift", False))


@dataclass
class Report:
    """A collection of drift results with summary metadata."""

    generated_at: datetime
    total_checked: int
    drift_count: int
    results: list[Any] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form of the report."""
        return {
            "generated_at": _format_time(self.generated_at),
            "total_checked": self.total_checked,
            "drift_count": self.drift_count,
            "results": [_to_jsonable(r) for r in self.results],
        }


class Reporter:
    """Writes drift reports to a text stream in the configured format.

    Any format other than ``json`` produces text output.
    """

    def __init__(
        self,
        stream: TextIO,
        output_format: Format | str = Format.TEXT,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._stream = stream
        self._format = output_format
        self._clock = clock

    def write(self, results: Iterable[Any]) -> Report:
        """Render a report for ``results`` and return it."""
        items = list(results)
        report = Report(
            generated_at=_as_utc(self._clock()),
            total_checked=len(items),
            drift_count=sum(1 for r in items if _has_drift(r)),
            results=items,
        )
        if self._format == Format.JSON:
            self._write_json(report)
        else:
            self._write_text(report)
        return report

    def _write_json(self, report: Report) -> None:
        self._stream.write(json.dumps(report.to_dict(), indent=2) + "\n")

    def _write_text(self, report: Report) -> None:
        out = self._stream
        stamp = report.generated_at.strftime("%Y-%m-%dT%H:%M:%S")
        if report.generated_at.utcoffset() == timedelta(0):
            stamp += "Z"
        out.write(f"Drift Report — {stamp}\n")
        out.write(f"Checked: {report.total_checked} | Drifted: {report.drift_count}\n\n")
        for result in report.results:
            name = getattr(result, "name", "")
            if not _has_drift(result):
                out.write(f"[OK]    {name}\n")
                continue
            out.write(f"[DRIFT] {name}\n")
            for diff in getattr(result, "diffs", None) or ():
                out.write(
                    f"        field={getattr(diff, 'field', '')}"
                    f" expected={_plain(getattr(diff, 'expected', None))}"
                    f" actual={_plain(getattr(diff, 'actual', None))}\n"
                )