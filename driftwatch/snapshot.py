"""Persistence of manifest snapshots to disk.

A snapshot records a manifest's name, kind and field values at a point in
time. Each snapshot is stored as a JSON file named after the manifest under
the store's directory; saving overwrites the previous file.
"""

from __future__ import annotations

import dataclasses
import json
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable

_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _format_time(moment: datetime) -> str:
    text = moment.isoformat()
    if moment.utcoffset() == timedelta(0):
        text = text.replace("+00:00", "Z")
    return text


def _parse_time(text: str) -> datetime:
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(_EXCESS_FRACTION.sub(r"\1", text))


@dataclass
class Snapshot:
    """The captured state of a manifest."""

    name: str
    kind: str = ""
    fields: dict[str, Any] = dataclasses.field(default_factory=dict)
    captured_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form of the snapshot."""
        captured = self.captured_at or datetime(1, 1, 1, tzinfo=timezone.utc)
        return {
            "name": self.name,
            "kind": self.kind,
            "captured_at": _format_time(captured),
            "fields": self.fields,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Snapshot:
        """Build a snapshot from decoded JSON, raising ValueError on bad shapes."""
        if not isinstance(data, dict):
            raise ValueError("snapshot must be a JSON object")
        fields = data.get("fields") or {}
        if not isinstance(fields, dict):
            raise ValueError("fields must be a JSON object")
        captured = data.get("captured_at")
        return cls(
            name=str(data.get("name") or ""),
            kind=str(data.get("kind") or ""),
            fields=fields,
            captured_at=_parse_time(captured) if isinstance(captured, str) else None,
        )


class Store:
    """Reads and writes snapshots as JSON files under a directory."""

    def __init__(
        self,
        directory: str | Path,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._dir = Path(directory)
        self._dir.mkdir(parents=True, exist_ok=True)
        self._clock = clock

    def _path(self, name: str) -> Path:
        return self._dir / f"{name}.json"

    def save(self, snapshot: Snapshot) -> Snapshot:
        """Write ``snapshot`` stamped with the current time and return the stored copy."""
        stored = dataclasses.replace(snapshot, captured_at=self._clock())
        try:
            data = json.dumps(stored.to_dict(), indent=2)
        except (TypeError, ValueError) as exc:
            raise ValueError(f'snapshot: marshal "{snapshot.name}": {exc}') from exc
        self._path(snapshot.name).write_text(data, encoding="utf-8")
        return stored

    def load(self, name: str) -> Snapshot:
        """Read the saved snapshot for ``name``.

        Raises FileNotFoundError when nothing has been saved for it.
        """
        text = self._path(name).read_text(encoding="utf-8")
        try:
            return Snapshot.from_dict(json.loads(text))
        except ValueError as exc:
            raise ValueError(f'snapshot: unmarshal "{name}": {exc}') from exc