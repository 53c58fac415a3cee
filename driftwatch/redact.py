"""Scrubbing of sensitive field values before they reach logs or alerts.

Patterns are case-insensitive substrings matched against fully-qualified
field paths such as ``spec.env.DB_PASSWORD``. Sensitive values are replaced
with ``[REDACTED]``.
"""

from __future__ import annotations

import threading
from typing import Iterable, Mapping

REDACTED = "[REDACTED]"


class Redactor:
    """Holds field-name patterns whose values must be scrubbed."""

    def __init__(self, patterns: Iterable[str] | None = None) -> None:
        self._lock = threading.Lock()
        self._patterns = [p.lower() for p in patterns or ()]

    def add_pattern(self, pattern: str) -> None:
        """Register another pattern."""
        with self._lock:
            self._patterns.append(pattern.lower())

    def is_sensitive(self, field: str) -> bool:
        """Report whether ``field`` contains any registered pattern."""
        lower = field.lower()
        with self._lock:
            return any(p in lower for p in self._patterns)

    def scrub_map(self, mapping: Mapping[str, str]) -> dict[str, str]:
        """Return a copy of ``mapping`` with sensitive values redacted."""
        return {k: self.scrub_value(k, v) for k, v in mapping.items()}

    def scrub_value(self, field: str, value: str) -> str:
        """Return the placeholder if ``field`` is sensitive, else ``value``."""
        return REDACTED if self.is_sensitive(field) else value