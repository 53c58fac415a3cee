"""Rule-based severity overrides for drift results.

Operators define rules that map service and field glob patterns to a
severity. The :class:`Evaluator` rewrites each result's severity with the
first matching rule. Rules can be read from a YAML file of the form::

    rules:
      - service: "payments-*"
        field:   "spec.replicas"
        severity: warn
"""

from __future__ import annotations

import copy
import dataclasses
import functools
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Iterable

import yaml


class Severity(str, Enum):
    """Severity assigned to a drift result."""

    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class PolicyError(Exception):
    """Raised when a policy cannot be read or is invalid."""


@dataclass(frozen=True)
class Rule:
    """Overrides a result's severity when service and field globs both match."""

    service_glob: str
    field_glob: str
    severity: Severity


class _BadPattern(Exception):
    pass


def _class_char(pattern: str, i: int) -> tuple[str, int]:
    if i >= len(pattern) or pattern[i] in "-]":
        raise _BadPattern
    if pattern[i] == "\\":
        i += 1
        if i >= len(pattern):
            raise _BadPattern
    return pattern[i], i + 1


@functools.lru_cache(maxsize=256)
def _compile_glob(pattern: str) -> re.Pattern[str] | None:
    """Translate a slash-aware shell pattern to a regex; None if malformed."""
    out: list[str] = []
    i, n = 0, len(pattern)
    try:
        while i < n:
            c = pattern[i]
            i += 1
            if c == "*":
                out.append("[^/]*")
            elif c == "?":
                out.append("[^/]")
            elif c == "\\":
                if i >= n:
                    raise _BadPattern
                out.append(re.escape(pattern[i]))
                i += 1
            elif c == "[":
                negate = i < n and pattern[i] == "^"
                if negate:
                    i += 1
                items: list[str] = []
                while True:
                    if i >= n:
                        raise _BadPattern
                    if pattern[i] == "]" and items:
                        i += 1
                        break
                    lo, i = _class_char(pattern, i)
                    if i < n and pattern[i] == "-":
                        hi, i = _class_char(pattern, i + 1)
                        if hi < lo:
                            raise _BadPattern
                        items.append(f"{re.escape(lo)}-{re.escape(hi)}")
                    else:
                        items.append(re.escape(lo))
                body = "".join(items)
                out.append(f"[^{body}]" if negate else f"[{body}]")
            else:
                out.append(re.escape(c))
    except _BadPattern:
        return None
    return re.compile("".join(out), re.DOTALL)


def _match_glob(pattern: str, value: str) -> bool:
    if not pattern:
        return False
    regex = _compile_glob(pattern.lower())
    return regex is not None and regex.fullmatch(value.lower()) is not None


def _with_severity(result: Any, severity: Severity) -> Any:
    if dataclasses.is_dataclass(result) and not isinstance(result, type):
        return dataclasses.replace(result, severity=severity)
    updated = copy.copy(result)
    updated.severity = severity
    return updated


class Evaluator:
    """Applies rules in order to drift results; the first match wins."""

    def __init__(self, rules: Iterable[Rule] | None = None) -> None:
        self._rules = tuple(rules or ())

    def apply(self, results: Iterable[Any]) -> list[Any]:
        """Return copies of results with severities rewritten by matching rules."""
        return [self._apply_one(r) for r in results]

    def _apply_one(self, result: Any) -> Any:
        for rule in self._rules:
            if _match_glob(rule.service_glob, result.service) and any(
                _match_glob(rule.field_glob, f) for f in result.fields
            ):
                return _with_severity(result, rule.severity)
        return result


def parse_severity(value: str) -> Severity:
    """Convert "info", "warn" or "error" to a Severity."""
    try:
        return Severity(value)
    except ValueError:
        raise PolicyError(f'unknown severity "{value}" (want info|warn|error)') from None


def _text_field(raw: dict[str, Any], key: str) -> str:
    value = raw.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise PolicyError(f"policy: parse yaml: {key} must be a string")
    return value


def _raw_rules(document: Any) -> list[dict[str, Any]]:
    if document is None:
        return []
    if not isinstance(document, dict):
        raise PolicyError("policy: parse yaml: top level must be a mapping")
    rules = document.get("rules")
    if rules is None:
        return []
    if not isinstance(rules, list):
        raise PolicyError("policy: parse yaml: rules must be a list")
    out = []
    for item in rules:
        if item is None:
            item = {}
        if not isinstance(item, dict):
            raise PolicyError("policy: parse yaml: each rule must be a mapping")
        out.append(item)
    return out


def load_file(path: str | Path) -> list[Rule]:
    """Read a YAML policy file and return its rules."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise PolicyError(f"policy: read file: {exc}") from exc
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise PolicyError(f"policy: parse yaml: {exc}") from exc

    rules = []
    for index, raw in enumerate(_raw_rules(document)):
        service = _text_field(raw, "service")
        field_glob = _text_field(raw, "field")
        try:
            severity = parse_severity(_text_field(raw, "severity"))
        except PolicyError as exc:
            raise PolicyError(f"policy: rule[{index}]: {exc}") from exc
        rules.append(Rule(service_glob=service, field_glob=field_glob, severity=severity))
    return rules