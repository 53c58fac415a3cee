"""Structural validation of service manifests before drift detection.

Rules include required top-level fields (``kind`` and ``name`` by default),
forbidden spec keys that must never appear in a deployed manifest, and a
non-blank constraint on ``kind``.
"""

from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from werkzeug.wrappers import Request, Response

_DEFAULT_REQUIRED = ("kind", "name")


@dataclass(frozen=True)
class Violation:
    """A single schema rule failure."""

    field: str
    message: str

    def __str__(self) -> str:
        return f'field "{self.field}": {self.message}'


@dataclass
class ValidationResult:
    """Outcome of validating one manifest."""

    service: str
    violations: list[Violation] = dataclasses.field(default_factory=list)

    def valid(self) -> bool:
        """Return True when no violations were found."""
        return not self.violations


class Validator:
    """Validates manifests against required fields and forbidden spec keys.

    ``required_fields`` replaces the default ``("kind", "name")`` when given.
    """

    def __init__(
        self,
        required_fields: Iterable[str] | None = None,
        forbidden_keys: Iterable[str] = (),
    ) -> None:
        self._required = tuple(_DEFAULT_REQUIRED if required_fields is None else required_fields)
        self._forbidden = tuple(forbidden_keys)

    def validate(self, service: str, manifest: Mapping[str, Any] | None) -> ValidationResult:
        """Check a manifest and collect every violation in one pass."""
        if not service:
            raise ValueError("service name must not be empty")
        manifest = manifest or {}
        result = ValidationResult(service=service)
        for name in self._required:
            if name not in manifest:
                result.violations.append(Violation(name, "required field is missing"))
        spec = manifest.get("spec")
        if not isinstance(spec, Mapping):
            spec = {}
        for key in self._forbidden:
            if key in spec:
                result.violations.append(Violation(f"spec.{key}", "forbidden key present"))
        kind = manifest.get("kind")
        if isinstance(kind, str) and not kind.strip():
            result.violations.append(Violation("kind", "must not be blank"))
        return result


def _error(message: str, status: int) -> Response:
    return Response(message + "\n", status=status, mimetype="text/plain")


def _parse_request(body: str) -> tuple[str, dict[str, Any] | None]:
    data = json.loads(body)
    if data is None:
        return "", None
    if not isinstance(data, dict):
        raise ValueError("request must be a JSON object")
    service = data.get("service")
    if service is None:
        service = ""
    if not isinstance(service, str):
        raise ValueError("service must be a string")
    manifest = data.get("manifest")
    if manifest is not None and not isinstance(manifest, dict):
        raise ValueError("manifest must be a JSON object")
    return service, manifest


def make_app(validator: Validator):
    """Return a WSGI application exposing POST /validate.

    The body is ``{"service": ..., "manifest": {...}}``; the response is
    ``{"valid": bool, "violations": [...]}``.
    """

    @Request.application
    def app(request: Request) -> Response:
        if request.path != "/validate":
            return _error("404 page not found", 404)
        if request.method != "POST":
            return _error("method not allowed", 405)
        try:
            service, manifest = _parse_request(request.get_data(as_text=True))
        except ValueError:
            return _error("invalid JSON body", 400)
        try:
            result = validator.validate(service, manifest)
        except ValueError as exc:
            return _error(str(exc), 400)
        violations = [
            {"field": v.field, "message": v.message} for v in result.violations
        ] or None
        payload = {"valid": result.valid(), "violations": violations}
        return Response(json.dumps(payload) + "\n", mimetype="application/json")

    return app