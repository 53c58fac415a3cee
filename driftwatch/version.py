"""Build metadata and an HTTP endpoint that reports it.

The version, commit and build date default to placeholder values. A
release build replaces the module constants below. The interpreter version,
operating system and architecture are read at run time.
"""

from __future__ import annotations

import json
import platform
import sys
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone

from werkzeug.wrappers import Request, Response

VERSION = "dev"
COMMIT = "none"
BUILD_DATE = "unknown"


@dataclass(frozen=True)
class Info:
    """Build and runtime metadata of the running program."""

    version: str
    commit: str
    build_date: str
    runtime_version: str
    os: str
    arch: str

    def to_dict(self) -> dict[str, str]:
        """Return the JSON form of the metadata."""
        return asdict(self)


def _format_time(moment: datetime) -> str:
    text = moment.isoformat()
    if moment.utcoffset() == timedelta(0):
        text = text.replace("+00:00", "Z")
    return text


def get_info() -> Info:
    """Return the current build metadata with runtime fields filled in."""
    return Info(
        version=VERSION,
        commit=COMMIT,
        build_date=BUILD_DATE,
        runtime_version=platform.python_version(),
        os=sys.platform,
        arch=platform.machine(),
    )


def make_app():
    """Return a WSGI application that serves version information as JSON.

    Only GET is allowed; the response also carries the version and commit
    in the ``X-Driftwatch-Version`` and ``X-Driftwatch-Commit`` headers.
    """

    @Request.application
    def app(request: Request) -> Response:
        if request.method != "GET":
            return Response("method not allowed\n", status=405, mimetype="text/plain")
        info = get_info()
        payload = {
            "info": info.to_dict(),
            "timestamp": _format_time(datetime.now(timezone.utc)),
        }
        response = Response(json.dumps(payload, indent=2) + "\n", mimetype="application/json")
        response.headers["X-Driftwatch-Version"] = info.version
        response.headers["X-Driftwatch-Commit"] = info.commit
        return response

    return app