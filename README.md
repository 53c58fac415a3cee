# driftwatch

Small, thread-safe components for working with configuration drift in
deployed services: deciding who owns a service, which drift matters, how
often to alert, what to hide from reports and how to render results. The
modules are independent; pick the ones you need and wire them into your own
detection loop.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Modules

| Module | Main names | Purpose |
| --- | --- | --- |
| `driftwatch.ownership` | `Entry`, `Registry`, `make_app` | Maps services to owning teams and contacts |
| `driftwatch.policy` | `Severity`, `Rule`, `Evaluator`, `load_file`, `parse_severity`, `PolicyError` | Glob-based severity overrides, loadable from YAML |
| `driftwatch.ratelimit` | `Limiter` | Per-service token bucket |
| `driftwatch.redact` | `Redactor`, `REDACTED` | Replaces sensitive values with `[REDACTED]` |
| `driftwatch.window` | `Counter` | Sliding time-window event counter |
| `driftwatch.reporter` | `Format`, `Report`, `Reporter` | Renders drift results as text or JSON |
| `driftwatch.retrylog` | `RetryLog`, `Entry`, `Summary`, `make_app` | Retry events with age-based summaries |
| `driftwatch.rollup` | `Aggregator`, `Summary` | Per-service summaries with deduplicated fields |
| `driftwatch.routing` | `Endpoint`, `Router`, `make_app` | Weighted round-robin endpoint selection |
| `driftwatch.scorecard` | `Scorecard`, `Score` | Rolling health score (1.0 clean, 0.0 always drifted) |
| `driftwatch.sampling` | `Strategy`, `Config`, `Sampler`, `make_app` | Random or deterministic event sampling |
| `driftwatch.schema` | `Validator`, `ValidationResult`, `Violation`, `make_app` | Required fields, forbidden spec keys, non-blank `kind` |
| `driftwatch.snapshot` | `Snapshot`, `Store` | One JSON file per manifest name on disk |
| `driftwatch.suppress` | `Entry`, `SuppressionList`, `parse_duration`, `make_app` | Suppressions with optional expiry; field `*` matches all |
| `driftwatch.tagindex` | `TagIndex`, `Entry` | Looks services up by key-value tags |
| `driftwatch.throttle` | `Throttler`, `make_app` | At most `max_burst` notifications per service per window |
| `driftwatch.trend` | `Tracker`, `Observation`, `Summary` | Ranks services by drift count in a window |
| `driftwatch.ttl` | `Cache`, `make_app` | Cache with per-entry expiry and a background sweep thread |
| `driftwatch.version` | `Info`, `get_info`, `make_app` | Build and runtime metadata |
| `driftwatch.watchlist` | `Entry`, `Watchlist`, `make_app` | Services under active monitoring |

Durations are given in seconds (floats) or as `datetime.timedelta` where the
class accepts either; most time-based classes take an optional `clock`
callable so they can be driven by a fixed time in tests.

## Drift results

The modules that consume drift results do not define a result type; they
read attributes of whatever objects you pass:

- `policy.Evaluator.apply` reads `service`, `fields` and `severity`, and
  returns copies with `severity` replaced by the first matching rule.
- `reporter.Reporter.write` reads `name`, `has_drift` and `diffs`, each diff
  having `field`, `expected` and `actual`.
- `rollup.Aggregator.aggregate` reads `service`, `has_drift`, `detected_at`
  and `diffs` (each with `field`).
- `scorecard.Scorecard.record` reads `service` and `drifted`, falling back
  to `has_drift`.

A dataclass is the easiest fit.

## Examples

Route drift to the owning team:

```python
from driftwatch.ownership import Entry, Registry

registry = Registry()
registry.set(Entry(service="api-gateway", team="platform",
                   contacts=["platform@example.com"]))
entry = registry.get("api-gateway")   # None if unknown
```

Override severities with a policy file:

```yaml
rules:
  - service: "payments-*"
    field: "spec.replicas"
    severity: warn
  - service: "*"
    field: "spec.image"
    severity: error
```

```python
from driftwatch.policy import Evaluator, load_file

evaluator = Evaluator(load_file("policy.yaml"))
adjusted = evaluator.apply(results)
```

Glob matching is case-insensitive; `*` does not cross `/`. An unknown
severity or an unreadable file raises `PolicyError`.

Keep secrets out of reports:

```python
from driftwatch.redact import Redactor

redactor = Redactor(["password", "secret", "token"])
safe = redactor.scrub_map({"spec.env.DB_PASSWORD": "password",
                           "spec.replicas": "3"})
# {"spec.env.DB_PASSWORD": "[REDACTED]", "spec.replicas": "3"}
```

Guard against alert storms:

```python
from driftwatch.throttle import Throttler

throttler = Throttler(window=60.0, max_burst=5)
if throttler.allow("auth-service"):
    send_alert()
```

Write a report:

```python
import sys
from driftwatch.reporter import Format, Reporter

Reporter(sys.stdout, Format.JSON).write(results)
```

Persist snapshots:

```python
from driftwatch.snapshot import Snapshot, Store

store = Store("snapshots")
store.save(Snapshot(name="web", kind="Deployment", fields={"replicas": 3}))
loaded = store.load("web")   # FileNotFoundError if never saved
```

## HTTP endpoints

Several modules provide `make_app(...)`, returning a WSGI application that
speaks JSON:

| Function | Routes |
| --- | --- |
| `ownership.make_app(registry)` | `GET`/`POST /ownership`, `GET`/`DELETE /ownership/<service>` |
| `retrylog.make_app(log)` | `GET /retrylog`, `DELETE /retrylog?service=<name>` |
| `routing.make_app(router)` | `GET /routing/endpoints`, `GET /routing/next` |
| `sampling.make_app(sampler)` | `GET /sampling`, `POST /sampling/reset?service=<name>` |
| `schema.make_app(validator)` | `POST /validate` with `{"service": ..., "manifest": {...}}` |
| `suppress.make_app(suppressions)` | `GET`/`POST`/`DELETE /suppressions` (`POST` accepts `expires_in` such as `"2h"`) |
| `throttle.make_app(throttler)` | `GET /throttle/status`, `DELETE /throttle/reset?service=<name>`, `POST /throttle/purge` |
| `ttl.make_app(cache)` | `GET /ttl/stats`, `DELETE /ttl/entry?key=<k>` |
| `version.make_app()` | `GET` on any path; sets `X-Driftwatch-Version` and `X-Driftwatch-Commit` |
| `watchlist.make_app(watchlist)` | `GET`/`POST /watchlist`, `DELETE /watchlist/<name>` |

Mount them under any WSGI server, for example:

```python
from werkzeug.serving import run_simple
from driftwatch.ownership import Registry, make_app

run_simple("localhost", 8080, make_app(Registry()))
```

## What this package does not do

- It does not load manifests or compare them; drift results must come from
  your own detector.
- It has no polling loop or scheduler, and no command-line program.
- It does not run a server itself; the `make_app` functions only build WSGI
  applications.
- Apart from `snapshot.Store`, all state is kept in memory and is lost when
  the process exits.