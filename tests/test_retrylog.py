from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from werkzeug.test import Client

from driftwatch.retrylog import RetryLog, make_app

BASE = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
NOON = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return SimpleNamespace(now=BASE)


@pytest.fixture
def log(clock):
    return RetryLog(timedelta(hours=1), clock=lambda: clock.now)


@pytest.fixture
def client(log):
    return Client(make_app(log))


def test_record_empty_service_raises(log):
    with pytest.raises(ValueError):
        log.record("", "timeout", 1)


def test_record_and_summaries_round_trip(log):
    log.record("svc-a", "timeout", 1)
    log.record("svc-a", "connection refused", 2)

    (summary,) = log.summaries()
    assert summary.service == "svc-a"
    assert summary.total_retries == 2
    assert summary.last_reason == "connection refused"
    assert summary.last_attempt == BASE


@pytest.mark.parametrize(
    "max_age, records, expected",
    [
        (
            timedelta(minutes=30),
            [(NOON - timedelta(hours=1), "old error"), (NOON, "recent error")],
            [(1, "recent error")],
        ),
        (timedelta(minutes=5), [(NOON - timedelta(hours=1), "old")], []),
    ],
)
def test_summaries_exclude_expired_entries(clock, max_age, records, expected):
    log = RetryLog(max_age, clock=lambda: clock.now)
    for attempt, (moment, reason) in enumerate(records, start=1):
        clock.now = moment
        log.record("svc-b", reason, attempt)
    clock.now = NOON
    assert [(s.total_retries, s.last_reason) for s in log.summaries()] == expected


def test_reset_clears_service(log):
    log.record("svc-d", "err", 1)
    log.reset("svc-d")
    assert log.summaries() == []


def test_multiple_services_tracked_independently():
    log = RetryLog(3600)
    for service, reason, attempt in [("alpha", "timeout", 1), ("beta", "refused", 1), ("beta", "refused", 2)]:
        log.record(service, reason, attempt)
    assert {s.service: s.total_retries for s in log.summaries()} == {"alpha": 1, "beta": 2}


def test_app_lists_summaries(log, client):
    log.record("svc-a", "timeout", 1)
    response = client.get("/retrylog")
    assert response.status_code == 200
    assert response.get_json() == [
        {
            "Service": "svc-a",
            "TotalRetries": 1,
            "LastAttempt": "2024-01-01T00:00:00Z",
            "LastReason": "timeout",
        }
    ]


def test_app_reset_clears_history(log, client):
    log.record("svc-a", "timeout", 1)
    assert client.delete("/retrylog?service=svc-a").status_code == 204
    assert log.summaries() == []
    assert client.get("/retrylog").get_json() is None


@pytest.mark.parametrize(
    "method, url, status",
    [("DELETE", "/retrylog", 400), ("PUT", "/retrylog", 405), ("GET", "/elsewhere", 404)],
)
def test_app_error_statuses(client, method, url, status):
    assert client.open(url, method=method).status_code == status