import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

from werkzeug.test import Client

from driftwatch.throttle import Throttler, make_app

EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def test_first_event_always_allowed():
    th = Throttler(timedelta(minutes=1), 3, FakeClock(EPOCH))
    assert th.allow("svc-a") is True


def test_burst_exhausted():
    th = Throttler(timedelta(minutes=1), 2, FakeClock(EPOCH))
    assert th.allow("svc-a") is True
    assert th.allow("svc-a") is True
    assert th.allow("svc-a") is False


def test_window_reset():
    clock = FakeClock(EPOCH)
    th = Throttler(timedelta(minutes=1), 1, clock)
    assert th.allow("svc-a") is True
    assert th.allow("svc-a") is False
    clock.now = EPOCH + timedelta(minutes=2)
    assert th.allow("svc-a") is True


def test_independent_services():
    th = Throttler(timedelta(minutes=1), 1, FakeClock(EPOCH))
    th.allow("svc-a")
    assert th.allow("svc-b") is True


def test_reset_restores_capacity():
    th = Throttler(timedelta(minutes=1), 1, FakeClock(EPOCH))
    th.allow("svc-a")
    assert th.allow("svc-a") is False
    th.reset("svc-a")
    assert th.allow("svc-a") is True


def test_purge_removes_expired_records():
    clock = FakeClock(EPOCH)
    th = Throttler(timedelta(minutes=1), 3, clock)
    th.allow("svc-a")
    th.allow("svc-b")
    clock.now = EPOCH + timedelta(minutes=2)
    th.purge()
    assert len(th._records) == 0


def test_purge_keeps_active_records():
    clock = FakeClock(EPOCH)
    th = Throttler(timedelta(minutes=1), 1, clock)
    th.allow("svc-a")
    th.purge()
    assert th.allow("svc-a") is False


def test_concurrent_services_capped():
    th = Throttler(timedelta(minutes=1), 5, FakeClock(EPOCH))
    services = [s for s in ("alpha", "beta", "gamma") for _ in range(10)]
    with ThreadPoolExecutor(max_workers=10) as pool:
        outcomes = list(pool.map(lambda s: (s, th.allow(s)), services))
    allowed = Counter(s for s, ok in outcomes if ok)
    assert allowed == {"alpha": 5, "beta": 5, "gamma": 5}
    assert th.allow("alpha") is False


def test_real_time_window_expiry():
    th = Throttler(0.1, 1)
    assert th.allow("svc") is True
    assert th.allow("svc") is False
    time.sleep(0.15)
    assert th.allow("svc") is True


def test_app_status():
    client = Client(make_app(Throttler(timedelta(seconds=2), 4)))
    resp = client.get("/throttle/status")
    assert resp.status_code == 200
    assert resp.get_json() == {"window_ms": 2000, "max_burst": 4}


def test_app_status_method_not_allowed():
    client = Client(make_app(Throttler(1, 1)))
    assert client.post("/throttle/status").status_code == 405


def test_app_reset_requires_service():
    client = Client(make_app(Throttler(1, 1)))
    assert client.delete("/throttle/reset").status_code == 400


def test_app_reset_restores_capacity():
    th = Throttler(timedelta(minutes=1), 1, FakeClock(EPOCH))
    client = Client(make_app(th))
    th.allow("svc")
    assert client.delete("/throttle/reset?service=svc").status_code == 204
    assert th.allow("svc") is True


def test_app_purge():
    clock = FakeClock(EPOCH)
    th = Throttler(timedelta(minutes=1), 1, clock)
    th.allow("svc")
    clock.now = EPOCH + timedelta(minutes=5)
    client = Client(make_app(th))
    assert client.get("/throttle/purge").status_code == 405
    assert client.post("/throttle/purge").status_code == 204
    assert len(th._records) == 0