import pytest

from driftwatch.ratelimit import Limiter


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now


def test_first_event_always_allowed():
    assert Limiter(0.1, 3).allow("svc-a") is True


def test_burst_exhausted():
    limiter = Limiter(10, 2)
    assert limiter.allow("svc-b") is True
    assert limiter.allow("svc-b") is True
    assert limiter.allow("svc-b") is False


def test_tokens_refill_over_time():
    clock = FakeClock()
    limiter = Limiter(5, 1, clock=clock)
    assert limiter.allow("svc-c") is True
    assert limiter.allow("svc-c") is False
    clock.now += 6
    assert limiter.allow("svc-c") is True
    assert limiter.allow("svc-c") is False


def test_refill_capped_at_max_burst():
    clock = FakeClock()
    limiter = Limiter(1, 2, clock=clock)
    limiter.allow("svc")
    limiter.allow("svc")
    clock.now += 100
    results = [limiter.allow("svc") for _ in range(3)]
    assert results == [True, True, False]


def test_independent_services_do_not_interfere():
    limiter = Limiter(10, 1)
    assert limiter.allow("svc-x") is True
    assert limiter.allow("svc-x") is False
    assert limiter.allow("svc-y") is True


def test_reset_restores_capacity():
    limiter = Limiter(10, 1)
    limiter.allow("svc-d")
    assert limiter.allow("svc-d") is False
    limiter.reset("svc-d")
    assert limiter.allow("svc-d") is True


def test_min_burst_of_one():
    limiter = Limiter(1, 0)
    assert limiter.allow("svc-e") is True
    assert limiter.allow("svc-e") is False


def test_non_positive_rate_rejected():
    with pytest.raises(ValueError):
        Limiter(0, 1)