from collections import Counter
from concurrent.futures import ThreadPoolExecutor

import pytest
from werkzeug.test import Client

from driftwatch.routing import Endpoint, Router, make_app


def make_router(**weights):
    return Router([Endpoint(name, f"http://{name}", weight) for name, weight in weights.items()])


def picks(router, n):
    return [router.next().name for _ in range(n)]


@pytest.mark.parametrize("weights", [{}, {"a": 0}, {"a": 1, "b": -2}])
def test_invalid_endpoints_rejected(weights):
    with pytest.raises(ValueError):
        make_router(**weights)


def test_next_single_endpoint():
    assert picks(make_router(a=3), 6) == ["a"] * 6


def test_next_weighted_distribution():
    counts = Counter(picks(make_router(a=2, b=1), 9))
    assert counts == {"a": 6, "b": 3}


def test_next_order():
    assert picks(make_router(a=2, b=1), 6) == ["a", "a", "b", "a", "a", "b"]


def test_reset_restores_state():
    router = make_router(a=1, b=1)
    assert picks(router, 2) == ["a", "b"]
    router.reset()
    assert router.next().name == "a"


def test_all_returns_copy():
    router = make_router(x=1)
    endpoints = router.all()
    assert len(endpoints) == 1
    endpoints[0].name = "mutated"
    assert router.all()[0].name == "x"


def test_next_concurrent_access():
    router = make_router(alpha=2, beta=3)
    with ThreadPoolExecutor(max_workers=10) as pool:
        names = list(pool.map(lambda _: router.next().name, range(50)))
    assert Counter(names) == {"alpha": 20, "beta": 30}
    assert router.next().name == "alpha"


def test_reset_under_concurrent_load():
    router = make_router(a=1, b=1)

    def work(idx):
        if idx % 5 == 0:
            router.reset()
        else:
            router.next()

    with ThreadPoolExecutor(max_workers=10) as pool:
        list(pool.map(work, range(20)))
    router.reset()
    assert router.next().name == "a"


def test_app_lists_endpoints():
    response = Client(make_app(make_router(a=1))).get("/routing/endpoints")
    assert response.status_code == 200
    assert response.get_json() == {"endpoints": [{"Name": "a", "URL": "http://a", "Weight": 1}]}


def test_app_next_advances():
    client = Client(make_app(make_router(a=1, b=1)))
    names = [client.get("/routing/next").get_json()["Name"] for _ in range(2)]
    assert names == ["a", "b"]


@pytest.mark.parametrize(
    "method, url, status",
    [("POST", "/routing/next", 405), ("POST", "/routing/endpoints", 405), ("GET", "/routing", 404)],
)
def test_app_error_statuses(method, url, status):
    client = Client(make_app(make_router(a=1)))
    assert client.open(url, method=method).status_code == status