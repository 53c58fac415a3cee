import json
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import pytest
from werkzeug.test import Client

from driftwatch.watchlist import Entry, Watchlist, make_app

FIXED = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def test_add_and_get_round_trip():
    wl = Watchlist()
    wl.add(Entry(service="api", namespace="prod", labels={"tier": "backend"}))
    got = wl.get("api")
    assert got.service == "api"
    assert got.namespace == "prod"
    assert got.labels == {"tier": "backend"}
    assert isinstance(got.added_at, datetime)


def test_add_uses_clock_when_added_at_missing():
    wl = Watchlist(clock=lambda: FIXED)
    stored = wl.add(Entry(service="api"))
    assert stored.added_at == FIXED
    assert wl.get("api").added_at == FIXED


def test_add_keeps_given_added_at():
    given = datetime(2020, 5, 5, tzinfo=timezone.utc)
    wl = Watchlist(clock=lambda: FIXED)
    wl.add(Entry(service="api", added_at=given))
    assert wl.get("api").added_at == given


def test_add_empty_service_raises():
    wl = Watchlist()
    with pytest.raises(ValueError, match="must not be empty"):
        wl.add(Entry(service=""))


def test_add_duplicate_raises():
    wl = Watchlist()
    wl.add(Entry(service="svc"))
    with pytest.raises(ValueError, match="already registered: svc"):
        wl.add(Entry(service="svc"))


def test_remove_existing_entry():
    wl = Watchlist()
    wl.add(Entry(service="svc"))
    assert wl.remove("svc") is True
    assert "svc" not in wl


def test_remove_not_found_returns_false():
    wl = Watchlist()
    assert wl.remove("ghost") is False


def test_get_unknown_returns_none():
    assert Watchlist().get("ghost") is None


def test_all_returns_copy():
    wl = Watchlist()
    wl.add(Entry(service="a"))
    wl.add(Entry(service="b"))
    entries = wl.all()
    assert sorted(e.service for e in entries) == ["a", "b"]
    entries.clear()
    assert len(wl.all()) == 2


def test_contains_known_and_unknown():
    wl = Watchlist()
    wl.add(Entry(service="known", added_at=FIXED))
    assert "known" in wl
    assert "unknown" not in wl


def test_add_concurrent_safe():
    wl = Watchlist()
    names = ["svc-%d" % n for n in range(50)]
    with ThreadPoolExecutor(max_workers=10) as pool:
        stored = list(pool.map(lambda name: wl.add(Entry(service=name)), names))
    assert sorted(e.service for e in stored) == sorted(names)
    assert sorted(e.service for e in wl.all()) == sorted(names)


def test_entry_to_dict_omits_empty_labels():
    data = Entry(service="api", added_at=FIXED).to_dict()
    assert data == {"service": "api", "namespace": "", "added_at": "2024-01-01T12:00:00Z"}


def test_entry_from_dict_round_trip():
    original = Entry(service="api", namespace="prod", labels={"tier": "web"}, added_at=FIXED)
    assert Entry.from_dict(original.to_dict()) == original


def test_handler_add_and_list():
    wl = Watchlist(clock=lambda: FIXED)
    client = Client(make_app(wl))
    body = json.dumps({"service": "api", "namespace": "prod"})
    response = client.post("/watchlist", data=body)
    assert response.status_code == 201
    listing = client.get("/watchlist")
    assert listing.status_code == 200
    assert "application/json" in listing.headers["Content-Type"]
    payload = json.loads(listing.get_data(as_text=True))
    expected = [{"service": "api", "namespace": "prod", "added_at": "2024-01-01T12:00:00Z"}]
    assert payload == expected


def test_handler_duplicate_conflict():
    wl = Watchlist()
    client = Client(make_app(wl))
    body = json.dumps({"service": "api"})
    assert client.post("/watchlist", data=body).status_code == 201
    assert client.post("/watchlist", data=body).status_code == 409


def test_handler_empty_service_conflict():
    client = Client(make_app(Watchlist()))
    assert client.post("/watchlist", data="{}").status_code == 409


def test_handler_invalid_json():
    client = Client(make_app(Watchlist()))
    response = client.post("/watchlist", data="{not json")
    assert response.status_code == 400
    assert response.get_data(as_text=True).startswith("invalid JSON: ")


def test_handler_delete():
    wl = Watchlist()
    wl.add(Entry(service="svc"))
    client = Client(make_app(wl))
    assert client.delete("/watchlist/svc").status_code == 204
    assert "svc" not in wl
    assert client.delete("/watchlist/svc").status_code == 404


def test_handler_delete_without_name():
    client = Client(make_app(Watchlist()))
    assert client.delete("/watchlist/").status_code == 400


def test_handler_method_not_allowed():
    client = Client(make_app(Watchlist()))
    assert client.put("/watchlist").status_code == 405
    assert client.get("/watchlist/svc").status_code == 405