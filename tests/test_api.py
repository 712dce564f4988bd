from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from coastal_router.api.dependencies import get_channel_graph, get_land_store, get_router_config
from coastal_router.api.main import app
from coastal_router.core.config import RouterConfig
from coastal_router.land.store import LandGeometryStore


@pytest.fixture
def client(island_store: LandGeometryStore) -> Iterator[TestClient]:
    app.dependency_overrides[get_land_store] = lambda: island_store
    app.dependency_overrides[get_router_config] = lambda: RouterConfig()
    app.dependency_overrides[get_channel_graph] = lambda: None
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _day(day: int, from_lat, from_lng, to_lat, to_lng) -> dict:
    return {"day": day, "from": f"P{day}", "to": f"P{day + 1}", "fromLat": from_lat, "fromLng": from_lng,
            "toLat": to_lat, "toLng": to_lng}


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_safe_route(client: TestClient) -> None:
    payload = {
        "days": [
            _day(1, 0.0, -0.05, 0.0, 0.07),
            _day(2, 0.0, 0.07, 0.0, 0.07),
            _day(3, "north", 0.0, 0.0, 0.07),
        ],
        "vessel": {"draft_m": 2.4, "type": "catamaran"},
    }
    response = client.post("/api/trips/safe-route", json=payload)
    assert response.status_code == 200

    body = response.json()
    assert body["success"] is True
    legs = body["safeRoute"]
    assert [leg["day"] for leg in legs] == [1, 2, 3]
    assert [leg["failed"] for leg in legs] == [False, False, True]

    first = legs[0]
    assert first["from"] == "P1" and first["to"] == "P2"
    assert "error" not in first
    assert first["waypoints"][0]["note"] == "safe route"
    assert all("note" not in wp for wp in first["waypoints"][1:])

    assert legs[1]["waypoints"] == []
    assert legs[2]["error"].startswith("invalid leg")


def test_days_are_required(client: TestClient) -> None:
    for payload in ({}, {"days": []}, {"days": None}):
        response = client.post("/api/trips/safe-route", json=payload)
        assert response.status_code == 400
        assert response.json()["detail"] == "days array is required"


def test_numeric_strings_are_accepted(client: TestClient) -> None:
    response = client.post("/api/trips/safe-route", json={"days": [_day(1, "0.0", "-0.05", "0.05", "-0.04")]})
    assert response.status_code == 200
    assert response.json()["safeRoute"][0]["failed"] is False


@pytest.mark.parametrize(
    "bad_leg",
    [
        _day(2, [0.0], -0.05, 0.05, -0.04),
        _day(2, 0.0, {"value": -0.05}, 0.05, -0.04),
        None,
    ],
    ids=["list-coordinate", "object-coordinate", "null-entry"],
)
def test_malformed_leg_fails_alone(client: TestClient, bad_leg) -> None:
    payload = {"days": [_day(1, 0.0, -0.05, 0.05, -0.04), bad_leg]}
    response = client.post("/api/trips/safe-route", json=payload)
    assert response.status_code == 200

    legs = response.json()["safeRoute"]
    assert len(legs) == 2
    assert legs[0]["failed"] is False
    assert legs[1]["failed"] is True
    assert legs[1]["error"].startswith("invalid leg")


def test_non_string_port_names_are_accepted(client: TestClient) -> None:
    leg = _day(1, 0.0, -0.05, 0.05, -0.04)
    leg["from"], leg["to"] = 5, {"name": "Milna"}
    response = client.post("/api/trips/safe-route", json={"days": [leg]})
    assert response.status_code == 200

    result = response.json()["safeRoute"][0]
    assert result["failed"] is False
    assert result["from"] == "5"


def test_days_must_be_a_list(client: TestClient) -> None:
    response = client.post("/api/trips/safe-route", json={"days": "abc"})
    assert response.status_code == 400


def test_flat_vessel_fields(client: TestClient, capsys: pytest.CaptureFixture[str]) -> None:
    payload = {"days": [_day(1, 0.0, -0.05, 0.05, -0.04)], "vesselDraft": 3.1, "vesselType": "catamaran"}
    response = client.post("/api/trips/safe-route", json=payload)
    assert response.status_code == 200
    assert "draft=3.1m, type=catamaran" in capsys.readouterr().out


def test_non_object_vessel(client: TestClient) -> None:
    response = client.post("/api/trips/safe-route", json={"days": [_day(1, 0.0, -0.05, 0.05, -0.04)], "vessel": "big"})
    assert response.status_code == 200
    assert response.json()["safeRoute"][0]["failed"] is False
