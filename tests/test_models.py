from __future__ import annotations

import pytest

from coastal_router.core.models import GeoPoint, Leg, LegResult, LegValidationError, Vessel, Waypoint


def test_leg_from_record() -> None:
    leg = Leg.from_dict({"day": 3, "from": "Split", "to": "Milna", "fromLat": "43.5081", "fromLng": 16.4402,
                         "toLat": 43.3244, "toLng": 16.4522, "notes": "ignored"})
    assert leg.day == 3
    assert leg.start == GeoPoint(43.5081, 16.4402)
    assert leg.end == GeoPoint(43.3244, 16.4522)


@pytest.mark.parametrize("value", [None, True, "abc", float("nan"), float("inf"), [1.0]])
def test_leg_rejects_bad_coordinates(value) -> None:
    record = {"fromLat": 43.0, "fromLng": 16.0, "toLat": 43.1, "toLng": value}
    with pytest.raises(LegValidationError):
        Leg.from_dict(record)


def test_vessel_defaults() -> None:
    assert Vessel.from_dict(None) == Vessel(draft_m=2.0, type="sailboat")
    vessel = Vessel.from_dict({"draft_m": "1.5", "type": "catamaran", "cruise_speed_kn": 7})
    assert vessel.draft_m == 1.5
    assert vessel.type == "catamaran"
    assert vessel.cruise_speed_kn == 7.0
    assert vessel.air_draft_m is None


@pytest.mark.parametrize("record", ["big", 3, ["draft_m", 4.0]])
def test_non_object_vessel_gives_defaults(record) -> None:
    assert Vessel.from_dict(record) == Vessel()


def test_vessel_from_flat_request_fields() -> None:
    flat = Vessel.from_request({"vesselDraft": "3.1", "vesselType": "catamaran", "cruiseSpeedKn": 6})
    assert flat == Vessel(draft_m=3.1, type="catamaran", cruise_speed_kn=6.0)

    # nested values win; flat fields only fill what the nested object leaves out
    mixed = Vessel.from_request({"vessel": {"draft_m": 1.8}, "vesselDraft": 3.1, "vesselType": "motorboat"})
    assert mixed.draft_m == 1.8
    assert mixed.type == "motorboat"

    assert Vessel.from_request({"vessel": "big", "vesselDraft": 2.5}).draft_m == 2.5
    assert Vessel.from_request(None) == Vessel()


def test_result_serialisation() -> None:
    ok = LegResult(1, "Split", "Milna", waypoints=[Waypoint(43.4, 16.4, "safe route"), Waypoint(43.35, 16.41)])
    assert ok.to_dict() == {
        "day": 1,
        "from": "Split",
        "to": "Milna",
        "waypoints": [{"lat": 43.4, "lng": 16.4, "note": "safe route"}, {"lat": 43.35, "lng": 16.41}],
        "failed": False,
    }
    failed = LegResult(2, "Milna", "Hvar", failed=True, error="no safe path found").to_dict()
    assert failed["failed"] is True
    assert failed["error"] == "no safe path found"
