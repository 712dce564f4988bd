"""Leg, waypoint and result records exchanged with the itinerary layer."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, List, NamedTuple, Optional


class GeoPoint(NamedTuple):
    """A (lat, lng) pair in decimal degrees."""

    lat: float
    lng: float


class LegValidationError(ValueError):
    """Raised when a leg is missing coordinates or carries non-numeric ones."""


def _coerce_coord(record: dict, key: str) -> float:
    value = record.get(key)
    if value is None or isinstance(value, bool):
        raise LegValidationError(f"{key} is missing")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise LegValidationError(f"{key} is not numeric: {value!r}") from None
    if not math.isfinite(number):
        raise LegValidationError(f"{key} is not finite: {value!r}")
    return number


@dataclass(frozen=True)
class Leg:
    day: Any
    from_name: str
    to_name: str
    start: GeoPoint
    end: GeoPoint

    @classmethod
    def from_dict(cls, record: dict) -> "Leg":
        """Parse the camelCase day record used by the itinerary layer."""
        start = GeoPoint(_coerce_coord(record, "fromLat"), _coerce_coord(record, "fromLng"))
        end = GeoPoint(_coerce_coord(record, "toLat"), _coerce_coord(record, "toLng"))
        return cls(
            day=record.get("day"),
            from_name=str(record.get("from") or ""),
            to_name=str(record.get("to") or ""),
            start=start,
            end=end,
        )


# nested vessel key -> flat request field used by older clients
VESSEL_FLAT_FIELDS = {
    "draft_m": "vesselDraft",
    "type": "vesselType",
    "air_draft_m": "vesselAirDraft",
    "cruise_speed_kn": "cruiseSpeedKn",
}


@dataclass(frozen=True)
class Vessel:
    """Vessel descriptor.

    Accepted for forward compatibility only: routing geometry does not consult
    depth data, so draft and air draft are never enforced.
    """

    draft_m: float = 2.0
    type: str = "sailboat"
    air_draft_m: Optional[float] = None
    cruise_speed_kn: Optional[float] = None

    @classmethod
    def from_dict(cls, record: Any) -> "Vessel":
        """Parse a vessel object; anything that is not an object gives the defaults."""
        record = record if isinstance(record, dict) else {}

        def _num(key: str) -> Optional[float]:
            try:
                value = float(record.get(key))
            except (TypeError, ValueError):
                return None
            return value if math.isfinite(value) else None

        return cls(
            draft_m=_num("draft_m") or 2.0,
            type=str(record.get("type") or "sailboat"),
            air_draft_m=_num("air_draft_m"),
            cruise_speed_kn=_num("cruise_speed_kn"),
        )

    @classmethod
    def from_request(cls, body: Any) -> "Vessel":
        """Read `vessel` from a request body, falling back to the flat legacy fields."""
        body = body if isinstance(body, dict) else {}
        nested = body.get("vessel")
        nested = nested if isinstance(nested, dict) else {}
        record = {}
        for key, flat_key in VESSEL_FLAT_FIELDS.items():
            value = nested.get(key)
            record[key] = body.get(flat_key) if value is None else value
        return cls.from_dict(record)


@dataclass(frozen=True)
class Waypoint:
    lat: float
    lng: float
    note: str = ""

    def to_dict(self) -> dict:
        payload = {"lat": self.lat, "lng": self.lng}
        if self.note:
            payload["note"] = self.note
        return payload


@dataclass
class LegResult:
    day: Any
    from_name: str
    to_name: str
    waypoints: List[Waypoint] = field(default_factory=list)
    failed: bool = False
    error: Optional[str] = None

    def to_dict(self) -> dict:
        payload = {
            "day": self.day,
            "from": self.from_name,
            "to": self.to_name,
            "waypoints": [wp.to_dict() for wp in self.waypoints],
            "failed": self.failed,
        }
        if self.error:
            payload["error"] = self.error
        return payload
