"""Pydantic schemas for locations and geofence diagnostics."""

from __future__ import annotations

import math
from datetime import datetime

from pydantic import BaseModel, field_validator

from geoclock.schemas.common import CAMEL_CONFIG


def _check_lat(v: float | None) -> float | None:
    if v is not None and (not math.isfinite(v) or abs(v) > 90):
        raise ValueError("lat must be between -90 and 90")
    return v


def _check_lng(v: float | None) -> float | None:
    if v is not None and (not math.isfinite(v) or abs(v) > 180):
        raise ValueError("lng must be between -180 and 180")
    return v


def _check_radius(v: float | None) -> float | None:
    if v is not None and (not math.isfinite(v) or v < 0):
        raise ValueError("radiusMeters must be a non-negative number (0 or more)")
    return v


class LocationCreate(BaseModel):
    name: str
    code: str
    lat: float
    lng: float
    radius_meters: float = 200.0
    is_active: bool = True

    model_config = CAMEL_CONFIG

    @field_validator("name", "code")
    @classmethod
    def _required_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name and code are required")
        return v

    @field_validator("lat")
    @classmethod
    def _lat(cls, v: float) -> float:
        return _check_lat(v)  # type: ignore[return-value]

    @field_validator("lng")
    @classmethod
    def _lng(cls, v: float) -> float:
        return _check_lng(v)  # type: ignore[return-value]

    @field_validator("radius_meters")
    @classmethod
    def _radius(cls, v: float) -> float:
        return _check_radius(v)  # type: ignore[return-value]


class LocationUpdate(BaseModel):
    name: str | None = None
    lat: float | None = None
    lng: float | None = None
    radius_meters: float | None = None
    is_active: bool | None = None

    model_config = CAMEL_CONFIG

    @field_validator("lat")
    @classmethod
    def _lat(cls, v: float | None) -> float | None:
        return _check_lat(v)

    @field_validator("lng")
    @classmethod
    def _lng(cls, v: float | None) -> float | None:
        return _check_lng(v)

    @field_validator("radius_meters")
    @classmethod
    def _radius(cls, v: float | None) -> float | None:
        return _check_radius(v)


class LocationRead(BaseModel):
    id: int
    name: str
    code: str
    lat: float
    lng: float
    radius_meters: float
    is_active: bool
    is_adhoc: bool
    created_at: datetime | None

    model_config = CAMEL_CONFIG


class LocationPublic(BaseModel):
    id: int
    name: str
    code: str

    model_config = CAMEL_CONFIG


# ── Clock check (admin diagnostics) ────────────────────────────────
class ClockCheckRequest(BaseModel):
    lat: float | None = None
    lng: float | None = None


class ClockCheckResponse(BaseModel):
    location_id: int
    location_name: str
    site_lat: float
    site_lng: float
    site_radius_meters: float
    provided_lat: float | None
    provided_lng: float | None
    provided_invalid: bool
    maybe_swapped: bool
    site_coords_invalid: bool
    distance: int | None
    allowed: bool
    tolerance_meters: float

    model_config = CAMEL_CONFIG
