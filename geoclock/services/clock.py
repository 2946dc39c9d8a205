"""
Clock resolver — turns (employee code, PIN, GPS position) into a clock-in
or clock-out.

Per worker the ledger cycles CLOCKED_OUT -> CLOCKED_IN -> CLOCKED_OUT: an
action with no open shift opens one, an action with an open shift closes
it. Each action is one transaction; on failure nothing is written.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from geoclock.core.config import GeofencePolicy, settings
from geoclock.core.exceptions import (AuthenticationFailed, ClockError,
                                      GeofenceViolation, InvalidInput,
                                      OpenShiftExists, StorageFailure)
from geoclock.core.geo import LocationMatch, match_location
from geoclock.core.security import verify_pin
from geoclock.models.shift import Shift
from geoclock.models.worker import Worker
from geoclock.services.ledger import (close_shift, create_shift,
                                      find_active_worker_by_code,
                                      find_open_shift, list_active_locations,
                                      load_shift_view)

logger = logging.getLogger(__name__)

CLOCKED_IN = "clocked_in"
CLOCKED_OUT = "clocked_out"

# Prefix of the note on shifts opened outside every geofence under WARN.
OUTSIDE_GEOFENCE_NOTE = "Clocked in outside all geofences"


@dataclass(frozen=True)
class ClockCredentials:
    employee_code: Any
    pin: Any


@dataclass(frozen=True)
class GeoPosition:
    lat: Any
    lng: Any


@dataclass
class ClockResult:
    status: str
    shift: Shift
    location_name: str | None
    message: str


def _ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _coerce_coordinate(value: Any, limit: float, name: str) -> float:
    if value is None or isinstance(value, bool):
        raise InvalidInput("Valid GPS coordinates are required.")
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInput("Valid GPS coordinates are required.") from None
    if not math.isfinite(number) or abs(number) > limit:
        raise InvalidInput(f"{name} is out of range.")
    return number


def validate_position(position: GeoPosition) -> tuple[float, float]:
    return (
        _coerce_coordinate(position.lat, 90.0, "Latitude"),
        _coerce_coordinate(position.lng, 180.0, "Longitude"),
    )


def _coerce_text(value: Any) -> str:
    # Numeric PINs and codes (e.g. 1234 sent as a JSON number) are accepted.
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, int):
        return str(value)
    if not isinstance(value, str):
        raise InvalidInput("Employee code and PIN must be text.")
    return value.strip()


def validate_credentials(credentials: ClockCredentials) -> tuple[str, str]:
    code = _coerce_text(credentials.employee_code)
    pin = _coerce_text(credentials.pin)
    if not code or not pin:
        raise InvalidInput("Employee code and PIN are required.")
    return code, pin


async def authenticate_worker(db: AsyncSession, code: str, pin: str) -> Worker:
    """Return the active worker for *code* if *pin* verifies, else raise."""
    worker = await find_active_worker_by_code(db, code)
    pin_ok = verify_pin(pin, worker.pin_hash if worker is not None else None)
    if worker is None or not pin_ok:
        logger.info("Rejected clock credentials for code %r", code)
        raise AuthenticationFailed()
    return worker


def _outside_note(match: LocationMatch) -> str:
    if match.nearest is None:
        return f"{OUTSIDE_GEOFENCE_NOTE} (no geofenced locations configured)."
    return (
        f"{OUTSIDE_GEOFENCE_NOTE} (nearest: {match.nearest.name}, "
        f"{round(match.nearest_distance_m or 0)} m)."
    )


async def _clock_in(
    db: AsyncSession,
    worker_id: int,
    lat: float,
    lng: float,
    now: datetime,
    policy: GeofencePolicy,
    tolerance_m: float,
) -> tuple[int, str]:
    locations = await list_active_locations(db)
    match = match_location(lat, lng, locations, tolerance_m)

    notes = None
    if not match.matched:
        if policy is GeofencePolicy.STRICT:
            logger.warning(
                "Geofence rejection for worker %d at (%.6f, %.6f)", worker_id, lat, lng
            )
            raise GeofenceViolation()
        notes = _outside_note(match)
        logger.warning("Worker %d clocked in outside geofence: %s", worker_id, notes)

    location_id = match.location.id if match.location is not None else None
    location_name = match.location.name if match.location is not None else None

    try:
        shift = await create_shift(
            db,
            worker_id=worker_id,
            location_id=location_id,
            clock_in=now,
            lat=lat,
            lng=lng,
            notes=notes,
        )
    except OpenShiftExists:
        # A concurrent request opened the shift first; report that one.
        existing = await find_open_shift(db, worker_id)
        if existing is None:
            raise StorageFailure() from None
        logger.info("Duplicate clock-in for worker %d collapsed into shift %d", worker_id, existing.id)
        return existing.id, "Already clocked in."

    if match.adhoc:
        message = "Clocked in (ad hoc location)."
    elif location_name:
        message = f"Clocked in at {location_name}."
    else:
        message = f"{OUTSIDE_GEOFENCE_NOTE}."
    return shift.id, message


async def _clock_out(
    db: AsyncSession,
    open_shift: Shift,
    lat: float,
    lng: float,
    now: datetime,
) -> tuple[int, str]:
    shift_id = open_shift.id
    started = _ensure_utc(open_shift.clock_in)
    end_time = now if now > started else started + timedelta(microseconds=1)

    if not await close_shift(db, shift_id, end_time, (lat, lng)):
        logger.info("Shift %d was already closed by a concurrent request", shift_id)
        return shift_id, "Already clocked out."
    return shift_id, "Clocked out."


async def resolve_clock_action(
    db: AsyncSession,
    credentials: ClockCredentials,
    position: GeoPosition,
    *,
    policy: GeofencePolicy | None = None,
    tolerance_m: float | None = None,
    now: datetime | None = None,
) -> ClockResult:
    """Authenticate a worker and toggle their shift state.

    Raises ``InvalidInput``, ``AuthenticationFailed``, ``GeofenceViolation``
    or ``StorageFailure``; none of them leaves a write behind.
    """
    code, pin = validate_credentials(credentials)
    lat, lng = validate_position(position)
    policy = policy or settings.GEOFENCE_POLICY
    tolerance_m = settings.GEOFENCE_TOLERANCE_METERS if tolerance_m is None else tolerance_m
    now = _ensure_utc(now or datetime.now(timezone.utc))

    try:
        worker = await authenticate_worker(db, code, pin)
        worker_id = worker.id

        open_shift = await find_open_shift(db, worker_id)
        if open_shift is not None:
            status = CLOCKED_OUT
            shift_id, message = await _clock_out(db, open_shift, lat, lng, now)
        else:
            status = CLOCKED_IN
            shift_id, message = await _clock_in(
                db, worker_id, lat, lng, now, policy, tolerance_m
            )

        await db.commit()

        view = await load_shift_view(db, shift_id)
        if view is None:
            raise StorageFailure()
        shift, location_name = view
    except ClockError:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        logger.error("Clock action for %r failed: %s", code, exc, exc_info=True)
        await db.rollback()
        raise StorageFailure() from exc

    logger.info("Worker %s %s (shift %d, location %s)", code, status, shift.id, location_name)
    return ClockResult(status=status, shift=shift, location_name=location_name, message=message)
