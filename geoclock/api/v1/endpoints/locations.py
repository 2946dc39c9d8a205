"""
Location registry admin endpoints + geofence clock-check diagnostics.

DELETE only deactivates: shifts keep pointing at the site.
"""

from __future__ import annotations

import logging
import math

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from geoclock.api.v1.deps import get_db, require_admin
from geoclock.core.config import settings
from geoclock.core.geo import haversine_distance, is_within_radius
from geoclock.models.location import Location
from geoclock.models.user import User
from geoclock.schemas.common import DeleteResponse
from geoclock.schemas.location import (ClockCheckRequest, ClockCheckResponse,
                                       LocationCreate, LocationRead,
                                       LocationUpdate)

router = APIRouter(prefix="/admin/locations", tags=["locations"])
logger = logging.getLogger(__name__)


async def _get_location_or_404(db: AsyncSession, location_id: int) -> Location:
    location = await db.get(Location, location_id)
    if location is None:
        raise HTTPException(status_code=404, detail="Location not found")
    return location


@router.get("", response_model=list[LocationRead])
async def list_locations(
    include_inactive: bool = Query(default=True),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> list[Location]:
    query = select(Location).order_by(Location.name)
    if not include_inactive:
        query = query.where(Location.is_active.is_(True))
    result = await db.execute(query)
    return list(result.scalars().all())


@router.post("", response_model=LocationRead, status_code=201)
async def create_location(
    body: LocationCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> Location:
    existing = await db.execute(select(Location.id).where(Location.code == body.code))
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(status_code=400, detail=f"Location code '{body.code}' already exists")

    location = Location(**body.model_dump())
    db.add(location)
    await db.commit()
    await db.refresh(location)
    logger.info(
        "Created location %s (%s) radius=%.1fm", location.name, location.code, location.radius_meters
    )
    return location


@router.get("/{location_id}", response_model=LocationRead)
async def get_location(
    location_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> Location:
    return await _get_location_or_404(db, location_id)


@router.patch("/{location_id}", response_model=LocationRead)
async def update_location(
    location_id: int,
    body: LocationUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> Location:
    location = await _get_location_or_404(db, location_id)

    changes = body.model_dump(exclude_unset=True)
    for field in ("name", "lat", "lng", "radius_meters", "is_active"):
        if field in changes and changes[field] is None:
            raise HTTPException(status_code=400, detail=f"{field} cannot be null")
    for field, value in changes.items():
        setattr(location, field, value)

    await db.commit()
    await db.refresh(location)
    logger.info("Updated location %d: %s", location_id, changes)
    return location


@router.delete("/{location_id}", response_model=DeleteResponse)
async def delete_location(
    location_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> DeleteResponse:
    """Soft-delete (deactivate) a location. Shift history is preserved."""
    location = await _get_location_or_404(db, location_id)
    location.is_active = False
    await db.commit()
    logger.info("Deactivated location %d (%s)", location_id, location.name)
    return DeleteResponse(success=True, message=f"Location '{location.name}' deactivated")


@router.post("/{location_id}/clock-check", response_model=ClockCheckResponse)
async def clock_check(
    location_id: int,
    body: ClockCheckRequest,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ClockCheckResponse:
    """Explain whether a position would pass this location's geofence."""
    location = await _get_location_or_404(db, location_id)
    lat, lng = body.lat, body.lng
    tolerance = settings.GEOFENCE_TOLERANCE_METERS

    provided_invalid = (
        lat is None
        or lng is None
        or not (math.isfinite(lat) and math.isfinite(lng))
        or abs(lat) > 90
        or abs(lng) > 180
    )
    maybe_swapped = (
        lat is not None and lng is not None and abs(lat) > 90 and abs(lng) <= 90
    )
    site_invalid = abs(location.lat) > 90 or abs(location.lng) > 180

    distance = None
    allowed = False
    if not provided_invalid:
        distance = haversine_distance(lat, lng, location.lat, location.lng)  # type: ignore[arg-type]
        allowed = is_within_radius(
            lat, lng, location.lat, location.lng, location.radius_meters, tolerance  # type: ignore[arg-type]
        )

    return ClockCheckResponse(
        location_id=location.id,
        location_name=location.name,
        site_lat=location.lat,
        site_lng=location.lng,
        site_radius_meters=location.radius_meters,
        provided_lat=lat,
        provided_lng=lng,
        provided_invalid=provided_invalid,
        maybe_swapped=maybe_swapped,
        site_coords_invalid=site_invalid,
        distance=round(distance) if distance is not None else None,
        allowed=allowed,
        tolerance_meters=tolerance,
    )
