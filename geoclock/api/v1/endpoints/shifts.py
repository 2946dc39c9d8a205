"""
Shift ledger admin endpoints — list, edit, delete.

Edits go through the same one-open-shift-per-worker index as clock
actions; re-opening a shift while the worker has another open one is a 409.
"""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from geoclock.api.v1.deps import get_db, require_admin
from geoclock.models.location import Location
from geoclock.models.shift import Shift
from geoclock.models.user import User
from geoclock.models.worker import Worker
from geoclock.schemas.common import DeleteResponse, as_utc
from geoclock.schemas.shift import ShiftRead, ShiftUpdate
from geoclock.services.clock import OUTSIDE_GEOFENCE_NOTE
from geoclock.services.ledger import commit_shift_change, load_shift_view

router = APIRouter(prefix="/admin/shifts", tags=["shifts"])
logger = logging.getLogger(__name__)


@router.get("", response_model=list[ShiftRead])
async def list_shifts(
    worker_id: int | None = None,
    location_id: int | None = None,
    open_only: bool = False,
    flagged_only: bool = False,
    start: datetime | None = None,
    end: datetime | None = None,
    skip: int = 0,
    limit: int = Query(default=100, le=1000),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> list[ShiftRead]:
    """Newest first; ``start``/``end`` filter on clock-in time.

    ``flagged_only`` keeps shifts opened outside every geofence under the
    WARN policy.
    """
    query = (
        select(Shift, Location.name, Worker.name)
        .join(Worker, Shift.worker_id == Worker.id)
        .outerjoin(Location, Shift.location_id == Location.id)
        .order_by(Shift.clock_in.desc())
        .offset(skip)
        .limit(limit)
    )
    if worker_id is not None:
        query = query.where(Shift.worker_id == worker_id)
    if location_id is not None:
        query = query.where(Shift.location_id == location_id)
    if open_only:
        query = query.where(Shift.clock_out.is_(None))
    if flagged_only:
        query = query.where(Shift.notes.contains(OUTSIDE_GEOFENCE_NOTE, autoescape=True))
    if start is not None:
        query = query.where(Shift.clock_in >= as_utc(start))
    if end is not None:
        query = query.where(Shift.clock_in < as_utc(end))

    result = await db.execute(query)
    return [
        ShiftRead.from_shift(shift, location_name, worker_name)
        for shift, location_name, worker_name in result.all()
    ]


@router.patch("/{shift_id}", response_model=ShiftRead)
async def update_shift(
    shift_id: int,
    body: ShiftUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ShiftRead:
    shift = await db.get(Shift, shift_id)
    if shift is None:
        raise HTTPException(status_code=404, detail="Shift not found")

    fields = body.model_fields_set
    if not fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    if "location_id" in fields and body.location_id is not None:
        if await db.get(Location, body.location_id) is None:
            raise HTTPException(status_code=400, detail="Location not found")

    if "clock_in" in fields:
        if body.clock_in is None:
            raise HTTPException(status_code=400, detail="clockIn cannot be null")
        shift.clock_in = body.clock_in
    if "clock_out" in fields:
        shift.clock_out = body.clock_out
    if "location_id" in fields:
        shift.location_id = body.location_id
    if "notes" in fields:
        shift.notes = body.notes

    if shift.clock_out is not None and as_utc(shift.clock_out) <= as_utc(shift.clock_in):
        raise HTTPException(status_code=400, detail="clockOut must be after clockIn")

    worker_id = shift.worker_id
    await commit_shift_change(db, worker_id)
    logger.info("Shift %d edited by admin (fields: %s)", shift_id, sorted(fields))

    view = await load_shift_view(db, shift_id)
    if view is None:
        raise HTTPException(status_code=404, detail="Shift not found")
    return ShiftRead.from_shift(*view)


@router.delete("/{shift_id}", response_model=DeleteResponse)
async def delete_shift(
    shift_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> DeleteResponse:
    shift = await db.get(Shift, shift_id)
    if shift is None:
        raise HTTPException(status_code=404, detail="Shift not found")
    await db.delete(shift)
    await db.commit()
    logger.info("Shift %d deleted by admin", shift_id)
    return DeleteResponse(success=True, message=f"Shift {shift_id} deleted")
