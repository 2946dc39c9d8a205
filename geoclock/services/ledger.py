"""
Store access for the clock resolver: worker directory, location registry
and shift ledger.

Shift writes are single statements whose outcome is decided by the
database: the partial unique index for inserts, ``clock_out IS NULL`` in
the WHERE clause for closes. Concurrent clock actions for one worker
therefore cannot produce two open shifts.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from geoclock.core.exceptions import OpenShiftExists
from geoclock.models.location import Location
from geoclock.models.shift import OPEN_SHIFT_INDEX, Shift
from geoclock.models.worker import Worker


# ── Worker directory ────────────────────────────────────────────────
async def find_active_worker_by_code(db: AsyncSession, code: str) -> Worker | None:
    result = await db.execute(
        select(Worker).where(Worker.employee_code == code, Worker.is_active.is_(True))
    )
    return result.scalar_one_or_none()


# ── Location registry ───────────────────────────────────────────────
async def list_active_locations(db: AsyncSession) -> list[Location]:
    result = await db.execute(
        select(Location).where(Location.is_active.is_(True)).order_by(Location.id)
    )
    return list(result.scalars().all())


# ── Shift ledger ────────────────────────────────────────────────────
async def find_open_shift(db: AsyncSession, worker_id: int) -> Shift | None:
    result = await db.execute(
        select(Shift)
        .where(Shift.worker_id == worker_id, Shift.clock_out.is_(None))
        .order_by(Shift.clock_in.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


def is_open_shift_violation(exc: IntegrityError) -> bool:
    """True if *exc* came from the one-open-shift-per-worker index."""
    message = str(exc.orig)
    return OPEN_SHIFT_INDEX in message or "shifts.worker_id" in message


async def create_shift(
    db: AsyncSession,
    *,
    worker_id: int,
    location_id: int | None,
    clock_in: datetime,
    lat: float | None,
    lng: float | None,
    clock_out: datetime | None = None,
    notes: str | None = None,
) -> Shift:
    """Insert a shift and flush it.

    Raises ``OpenShiftExists`` (after rolling back) when the insert would
    give the worker a second open shift.
    """
    shift = Shift(
        worker_id=worker_id,
        location_id=location_id,
        clock_in=clock_in,
        clock_in_lat=lat,
        clock_in_lng=lng,
        clock_out=clock_out,
        notes=notes,
    )
    db.add(shift)
    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        if is_open_shift_violation(exc):
            raise OpenShiftExists(worker_id) from exc
        raise
    return shift


async def close_shift(
    db: AsyncSession,
    shift_id: int,
    end_time: datetime,
    end_position: tuple[float, float] | None,
) -> bool:
    """Close *shift_id* only if it is still open. Returns False otherwise."""
    end_lat, end_lng = end_position if end_position else (None, None)
    result = await db.execute(
        update(Shift)
        .where(Shift.id == shift_id, Shift.clock_out.is_(None))
        .values(clock_out=end_time, clock_out_lat=end_lat, clock_out_lng=end_lng)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def load_shift_view(db: AsyncSession, shift_id: int) -> tuple[Shift, str | None] | None:
    """Fetch a fresh copy of a shift together with its location name."""
    result = await db.execute(
        select(Shift, Location.name)
        .outerjoin(Location, Shift.location_id == Location.id)
        .where(Shift.id == shift_id)
        .execution_options(populate_existing=True)
    )
    row = result.first()
    if row is None:
        return None
    return row[0], row[1]


async def commit_shift_change(db: AsyncSession, worker_id: int) -> None:
    """Commit, translating an open-shift index violation into OpenShiftExists."""
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        if is_open_shift_violation(exc):
            raise OpenShiftExists(worker_id) from exc
        raise
