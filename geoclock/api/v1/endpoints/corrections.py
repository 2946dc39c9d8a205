"""
Correction request review — the admin "exceptions" queue.

Approving a request applies it to the shift ledger in the same transaction
that marks it APPROVED; rejecting only changes the status.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from geoclock.api.v1.deps import get_db, require_admin
from geoclock.models.location import Location
from geoclock.models.shift import Shift, ShiftCorrection
from geoclock.models.user import User
from geoclock.models.worker import Worker
from geoclock.schemas.common import as_utc
from geoclock.schemas.shift import (CORRECTION_STATUSES, CorrectionRead,
                                    CorrectionResolve,
                                    CorrectionResolveResponse, ShiftRead)
from geoclock.services.ledger import (commit_shift_change, create_shift,
                                     load_shift_view)

router = APIRouter(prefix="/admin/corrections", tags=["corrections"])
logger = logging.getLogger(__name__)

_APPLIED_TAG = "Adjusted via approved correction request."
_CREATED_TAG = "Created via approved shift correction request."


def _join_notes(*parts: str | None) -> str | None:
    text = " ".join(p.strip() for p in parts if p and p.strip())
    return text or None


def _correction_query():
    return (
        select(ShiftCorrection, Worker.name, Worker.employee_code, Shift, Location.name)
        .join(Worker, ShiftCorrection.worker_id == Worker.id)
        .outerjoin(Shift, ShiftCorrection.shift_id == Shift.id)
        .outerjoin(Location, Shift.location_id == Location.id)
    )


def _to_read(row) -> CorrectionRead:
    correction, worker_name, employee_code, shift, location_name = row
    read = CorrectionRead.model_validate(correction)
    return read.model_copy(
        update={
            "worker_name": worker_name,
            "employee_code": employee_code,
            "shift_clock_in": as_utc(shift.clock_in) if shift is not None else None,
            "shift_clock_out": as_utc(shift.clock_out) if shift is not None else None,
            "location_name": location_name,
        }
    )


@router.get("", response_model=list[CorrectionRead])
async def list_corrections(
    status: str = Query(default="PENDING"),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> list[CorrectionRead]:
    status = status.upper()
    if status not in CORRECTION_STATUSES:
        status = "PENDING"
    result = await db.execute(
        _correction_query()
        .where(ShiftCorrection.status == status)
        .order_by(ShiftCorrection.created_at.desc())
    )
    return [_to_read(row) for row in result.all()]


async def _apply(db: AsyncSession, correction: ShiftCorrection) -> Shift:
    """Apply an approved correction to the ledger; returns the shift touched."""
    reason = f"Reason: {correction.reason}" if correction.reason else None

    if correction.type == "NEW_SHIFT":
        if correction.requested_clock_in is None:
            raise HTTPException(
                status_code=400, detail="NEW_SHIFT correction has no requested clock-in"
            )
        shift = await create_shift(
            db,
            worker_id=correction.worker_id,
            location_id=None,
            clock_in=correction.requested_clock_in,
            lat=None,
            lng=None,
            clock_out=correction.requested_clock_out,
            notes=_join_notes(_CREATED_TAG, reason),
        )
        correction.shift_id = shift.id
        return shift

    shift = await db.get(Shift, correction.shift_id) if correction.shift_id else None
    if shift is None:
        raise HTTPException(
            status_code=409, detail="The shift for this correction no longer exists"
        )

    if correction.type in ("MISSING_IN", "ADJUST_IN"):
        shift.clock_in = correction.requested_clock_in
    else:
        shift.clock_out = correction.requested_clock_out

    if shift.clock_out is not None and as_utc(shift.clock_out) <= as_utc(shift.clock_in):
        raise HTTPException(
            status_code=400, detail="Correction would end the shift before it starts"
        )

    shift.notes = _join_notes(shift.notes, _APPLIED_TAG, reason)
    return shift


@router.patch("/{correction_id}", response_model=CorrectionResolveResponse)
async def resolve_correction(
    correction_id: int,
    body: CorrectionResolve,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> CorrectionResolveResponse:
    """Approve (apply to the ledger) or reject a PENDING correction."""
    correction = await db.get(ShiftCorrection, correction_id)
    if correction is None:
        raise HTTPException(status_code=404, detail="Shift correction request not found")
    if correction.status != "PENDING":
        raise HTTPException(
            status_code=409, detail=f"Correction already {correction.status.lower()}"
        )

    worker_id = correction.worker_id
    shift_id = None
    if body.action == "approve":
        shift = await _apply(db, correction)
        shift_id = shift.id
        correction.status = "APPROVED"
    else:
        correction.status = "REJECTED"

    await commit_shift_change(db, worker_id)
    logger.info("Correction %d %s", correction_id, correction.status.lower())

    updated_shift = None
    if shift_id is not None:
        view = await load_shift_view(db, shift_id)
        if view is not None:
            updated_shift = ShiftRead.from_shift(*view)

    result = await db.execute(
        _correction_query()
        .where(ShiftCorrection.id == correction_id)
        .execution_options(populate_existing=True)
    )
    return CorrectionResolveResponse(
        request=_to_read(result.one()),
        updated_shift=updated_shift,
    )
