"""
Worker-facing endpoints — clock in/out, self-registration, corrections.

None of these require an admin session; workers identify themselves with
their employee code + PIN.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from geoclock.api.v1.deps import get_db
from geoclock.core.config import settings
from geoclock.core.rate_limit import limiter
from geoclock.core.security import get_pin_hash
from geoclock.models.location import Location
from geoclock.models.shift import Shift, ShiftCorrection
from geoclock.models.worker import Worker
from geoclock.schemas.clock import (ClockRequest, ClockResponse,
                                    RegisterRequest, RegisterResponse)
from geoclock.schemas.common import HealthResponse
from geoclock.schemas.location import LocationPublic
from geoclock.schemas.shift import (CorrectionCreate, CorrectionRead,
                                    ShiftRead)
from geoclock.services.clock import (ClockCredentials, GeoPosition,
                                     authenticate_worker,
                                     resolve_clock_action,
                                     validate_credentials)

router = APIRouter(tags=["clock"])
logger = logging.getLogger(__name__)


# ── Clock in / out (public, PIN protected) ─────────────────────────
@router.post("/clock", response_model=ClockResponse)
@limiter.limit(settings.CLOCK_RATE_LIMIT)
async def clock(
    request: Request,
    body: ClockRequest,
    db: AsyncSession = Depends(get_db),
) -> ClockResponse:
    """Clock in when the worker has no open shift, otherwise clock out."""
    result = await resolve_clock_action(
        db,
        ClockCredentials(body.employee_code, body.pin),
        GeoPosition(body.lat, body.lng),
        policy=settings.GEOFENCE_POLICY,
        tolerance_m=settings.GEOFENCE_TOLERANCE_METERS,
    )
    return ClockResponse(
        status=result.status,
        message=result.message,
        shift=ShiftRead.from_shift(result.shift, result.location_name),
        location_name=result.location_name,
    )


# ── Self-registration ───────────────────────────────────────────────
@router.post("/clock/register", response_model=RegisterResponse, status_code=201)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> RegisterResponse:
    """Create an inactive worker account; an admin must approve it."""
    existing = await db.execute(
        select(Worker.id).where(Worker.employee_code == body.employee_code)
    )
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=409,
            detail="That employee code is already in use. Check with your office to confirm your assigned code.",
        )

    if body.email:
        taken = await db.execute(select(Worker.id).where(Worker.email == body.email))
        if taken.scalar_one_or_none() is not None:
            raise HTTPException(
                status_code=409,
                detail="That email address is already associated with an account.",
            )

    worker = Worker(
        name=body.name,
        employee_code=body.employee_code,
        email=body.email,
        pin_hash=get_pin_hash(body.pin),
        is_active=False,
    )
    db.add(worker)
    await db.commit()
    await db.refresh(worker)
    logger.info("Worker %s registered (pending approval)", worker.employee_code)

    return RegisterResponse(
        id=worker.id,
        name=worker.name,
        employee_code=worker.employee_code,
        email=worker.email,
        is_active=worker.is_active,
        message="Account created. You'll be able to clock in once an admin approves your account.",
    )


# ── Correction requests ─────────────────────────────────────────────
@router.post("/clock/corrections", response_model=CorrectionRead, status_code=201)
@limiter.limit(settings.CLOCK_RATE_LIMIT)
async def submit_correction(
    request: Request,
    body: CorrectionCreate,
    db: AsyncSession = Depends(get_db),
) -> CorrectionRead:
    """File a missed-punch / adjustment request for admin review."""
    code, pin = validate_credentials(ClockCredentials(body.employee_code, body.pin))
    worker = await authenticate_worker(db, code, pin)

    if body.type in ("MISSING_IN", "ADJUST_IN") and body.requested_clock_in is None:
        raise HTTPException(
            status_code=400,
            detail="Requested clock-in time is required for this correction type.",
        )
    if body.type in ("MISSING_OUT", "ADJUST_OUT") and body.requested_clock_out is None:
        raise HTTPException(
            status_code=400,
            detail="Requested clock-out time is required for this correction type.",
        )
    if body.type == "NEW_SHIFT":
        if body.requested_clock_in is None:
            raise HTTPException(
                status_code=400,
                detail="For a NEW_SHIFT correction, provide at least the requested clock-in.",
            )
    elif body.shift_id is None:
        raise HTTPException(
            status_code=400,
            detail="shiftId is required for this correction type.",
        )
    if (
        body.requested_clock_in is not None
        and body.requested_clock_out is not None
        and body.requested_clock_out <= body.requested_clock_in
    ):
        raise HTTPException(
            status_code=400,
            detail="Requested clock-out must be after requested clock-in.",
        )

    shift = None
    if body.shift_id is not None:
        shift = await db.get(Shift, body.shift_id)
        if shift is None or shift.worker_id != worker.id:
            raise HTTPException(
                status_code=400,
                detail="Shift not found or does not belong to this worker.",
            )

    correction = ShiftCorrection(
        worker_id=worker.id,
        shift_id=shift.id if shift is not None else None,
        type=body.type,
        requested_clock_in=body.requested_clock_in,
        requested_clock_out=body.requested_clock_out,
        reason=body.reason,
        status="PENDING",
    )
    db.add(correction)
    await db.commit()
    await db.refresh(correction)
    logger.info(
        "Correction %d (%s) submitted by %s", correction.id, correction.type, worker.employee_code
    )

    read = CorrectionRead.model_validate(correction)
    return read.model_copy(
        update={"worker_name": worker.name, "employee_code": worker.employee_code}
    )


# ── Public location list for the clock page ─────────────────────────
@router.get("/locations", response_model=list[LocationPublic])
async def list_public_locations(
    db: AsyncSession = Depends(get_db),
) -> list[Location]:
    result = await db.execute(
        select(Location).where(Location.is_active.is_(True)).order_by(Location.name)
    )
    return list(result.scalars().all())


# ── Health ──────────────────────────────────────────────────────────
@router.get("/health", response_model=HealthResponse)
async def health(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """Public health check (DB connectivity)."""
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Health check failed: %s", exc)
        return HealthResponse(db=False, status="degraded")
    return HealthResponse(db=True, status="ok")
