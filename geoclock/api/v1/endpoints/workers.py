"""
Worker directory admin endpoints — CRUD plus approval of self-registered
accounts.

Workers are never deleted; rejecting or deactivating only clears the
active flag so shift history stays intact.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from geoclock.api.v1.deps import get_db, require_admin
from geoclock.core.security import get_pin_hash
from geoclock.models.shift import Shift
from geoclock.models.user import User
from geoclock.models.worker import Worker
from geoclock.schemas.worker import WorkerCreate, WorkerRead, WorkerUpdate

router = APIRouter(prefix="/admin/workers", tags=["workers"])
logger = logging.getLogger(__name__)


async def _get_worker_or_404(db: AsyncSession, worker_id: int) -> Worker:
    worker = await db.get(Worker, worker_id)
    if worker is None:
        raise HTTPException(status_code=404, detail="Worker not found")
    return worker


async def _clocked_in_ids(db: AsyncSession, worker_ids: list[int]) -> set[int]:
    if not worker_ids:
        return set()
    result = await db.execute(
        select(Shift.worker_id).where(
            Shift.worker_id.in_(worker_ids), Shift.clock_out.is_(None)
        )
    )
    return set(result.scalars().all())


def _to_read(worker: Worker, clocked_in: bool) -> WorkerRead:
    read = WorkerRead.model_validate(worker)
    return read.model_copy(update={"clocked_in": clocked_in})


@router.get("", response_model=list[WorkerRead])
async def list_workers(
    status: str = Query(default="all", pattern="^(all|active|pending)$"),
    skip: int = 0,
    limit: int = Query(default=50, le=500),
    search: str | None = None,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> list[WorkerRead]:
    """List workers; ``status=pending`` shows accounts awaiting approval."""
    query = select(Worker).order_by(Worker.name).offset(skip).limit(limit)
    if status == "active":
        query = query.where(Worker.is_active.is_(True))
    elif status == "pending":
        query = query.where(Worker.is_active.is_(False))
    if search:
        # Escape SQL LIKE metacharacters to prevent wildcard injection
        safe_search = search.replace("%", r"\%").replace("_", r"\_")
        query = query.where(Worker.name.ilike(f"%{safe_search}%", escape="\\"))

    result = await db.execute(query)
    workers = list(result.scalars().all())
    open_ids = await _clocked_in_ids(db, [w.id for w in workers])
    return [_to_read(w, w.id in open_ids) for w in workers]


@router.post("", response_model=WorkerRead, status_code=201)
async def create_worker(
    body: WorkerCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> WorkerRead:
    existing = await db.execute(
        select(Worker.id).where(Worker.employee_code == body.employee_code)
    )
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=400,
            detail=f"Employee code '{body.employee_code}' already registered",
        )

    worker = Worker(
        name=body.name,
        employee_code=body.employee_code,
        email=body.email,
        pin_hash=get_pin_hash(body.pin),
        is_active=body.is_active,
    )
    db.add(worker)
    await db.commit()
    await db.refresh(worker)
    logger.info("Created worker %s (%s)", worker.name, worker.employee_code)
    return _to_read(worker, False)


@router.get("/{worker_id}", response_model=WorkerRead)
async def get_worker(
    worker_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> WorkerRead:
    worker = await _get_worker_or_404(db, worker_id)
    return _to_read(worker, worker.id in await _clocked_in_ids(db, [worker.id]))


@router.patch("/{worker_id}", response_model=WorkerRead)
async def update_worker(
    worker_id: int,
    body: WorkerUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> WorkerRead:
    worker = await _get_worker_or_404(db, worker_id)

    changes = body.model_dump(exclude_unset=True)
    pin = changes.pop("pin", None)
    if pin:
        worker.pin_hash = get_pin_hash(pin)
    for field, value in changes.items():
        if field in ("name", "is_active") and value is None:
            raise HTTPException(status_code=400, detail=f"{field} cannot be null")
        setattr(worker, field, value)

    await db.commit()
    await db.refresh(worker)
    logger.info("Updated worker %d (fields: %s)", worker_id, sorted(body.model_fields_set))
    return _to_read(worker, worker.id in await _clocked_in_ids(db, [worker.id]))


async def _set_active(db: AsyncSession, worker_id: int, active: bool) -> WorkerRead:
    worker = await _get_worker_or_404(db, worker_id)
    worker.is_active = active
    await db.commit()
    await db.refresh(worker)
    logger.info("Worker %s %s", worker.employee_code, "approved" if active else "deactivated")
    return _to_read(worker, worker.id in await _clocked_in_ids(db, [worker.id]))


@router.post("/{worker_id}/approve", response_model=WorkerRead)
async def approve_worker(
    worker_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> WorkerRead:
    """Activate a pending (self-registered) worker."""
    return await _set_active(db, worker_id, True)


@router.post("/{worker_id}/reject", response_model=WorkerRead)
async def reject_worker(
    worker_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> WorkerRead:
    """Deactivate a worker; they can no longer clock in or out."""
    return await _set_active(db, worker_id, False)
