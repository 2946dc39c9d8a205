"""Pydantic schemas for shifts and correction requests."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, field_validator

from geoclock.schemas.common import CAMEL_CONFIG, UtcDatetime

CORRECTION_TYPES = ("MISSING_IN", "MISSING_OUT", "ADJUST_IN", "ADJUST_OUT", "NEW_SHIFT")
CORRECTION_STATUSES = ("PENDING", "APPROVED", "REJECTED")


# ── Shift ───────────────────────────────────────────────────────────
class ShiftRead(BaseModel):
    id: int
    worker_id: int
    worker_name: str | None = None
    location_id: int | None
    location_name: str | None = None
    clock_in: UtcDatetime
    clock_in_lat: float | None = None
    clock_in_lng: float | None = None
    clock_out: UtcDatetime | None = None
    clock_out_lat: float | None = None
    clock_out_lng: float | None = None
    notes: str | None = None

    model_config = CAMEL_CONFIG

    @classmethod
    def from_shift(
        cls,
        shift: Any,
        location_name: str | None = None,
        worker_name: str | None = None,
    ) -> ShiftRead:
        read = cls.model_validate(shift)
        return read.model_copy(
            update={"location_name": location_name, "worker_name": worker_name}
        )


class ShiftUpdate(BaseModel):
    clock_in: UtcDatetime | None = None
    clock_out: UtcDatetime | None = None
    location_id: int | None = None
    notes: str | None = None

    model_config = CAMEL_CONFIG


# ── Corrections ─────────────────────────────────────────────────────
class CorrectionCreate(BaseModel):
    employee_code: str
    pin: str
    shift_id: int | None = None
    type: str
    requested_clock_in: UtcDatetime | None = None
    requested_clock_out: UtcDatetime | None = None
    reason: str | None = None

    model_config = CAMEL_CONFIG

    @field_validator("type")
    @classmethod
    def _type(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in CORRECTION_TYPES:
            raise ValueError(f"type must be one of: {', '.join(CORRECTION_TYPES)}")
        return v

    @field_validator("reason")
    @classmethod
    def _reason(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if len(v) > 500:
            raise ValueError("Reason must not exceed 500 characters")
        return v or None


class CorrectionRead(BaseModel):
    id: int
    worker_id: int
    worker_name: str | None = None
    employee_code: str | None = None
    shift_id: int | None
    type: str
    status: str
    requested_clock_in: UtcDatetime | None
    requested_clock_out: UtcDatetime | None
    reason: str | None
    shift_clock_in: UtcDatetime | None = None
    shift_clock_out: UtcDatetime | None = None
    location_name: str | None = None
    created_at: UtcDatetime | None = None

    model_config = CAMEL_CONFIG


class CorrectionResolve(BaseModel):
    action: str

    @field_validator("action")
    @classmethod
    def _action(cls, v: str) -> str:
        v = v.strip().lower()
        if v in ("approve", "approved"):
            return "approve"
        if v in ("reject", "rejected"):
            return "reject"
        raise ValueError("Unknown action. Use 'approve' or 'reject'.")


class CorrectionResolveResponse(BaseModel):
    request: CorrectionRead
    updated_shift: ShiftRead | None = None

    model_config = CAMEL_CONFIG
