"""Pydantic schemas for worker CRUD."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, field_validator

from geoclock.schemas.clock import RegisterRequest, check_email, check_name
from geoclock.schemas.common import CAMEL_CONFIG


class WorkerCreate(RegisterRequest):
    """Admin-created workers are active unless stated otherwise."""

    is_active: bool = True


class WorkerUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    pin: str | None = None
    is_active: bool | None = None

    model_config = CAMEL_CONFIG

    @field_validator("name")
    @classmethod
    def _name(cls, v: str | None) -> str | None:
        # None is rejected by the endpoint with a 400.
        return v if v is None else check_name(v)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str | None) -> str | None:
        return check_email(v)

    @field_validator("pin")
    @classmethod
    def _pin(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not 4 <= len(v) <= 12:
            raise ValueError("PIN must be between 4 and 12 characters")
        return v


class WorkerRead(BaseModel):
    id: int
    name: str
    employee_code: str
    email: str | None
    is_active: bool
    created_at: datetime | None
    clocked_in: bool = False

    model_config = CAMEL_CONFIG
