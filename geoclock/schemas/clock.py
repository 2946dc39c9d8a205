"""Pydantic schemas for the worker-facing clock endpoints."""

from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import BaseModel, field_validator

from geoclock.schemas.common import CAMEL_CONFIG
from geoclock.schemas.shift import ShiftRead

_CODE_RE = re.compile(r"^[A-Za-z0-9_-]{3,20}$")


# ── Clock ───────────────────────────────────────────────────────────
class ClockRequest(BaseModel):
    # Loosely typed: the resolver coerces these and answers 400 itself.
    employee_code: Any = None
    pin: Any = None
    lat: Any = None
    lng: Any = None

    model_config = CAMEL_CONFIG


class ClockResponse(BaseModel):
    status: Literal["clocked_in", "clocked_out"]
    message: str
    shift: ShiftRead
    location_name: str | None

    model_config = CAMEL_CONFIG


def check_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Name must not be empty")
    if len(v) > 200:
        raise ValueError("Name must not exceed 200 characters")
    return v


def check_email(v: str | None) -> str | None:
    if v is None or not v.strip():
        return None
    v = v.strip().lower()
    if "@" not in v:
        raise ValueError("Invalid email address")
    return v


# ── Self-registration ───────────────────────────────────────────────
class RegisterRequest(BaseModel):
    name: str
    employee_code: str
    pin: str
    email: str | None = None

    model_config = CAMEL_CONFIG

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return check_name(v)

    @field_validator("employee_code")
    @classmethod
    def _code(cls, v: str) -> str:
        v = v.strip()
        if not _CODE_RE.match(v):
            raise ValueError(
                "Employee code must be 3-20 letters, digits, hyphens or underscores"
            )
        return v

    @field_validator("pin")
    @classmethod
    def _pin(cls, v: str) -> str:
        v = v.strip()
        if not 4 <= len(v) <= 12:
            raise ValueError("PIN must be between 4 and 12 characters")
        return v

    @field_validator("email")
    @classmethod
    def _email(cls, v: str | None) -> str | None:
        return check_email(v)


class RegisterResponse(BaseModel):
    id: int
    name: str
    employee_code: str
    email: str | None
    is_active: bool
    message: str

    model_config = CAMEL_CONFIG
