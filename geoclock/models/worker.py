"""
Worker model — people who clock in and out with an employee code + PIN.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from geoclock.db.base import Base


class Worker(Base):
    __tablename__ = "workers"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    employee_code: str = Column(String(20), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    email: str | None = Column(String(320), nullable=True)  # type: ignore[assignment]
    pin_hash: str = Column(String(128), nullable=False)  # type: ignore[assignment]
    # Self-registered workers stay inactive until an admin approves them
    is_active: bool = Column(Boolean, default=False, server_default="false")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    shifts = relationship("Shift", back_populates="worker")
