"""
Shift & correction-request models — the shift ledger.

A shift with ``clock_out IS NULL`` is open. The partial unique index below
allows at most one open shift per worker; the clock resolver relies on it
instead of read-then-write checks.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (Column, DateTime, Float, ForeignKey, Index, Integer,
                        String, text)
from sqlalchemy.orm import relationship

from geoclock.db.base import Base

OPEN_SHIFT_INDEX = "uq_shifts_one_open_per_worker"


class Shift(Base):
    __tablename__ = "shifts"
    __table_args__ = (
        Index("ix_shifts_worker_clock_in", "worker_id", "clock_in"),
        Index(
            OPEN_SHIFT_INDEX,
            "worker_id",
            unique=True,
            postgresql_where=text("clock_out IS NULL"),
            sqlite_where=text("clock_out IS NULL"),
        ),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    worker_id: int = Column(Integer, ForeignKey("workers.id"), nullable=False)  # type: ignore[assignment]
    location_id: int | None = Column(  # type: ignore[assignment]
        Integer, ForeignKey("locations.id", ondelete="SET NULL"), nullable=True
    )
    clock_in: datetime = Column(DateTime(timezone=True), nullable=False)  # type: ignore[assignment]
    clock_in_lat: float | None = Column(Float, nullable=True)  # type: ignore[assignment]
    clock_in_lng: float | None = Column(Float, nullable=True)  # type: ignore[assignment]
    clock_out: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    clock_out_lat: float | None = Column(Float, nullable=True)  # type: ignore[assignment]
    clock_out_lng: float | None = Column(Float, nullable=True)  # type: ignore[assignment]
    notes: str | None = Column(String(1000), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    worker = relationship("Worker", back_populates="shifts")


class ShiftCorrection(Base):
    __tablename__ = "shift_corrections"
    __table_args__ = (Index("ix_corrections_status_created", "status", "created_at"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    worker_id: int = Column(Integer, ForeignKey("workers.id"), nullable=False)  # type: ignore[assignment]
    shift_id: int | None = Column(  # type: ignore[assignment]
        Integer, ForeignKey("shifts.id", ondelete="SET NULL"), nullable=True
    )
    type: str = Column(String(20), nullable=False)  # type: ignore[assignment]
    # MISSING_IN | MISSING_OUT | ADJUST_IN | ADJUST_OUT | NEW_SHIFT
    requested_clock_in: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    requested_clock_out: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    reason: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    status: str = Column(  # type: ignore[assignment]
        String(20), nullable=False, default="PENDING", server_default="PENDING"
    )  # PENDING | APPROVED | REJECTED
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
