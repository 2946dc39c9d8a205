"""
Location model — geofenced job sites.

A radius of 0 means "no geofence": the site matches any position and acts
as the ad hoc catch-all.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (Boolean, CheckConstraint, Column, DateTime, Float,
                        Integer, String)

from geoclock.db.base import Base


class Location(Base):
    __tablename__ = "locations"
    __table_args__ = (
        CheckConstraint("radius_meters >= 0", name="ck_location_radius_non_negative"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    code: str = Column(String(50), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    lat: float = Column(Float, nullable=False)  # type: ignore[assignment]
    lng: float = Column(Float, nullable=False)  # type: ignore[assignment]
    radius_meters: float = Column(Float, nullable=False, default=200.0)  # type: ignore[assignment]
    is_active: bool = Column(Boolean, default=True, server_default="true")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    @property
    def is_adhoc(self) -> bool:
        return (self.radius_meters or 0) <= 0
