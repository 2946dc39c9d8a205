"""
First-run seed data: the bootstrap admin and the ad hoc location.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from geoclock.core.config import settings
from geoclock.core.security import get_password_hash
from geoclock.models.location import Location
from geoclock.models.user import User

logger = logging.getLogger(__name__)


async def seed_admin(session: AsyncSession) -> None:
    result = await session.execute(
        select(User).where(User.email == settings.FIRST_ADMIN_EMAIL)
    )
    if result.scalar_one_or_none() is not None:
        return
    session.add(
        User(
            email=settings.FIRST_ADMIN_EMAIL,
            hashed_password=get_password_hash(settings.FIRST_ADMIN_PASSWORD),
            full_name="System Administrator",
            role="admin",
        )
    )
    await session.commit()
    logger.info(
        "Default admin created: %s (password: <redacted>)", settings.FIRST_ADMIN_EMAIL
    )


async def seed_adhoc_location(session: AsyncSession) -> None:
    """Ensure the zero-radius catch-all location exists.

    It sits at 0,0 with radius 0, so geofence matching never selects it by
    distance; it only wins as the fallback when no real site matches.
    """
    result = await session.execute(
        select(Location).where(Location.code == settings.ADHOC_LOCATION_CODE)
    )
    if result.scalar_one_or_none() is not None:
        return
    session.add(
        Location(
            name=settings.ADHOC_LOCATION_NAME,
            code=settings.ADHOC_LOCATION_CODE,
            lat=0.0,
            lng=0.0,
            radius_meters=0.0,
            is_active=True,
        )
    )
    await session.commit()
    logger.info("Ad hoc location '%s' created", settings.ADHOC_LOCATION_CODE)


async def seed_defaults(session: AsyncSession) -> None:
    await seed_admin(session)
    if settings.SEED_ADHOC_LOCATION:
        await seed_adhoc_location(session)
