"""Membership tier management."""

import uuid

from libs.common.errors import ConflictError, NotFoundError, ValidationError
from libs.common.logging import get_logger
from services.membership_service.models import MembershipTier
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def get_tier(db: AsyncSession, tier_id: uuid.UUID) -> MembershipTier:
    tier = await db.get(MembershipTier, tier_id)
    if not tier:
        raise NotFoundError("Membership tier not found")
    return tier


async def list_tiers(db: AsyncSession) -> list[MembershipTier]:
    result = await db.execute(
        select(MembershipTier).order_by(MembershipTier.discount_percentage.asc())
    )
    return list(result.scalars().all())


async def create_tier(
    db: AsyncSession,
    name: str,
    discount_percentage: float = 0,
    points_multiplier: float = 1,
) -> MembershipTier:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Tier name is required")
    if not 0 <= discount_percentage <= 100:
        raise ValidationError("Discount must be between 0 and 100 percent")
    if points_multiplier <= 0:
        raise ValidationError("Points multiplier must be greater than zero")

    existing = await db.execute(
        select(MembershipTier.id).where(func.lower(MembershipTier.name) == name.lower())
    )
    if existing.first() is not None:
        raise ConflictError(f"Tier {name!r} already exists")

    tier = MembershipTier(
        name=name,
        discount_percentage=discount_percentage,
        points_multiplier=points_multiplier,
    )
    db.add(tier)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(f"Tier {name!r} already exists")
    await db.refresh(tier)
    logger.info(
        "Created tier %s (%s%% off, %sx points)", name, discount_percentage, points_multiplier
    )
    return tier
