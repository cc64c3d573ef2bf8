"""MembershipTier model: a named bucket of loyalty benefits."""

import uuid
from datetime import datetime

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import CheckConstraint, DateTime, Float, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class MembershipTier(Base):
    __tablename__ = "membership_tiers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    discount_percentage: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    points_multiplier: Mapped[float] = mapped_column(Float, default=1, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "discount_percentage >= 0 AND discount_percentage <= 100",
            name="ck_tier_discount_range",
        ),
        CheckConstraint("points_multiplier > 0", name="ck_tier_multiplier_positive"),
    )

    def __repr__(self) -> str:
        return f"<MembershipTier {self.name} {self.discount_percentage}% x{self.points_multiplier}>"
