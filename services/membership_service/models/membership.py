"""MembershipAccount model: a customer's loyalty enrollment."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.membership_service.models.enums import MembershipStatus, enum_values
from sqlalchemy import CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship


class MembershipAccount(Base):
    """One per customer. ``points_balance`` caches the ledger sum."""

    __tablename__ = "customer_memberships"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    membership_code: Mapped[str] = mapped_column(
        String, unique=True, index=True, nullable=False
    )
    customer_id: Mapped[str] = mapped_column(
        String, unique=True, index=True, nullable=False
    )
    tier_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("membership_tiers.id"), nullable=True
    )
    points_balance: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[MembershipStatus] = mapped_column(
        SAEnum(
            MembershipStatus,
            name="membership_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=MembershipStatus.ACTIVE,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    tier: Mapped[Optional["MembershipTier"]] = relationship(lazy="selectin")  # noqa: F821

    __table_args__ = (
        CheckConstraint("points_balance >= 0", name="ck_membership_balance_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<MembershipAccount {self.membership_code} customer={self.customer_id} balance={self.points_balance}>"
