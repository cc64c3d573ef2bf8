"""LedgerEntry model: the append-only points ledger that balances derive from."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.membership_service.models.enums import TransactionType, enum_values
from sqlalchemy import CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class LedgerEntry(Base):
    """Immutable. Points are always positive; the type carries the sign."""

    __tablename__ = "membership_transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    membership_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("customer_memberships.id"), nullable=False, index=True
    )
    transaction_type: Mapped[TransactionType] = mapped_column(
        SAEnum(
            TransactionType,
            name="membership_transaction_type_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    # 1, 2, 3... per membership in insertion order
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    # Weak reference: order_requests lives in another service
    order_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    __table_args__ = (
        CheckConstraint("points > 0", name="ck_membership_transaction_points_positive"),
        UniqueConstraint(
            "membership_id", "sequence", name="uq_membership_transactions_sequence"
        ),
    )

    @property
    def signed_points(self) -> int:
        return self.transaction_type.sign * self.points

    def __repr__(self) -> str:
        return f"<LedgerEntry {self.id} {self.transaction_type.value} {self.points}>"
