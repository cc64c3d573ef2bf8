"""Points ledger, an append-only log of every point-affecting event.

The ledger never commits and never touches the cached balance on the
membership row; ``accounts`` wraps appends and balance updates in one
transaction.
"""

import uuid
from typing import AsyncIterator, Optional

from libs.common.errors import ValidationError
from libs.common.logging import get_logger
from services.membership_service.models import LedgerEntry, TransactionType
from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def coerce_type(transaction_type) -> TransactionType:
    try:
        return TransactionType(transaction_type)
    except ValueError:
        raise ValidationError(f"Unknown transaction type: {transaction_type!r}")


async def append(
    db: AsyncSession,
    membership_id: uuid.UUID,
    transaction_type: TransactionType,
    points: int,
    description: Optional[str] = None,
    order_id: Optional[uuid.UUID] = None,
) -> LedgerEntry:
    """Add a new immutable entry to the session and flush it.

    Callers hold the membership row lock, which serialises the sequence
    numbers handed out here.
    """
    transaction_type = coerce_type(transaction_type)
    if isinstance(points, bool) or not isinstance(points, int) or points <= 0:
        raise ValidationError("Points must be a positive whole number")

    last = await db.execute(
        select(func.max(LedgerEntry.sequence)).where(
            LedgerEntry.membership_id == membership_id
        )
    )
    entry = LedgerEntry(
        membership_id=membership_id,
        transaction_type=transaction_type,
        sequence=(last.scalar() or 0) + 1,
        points=points,
        description=description or None,
        order_id=order_id,
    )
    db.add(entry)
    await db.flush()
    logger.debug(
        "Ledger append %s %d for membership %s",
        transaction_type.value,
        points,
        membership_id,
    )
    return entry


async def list_for(
    db: AsyncSession,
    membership_id: uuid.UUID,
    *,
    newest_first: bool = True,
) -> AsyncIterator[LedgerEntry]:
    """Stream a membership's entries.

    Newest-first for display, chronological (``newest_first=False``) for
    rebuilding a balance. Every call issues a fresh query.
    """
    order = LedgerEntry.sequence.desc() if newest_first else LedgerEntry.sequence.asc()
    result = await db.execute(
        select(LedgerEntry).where(LedgerEntry.membership_id == membership_id).order_by(order)
    )
    for entry in result.scalars():
        yield entry


def _signed_points():
    return case(
        (LedgerEntry.transaction_type == TransactionType.EARNED, LedgerEntry.points),
        else_=-LedgerEntry.points,
    )


async def derived_balance(db: AsyncSession, membership_id: uuid.UUID) -> int:
    """Balance reconstructed from the ledger: EARNED minus REDEEMED and EXPIRED."""
    result = await db.execute(
        select(func.coalesce(func.sum(_signed_points()), 0)).where(
            LedgerEntry.membership_id == membership_id
        )
    )
    return int(result.scalar_one())


async def has_history(db: AsyncSession, membership_id: uuid.UUID) -> bool:
    result = await db.execute(
        select(LedgerEntry.id).where(LedgerEntry.membership_id == membership_id).limit(1)
    )
    return result.first() is not None


async def find_for_order(
    db: AsyncSession,
    membership_id: uuid.UUID,
    order_id: uuid.UUID,
    transaction_type: TransactionType,
) -> Optional[LedgerEntry]:
    result = await db.execute(
        select(LedgerEntry).where(
            LedgerEntry.membership_id == membership_id,
            LedgerEntry.order_id == order_id,
            LedgerEntry.transaction_type == transaction_type,
        )
    )
    return result.scalars().first()
