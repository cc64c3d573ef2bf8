"""Membership accounts: the single entry point for balance changes.

Every balance change follows the same atomic pattern:

1. SELECT ... FOR UPDATE on the membership row
2. Derive the current balance from the ledger (never trust the cache)
3. Validate (positive points, enough balance, account status)
4. Append the ledger entry and rewrite the cached balance
5. Commit both writes together
"""

import math
import uuid
from decimal import Decimal
from typing import Callable, Optional

from libs.common import codes
from libs.common.codes import insert_with_unique_code, normalize_code
from libs.common.datetime_utils import utc_now
from libs.common.errors import (
    ConflictError,
    InsufficientBalanceError,
    NotFoundError,
    PharmacyError,
    ValidationError,
)
from libs.common.logging import get_logger
from services.membership_service.models import (
    MembershipAccount,
    MembershipStatus,
    TransactionType,
)
from services.membership_service.services import ledger
from services.membership_service.services.tiers import get_tier
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

INITIAL_POINTS_DESCRIPTION = "Initial points"


def _check_points(points) -> int:
    if isinstance(points, bool) or not isinstance(points, int) or points <= 0:
        raise ValidationError("Points must be a positive whole number")
    return points


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def get_membership(db: AsyncSession, membership_id: uuid.UUID) -> MembershipAccount:
    account = await db.get(MembershipAccount, membership_id)
    if not account:
        raise NotFoundError("Membership not found")
    return account


async def get_membership_by_code(db: AsyncSession, code: str) -> MembershipAccount:
    result = await db.execute(
        select(MembershipAccount).where(
            MembershipAccount.membership_code == normalize_code(code)
        )
    )
    account = result.scalar_one_or_none()
    if not account:
        raise NotFoundError(f"No membership with code {normalize_code(code)!r}")
    return account


async def find_membership_by_customer(
    db: AsyncSession, customer_id: str
) -> Optional[MembershipAccount]:
    result = await db.execute(
        select(MembershipAccount).where(MembershipAccount.customer_id == customer_id)
    )
    return result.scalar_one_or_none()


async def get_membership_by_customer(db: AsyncSession, customer_id: str) -> MembershipAccount:
    account = await find_membership_by_customer(db, customer_id)
    if not account:
        raise NotFoundError("You do not have a membership yet")
    return account


async def list_memberships(
    db: AsyncSession,
    *,
    search: Optional[str] = None,
    status: Optional[MembershipStatus] = None,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[MembershipAccount], int]:
    query = select(MembershipAccount)
    if search:
        like = f"%{search.strip()}%"
        query = query.where(
            or_(
                MembershipAccount.membership_code.ilike(like),
                MembershipAccount.customer_id.ilike(like),
            )
        )
    if status:
        query = query.where(MembershipAccount.status == status)

    total = (
        await db.execute(select(func.count()).select_from(query.subquery()))
    ).scalar() or 0
    result = await db.execute(
        query.order_by(MembershipAccount.created_at.desc()).offset(skip).limit(limit)
    )
    return list(result.scalars().all()), total


async def _lock_membership(db: AsyncSession, membership_id: uuid.UUID) -> MembershipAccount:
    result = await db.execute(
        select(MembershipAccount)
        .where(MembershipAccount.id == membership_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    account = result.scalar_one_or_none()
    if not account:
        raise NotFoundError("Membership not found")
    return account


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


async def create_membership(
    db: AsyncSession,
    customer_id: str,
    tier_id: Optional[uuid.UUID] = None,
    initial_points: int = 0,
    membership_code: Optional[str] = None,
    *,
    code_factory: Optional[Callable[[], str]] = None,
    initial_description: str = INITIAL_POINTS_DESCRIPTION,
) -> MembershipAccount:
    """Enroll a customer. At most one membership per customer.

    The account is committed first. Initial points are then recorded through
    the ledger as a separate step; if that step fails the account still
    stands, with a zero balance that matches its (empty) ledger.
    """
    customer_id = (customer_id or "").strip()
    if not customer_id:
        raise ValidationError("customer_id is required")
    if isinstance(initial_points, bool) or not isinstance(initial_points, int) or initial_points < 0:
        raise ValidationError("Initial points cannot be negative")
    if tier_id is not None:
        await get_tier(db, tier_id)

    if await find_membership_by_customer(db, customer_id):
        raise ConflictError("This customer already has a membership")

    async def _duplicate_customer_guard() -> None:
        if await find_membership_by_customer(db, customer_id):
            raise ConflictError("This customer already has a membership")

    if membership_code:
        fixed_code = normalize_code(membership_code)
        existing = await db.execute(
            select(MembershipAccount.id).where(MembershipAccount.membership_code == fixed_code)
        )
        if existing.first() is not None:
            raise ConflictError(f"Membership code {fixed_code} is already in use")
        generate, attempts = (lambda: fixed_code), 1
    else:
        generate, attempts = (code_factory or codes.membership_code), None

    account = await insert_with_unique_code(
        db,
        build=lambda code: MembershipAccount(
            membership_code=code,
            customer_id=customer_id,
            tier_id=tier_id,
            points_balance=0,
            status=MembershipStatus.ACTIVE,
        ),
        generate=generate,
        attempts=attempts,
        guard=_duplicate_customer_guard,
    )
    logger.info(
        "Created membership %s (%s) for customer %s",
        account.membership_code,
        account.id,
        customer_id,
    )

    if initial_points > 0:
        membership_id = account.id
        try:
            account = await _apply_entry(
                db,
                membership_id,
                TransactionType.EARNED,
                initial_points,
                description=initial_description,
            )
        except (PharmacyError, SQLAlchemyError):
            # The membership itself was created; reconcile_all repairs any drift
            logger.exception(
                "Membership %s created but %d initial points were not recorded",
                membership_id,
                initial_points,
            )
            account = await get_membership(db, membership_id)

    return account


# ---------------------------------------------------------------------------
# Balance changes (atomic)
# ---------------------------------------------------------------------------


async def _apply_entry(
    db: AsyncSession,
    membership_id: uuid.UUID,
    transaction_type: TransactionType,
    points: int,
    *,
    description: Optional[str] = None,
    order_id: Optional[uuid.UUID] = None,
    require_active: bool = False,
    dedupe_order: bool = False,
) -> MembershipAccount:
    points = _check_points(points)
    try:
        account = await _lock_membership(db, membership_id)

        if dedupe_order and order_id is not None:
            if await ledger.find_for_order(db, account.id, order_id, transaction_type):
                await db.rollback()
                logger.info(
                    "Order %s already recorded on membership %s, skipping",
                    order_id,
                    membership_id,
                )
                return await get_membership(db, membership_id)

        balance = await ledger.derived_balance(db, account.id)
        if transaction_type is not TransactionType.EARNED:
            if require_active and account.status != MembershipStatus.ACTIVE:
                raise ConflictError(
                    f"Membership is {account.status.value}; points cannot be redeemed"
                )
            if points > balance:
                raise InsufficientBalanceError(requested=points, available=balance)

        entry = await ledger.append(
            db,
            account.id,
            transaction_type,
            points,
            description=description,
            order_id=order_id,
        )
        balance_before = account.points_balance
        account.points_balance = balance + entry.signed_points
        account.updated_at = utc_now()
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(account)
    logger.info(
        "%s %d points on membership %s, balance %d->%d",
        transaction_type.value,
        points,
        account.membership_code,
        balance_before,
        account.points_balance,
    )
    return account


async def adjust_points(
    db: AsyncSession,
    membership_id: uuid.UUID,
    transaction_type: TransactionType,
    points: int,
    description: Optional[str] = None,
    order_id: Optional[uuid.UUID] = None,
) -> MembershipAccount:
    """Earn or redeem points. Redeeming more than the balance is rejected."""
    transaction_type = ledger.coerce_type(transaction_type)
    if transaction_type not in (TransactionType.EARNED, TransactionType.REDEEMED):
        raise ValidationError("Points can only be EARNED or REDEEMED here")
    return await _apply_entry(
        db,
        membership_id,
        transaction_type,
        points,
        description=description,
        order_id=order_id,
        require_active=True,
    )


async def expire_points(
    db: AsyncSession,
    membership_id: uuid.UUID,
    points: int,
    description: Optional[str] = None,
) -> MembershipAccount:
    return await _apply_entry(
        db,
        membership_id,
        TransactionType.EXPIRED,
        points,
        description=description or "Points expired",
    )


async def award_order_points(
    db: AsyncSession,
    membership_id: uuid.UUID,
    order_id: uuid.UUID,
    base_points: int,
) -> MembershipAccount:
    """Credit points for an order, scaled by the tier multiplier. Once per order."""
    base_points = _check_points(base_points)
    account = await get_membership(db, membership_id)
    multiplier = 1.0
    if account.tier_id is not None:
        multiplier = (await get_tier(db, account.tier_id)).points_multiplier

    # In float, 100 * 1.15 is 114.999...
    points = math.floor(base_points * Decimal(str(multiplier)))
    if points <= 0:
        raise ValidationError("Order is not worth any points at this tier")

    return await _apply_entry(
        db,
        membership_id,
        TransactionType.EARNED,
        points,
        description=f"Order points ({multiplier:g}x)",
        order_id=order_id,
        dedupe_order=True,
    )


# ---------------------------------------------------------------------------
# Status / deletion
# ---------------------------------------------------------------------------


async def set_status(
    db: AsyncSession, membership_id: uuid.UUID, status: MembershipStatus
) -> MembershipAccount:
    try:
        status = MembershipStatus(status)
    except ValueError:
        raise ValidationError(f"Unknown membership status: {status!r}")

    account = await get_membership(db, membership_id)
    old_status = account.status
    account.status = status
    account.updated_at = utc_now()
    await db.commit()
    await db.refresh(account)
    logger.info(
        "Membership %s status %s->%s",
        account.membership_code,
        old_status.value,
        status.value,
    )
    return account


async def delete_membership(db: AsyncSession, membership_id: uuid.UUID) -> None:
    """Hard-delete an account that never had any points activity.

    Accounts with ledger history are kept as evidence; deactivate them with
    ``set_status(..., MembershipStatus.INACTIVE)`` instead.
    """
    account = await get_membership(db, membership_id)
    if await ledger.has_history(db, account.id):
        raise ConflictError(
            "Membership has points history and cannot be deleted; set it to inactive instead"
        )
    code = account.membership_code
    await db.delete(account)
    await db.commit()
    logger.info("Deleted membership %s (no ledger history)", code)


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------


async def reconcile_balance(
    db: AsyncSession, membership_id: uuid.UUID
) -> tuple[MembershipAccount, int]:
    """Rewrite the cached balance from the ledger. Returns (account, drift)."""
    try:
        account = await _lock_membership(db, membership_id)
        derived = await ledger.derived_balance(db, account.id)
        drift = derived - account.points_balance
        if drift:
            logger.warning(
                "Membership %s balance drift %+d (cached=%d, ledger=%d), correcting",
                account.membership_code,
                drift,
                account.points_balance,
                derived,
            )
            account.points_balance = derived
            account.updated_at = utc_now()
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(account)
    return account, drift


async def reconcile_all(db: AsyncSession) -> tuple[int, int]:
    """Sweep every membership. Returns (checked, corrected)."""
    ids = (await db.execute(select(MembershipAccount.id))).scalars().all()
    corrected = 0
    for membership_id in ids:
        _, drift = await reconcile_balance(db, membership_id)
        if drift:
            corrected += 1
    logger.info("Reconciled %d memberships, %d corrected", len(ids), corrected)
    return len(ids), corrected
