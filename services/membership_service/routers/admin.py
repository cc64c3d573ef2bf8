"""Staff endpoints for memberships, points and tiers."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import require_staff
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from libs.common.notifications import notify
from libs.db.session import get_async_db
from services.membership_service.models import MembershipStatus
from services.membership_service.schemas import (
    AdjustPointsRequest,
    AwardOrderPointsRequest,
    ExpirePointsRequest,
    LedgerEntryListResponse,
    MembershipCreateRequest,
    MembershipImportRequest,
    MembershipImportResult,
    MembershipListResponse,
    MembershipResponse,
    MembershipStatusUpdate,
    ReconcileResponse,
    ReconcileSummaryResponse,
    TierCreateRequest,
    TierResponse,
)
from services.membership_service.services import accounts, ledger
from services.membership_service.services.imports import import_memberships
from services.membership_service.services.tiers import create_tier, list_tiers
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
router = APIRouter(prefix="/admin/memberships", tags=["admin-memberships"])


# ---------------------------------------------------------------------------
# Tiers
# ---------------------------------------------------------------------------


@router.get("/tiers", response_model=list[TierResponse])
async def admin_list_tiers(
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    return await list_tiers(db)


@router.post("/tiers", response_model=TierResponse, status_code=status.HTTP_201_CREATED)
async def admin_create_tier(
    body: TierCreateRequest,
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    return await create_tier(
        db,
        body.name,
        discount_percentage=body.discount_percentage,
        points_multiplier=body.points_multiplier,
    )


# ---------------------------------------------------------------------------
# Bulk operations
# ---------------------------------------------------------------------------


@router.post("/import", response_model=MembershipImportResult)
async def admin_import_memberships(
    body: MembershipImportRequest,
    staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    """Create memberships from CSV rows: customer_id, tier_id, points_balance, status."""
    logger.info("Membership import of %d rows by %s", len(body.rows), staff.user_id)
    return await import_memberships(db, body.rows)


@router.post("/reconcile", response_model=ReconcileSummaryResponse)
async def admin_reconcile_all(
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    """Rebuild every cached balance from the ledger."""
    checked, corrected = await accounts.reconcile_all(db)
    return ReconcileSummaryResponse(checked=checked, corrected=corrected)


# ---------------------------------------------------------------------------
# Memberships
# ---------------------------------------------------------------------------


@router.get("", response_model=MembershipListResponse)
async def admin_list_memberships(
    search: Optional[str] = None,
    status_filter: Optional[MembershipStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    items, total = await accounts.list_memberships(
        db, search=search, status=status_filter, skip=skip, limit=limit
    )
    return MembershipListResponse(memberships=items, total=total, skip=skip, limit=limit)


@router.post("", response_model=MembershipResponse, status_code=status.HTTP_201_CREATED)
async def admin_create_membership(
    body: MembershipCreateRequest,
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    account = await accounts.create_membership(
        db,
        body.customer_id,
        tier_id=body.tier_id,
        initial_points=body.initial_points,
        membership_code=body.membership_code,
    )
    if body.contact:
        await notify(
            body.contact,
            "membership_created",
            {
                "membership_code": account.membership_code,
                "points_balance": account.points_balance,
            },
        )
    return account


@router.get("/code/{code}", response_model=MembershipResponse)
async def admin_get_membership_by_code(
    code: str,
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    return await accounts.get_membership_by_code(db, code)


@router.get("/{membership_id}", response_model=MembershipResponse)
async def admin_get_membership(
    membership_id: uuid.UUID,
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    return await accounts.get_membership(db, membership_id)


@router.patch("/{membership_id}/status", response_model=MembershipResponse)
async def admin_set_status(
    membership_id: uuid.UUID,
    body: MembershipStatusUpdate,
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    return await accounts.set_status(db, membership_id, body.status)


@router.delete("/{membership_id}", status_code=status.HTTP_204_NO_CONTENT)
async def admin_delete_membership(
    membership_id: uuid.UUID,
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    """Only memberships without points history can be deleted."""
    await accounts.delete_membership(db, membership_id)


@router.post("/{membership_id}/points", response_model=MembershipResponse)
async def admin_adjust_points(
    membership_id: uuid.UUID,
    body: AdjustPointsRequest,
    staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    """Add (EARNED) or redeem (REDEEMED) points."""
    logger.info(
        "Staff %s %s %d points on %s",
        staff.user_id,
        body.transaction_type.value,
        body.points,
        membership_id,
    )
    return await accounts.adjust_points(
        db,
        membership_id,
        body.transaction_type,
        body.points,
        description=body.description,
        order_id=body.order_id,
    )


@router.post("/{membership_id}/expire", response_model=MembershipResponse)
async def admin_expire_points(
    membership_id: uuid.UUID,
    body: ExpirePointsRequest,
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    return await accounts.expire_points(
        db, membership_id, body.points, description=body.description
    )


@router.post("/{membership_id}/order-points", response_model=MembershipResponse)
async def admin_award_order_points(
    membership_id: uuid.UUID,
    body: AwardOrderPointsRequest,
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    """Credit points for a collected order; repeated calls for one order are ignored."""
    return await accounts.award_order_points(
        db, membership_id, body.order_id, body.base_points
    )


@router.get("/{membership_id}/transactions", response_model=LedgerEntryListResponse)
async def admin_list_transactions(
    membership_id: uuid.UUID,
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    account = await accounts.get_membership(db, membership_id)
    entries = [entry async for entry in ledger.list_for(db, account.id)]
    return LedgerEntryListResponse(transactions=entries, balance=account.points_balance)


@router.post("/{membership_id}/reconcile", response_model=ReconcileResponse)
async def admin_reconcile_membership(
    membership_id: uuid.UUID,
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    account, drift = await accounts.reconcile_balance(db, membership_id)
    return ReconcileResponse(membership=account, drift=drift)
