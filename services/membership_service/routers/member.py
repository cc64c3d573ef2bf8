"""Customer-facing membership endpoints."""

from fastapi import APIRouter, Depends
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.membership_service.schemas import (
    LedgerEntryListResponse,
    MembershipResponse,
    TierResponse,
)
from services.membership_service.services import ledger
from services.membership_service.services.accounts import get_membership_by_customer
from services.membership_service.services.tiers import list_tiers
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/memberships", tags=["memberships"])


@router.get("/me", response_model=MembershipResponse)
async def get_my_membership(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Current user's membership (code, tier, points balance)."""
    return await get_membership_by_customer(db, current_user.user_id)


@router.get("/me/transactions", response_model=LedgerEntryListResponse)
async def list_my_transactions(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Points history, newest first."""
    account = await get_membership_by_customer(db, current_user.user_id)
    entries = [entry async for entry in ledger.list_for(db, account.id)]
    return LedgerEntryListResponse(transactions=entries, balance=account.points_balance)


@router.get("/tiers", response_model=list[TierResponse])
async def get_tiers(db: AsyncSession = Depends(get_async_db)):
    """Public list of tiers and their benefits."""
    return await list_tiers(db)
