"""Customer-facing order endpoints."""

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.orders_service.schemas import OrderCreateRequest, OrderResponse
from services.orders_service.services.orders import create_order, list_orders_for_customer
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def submit_order(
    body: OrderCreateRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Request a medicine. The response carries the pickup code to show at the counter."""
    return await create_order(db, body, customer_id=current_user.user_id)


@router.get("/me", response_model=list[OrderResponse])
async def list_my_orders(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await list_orders_for_customer(db, current_user.user_id)
