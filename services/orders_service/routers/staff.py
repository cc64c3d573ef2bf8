"""Staff endpoints: order queue and pickup verification."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import require_staff
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.orders_service.models import OrderStatus
from services.orders_service.schemas import (
    CancelOrderRequest,
    OrderAuditEntry,
    OrderListResponse,
    OrderStatusUpdate,
    SignatureRequest,
    StaffOrderResponse,
    VerifyPickupRequest,
)
from services.orders_service.services import orders, pickup
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/admin/orders", tags=["admin-orders"])


@router.get("", response_model=OrderListResponse)
async def admin_list_orders(
    search: Optional[str] = None,
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    items, total = await orders.list_orders(
        db, status=status_filter, search=search, skip=skip, limit=limit
    )
    return OrderListResponse(orders=items, total=total, skip=skip, limit=limit)


@router.post("/verify", response_model=StaffOrderResponse)
async def admin_verify_pickup_code(
    body: VerifyPickupRequest,
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    """Look up the order a customer is collecting by the code they show."""
    return await pickup.lookup(db, body.pickup_code)


@router.get("/{order_id}", response_model=StaffOrderResponse)
async def admin_get_order(
    order_id: uuid.UUID,
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    return await orders.get_order(db, order_id)


@router.get("/{order_id}/history", response_model=list[OrderAuditEntry])
async def admin_order_history(
    order_id: uuid.UUID,
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    return await orders.order_history(db, order_id)


@router.patch("/{order_id}/status", response_model=StaffOrderResponse)
async def admin_update_order_status(
    order_id: uuid.UUID,
    body: OrderStatusUpdate,
    staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    """Move the order along pending -> processing -> ready, or cancel it.

    Completion goes through ``/complete`` with the customer's signature.
    """
    return await pickup.advance_status(
        db,
        order_id,
        body.status,
        staff_id=staff.user_id,
        staff_notes=body.staff_notes,
    )


@router.post("/{order_id}/proof", response_model=StaffOrderResponse)
async def admin_capture_proof(
    order_id: uuid.UUID,
    body: SignatureRequest,
    staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    return await pickup.capture_proof(db, order_id, body.signature, staff_id=staff.user_id)


@router.post("/{order_id}/complete", response_model=StaffOrderResponse)
async def admin_complete_order(
    order_id: uuid.UUID,
    body: SignatureRequest,
    staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    """Hand over the order. Rejected without a signature."""
    return await pickup.complete(db, order_id, body.signature, staff_id=staff.user_id)


@router.post("/{order_id}/cancel", response_model=StaffOrderResponse)
async def admin_cancel_order(
    order_id: uuid.UUID,
    body: CancelOrderRequest,
    staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    return await pickup.cancel(db, order_id, staff_id=staff.user_id, reason=body.reason)
