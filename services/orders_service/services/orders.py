"""Order submission, queries and the audit trail."""

import uuid
from typing import Optional

from libs.common.codes import insert_with_unique_code, pickup_code
from libs.common.errors import NotFoundError
from libs.common.logging import get_logger
from services.orders_service.models import (
    OrderAuditAction,
    OrderAuditLog,
    OrderRequest,
    OrderStatus,
)
from services.orders_service.schemas import OrderCreateRequest
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def log_audit(
    db: AsyncSession,
    order_id: uuid.UUID,
    action: OrderAuditAction,
    performed_by: Optional[str] = None,
    old_value: Optional[dict] = None,
    new_value: Optional[dict] = None,
) -> OrderAuditLog:
    """Stage an audit entry; it is committed together with the change it describes."""
    entry = OrderAuditLog(
        order_id=order_id,
        action=action,
        performed_by=performed_by,
        old_value=old_value,
        new_value=new_value,
    )
    db.add(entry)
    return entry


async def create_order(
    db: AsyncSession,
    payload: OrderCreateRequest,
    customer_id: Optional[str] = None,
) -> OrderRequest:
    """Record a customer's request and hand out a unique pickup code."""
    order_id = uuid.uuid4()

    def _build(code: str) -> OrderRequest:
        log_audit(
            db,
            order_id,
            OrderAuditAction.CREATED,
            performed_by=customer_id,
            new_value={"status": OrderStatus.PENDING.value, "pickup_code": code},
        )
        return OrderRequest(
            id=order_id,
            pickup_code=code,
            customer_id=customer_id,
            customer_name=payload.customer_name.strip(),
            customer_phone=payload.customer_phone.strip(),
            customer_email=payload.customer_email,
            medicine_name=payload.medicine_name.strip(),
            quantity=payload.quantity,
            notes=payload.notes,
            status=OrderStatus.PENDING,
        )

    order = await insert_with_unique_code(db, build=_build, generate=pickup_code)
    logger.info(
        "Order %s created for %s (%s x%d)",
        order.pickup_code,
        order.customer_name,
        order.medicine_name,
        order.quantity,
    )
    return order


async def get_order(db: AsyncSession, order_id: uuid.UUID) -> OrderRequest:
    order = await db.get(OrderRequest, order_id)
    if not order:
        raise NotFoundError("Order not found")
    return order


async def list_orders(
    db: AsyncSession,
    *,
    status: Optional[OrderStatus] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[OrderRequest], int]:
    query = select(OrderRequest)
    if status:
        query = query.where(OrderRequest.status == status)
    if search:
        like = f"%{search.strip()}%"
        query = query.where(
            or_(
                OrderRequest.pickup_code.ilike(like),
                OrderRequest.customer_name.ilike(like),
                OrderRequest.customer_phone.ilike(like),
            )
        )

    total = (
        await db.execute(select(func.count()).select_from(query.subquery()))
    ).scalar() or 0
    result = await db.execute(
        query.order_by(OrderRequest.created_at.desc()).offset(skip).limit(limit)
    )
    return list(result.scalars().all()), total


async def list_orders_for_customer(db: AsyncSession, customer_id: str) -> list[OrderRequest]:
    result = await db.execute(
        select(OrderRequest)
        .where(OrderRequest.customer_id == customer_id)
        .order_by(OrderRequest.created_at.desc())
    )
    return list(result.scalars().all())


async def order_history(db: AsyncSession, order_id: uuid.UUID) -> list[OrderAuditLog]:
    await get_order(db, order_id)
    result = await db.execute(
        select(OrderAuditLog)
        .where(OrderAuditLog.order_id == order_id)
        .order_by(OrderAuditLog.created_at.asc())
    )
    return list(result.scalars().all())
