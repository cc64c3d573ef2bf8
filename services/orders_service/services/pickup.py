"""Pickup verification workflow.

    pending -> processing -> ready -> completed
        \\___________\\__________\\-> cancelled

``completed`` and ``cancelled`` are terminal. ``completed`` is only reachable
through ``complete`` and requires the customer's signature: no signature,
no completion. Once completed, the order and its signature are evidence of
handoff and every mutating call rejects them.
"""

import uuid
from typing import Optional

from libs.common.codes import normalize_code
from libs.common.datetime_utils import utc_now
from libs.common.errors import ConflictError, NotFoundError, SignatureRequiredError
from libs.common.logging import get_logger
from libs.common.notifications import notify
from services.orders_service.models import OrderAuditAction, OrderRequest, OrderStatus
from services.orders_service.services.orders import log_audit
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

# Position along the forward path; cancelled sits outside it
_STAGE = {
    OrderStatus.PENDING: 0,
    OrderStatus.PROCESSING: 1,
    OrderStatus.READY: 2,
}


def _require_signature(signature: Optional[str]) -> str:
    signature = (signature or "").strip()
    if not signature:
        raise SignatureRequiredError()
    return signature


def _ensure_open(order: OrderRequest) -> None:
    if order.status.is_terminal:
        raise ConflictError(
            f"Order {order.pickup_code} is already {order.status.value} and cannot be changed"
        )


async def _notify_customer(order: OrderRequest, template_id: str) -> None:
    params = {
        "customer_name": order.customer_name,
        "medicine_name": order.medicine_name,
        "pickup_code": order.pickup_code,
    }
    await notify(order.customer_phone, template_id, params)
    if order.customer_email:
        await notify(order.customer_email, template_id, params)


async def _lock_order(db: AsyncSession, order_id: uuid.UUID) -> OrderRequest:
    """SELECT ... FOR UPDATE, re-reading any copy already in the session."""
    result = await db.execute(
        select(OrderRequest)
        .where(OrderRequest.id == order_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    order = result.scalar_one_or_none()
    if not order:
        raise NotFoundError("Order not found")
    return order


async def lookup(db: AsyncSession, code: str) -> OrderRequest:
    """Find an order by pickup code. Case and surrounding spaces are ignored."""
    normalized = normalize_code(code)
    if not normalized:
        raise NotFoundError("Enter a pickup code")
    result = await db.execute(
        select(OrderRequest).where(OrderRequest.pickup_code == normalized)
    )
    order = result.scalar_one_or_none()
    if not order:
        raise NotFoundError("Order not found with this pickup code")
    return order


async def capture_proof(
    db: AsyncSession,
    order_id: uuid.UUID,
    signature: str,
    staff_id: Optional[str] = None,
) -> OrderRequest:
    """Attach the customer's signature without changing status.

    Capturing the same image again is a no-op.
    """
    signature = _require_signature(signature)
    order = await _lock_order(db, order_id)
    _ensure_open(order)

    if order.customer_signature == signature:
        return order

    replaced = order.customer_signature is not None
    order.customer_signature = signature
    order.updated_at = utc_now()
    log_audit(
        db,
        order.id,
        OrderAuditAction.PROOF_CAPTURED,
        performed_by=staff_id,
        new_value={"replaced": replaced},
    )
    await db.commit()
    await db.refresh(order)
    logger.info("Captured pickup signature for order %s", order.pickup_code)
    return order


async def complete(
    db: AsyncSession,
    order_id: uuid.UUID,
    signature: str,
    staff_id: Optional[str] = None,
) -> OrderRequest:
    """Hand the order over. Requires a non-empty signature."""
    signature = _require_signature(signature)
    order = await _lock_order(db, order_id)
    _ensure_open(order)

    old_status = order.status
    order.status = OrderStatus.COMPLETED
    order.customer_signature = signature
    order.processed_by = staff_id or order.processed_by
    order.updated_at = utc_now()
    log_audit(
        db,
        order.id,
        OrderAuditAction.COMPLETED,
        performed_by=staff_id,
        old_value={"status": old_status.value},
        new_value={"status": OrderStatus.COMPLETED.value},
    )
    await db.commit()
    await db.refresh(order)
    logger.info(
        "Order %s completed by %s (was %s)",
        order.pickup_code,
        staff_id or "unknown staff",
        old_status.value,
    )

    await _notify_customer(order, "order_completed")
    return order


async def advance_status(
    db: AsyncSession,
    order_id: uuid.UUID,
    new_status: OrderStatus,
    staff_id: Optional[str] = None,
    staff_notes: Optional[str] = None,
) -> OrderRequest:
    """Move an order forward (pending -> processing -> ready) or cancel it."""
    new_status = OrderStatus(new_status)
    if new_status == OrderStatus.COMPLETED:
        raise SignatureRequiredError(
            "Orders are completed through pickup verification with the customer's signature"
        )

    order = await _lock_order(db, order_id)
    _ensure_open(order)

    old_status = order.status
    if new_status != OrderStatus.CANCELLED and _STAGE[new_status] <= _STAGE[old_status]:
        raise ConflictError(
            f"Cannot move order {order.pickup_code} from {old_status.value} to {new_status.value}"
        )

    order.status = new_status
    if staff_notes is not None:
        order.staff_notes = staff_notes
    order.processed_by = staff_id or order.processed_by
    order.updated_at = utc_now()
    action = (
        OrderAuditAction.CANCELLED
        if new_status == OrderStatus.CANCELLED
        else OrderAuditAction.STATUS_CHANGED
    )
    log_audit(
        db,
        order.id,
        action,
        performed_by=staff_id,
        old_value={"status": old_status.value},
        new_value={"status": new_status.value, "notes": staff_notes},
    )
    await db.commit()
    await db.refresh(order)
    logger.info(
        "Order %s status %s->%s", order.pickup_code, old_status.value, new_status.value
    )

    if new_status == OrderStatus.READY:
        await _notify_customer(order, "order_ready")
    return order


async def cancel(
    db: AsyncSession,
    order_id: uuid.UUID,
    staff_id: Optional[str] = None,
    reason: Optional[str] = None,
) -> OrderRequest:
    return await advance_status(
        db, order_id, OrderStatus.CANCELLED, staff_id=staff_id, staff_notes=reason
    )
