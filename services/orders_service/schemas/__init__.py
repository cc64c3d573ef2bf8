"""Orders Service schemas package."""

from services.orders_service.schemas.order import (  # noqa: F401
    CancelOrderRequest,
    OrderAuditEntry,
    OrderCreateRequest,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
    SignatureRequest,
    StaffOrderResponse,
    VerifyPickupRequest,
)

__all__ = [
    "CancelOrderRequest",
    "OrderAuditEntry",
    "OrderCreateRequest",
    "OrderListResponse",
    "OrderResponse",
    "OrderStatusUpdate",
    "SignatureRequest",
    "StaffOrderResponse",
    "VerifyPickupRequest",
]
