"""Orders Service models package.

Re-exports every model and enum so Alembic sees them on import.
"""

from services.orders_service.models.audit import OrderAuditLog  # noqa: F401
from services.orders_service.models.enums import (  # noqa: F401
    OrderAuditAction,
    OrderStatus,
)
from services.orders_service.models.order import OrderRequest  # noqa: F401

__all__ = [
    "OrderAuditAction",
    "OrderStatus",
    "OrderAuditLog",
    "OrderRequest",
]
