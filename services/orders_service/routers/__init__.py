"""Orders service routers."""

from services.orders_service.routers.customer import router as customer_router
from services.orders_service.routers.staff import router as staff_router

__all__ = [
    "customer_router",
    "staff_router",
]
