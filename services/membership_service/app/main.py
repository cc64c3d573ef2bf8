"""FastAPI application for the Membership Service."""

from fastapi import FastAPI
from libs.common.error_handler import add_exception_handlers
from libs.common.middleware import add_observability_middleware
from services.membership_service.routers import admin_router, membership_router


def create_app() -> FastAPI:
    """Create and configure the Membership Service FastAPI app."""
    app = FastAPI(
        title="Pharmacy Membership Service",
        version="0.1.0",
        description="Loyalty memberships, tiers and the points ledger.",
    )

    add_observability_middleware(app)
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "membership"}

    # Customer-facing routes
    app.include_router(membership_router)

    # Staff routes
    app.include_router(admin_router)

    return app


app = create_app()
