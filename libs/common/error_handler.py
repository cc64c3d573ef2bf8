"""Global exception handlers giving every service the same error shape."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from libs.common.errors import PharmacyError
from libs.common.logging import get_logger

logger = get_logger(__name__)


async def pharmacy_error_handler(request: Request, exc: PharmacyError) -> JSONResponse:
    logger.info(
        "Rejected %s %s: %s (%s)",
        request.method,
        request.url.path,
        exc.detail,
        exc.code,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
    )


def add_exception_handlers(app: FastAPI) -> None:
    """Register domain error handlers on a FastAPI app."""
    app.add_exception_handler(PharmacyError, pharmacy_error_handler)
