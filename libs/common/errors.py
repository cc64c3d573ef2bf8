"""Domain errors shared by the pharmacy services.

Service functions raise these instead of ``HTTPException`` so they can be
called in-process as well as over HTTP. ``libs.common.error_handler`` turns
them into responses that tell invalid input, conflicting data and missing
records apart.
"""

from typing import Optional


class PharmacyError(Exception):
    """Base class for every expected, user-correctable failure."""

    status_code: int = 400
    code: str = "error"
    default_detail: str = "Request could not be processed"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(PharmacyError):
    """Malformed input: non-positive points, missing required field, ..."""

    status_code = 422
    code = "invalid_input"
    default_detail = "Your input was invalid"


class ConflictError(PharmacyError):
    """The request conflicts with existing data (duplicates, terminal states)."""

    status_code = 409
    code = "conflict"
    default_detail = "This conflicts with existing data"


class InsufficientBalanceError(ConflictError):
    code = "insufficient_balance"
    default_detail = "Not enough points"

    def __init__(self, requested: int, available: int):
        self.requested = requested
        self.available = available
        super().__init__(
            f"Cannot redeem {requested} points, only {available} available"
        )


class NotFoundError(PharmacyError):
    status_code = 404
    code = "not_found"
    default_detail = "That record does not exist"


class SignatureRequiredError(ValidationError):
    code = "signature_required"
    default_detail = "Customer signature is required to complete pickup"
