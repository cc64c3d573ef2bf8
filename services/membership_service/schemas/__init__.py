"""Membership Service schemas package.

Re-exports all schemas so routers import from one place.
When adding a new schema, add its import and __all__ entry.
"""

from services.membership_service.schemas.imports import (  # noqa: F401
    MembershipImportRequest,
    MembershipImportResult,
)
from services.membership_service.schemas.membership import (  # noqa: F401
    AdjustPointsRequest,
    AwardOrderPointsRequest,
    ExpirePointsRequest,
    MembershipCreateRequest,
    MembershipListResponse,
    MembershipResponse,
    MembershipStatusUpdate,
    ReconcileResponse,
    ReconcileSummaryResponse,
)
from services.membership_service.schemas.tier import (  # noqa: F401
    TierCreateRequest,
    TierResponse,
)
from services.membership_service.schemas.transaction import (  # noqa: F401
    LedgerEntryListResponse,
    LedgerEntryResponse,
)

__all__ = [
    # Membership
    "AdjustPointsRequest",
    "AwardOrderPointsRequest",
    "ExpirePointsRequest",
    "MembershipCreateRequest",
    "MembershipListResponse",
    "MembershipResponse",
    "MembershipStatusUpdate",
    "ReconcileResponse",
    "ReconcileSummaryResponse",
    # Ledger
    "LedgerEntryListResponse",
    "LedgerEntryResponse",
    # Tier
    "TierCreateRequest",
    "TierResponse",
    # Import
    "MembershipImportRequest",
    "MembershipImportResult",
]
