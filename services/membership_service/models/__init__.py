"""Membership Service models package.

Re-exports all models and enums so Alembic and SQLAlchemy's mapper registry
see every class on import. When adding a model, add its import and its
__all__ entry.
"""

from services.membership_service.models.enums import (  # noqa: F401
    MembershipStatus,
    TransactionType,
)
from services.membership_service.models.membership import MembershipAccount  # noqa: F401
from services.membership_service.models.tier import MembershipTier  # noqa: F401
from services.membership_service.models.transaction import LedgerEntry  # noqa: F401

__all__ = [
    # Enums
    "MembershipStatus",
    "TransactionType",
    # Models
    "LedgerEntry",
    "MembershipAccount",
    "MembershipTier",
]
