"""Membership request/response schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.membership_service.models.enums import MembershipStatus, TransactionType


class MembershipResponse(BaseModel):
    id: uuid.UUID
    membership_code: str
    customer_id: str
    tier_id: Optional[uuid.UUID] = None
    points_balance: int
    status: MembershipStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MembershipListResponse(BaseModel):
    memberships: list[MembershipResponse]
    total: int
    skip: int
    limit: int


class MembershipCreateRequest(BaseModel):
    customer_id: str = Field(..., min_length=1)
    tier_id: Optional[uuid.UUID] = None
    initial_points: int = Field(0, ge=0)
    membership_code: Optional[str] = None
    # Phone number or email that receives the welcome message
    contact: Optional[str] = None


class MembershipStatusUpdate(BaseModel):
    status: MembershipStatus


class AdjustPointsRequest(BaseModel):
    """Staff adjustment. Amount checks happen in the service so errors stay uniform."""

    transaction_type: TransactionType
    points: int
    description: Optional[str] = None
    order_id: Optional[uuid.UUID] = None


class ExpirePointsRequest(BaseModel):
    points: int
    description: Optional[str] = None


class AwardOrderPointsRequest(BaseModel):
    order_id: uuid.UUID
    base_points: int


class ReconcileResponse(BaseModel):
    membership: MembershipResponse
    drift: int


class ReconcileSummaryResponse(BaseModel):
    checked: int
    corrected: int
