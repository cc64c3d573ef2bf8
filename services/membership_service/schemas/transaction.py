"""Ledger entry schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from services.membership_service.models.enums import TransactionType


class LedgerEntryResponse(BaseModel):
    id: uuid.UUID
    membership_id: uuid.UUID
    transaction_type: TransactionType
    points: int
    description: Optional[str] = None
    order_id: Optional[uuid.UUID] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LedgerEntryListResponse(BaseModel):
    transactions: list[LedgerEntryResponse]
    balance: int
