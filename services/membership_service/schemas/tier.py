"""Tier schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TierCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    discount_percentage: float = Field(0, ge=0, le=100)
    points_multiplier: float = Field(1, gt=0)


class TierResponse(BaseModel):
    id: uuid.UUID
    name: str
    discount_percentage: float
    points_multiplier: float
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
