"""Order request/response schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from services.orders_service.models.enums import OrderAuditAction, OrderStatus


class OrderCreateRequest(BaseModel):
    """Customer-facing order submission."""

    customer_name: str = Field(..., min_length=1)
    customer_phone: str = Field(..., min_length=5)
    customer_email: Optional[EmailStr] = None
    medicine_name: str = Field(..., min_length=1)
    quantity: int = Field(1, gt=0)
    notes: Optional[str] = None

    @field_validator("customer_name", "customer_phone", "medicine_name", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value


class OrderResponse(BaseModel):
    id: uuid.UUID
    pickup_code: str
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    medicine_name: str
    quantity: int
    notes: Optional[str] = None
    status: OrderStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StaffOrderResponse(OrderResponse):
    """Staff view also carries internal notes and the captured signature."""

    customer_id: Optional[str] = None
    staff_notes: Optional[str] = None
    processed_by: Optional[str] = None
    customer_signature: Optional[str] = None


class OrderListResponse(BaseModel):
    orders: list[StaffOrderResponse]
    total: int
    skip: int
    limit: int


class VerifyPickupRequest(BaseModel):
    pickup_code: str


class SignatureRequest(BaseModel):
    # Emptiness is checked by the workflow so every caller gets the same error
    signature: str = ""


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    staff_notes: Optional[str] = None


class CancelOrderRequest(BaseModel):
    reason: Optional[str] = None


class OrderAuditEntry(BaseModel):
    id: uuid.UUID
    order_id: uuid.UUID
    action: OrderAuditAction
    old_value: Optional[dict] = None
    new_value: Optional[dict] = None
    performed_by: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
