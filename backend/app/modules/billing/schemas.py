"""Pydantic schemas for the billing API."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class PlanInfo(BaseModel):
    """A plan tier as shown on the pricing page."""

    plan: str
    credits_per_month: int
    price: Optional[int] = Field(None, description="Price in paise; None for the free plan")
    currency: str


class PlanListResponse(BaseModel):
    plans: list[PlanInfo]


class CreateOrderRequest(BaseModel):
    plan: str = Field(..., description="Plan to purchase (pro or firm)")


class CreateOrderResponse(BaseModel):
    order_id: str
    plan: str
    amount: int
    currency: str
    key_id: str
    mock_mode: bool = False


class VerifyPaymentRequest(BaseModel):
    """Checkout result posted back by the client after payment."""

    order_id: str = Field(..., min_length=1, max_length=100)
    payment_id: str = Field(..., min_length=1, max_length=100)
    signature: Optional[str] = Field(None, description="Gateway checkout signature")


class VerifyPaymentResponse(BaseModel):
    success: bool = True
    plan: str
    applied: bool = Field(..., description="False when this payment had already been applied")


class CreditBalanceResponse(BaseModel):
    """Current balance after monthly reset reconciliation."""

    plan: str
    credits: int
    allotment: int
    credits_reset_at: datetime
    next_reset_at: datetime
