"""Billing models for plan purchases and processed payment records."""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.core.database import Base
from app.modules.credits.models import PlanTier


class PaymentStatus(str, Enum):
    """Payment order status values."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


# Prices in paise; only these plans can be bought
PLAN_PRICES = {
    PlanTier.PRO.value: 49900,
    PlanTier.FIRM.value: 149900,
}

PLAN_CURRENCY = "INR"


class PaymentOrder(Base):
    """A checkout order created before the user pays at the gateway."""

    __tablename__ = "payment_orders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    gateway_order_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    gateway_payment_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    plan: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default=PLAN_CURRENCY, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=PaymentStatus.PENDING.value, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=datetime.utcnow, server_default=func.now()
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index("ix_payment_orders_user_status", "user_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<PaymentOrder(order={self.gateway_order_id}, plan={self.plan}, status={self.status})>"


class ProcessedPayment(Base):
    """One row per payment id whose upgrade has been applied.

    The primary key on payment_id is what makes a replayed payment callback
    a no-op.
    """

    __tablename__ = "processed_payments"

    payment_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    plan: Mapped[str] = mapped_column(String(20), nullable=False)
    processed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=datetime.utcnow, server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<ProcessedPayment(payment={self.payment_id}, plan={self.plan})>"
