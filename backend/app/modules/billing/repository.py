"""Repository for payment orders and processed payment records.

Methods flush only; services own the transaction.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.billing.models import PaymentOrder, PaymentStatus, ProcessedPayment


class PaymentOrderRepository:
    """Repository for payment order operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        user_id: uuid.UUID,
        gateway_order_id: str,
        plan: str,
        amount: int,
        currency: str,
    ) -> PaymentOrder:
        order = PaymentOrder(
            user_id=user_id,
            gateway_order_id=gateway_order_id,
            plan=plan,
            amount=amount,
            currency=currency,
            status=PaymentStatus.PENDING.value,
        )
        self.session.add(order)
        await self.session.flush()
        return order

    async def get_for_user(
        self, user_id: uuid.UUID, gateway_order_id: str
    ) -> Optional[PaymentOrder]:
        """Get an order by gateway order ID, scoped to its owner."""
        result = await self.session.execute(
            select(PaymentOrder).where(
                PaymentOrder.gateway_order_id == gateway_order_id,
                PaymentOrder.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def mark_completed(
        self,
        order: PaymentOrder,
        gateway_payment_id: str,
        completed_at: datetime,
    ) -> PaymentOrder:
        order.gateway_payment_id = gateway_payment_id
        order.status = PaymentStatus.COMPLETED.value
        order.completed_at = completed_at
        await self.session.flush()
        return order


class ProcessedPaymentRepository:
    """Repository for the processed payment idempotency records."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record(self, payment_id: str, user_id: uuid.UUID, plan: str) -> None:
        """Insert the record for a payment id.

        Issued as a plain INSERT so the database unique key, not the
        session's identity map, decides whether the id was seen before.

        Raises:
            IntegrityError: If the payment id was already recorded
        """
        await self.session.execute(
            insert(ProcessedPayment).values(
                payment_id=payment_id,
                user_id=user_id,
                plan=plan,
            )
        )
