"""Payment service: plan checkout orders and payment verification.

A verified payment is handed to the PlanUpgradeApplier, which is the only
code path that changes an account's plan.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.logging import log_error, log_info
from app.modules.billing.models import PLAN_CURRENCY, PLAN_PRICES, PaymentStatus
from app.modules.billing.razorpay import RazorpayClient, RazorpayError
from app.modules.billing.repository import PaymentOrderRepository
from app.modules.billing.upgrade import PlanUpgradeApplier
from app.modules.credits.models import parse_plan

logger = logging.getLogger(__name__)


class PaymentServiceError(Exception):
    """Base exception for payment service errors."""
    pass


class PlanNotPurchasableError(PaymentServiceError):
    """Raised for plans that cannot be bought (e.g. the free plan)."""
    pass


class OrderNotFoundError(PaymentServiceError):
    """Raised when the order does not exist or belongs to another user."""
    pass


class InvalidSignatureError(PaymentServiceError):
    """Raised when a checkout signature does not match."""
    pass


class PaymentGatewayError(PaymentServiceError):
    """Raised when the payment gateway call fails."""
    pass


@dataclass
class OrderResult:
    order_id: str
    plan: str
    amount: int
    currency: str
    key_id: str
    mock_mode: bool


@dataclass
class VerificationResult:
    order_id: str
    payment_id: str
    plan: str
    applied: bool


class PaymentService:
    """Service for plan purchases."""

    def __init__(
        self,
        session: AsyncSession,
        gateway: Optional[RazorpayClient] = None,
        mock_mode: Optional[bool] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize payment service.

        Args:
            session: Async database session
            gateway: Razorpay client (created from settings if not provided)
            mock_mode: Skip the gateway entirely (defaults to settings)
            now: Clock returning the current UTC time
        """
        self.session = session
        self.gateway = gateway or RazorpayClient()
        self.mock_mode = settings.PAYMENTS_MOCK_MODE if mock_mode is None else mock_mode
        self._now = now or datetime.utcnow
        self.orders = PaymentOrderRepository(session)
        self.applier = PlanUpgradeApplier(session, now=self._now)

    async def create_order(self, account_id: uuid.UUID, plan: str) -> OrderResult:
        """Create a checkout order for a paid plan.

        Raises:
            UnknownPlanError: If the plan is not a recognised tier
            PlanNotPurchasableError: If the plan has no price
            PaymentGatewayError: If the gateway rejects the order
        """
        tier = parse_plan(plan)
        if tier.value not in PLAN_PRICES:
            raise PlanNotPurchasableError(f"Plan {tier.value} cannot be purchased")

        amount = PLAN_PRICES[tier.value]

        if self.mock_mode:
            gateway_order_id = f"mock_order_{uuid.uuid4().hex}"
            key_id = "mock_key"
        else:
            try:
                order = await self.gateway.create_order(
                    amount=amount,
                    currency=PLAN_CURRENCY,
                    receipt=f"order_{account_id.hex[:12]}_{int(self._now().timestamp())}",
                    notes={"user_id": str(account_id), "plan": tier.value},
                )
            except RazorpayError as e:
                log_error(logger, "Order creation failed", e, account_id=str(account_id), plan=tier.value)
                raise PaymentGatewayError(str(e)) from e
            gateway_order_id = order["id"]
            key_id = self.gateway.key_id

        await self.orders.create(
            user_id=account_id,
            gateway_order_id=gateway_order_id,
            plan=tier.value,
            amount=amount,
            currency=PLAN_CURRENCY,
        )
        await self.session.commit()

        log_info(
            logger,
            "Payment order created",
            account_id=str(account_id),
            order_id=gateway_order_id,
            plan=tier.value,
            mock_mode=self.mock_mode,
        )
        return OrderResult(
            order_id=gateway_order_id,
            plan=tier.value,
            amount=amount,
            currency=PLAN_CURRENCY,
            key_id=key_id,
            mock_mode=self.mock_mode,
        )

    async def verify_payment(
        self,
        account_id: uuid.UUID,
        order_id: str,
        payment_id: str,
        signature: Optional[str] = None,
    ) -> VerificationResult:
        """Verify a completed checkout and apply the purchased plan.

        Safe to call more than once for the same payment: the upgrade is
        applied only the first time.

        Raises:
            OrderNotFoundError: If the caller has no such order
            InvalidSignatureError: If the checkout signature does not match
            UnknownPlanError: If the order names an unrecognised plan
        """
        order = await self.orders.get_for_user(account_id, order_id)
        if order is None:
            await self.session.rollback()
            raise OrderNotFoundError(f"Order {order_id} not found")

        if not self.mock_mode and not self.gateway.verify_signature(order_id, payment_id, signature or ""):
            await self.session.rollback()
            raise InvalidSignatureError("Invalid payment signature")

        plan = order.plan
        if order.status != PaymentStatus.COMPLETED.value:
            await self.orders.mark_completed(order, payment_id, self._now())

        # Commits the order status together with the upgrade
        applied = await self.applier.apply(account_id, plan, payment_id)

        return VerificationResult(
            order_id=order_id,
            payment_id=payment_id,
            plan=plan,
            applied=applied,
        )
