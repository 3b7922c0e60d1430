"""Billing module.

Implements plan checkout orders, payment verification and the plan upgrade
applier.
"""

from app.modules.billing.router import router
from app.modules.billing.service import PaymentService
from app.modules.billing.upgrade import PlanUpgradeApplier
from app.modules.billing.models import (
    PLAN_CURRENCY,
    PLAN_PRICES,
    PaymentOrder,
    PaymentStatus,
    ProcessedPayment,
)

__all__ = [
    "router",
    "PaymentService",
    "PlanUpgradeApplier",
    "PLAN_CURRENCY",
    "PLAN_PRICES",
    "PaymentOrder",
    "PaymentStatus",
    "ProcessedPayment",
]
