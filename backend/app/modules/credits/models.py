"""Plan tiers, allotments and the ledger snapshot type.

The ledger columns themselves (plan, credits, credits_reset_at) live on the
users table, see app.modules.auth.models.User.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Union


class PlanTier(str, Enum):
    """Subscription plan tiers."""
    FREE = "free"
    PRO = "pro"
    FIRM = "firm"


# Credits granted at every monthly reset and on upgrade
PLAN_ALLOTMENTS = {
    PlanTier.FREE.value: 5,
    PlanTier.PRO.value: 100,
    PlanTier.FIRM.value: 500,
}


class UnknownPlanError(ValueError):
    """Raised when a plan name is not a recognised tier."""

    def __init__(self, plan: object):
        self.plan = plan
        super().__init__(f"Unknown plan: {plan!r}")


def parse_plan(plan: Union[str, PlanTier]) -> PlanTier:
    """Normalise a plan name (case-insensitive) to a PlanTier.

    Raises:
        UnknownPlanError: If the value is not a recognised tier
    """
    if isinstance(plan, PlanTier):
        return plan
    try:
        return PlanTier(str(plan).strip().lower())
    except ValueError:
        raise UnknownPlanError(plan) from None


def allotment_for(plan: Union[str, PlanTier]) -> int:
    """Get the per-cycle credit allotment for a plan."""
    return PLAN_ALLOTMENTS[parse_plan(plan).value]


@dataclass(frozen=True)
class AccountLedgerEntry:
    """Point-in-time read of an account's ledger columns."""
    account_id: uuid.UUID
    plan: str
    credits: int
    credits_reset_at: datetime
