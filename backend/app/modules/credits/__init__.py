"""Credit ledger module.

Holds per-account plan tiers and allotments, the calendar rules for monthly
cycles, and the meter (app.modules.credits.meter) that resets and debits them.
"""

from app.modules.credits.models import (
    PLAN_ALLOTMENTS,
    AccountLedgerEntry,
    PlanTier,
    UnknownPlanError,
    allotment_for,
    parse_plan,
)

__all__ = [
    "PLAN_ALLOTMENTS",
    "AccountLedgerEntry",
    "PlanTier",
    "UnknownPlanError",
    "allotment_for",
    "parse_plan",
]
