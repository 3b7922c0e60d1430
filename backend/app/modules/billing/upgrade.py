"""Plan upgrade applier.

Applies a verified payment to an account exactly once: the processed-payment
record and the plan/credits/anchor overwrite commit in one transaction, so a
replayed callback for the same payment id finds the record and changes
nothing.
"""

import logging
import uuid
from datetime import datetime
from typing import Callable, Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import log_info
from app.core.metrics import PLAN_UPGRADES_TOTAL
from app.modules.billing.repository import ProcessedPaymentRepository
from app.modules.credits.cycle import start_of_next_billing_cycle
from app.modules.credits.meter import AccountNotFoundError
from app.modules.credits.models import PlanTier, allotment_for, parse_plan
from app.modules.credits.repository import AccountLedgerRepository

logger = logging.getLogger(__name__)


class PlanUpgradeApplier:
    """Sets an account's plan from a verified payment event."""

    def __init__(
        self,
        session: AsyncSession,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.session = session
        self.ledger = AccountLedgerRepository(session)
        self.processed = ProcessedPaymentRepository(session)
        self._now = now or datetime.utcnow

    async def apply(
        self,
        account_id: uuid.UUID,
        target_plan: Union[str, PlanTier],
        payment_id: str,
    ) -> bool:
        """Apply an upgrade for a payment the caller has already verified.

        Credits are overwritten with the new plan's allotment (unused credits
        from the previous plan are discarded) and the next reset is anchored
        one calendar month ahead.

        Args:
            account_id: Account to upgrade
            target_plan: Plan bought by the payment
            payment_id: Gateway payment id used as the idempotency key

        Returns:
            True if the upgrade was applied, False if this payment id had
            already been processed (nothing is changed).

        Raises:
            UnknownPlanError: If target_plan is not a recognised tier
            AccountNotFoundError: If the account does not exist
        """
        plan = parse_plan(target_plan)
        allotment = allotment_for(plan)
        anchor = start_of_next_billing_cycle(self._now())

        entry = await self.ledger.set_plan(account_id, plan.value, allotment, anchor)
        if entry is None:
            # Do not consume the payment id for an account that is not there
            await self.session.rollback()
            raise AccountNotFoundError(account_id)

        try:
            await self.processed.record(payment_id, account_id, plan.value)
        except IntegrityError:
            # Also undoes the plan overwrite above
            await self.session.rollback()
            PLAN_UPGRADES_TOTAL.labels(plan=plan.value, outcome="duplicate").inc()
            log_info(
                logger,
                "Duplicate upgrade ignored",
                account_id=str(account_id),
                payment_id=payment_id,
                plan=plan.value,
            )
            return False

        await self.session.commit()

        PLAN_UPGRADES_TOTAL.labels(plan=plan.value, outcome="applied").inc()
        log_info(
            logger,
            "Plan upgrade applied",
            account_id=str(account_id),
            payment_id=payment_id,
            plan=plan.value,
            credits=entry.credits,
            credits_reset_at=entry.credits_reset_at.isoformat(),
        )
        return True
