"""Credit meter: monthly reset reconciliation and the single debit per generation."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import log_info, log_warning
from app.core.metrics import CREDIT_RESETS_TOTAL, CREDITS_DEBITED_TOTAL
from app.modules.credits.cycle import months_elapsed
from app.modules.credits.models import allotment_for
from app.modules.credits.repository import AccountLedgerRepository

logger = logging.getLogger(__name__)


class CreditMeterError(Exception):
    """Base exception for credit meter errors."""
    pass


class AccountNotFoundError(CreditMeterError):
    """Raised when the account does not exist."""

    def __init__(self, account_id: uuid.UUID):
        self.account_id = account_id
        super().__init__(f"Account {account_id} not found")


class InsufficientCreditsError(CreditMeterError):
    """Raised when a debit finds no credit left to take."""

    def __init__(self, account_id: uuid.UUID):
        self.account_id = account_id
        super().__init__(f"Account {account_id} has no credits remaining")


@dataclass
class CreditBalance:
    """Balance after reset reconciliation."""
    account_id: uuid.UUID
    plan: str
    credits: int
    credits_reset_at: datetime
    was_reset: bool = False


@dataclass
class DebitResult:
    """Outcome of a successful debit."""
    account_id: uuid.UUID
    remaining: int


class CreditMeter:
    """Decides admission for a generation request and takes its credit.

    The meter holds no state of its own; the account row is the only
    synchronization point between concurrent requests.
    """

    # A lost reset race is followed by a re-read, which then sees the
    # winner's anchor in the current month.
    MAX_RESET_ATTEMPTS = 3

    def __init__(
        self,
        session: AsyncSession,
        now: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the meter.

        Args:
            session: Async database session
            now: Clock returning the current UTC time (injectable for tests)
        """
        self.session = session
        self.ledger = AccountLedgerRepository(session)
        self._now = now or datetime.utcnow

    async def check_and_reset(self, account_id: uuid.UUID) -> CreditBalance:
        """Return the account's balance, starting a new cycle if a month has passed.

        The reset is committed before returning. Repeated calls inside the same
        calendar month never reset twice.

        Raises:
            AccountNotFoundError: If the account does not exist
            UnknownPlanError: If the stored plan is not a recognised tier
        """
        for _ in range(self.MAX_RESET_ATTEMPTS):
            entry = await self.ledger.get(account_id)
            if entry is None:
                await self.session.rollback()
                raise AccountNotFoundError(account_id)

            now = self._now()
            if months_elapsed(entry.credits_reset_at, now) < 1:
                # End the read-only transaction so no lock outlives the check
                await self.session.commit()
                return CreditBalance(
                    account_id=account_id,
                    plan=entry.plan,
                    credits=entry.credits,
                    credits_reset_at=entry.credits_reset_at,
                )

            allotment = allotment_for(entry.plan)
            credits = await self.ledger.reset_cycle(
                account_id,
                new_credits=allotment,
                new_anchor=now,
                expected_anchor=entry.credits_reset_at,
            )
            if credits is None:
                await self.session.rollback()
                continue

            await self.session.commit()
            CREDIT_RESETS_TOTAL.labels(plan=entry.plan).inc()
            log_info(
                logger,
                "Monthly credits reset",
                account_id=str(account_id),
                plan=entry.plan,
                credits=credits,
                previous_anchor=entry.credits_reset_at.isoformat(),
            )
            return CreditBalance(
                account_id=account_id,
                plan=entry.plan,
                credits=credits,
                credits_reset_at=now,
                was_reset=True,
            )

        log_warning(
            logger,
            "Credit cycle reset kept losing to concurrent writers",
            account_id=str(account_id),
            attempts=self.MAX_RESET_ATTEMPTS,
        )
        raise CreditMeterError(f"Could not reconcile credit cycle for account {account_id}")

    async def debit(self, account_id: uuid.UUID, commit: bool = True) -> DebitResult:
        """Take exactly one credit with a conditional decrement.

        Args:
            account_id: Account to debit
            commit: Commit immediately; pass False to join the caller's
                transaction (the caller then commits or rolls back)

        Raises:
            AccountNotFoundError: If the account does not exist
            InsufficientCreditsError: If the balance is already zero
        """
        remaining = await self.ledger.decrement_if_positive(account_id)

        if remaining is None:
            entry = await self.ledger.get(account_id)
            if commit:
                await self.session.rollback()
            if entry is None:
                raise AccountNotFoundError(account_id)
            raise InsufficientCreditsError(account_id)

        if commit:
            await self.session.commit()
            CREDITS_DEBITED_TOTAL.inc()

        return DebitResult(account_id=account_id, remaining=remaining)
