"""Account ledger repository.

Every mutation is a single conditional UPDATE evaluated by the database, so
concurrent requests against one account serialize on the row instead of on
an application-level read-then-write. Methods flush only; the calling
service decides when the transaction commits.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.auth.models import User
from app.modules.credits.models import AccountLedgerEntry


_LEDGER_COLUMNS = (User.id, User.plan, User.credits, User.credits_reset_at)


class AccountLedgerRepository:
    """Repository for the plan/credits/anchor columns of an account."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, account_id: uuid.UUID) -> Optional[AccountLedgerEntry]:
        """Read the ledger columns straight from the database.

        Columns are selected rather than the User entity so the read never
        returns stale values from the session's identity map.
        """
        result = await self.session.execute(
            select(*_LEDGER_COLUMNS).where(User.id == account_id)
        )
        row = result.one_or_none()
        return AccountLedgerEntry(*row) if row else None

    async def decrement_if_positive(self, account_id: uuid.UUID) -> Optional[int]:
        """Take one credit if the balance is above zero.

        Returns:
            The remaining balance, or None if no row matched (unknown account
            or an empty balance).
        """
        result = await self.session.execute(
            update(User)
            .where(User.id == account_id, User.credits > 0)
            .values(credits=User.credits - 1)
            .returning(User.credits)
            .execution_options(synchronize_session=False)
        )
        return result.scalar_one_or_none()

    async def reset_cycle(
        self,
        account_id: uuid.UUID,
        new_credits: int,
        new_anchor: datetime,
        expected_anchor: datetime,
    ) -> Optional[int]:
        """Start a new cycle if the anchor is still the one the caller observed.

        Returns:
            The new balance, or None if another request moved the anchor first.
        """
        result = await self.session.execute(
            update(User)
            .where(User.id == account_id, User.credits_reset_at == expected_anchor)
            .values(credits=new_credits, credits_reset_at=new_anchor)
            .returning(User.credits)
            .execution_options(synchronize_session=False)
        )
        return result.scalar_one_or_none()

    async def set_plan(
        self,
        account_id: uuid.UUID,
        plan: str,
        new_credits: int,
        new_anchor: datetime,
    ) -> Optional[AccountLedgerEntry]:
        """Overwrite plan, balance and anchor in one statement.

        Returns:
            The updated ledger entry, or None if the account does not exist.
        """
        result = await self.session.execute(
            update(User)
            .where(User.id == account_id)
            .values(plan=plan, credits=new_credits, credits_reset_at=new_anchor)
            .returning(*_LEDGER_COLUMNS)
            .execution_options(synchronize_session=False)
        )
        row = result.one_or_none()
        return AccountLedgerEntry(*row) if row else None
