"""Tests for applying plan upgrades from verified payments.

**Feature: gst-letters, Property 5: Upgrade Overwrites Credits**
**Feature: gst-letters, Property 6: Upgrade Idempotency**
"""

import asyncio
import uuid
from datetime import datetime

import pytest
from sqlalchemy import func, select

from app.core import database
from app.core.metrics import REGISTRY
from app.modules.billing.models import ProcessedPayment
from app.modules.billing.upgrade import PlanUpgradeApplier
from app.modules.credits.meter import AccountNotFoundError, CreditMeter
from app.modules.credits.models import UnknownPlanError


async def count_processed(payment_id: str) -> int:
    async with database.async_session_maker() as s:
        result = await s.execute(
            select(func.count()).select_from(ProcessedPayment).where(
                ProcessedPayment.payment_id == payment_id
            )
        )
        return result.scalar_one()


class TestUpgradeOverwrites:
    """**Feature: gst-letters, Property 5: Upgrade Overwrites Credits**"""

    @pytest.mark.asyncio
    async def test_free_to_firm_sets_allotment(self, session, account_factory, read_ledger, clock) -> None:
        account_id = await account_factory(plan="free", credits=2)

        applied = await PlanUpgradeApplier(session, now=clock).apply(account_id, "firm", "pay_001")

        assert applied is True
        entry = await read_ledger(account_id)
        assert entry.plan == "firm"
        assert entry.credits == 500

    @pytest.mark.asyncio
    async def test_anchor_moves_to_next_billing_cycle(self, session, account_factory, read_ledger, clock) -> None:
        account_id = await account_factory(plan="free", credits=5)
        clock.now = datetime(2024, 1, 31, 12, 0)

        await PlanUpgradeApplier(session, now=clock).apply(account_id, "pro", "pay_002")

        entry = await read_ledger(account_id)
        assert entry.credits == 100
        assert entry.credits_reset_at == datetime(2024, 2, 29, 12, 0)

    @pytest.mark.asyncio
    async def test_downgrade_also_overwrites(self, session, account_factory, read_ledger, clock) -> None:
        account_id = await account_factory(plan="firm", credits=480)

        await PlanUpgradeApplier(session, now=clock).apply(account_id, "PRO", "pay_003")

        entry = await read_ledger(account_id)
        assert entry.plan == "pro"
        assert entry.credits == 100


class TestUpgradeIdempotency:
    """**Feature: gst-letters, Property 6: Upgrade Idempotency**"""

    @pytest.mark.asyncio
    async def test_replayed_payment_is_noop(self, session, account_factory, read_ledger, clock) -> None:
        account_id = await account_factory(plan="free", credits=2)
        applier = PlanUpgradeApplier(session, now=clock)

        assert await applier.apply(account_id, "pro", "pay_dup") is True

        async with database.async_session_maker() as s:
            await CreditMeter(s).debit(account_id)

        assert await applier.apply(account_id, "pro", "pay_dup") is False

        entry = await read_ledger(account_id)
        assert entry.credits == 99
        assert await count_processed("pay_dup") == 1

    @pytest.mark.asyncio
    async def test_concurrent_replays_apply_once(self, db, account_factory, read_ledger, clock) -> None:
        account_id = await account_factory(plan="free", credits=1)

        async def apply():
            async with database.async_session_maker() as s:
                return await PlanUpgradeApplier(s, now=clock).apply(account_id, "firm", "pay_race")

        results = await asyncio.gather(*(apply() for _ in range(4)))

        assert results.count(True) == 1
        assert (await read_ledger(account_id)).credits == 500

    @pytest.mark.asyncio
    async def test_distinct_payments_each_apply(self, session, account_factory, read_ledger, clock) -> None:
        account_id = await account_factory(plan="free", credits=5)
        applier = PlanUpgradeApplier(session, now=clock)

        assert await applier.apply(account_id, "pro", "pay_a") is True
        assert await applier.apply(account_id, "firm", "pay_b") is True

        assert (await read_ledger(account_id)).plan == "firm"


class TestUpgradeErrors:

    @pytest.mark.asyncio
    async def test_unknown_plan_writes_nothing(self, session, account_factory, read_ledger, clock) -> None:
        account_id = await account_factory(plan="free", credits=3)

        with pytest.raises(UnknownPlanError):
            await PlanUpgradeApplier(session, now=clock).apply(account_id, "enterprise", "pay_x")

        entry = await read_ledger(account_id)
        assert entry.plan == "free"
        assert entry.credits == 3
        assert await count_processed("pay_x") == 0

    @pytest.mark.asyncio
    async def test_unknown_account_does_not_consume_payment(self, session, clock) -> None:
        with pytest.raises(AccountNotFoundError):
            await PlanUpgradeApplier(session, now=clock).apply(uuid.uuid4(), "pro", "pay_y")

        assert await count_processed("pay_y") == 0

    async def test_unknown_account_is_not_reported_as_duplicate(self, session, clock) -> None:
        def duplicates() -> float:
            return REGISTRY.get_sample_value(
                "plan_upgrades_total", {"plan": "pro", "outcome": "duplicate"}
            ) or 0.0

        before = duplicates()
        with pytest.raises(AccountNotFoundError):
            await PlanUpgradeApplier(session, now=clock).apply(uuid.uuid4(), "pro", "pay_fk")

        assert duplicates() == before

    async def test_payment_id_still_usable_after_unknown_account(
        self, session, account_factory, read_ledger, clock
    ) -> None:
        account_id = await account_factory(plan="free", credits=0)
        applier = PlanUpgradeApplier(session, now=clock)

        with pytest.raises(AccountNotFoundError):
            await applier.apply(uuid.uuid4(), "pro", "pay_z")
        assert await applier.apply(account_id, "pro", "pay_z") is True

        entry = await read_ledger(account_id)
        assert entry.plan == "pro"
        assert await count_processed("pay_z") == 1
