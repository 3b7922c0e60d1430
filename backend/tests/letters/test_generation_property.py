"""Tests for metered letter generation.

**Feature: gst-letters, Property 8: One Credit Per Stored Letter**
**Feature: gst-letters, Property 9: Failed Generations Are Free**
"""

import hashlib
import logging
import uuid
from datetime import datetime
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.core import database
from app.modules.credits.meter import AccountNotFoundError, CreditMeter
from app.modules.letters.llm_client import LLMClient, LLMClientError, ProviderError
from app.modules.letters.models import Letter
from app.modules.letters.prompts import LETTER_SYSTEM_PROMPT
from app.modules.letters.schemas import LetterGenerationRequest
from app.modules.letters.service import (
    LetterGenerationService,
    LetterPersistenceError,
    QuotaExhaustedError,
)

LETTER_TEXT = "Place: Chennai\nDate: 01-04-2025\n\nDear Sri Lakshmi Traders,\nGreetings from our office."


def make_request(**overrides) -> LetterGenerationRequest:
    data = {
        "client_name": "Sri Lakshmi Traders",
        "gstin": "33AABCS1234F1Z5",
        "compliance_type": "GSTR-3B",
        "period": "March 2025",
        "due_date": "20-04-2025",
    }
    data.update(overrides)
    return LetterGenerationRequest(**data)


def make_llm(content: str = LETTER_TEXT, side_effect=None) -> AsyncMock:
    llm = AsyncMock(spec=LLMClient)
    if side_effect is not None:
        llm.complete.side_effect = side_effect
    else:
        llm.complete.return_value = content
    return llm


async def count_letters(account_id: uuid.UUID) -> int:
    async with database.async_session_maker() as s:
        result = await s.execute(
            select(func.count()).select_from(Letter).where(Letter.user_id == account_id)
        )
        return result.scalar_one()


class TestGenerationFlow:
    """**Feature: gst-letters, Property 8: One Credit Per Stored Letter**"""

    @pytest.mark.asyncio
    async def test_last_credit_then_quota_exhausted(self, session, account_factory, read_ledger) -> None:
        account_id = await account_factory(plan="free", credits=1)
        llm = make_llm()
        service = LetterGenerationService(session, llm_client=llm)

        result = await service.generate(account_id, make_request())

        assert result.content == LETTER_TEXT
        assert result.credits_remaining == 0
        assert llm.complete.await_count == 1
        assert llm.complete.await_args.kwargs["system_prompt"] == LETTER_SYSTEM_PROMPT
        assert (await read_ledger(account_id)).credits == 0
        assert await count_letters(account_id) == 1

        with pytest.raises(QuotaExhaustedError):
            await service.generate(account_id, make_request())

        assert llm.complete.await_count == 1
        assert await count_letters(account_id) == 1

    @pytest.mark.asyncio
    async def test_letter_is_stored_with_inputs(self, session, account_factory) -> None:
        account_id = await account_factory(plan="pro", credits=50)
        service = LetterGenerationService(session, llm_client=make_llm())

        result = await service.generate(
            account_id, make_request(tone="Urgent", language="Tamil")
        )

        letters, total = await service.list_letters(account_id)
        assert total == 1
        assert letters[0].id == result.letter_id
        assert letters[0].compliance_type == "GSTR-3B"
        assert letters[0].tone == "Urgent"
        assert letters[0].language == "Tamil"
        assert letters[0].content == LETTER_TEXT

    @pytest.mark.asyncio
    async def test_monthly_reset_admits_exhausted_account(
        self, session, account_factory, read_ledger, clock
    ) -> None:
        account_id = await account_factory(
            plan="free", credits=0, credits_reset_at=datetime(2024, 1, 5)
        )
        clock.now = datetime(2024, 2, 1, 9, 0)
        service = LetterGenerationService(session, llm_client=make_llm(), now=clock)

        result = await service.generate(account_id, make_request())

        assert result.credits_remaining == 4
        entry = await read_ledger(account_id)
        assert entry.credits == 4
        assert entry.credits_reset_at == datetime(2024, 2, 1, 9, 0)

    @pytest.mark.asyncio
    async def test_exhausted_account_never_calls_provider(self, session, account_factory) -> None:
        account_id = await account_factory(plan="firm", credits=0)
        llm = make_llm()

        with pytest.raises(QuotaExhaustedError) as exc_info:
            await LetterGenerationService(session, llm_client=llm).generate(
                account_id, make_request()
            )

        assert exc_info.value.plan == "firm"
        llm.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_account(self, session) -> None:
        llm = make_llm()
        with pytest.raises(AccountNotFoundError):
            await LetterGenerationService(session, llm_client=llm).generate(
                uuid.uuid4(), make_request()
            )
        llm.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_history_pagination(self, session, account_factory) -> None:
        account_id = await account_factory(plan="pro", credits=100)
        service = LetterGenerationService(session, llm_client=make_llm())
        for i in range(3):
            await service.generate(account_id, make_request(client_name=f"Client {i}"))

        first_page, total = await service.list_letters(account_id, page=1, limit=2)
        second_page, _ = await service.list_letters(account_id, page=2, limit=2)

        assert total == 3
        assert len(first_page) == 2
        assert len(second_page) == 1
        assert {l.id for l in first_page}.isdisjoint({l.id for l in second_page})


class TestFailureIsolation:
    """**Feature: gst-letters, Property 9: Failed Generations Are Free**"""

    @pytest.mark.asyncio
    async def test_provider_error_keeps_credits(self, session, account_factory, read_ledger) -> None:
        account_id = await account_factory(plan="free", credits=3)
        llm = make_llm(side_effect=ProviderError("upstream 503"))

        with pytest.raises(ProviderError):
            await LetterGenerationService(session, llm_client=llm).generate(
                account_id, make_request()
            )

        assert (await read_ledger(account_id)).credits == 3
        assert await count_letters(account_id) == 0

    @pytest.mark.asyncio
    async def test_unconfigured_client_is_provider_error(self, session, account_factory, read_ledger) -> None:
        account_id = await account_factory(plan="free", credits=3)
        llm = make_llm(side_effect=LLMClientError("LLM API key not configured"))

        with pytest.raises(ProviderError):
            await LetterGenerationService(session, llm_client=llm).generate(
                account_id, make_request()
            )

        assert (await read_ledger(account_id)).credits == 3

    @pytest.mark.asyncio
    async def test_persistence_error_rolls_back_debit(self, session, account_factory, read_ledger) -> None:
        account_id = await account_factory(plan="free", credits=3)
        service = LetterGenerationService(session, llm_client=make_llm())
        service.letters.create = AsyncMock(
            side_effect=OperationalError("INSERT INTO letters", {}, Exception("disk I/O error"))
        )

        with pytest.raises(LetterPersistenceError):
            await service.generate(account_id, make_request())

        assert (await read_ledger(account_id)).credits == 3
        assert await count_letters(account_id) == 0

    @pytest.mark.asyncio
    async def test_credit_taken_during_generation(self, session, account_factory, read_ledger) -> None:
        """A concurrent request that takes the last credit mid-generation wins."""
        account_id = await account_factory(plan="free", credits=1)

        async def take_last_credit(*args, **kwargs) -> str:
            async with database.async_session_maker() as s:
                await CreditMeter(s).debit(account_id)
            return LETTER_TEXT

        llm = make_llm(side_effect=take_last_credit)

        with pytest.raises(QuotaExhaustedError):
            await LetterGenerationService(session, llm_client=llm).generate(
                account_id, make_request()
            )

        assert (await read_ledger(account_id)).credits == 0
        assert await count_letters(account_id) == 0

    async def test_discarded_letter_is_logged_with_digest(self, session, account_factory, caplog) -> None:
        account_id = await account_factory(plan="free", credits=1)

        async def take_last_credit(*args, **kwargs) -> str:
            async with database.async_session_maker() as s:
                await CreditMeter(s).debit(account_id)
            return LETTER_TEXT

        llm = make_llm(side_effect=take_last_credit)

        with caplog.at_level(logging.INFO, logger="app.modules.letters.service"):
            with pytest.raises(QuotaExhaustedError):
                await LetterGenerationService(session, llm_client=llm).generate(
                    account_id, make_request()
                )

        prompt = llm.complete.await_args.args[0]
        discarded = [
            r for r in caplog.records if r.getMessage().startswith("Generated letter discarded")
        ]
        assert len(discarded) == 1
        assert discarded[0].account_id == str(account_id)
        assert discarded[0].prompt_sha256 == hashlib.sha256(prompt.encode()).hexdigest()
        assert discarded[0].content_length == len(LETTER_TEXT)
