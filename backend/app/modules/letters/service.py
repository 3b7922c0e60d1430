"""Generation gateway: admit, generate, then bill and persist atomically.

A request is admitted only if the account holds a credit after monthly
reconciliation. The provider is called outside any database transaction;
the credit debit and the letter insert then commit together, so a letter
is never stored without its debit and a debit never happens without a
letter.
"""

import hashlib
import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import log_error, log_info
from app.core.metrics import (
    CREDITS_DEBITED_TOTAL,
    LETTER_GENERATIONS_TOTAL,
    PROVIDER_REQUEST_DURATION_SECONDS,
    QUOTA_EXHAUSTED_TOTAL,
)
from app.core.tracing import create_span
from app.modules.credits.meter import CreditMeter, InsufficientCreditsError
from app.modules.letters.llm_client import (
    LLMClient,
    LLMClientError,
    ProviderError,
    get_llm_client,
)
from app.modules.letters.models import Letter
from app.modules.letters.prompts import LETTER_SYSTEM_PROMPT, build_user_prompt
from app.modules.letters.repository import LetterRepository
from app.modules.letters.schemas import LetterGenerationRequest

logger = logging.getLogger(__name__)


class LetterGenerationError(Exception):
    """Base exception for letter generation errors."""
    pass


class QuotaExhaustedError(LetterGenerationError):
    """Raised when the account has no credits left this cycle."""

    def __init__(self, account_id: uuid.UUID, plan: Optional[str] = None):
        self.account_id = account_id
        self.plan = plan
        super().__init__("You've used all your credits. Upgrade your plan for more!")


class LetterPersistenceError(LetterGenerationError):
    """Raised when the debit and letter could not be committed."""
    pass


@dataclass
class LetterGenerationResult:
    letter_id: uuid.UUID
    content: str
    credits_remaining: int


class LetterGenerationService:
    """Orchestrates one metered letter generation."""

    def __init__(
        self,
        session: AsyncSession,
        llm_client: Optional[LLMClient] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.session = session
        self.meter = CreditMeter(session, now=now)
        self.letters = LetterRepository(session)
        self._llm_client = llm_client

    async def generate(
        self,
        account_id: uuid.UUID,
        request: LetterGenerationRequest,
    ) -> LetterGenerationResult:
        """Generate, bill and store one letter.

        Raises:
            AccountNotFoundError: If the account does not exist
            QuotaExhaustedError: If no credit is available (provider not called)
            ProviderError: If generation fails (no credit consumed)
            LetterPersistenceError: If the debit and letter could not be committed
        """
        balance = await self.meter.check_and_reset(account_id)
        if balance.credits <= 0:
            QUOTA_EXHAUSTED_TOTAL.inc()
            LETTER_GENERATIONS_TOTAL.labels(outcome="quota_exhausted").inc()
            log_info(
                logger,
                "Generation refused, quota exhausted",
                account_id=str(account_id),
                plan=balance.plan,
            )
            raise QuotaExhaustedError(account_id, balance.plan)

        prompt = build_user_prompt(request)
        content = await self._complete(account_id, prompt)

        return await self._commit_letter(account_id, request, prompt, content)

    async def _complete(self, account_id: uuid.UUID, prompt: str) -> str:
        start_time = time.perf_counter()
        try:
            with create_span(
                "letters.provider_completion",
                attributes={"account.id": str(account_id)},
            ):
                client = self._llm_client or get_llm_client()
                return await client.complete(prompt, system_prompt=LETTER_SYSTEM_PROMPT)
        except LLMClientError as e:
            LETTER_GENERATIONS_TOTAL.labels(outcome="provider_error").inc()
            log_error(
                logger,
                "Letter generation failed at provider",
                exception=e,
                account_id=str(account_id),
            )
            if isinstance(e, ProviderError):
                raise
            raise ProviderError(str(e)) from e
        finally:
            PROVIDER_REQUEST_DURATION_SECONDS.observe(time.perf_counter() - start_time)

    async def _commit_letter(
        self,
        account_id: uuid.UUID,
        request: LetterGenerationRequest,
        prompt: str,
        content: str,
    ) -> LetterGenerationResult:
        try:
            debit = await self.meter.debit(account_id, commit=False)
            letter: Letter = await self.letters.create(account_id, request, content)
            letter_id = letter.id
            await self.session.commit()
        except InsufficientCreditsError as e:
            # A concurrent request took the last credit while this one was generating
            await self.session.rollback()
            QUOTA_EXHAUSTED_TOTAL.inc()
            LETTER_GENERATIONS_TOTAL.labels(outcome="quota_exhausted").inc()
            log_info(
                logger,
                "Generated letter discarded, credit taken concurrently",
                account_id=str(account_id),
                prompt_sha256=hashlib.sha256(prompt.encode()).hexdigest(),
                content_length=len(content),
            )
            raise QuotaExhaustedError(account_id) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            LETTER_GENERATIONS_TOTAL.labels(outcome="persistence_error").inc()
            log_error(
                logger,
                "Letter generated but not persisted; no credit was taken",
                exception=e,
                account_id=str(account_id),
                prompt_sha256=hashlib.sha256(prompt.encode()).hexdigest(),
                content_length=len(content),
            )
            raise LetterPersistenceError("Failed to save generated letter") from e
        except Exception:
            await self.session.rollback()
            raise

        CREDITS_DEBITED_TOTAL.inc()
        LETTER_GENERATIONS_TOTAL.labels(outcome="success").inc()
        log_info(
            logger,
            "Letter generated",
            account_id=str(account_id),
            letter_id=str(letter_id),
            credits_remaining=debit.remaining,
        )
        return LetterGenerationResult(
            letter_id=letter_id,
            content=content,
            credits_remaining=debit.remaining,
        )

    async def list_letters(
        self,
        account_id: uuid.UUID,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Letter], int]:
        """Get a page of the account's letters and the total count."""
        offset = (page - 1) * limit
        letters = await self.letters.list_for_user(account_id, offset=offset, limit=limit)
        total = await self.letters.count_for_user(account_id)
        return letters, total
