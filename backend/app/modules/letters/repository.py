"""Repository for generated letters."""

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.letters.models import Letter
from app.modules.letters.schemas import LetterGenerationRequest


class LetterRepository:
    """Repository for letter create and history operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        user_id: uuid.UUID,
        request: LetterGenerationRequest,
        content: str,
    ) -> Letter:
        """Stage a letter in the current transaction (flush, no commit)."""
        letter = Letter(
            user_id=user_id,
            client_name=request.client_name,
            gstin=request.gstin,
            compliance_type=request.compliance_type,
            period=request.period,
            due_date=request.due_date,
            consequence=request.consequence,
            tone=request.tone,
            language=request.language,
            content=content,
        )
        self.session.add(letter)
        await self.session.flush()
        return letter

    async def list_for_user(
        self,
        user_id: uuid.UUID,
        offset: int = 0,
        limit: int = 10,
    ) -> list[Letter]:
        """Get a page of the user's letters, newest first."""
        result = await self.session.execute(
            select(Letter)
            .where(Letter.user_id == user_id)
            .order_by(Letter.created_at.desc(), Letter.id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_for_user(self, user_id: uuid.UUID) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(Letter).where(Letter.user_id == user_id)
        )
        return result.scalar_one()
