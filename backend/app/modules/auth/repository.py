"""User repository for database operations."""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.auth.models import User
from app.modules.credits.models import PlanTier, allotment_for


class UserRepository:
    """Repository for User create and lookup operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> User:
        """Create a new account on the free plan with a fresh credit cycle.

        Args:
            email: Normalised email address
            password: Plain text password
            name: Optional display name
            now: Cycle anchor (defaults to the current UTC time)

        Returns:
            User: The created user, flushed but not committed
        """
        user = User(
            email=email,
            name=name,
            password_hash="",
            plan=PlanTier.FREE.value,
            credits=allotment_for(PlanTier.FREE),
            credits_reset_at=now or datetime.utcnow(),
        )
        user.set_password(password)
        self.session.add(user)
        await self.session.flush()
        return user

    async def get_by_id(self, user_id: uuid.UUID) -> User | None:
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        result = await self.session.execute(
            select(User).where(User.email == email.lower())
        )
        return result.scalar_one_or_none()

    async def exists_by_email(self, email: str) -> bool:
        result = await self.session.execute(
            select(User.id).where(User.email == email.lower())
        )
        return result.scalar_one_or_none() is not None
