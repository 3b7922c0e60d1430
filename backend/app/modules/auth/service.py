"""Authentication service for registration and login."""

from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.auth.jwt import AuthTokens, create_auth_tokens
from app.modules.auth.models import User
from app.modules.auth.repository import UserRepository


class AuthenticationError(Exception):
    """Exception raised for authentication failures."""
    pass


class UserExistsError(Exception):
    """Exception raised when user already exists."""
    pass


class AuthService:
    """Service for authentication operations."""

    def __init__(
        self,
        session: AsyncSession,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.session = session
        self.user_repo = UserRepository(session)
        self._now = now or datetime.utcnow

    async def register(self, email: str, password: str, name: Optional[str] = None) -> User:
        """Register a new account on the free plan.

        New accounts start with the free allotment and a cycle anchored now.

        Raises:
            UserExistsError: If the email is already registered
        """
        email = email.lower().strip()

        if await self.user_repo.exists_by_email(email):
            raise UserExistsError(f"User with email {email} already exists")

        try:
            user = await self.user_repo.create(
                email=email, password=password, name=name, now=self._now()
            )
            await self.session.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent registration for the same email
            await self.session.rollback()
            raise UserExistsError(f"User with email {email} already exists") from e

        return user

    async def login(self, email: str, password: str) -> AuthTokens:
        """Authenticate a user and issue an access token.

        Raises:
            AuthenticationError: If the credentials are invalid
        """
        user = await self.user_repo.get_by_email(email.lower().strip())
        if user is None or not user.verify_password(password):
            raise AuthenticationError("Invalid email or password")
        return create_auth_tokens(user.id)
