"""JWT token management and the bearer-token account dependency."""

import uuid
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_session
from app.modules.auth.models import User
from app.modules.auth.repository import UserRepository

ALGORITHM = "HS256"


class TokenPayload(BaseModel):
    """JWT token payload structure."""

    sub: str  # User ID
    exp: datetime
    iat: datetime
    type: str
    jti: str


class AuthTokens(BaseModel):
    """Authentication token response."""

    access_token: str
    expires_in: int
    token_type: str = "bearer"


def create_token(
    user_id: uuid.UUID,
    expires_delta: timedelta,
    token_type: str = "access",
) -> str:
    """Create a signed JWT for a user.

    Args:
        user_id: User UUID
        expires_delta: Token lifetime
        token_type: Token type claim

    Returns:
        str: The encoded token
    """
    now = datetime.utcnow()
    payload = {
        "sub": str(user_id),
        "exp": now + expires_delta,
        "iat": now,
        "type": token_type,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def create_auth_tokens(user_id: uuid.UUID, expires_minutes: Optional[int] = None) -> AuthTokens:
    """Create the access token returned by login."""
    minutes = expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    return AuthTokens(
        access_token=create_token(user_id, timedelta(minutes=minutes)),
        expires_in=minutes * 60,
    )


def decode_token(token: str) -> TokenPayload | None:
    """Decode a JWT; returns None if the signature or claims are invalid."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
        return TokenPayload(
            sub=payload["sub"],
            exp=datetime.utcfromtimestamp(payload["exp"]),
            iat=datetime.utcfromtimestamp(payload["iat"]),
            type=payload["type"],
            jti=payload["jti"],
        )
    except (JWTError, KeyError):
        return None


def get_user_id_from_token(token: str) -> uuid.UUID | None:
    """Extract the user ID from a valid, unexpired access token."""
    payload = decode_token(token)
    if payload is None or payload.type != "access":
        return None
    if payload.exp < datetime.utcnow():
        return None
    try:
        return uuid.UUID(payload.sub)
    except ValueError:
        return None


security = HTTPBearer(auto_error=False)


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": detail, "requires_auth": True},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Resolve the bearer token to an existing account.

    Raises:
        HTTPException: 401 if the token is missing, invalid, or names an
            account that no longer exists
    """
    if credentials is None:
        raise _unauthenticated("Please sign in to continue")

    user_id = get_user_id_from_token(credentials.credentials)
    if user_id is None:
        raise _unauthenticated("Invalid or expired token")

    user = await UserRepository(session).get_by_id(user_id)
    if user is None:
        raise _unauthenticated("User not found")
    return user
