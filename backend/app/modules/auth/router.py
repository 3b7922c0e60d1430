"""Authentication router for registration, login and the current profile."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.modules.auth.jwt import get_current_user
from app.modules.auth.models import User
from app.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from app.modules.auth.service import AuthenticationError, AuthService, UserExistsError

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
)
async def register(
    data: RegisterRequest,
    session: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Create an account on the free plan with 5 credits."""
    service = AuthService(session)
    try:
        user = await service.register(email=data.email, password=data.password, name=data.name)
    except UserExistsError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User already exists",
        )
    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse, summary="Login user")
async def login(
    data: LoginRequest,
    session: AsyncSession = Depends(get_session),
) -> TokenResponse:
    service = AuthService(session)
    try:
        tokens = await service.login(email=data.email, password=data.password)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return TokenResponse(
        access_token=tokens.access_token,
        expires_in=tokens.expires_in,
        token_type=tokens.token_type,
    )


@router.get("/me", response_model=UserResponse, summary="Current user")
async def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return the caller's profile as last read (no monthly reset applied)."""
    return UserResponse.model_validate(current_user)
