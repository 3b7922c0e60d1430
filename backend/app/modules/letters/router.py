"""API router for letter generation and history."""

import math

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.modules.auth.jwt import get_current_user
from app.modules.auth.models import User
from app.modules.credits.meter import AccountNotFoundError, CreditMeterError
from app.modules.letters.llm_client import ProviderError
from app.modules.letters.schemas import (
    LetterGenerationRequest,
    LetterGenerationResponse,
    LetterListResponse,
    LetterSummary,
    Pagination,
)
from app.modules.letters.service import (
    LetterGenerationService,
    LetterPersistenceError,
    QuotaExhaustedError,
)

router = APIRouter(prefix="/letters", tags=["letters"])


def get_letter_service(session: AsyncSession = Depends(get_session)) -> LetterGenerationService:
    """Dependency to get letter generation service instance."""
    return LetterGenerationService(session)


@router.post("/generate", response_model=LetterGenerationResponse, response_model_by_alias=True)
async def generate_letter(
    data: LetterGenerationRequest,
    current_user: User = Depends(get_current_user),
    service: LetterGenerationService = Depends(get_letter_service),
) -> LetterGenerationResponse:
    """Generate a GST compliance letter, consuming one credit on success."""
    account_id = current_user.id
    try:
        result = await service.generate(account_id, data)
    except AccountNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    except CreditMeterError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Credit balance is busy, please retry",
        )
    except QuotaExhaustedError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": str(e), "requires_upgrade": True, "credits": 0},
        )
    except ProviderError:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to generate letter",
        )
    except LetterPersistenceError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save generated letter",
        )

    return LetterGenerationResponse(
        letter=result.content,
        credits=result.credits_remaining,
        letter_id=result.letter_id,
    )


@router.get("", response_model=LetterListResponse, response_model_by_alias=True)
async def list_letters(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: LetterGenerationService = Depends(get_letter_service),
) -> LetterListResponse:
    """List the caller's letters, newest first."""
    letters, total = await service.list_letters(current_user.id, page=page, limit=limit)
    return LetterListResponse(
        letters=[LetterSummary.model_validate(letter) for letter in letters],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit),
        ),
    )
