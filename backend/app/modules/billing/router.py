"""API router for plans, credit balance and plan purchases."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.modules.auth.jwt import get_current_user
from app.modules.auth.models import User
from app.modules.billing.models import PLAN_CURRENCY, PLAN_PRICES
from app.modules.billing.schemas import (
    CreateOrderRequest,
    CreateOrderResponse,
    CreditBalanceResponse,
    PlanInfo,
    PlanListResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from app.modules.billing.service import (
    InvalidSignatureError,
    OrderNotFoundError,
    PaymentGatewayError,
    PaymentService,
    PlanNotPurchasableError,
)
from app.modules.credits.cycle import next_reset_at
from app.modules.credits.meter import AccountNotFoundError, CreditMeter, CreditMeterError
from app.modules.credits.models import PLAN_ALLOTMENTS, PlanTier, UnknownPlanError, allotment_for

router = APIRouter(prefix="/billing", tags=["billing"])


def get_payment_service(session: AsyncSession = Depends(get_session)) -> PaymentService:
    """Dependency to get payment service instance."""
    return PaymentService(session)


def get_credit_meter(session: AsyncSession = Depends(get_session)) -> CreditMeter:
    """Dependency to get credit meter instance."""
    return CreditMeter(session)


@router.get("/plans", response_model=PlanListResponse)
async def list_plans() -> PlanListResponse:
    """List plan tiers with their monthly credits and prices."""
    return PlanListResponse(
        plans=[
            PlanInfo(
                plan=tier.value,
                credits_per_month=PLAN_ALLOTMENTS[tier.value],
                price=PLAN_PRICES.get(tier.value),
                currency=PLAN_CURRENCY,
            )
            for tier in PlanTier
        ]
    )


@router.get("/credits", response_model=CreditBalanceResponse)
async def get_credits(
    current_user: User = Depends(get_current_user),
    meter: CreditMeter = Depends(get_credit_meter),
) -> CreditBalanceResponse:
    """Get the caller's balance, applying the monthly reset if one is due."""
    try:
        balance = await meter.check_and_reset(current_user.id)
    except AccountNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    except CreditMeterError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Credit balance is busy, please retry",
        )

    return CreditBalanceResponse(
        plan=balance.plan,
        credits=balance.credits,
        allotment=allotment_for(balance.plan),
        credits_reset_at=balance.credits_reset_at,
        next_reset_at=next_reset_at(balance.credits_reset_at),
    )


@router.post("/orders", response_model=CreateOrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    request: CreateOrderRequest,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
) -> CreateOrderResponse:
    """Create a checkout order for the pro or firm plan."""
    try:
        result = await service.create_order(current_user.id, request.plan)
    except (UnknownPlanError, PlanNotPurchasableError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid plan")
    except PaymentGatewayError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return CreateOrderResponse(
        order_id=result.order_id,
        plan=result.plan,
        amount=result.amount,
        currency=result.currency,
        key_id=result.key_id,
        mock_mode=result.mock_mode,
    )


@router.post("/verify", response_model=VerifyPaymentResponse)
async def verify_payment(
    request: VerifyPaymentRequest,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
) -> VerifyPaymentResponse:
    """Verify a checkout and upgrade the caller's plan.

    Replaying the same payment returns success with applied=false.
    """
    try:
        result = await service.verify_payment(
            account_id=current_user.id,
            order_id=request.order_id,
            payment_id=request.payment_id,
            signature=request.signature,
        )
    except OrderNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidSignatureError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except UnknownPlanError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except AccountNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return VerifyPaymentResponse(plan=result.plan, applied=result.applied)
