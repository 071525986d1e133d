"""
Payment routes
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_payment_service
from src.core.auth import get_current_user
from src.core.responses import success_response
from src.middleware.rate_limit import create_limit
from src.models import User
from src.models.engine import get_db
from src.schemas import ConfirmPaymentRequest, CreatePaymentRequest
from src.service.payment_service import PaymentService

router = APIRouter(prefix="/payments", tags=["payments"])


@router.get("/pricing-tiers")
async def list_pricing_tiers(
    db: AsyncSession = Depends(get_db),
    payment_service: PaymentService = Depends(get_payment_service),
):
    return success_response(await payment_service.list_pricing_tiers(db))


@router.post("", status_code=status.HTTP_201_CREATED)
@create_limit
async def create_payment(
    request: Request,
    body: CreatePaymentRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    payment_service: PaymentService = Depends(get_payment_service),
):
    payment = await payment_service.create_payment(
        db, current_user.id, body.post_id, body.pricing_tier_id, body.payment_method
    )
    return success_response(payment, "Payment initiated successfully")


@router.post("/{payment_id}/confirm")
async def confirm_payment(
    payment_id: int,
    body: ConfirmPaymentRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    payment_service: PaymentService = Depends(get_payment_service),
):
    """
    Confirm a payment with the mobile money transaction reference

    Called by the SMS receipt forwarder running under a service account
    """
    payment = await payment_service.confirm_payment(db, payment_id, body.transaction_reference)
    return success_response(payment, "Payment confirmed successfully")


@router.post("/{payment_id}/cancel")
async def cancel_payment(
    payment_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    payment_service: PaymentService = Depends(get_payment_service),
):
    payment = await payment_service.cancel_payment(db, payment_id, current_user.id)
    return success_response(payment, "Payment cancelled successfully")


@router.get("/user/history")
async def payment_history(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    payment_service: PaymentService = Depends(get_payment_service),
):
    return success_response(await payment_service.get_user_payment_history(db, current_user.id))


@router.get("/post/{post_id}")
async def post_payments(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    payment_service: PaymentService = Depends(get_payment_service),
):
    return success_response(await payment_service.get_post_payments(db, post_id, current_user.id))


@router.get("/{payment_id}")
async def get_payment(
    payment_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    payment_service: PaymentService = Depends(get_payment_service),
):
    return success_response(await payment_service.get_payment(db, payment_id, current_user))
