"""
Payment service
Visibility tier purchases: pending payment, confirmation by transaction reference, activation
"""

import logging
from datetime import timedelta
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import (
    BadRequestError,
    ConflictError,
    ErrorCode,
    ForbiddenError,
    NotFoundError,
)
from src.models import Payment, Post, PricingTier, User, utcnow
from src.models.enums import PaymentMethod, PaymentStatus, PostStatus
from src.service.dto import payment_dto, pricing_tier_dto

logger = logging.getLogger(__name__)


class PaymentService:
    """
    Payment service

    Amounts always come from the tier, never from the client
    """

    def __init__(self, config: Any):
        self.config = config

    async def _get_payment(self, session: AsyncSession, payment_id: int) -> Payment:
        payment = await session.get(Payment, payment_id)
        if payment is None:
            raise NotFoundError("Payment not found")
        return payment

    async def _release_post(self, session: AsyncSession, payment: Payment) -> None:
        """Return a post held for payment to Draft once no pending payment remains"""
        post = await session.get(Post, payment.post_id)
        if post is None or post.status != PostStatus.PENDING_PAYMENT.value:
            return

        pending = await session.scalar(
            select(Payment.id).where(
                Payment.post_id == post.id,
                Payment.status == PaymentStatus.PENDING.value,
                Payment.id != payment.id,
            )
        )
        if pending is None:
            post.status = PostStatus.DRAFT.value
            logger.info(f"Post {post.id} back to draft after payment {payment.id} cancelled")

    async def list_pricing_tiers(self, session: AsyncSession) -> List[Dict[str, Any]]:
        tiers = (
            await session.scalars(
                select(PricingTier)
                .where(PricingTier.is_active.is_(True))
                .order_by(PricingTier.price, PricingTier.id)
            )
        ).all()
        return [pricing_tier_dto(tier) for tier in tiers]

    async def create_payment(
        self,
        session: AsyncSession,
        user_id: int,
        post_id: int,
        pricing_tier_id: int,
        payment_method: PaymentMethod,
    ) -> Dict[str, Any]:
        """
        Open a pending payment for a post

        Raises:
            NotFoundError: Unknown user, post or inactive tier
            BadRequestError: Paying for your own post, or the post is already active
        """
        if await session.get(User, user_id) is None:
            raise NotFoundError("User not found")

        post = await session.get(Post, post_id)
        if post is None:
            raise NotFoundError("Post not found")

        tier = await session.get(PricingTier, pricing_tier_id)
        if tier is None or not tier.is_active:
            raise NotFoundError("Pricing tier not found")

        if post.user_id == user_id:
            raise BadRequestError("You cannot make payment for your own post")
        if post.status == PostStatus.ACTIVE.value:
            raise BadRequestError("Post is already active")

        payment = Payment(
            post_id=post_id,
            user_id=user_id,
            tier_id=tier.id,
            tier=tier,
            amount=tier.price,
            currency=self.config.payment_currency,
            payment_method=payment_method.value,
            status=PaymentStatus.PENDING.value,
        )
        session.add(payment)
        post.status = PostStatus.PENDING_PAYMENT.value
        await session.commit()
        payment = await session.get(Payment, payment.id, populate_existing=True)

        logger.info(
            f"Payment {payment.id} created: post {post_id}, tier {tier.name}, "
            f"{payment.amount} {payment.currency}"
        )
        return payment_dto(payment)

    async def confirm_payment(
        self, session: AsyncSession, payment_id: int, transaction_reference: str
    ) -> Dict[str, Any]:
        """
        Confirm a pending payment and activate its post for the tier's visibility period

        Raises:
            BadRequestError: Payment already confirmed or failed
            ConflictError: Transaction reference already used
        """
        payment = await self._get_payment(session, payment_id)
        if payment.status == PaymentStatus.CONFIRMED.value:
            raise BadRequestError("Payment already confirmed")
        if payment.status == PaymentStatus.FAILED.value:
            raise BadRequestError("Cannot confirm a failed payment")

        used = await session.scalar(
            select(Payment.id).where(
                Payment.transaction_reference == transaction_reference,
                Payment.id != payment_id,
            )
        )
        if used:
            raise ConflictError("Transaction reference already used", code=ErrorCode.CONFLICT)

        now = utcnow()
        payment.status = PaymentStatus.CONFIRMED.value
        payment.transaction_reference = transaction_reference
        payment.confirmed_at = now

        post = await session.get(Post, payment.post_id)
        if post is not None:
            post.status = PostStatus.ACTIVE.value
            post.tier_id = payment.tier_id
            post.published_at = now
            post.expires_at = now + timedelta(days=payment.tier.visibility_days)

        await session.commit()
        payment = await session.get(Payment, payment.id, populate_existing=True)
        logger.info(f"Payment {payment_id} confirmed, post {payment.post_id} active")
        return payment_dto(payment)

    async def get_payment(self, session: AsyncSession, payment_id: int, user: User) -> Dict[str, Any]:
        payment = await self._get_payment(session, payment_id)
        if payment.user_id != user.id and not user.is_admin:
            raise ForbiddenError("You can only view your own payments")
        return payment_dto(payment)

    async def get_user_payment_history(self, session: AsyncSession, user_id: int) -> Dict[str, Any]:
        payments = (
            await session.scalars(
                select(Payment)
                .where(Payment.user_id == user_id)
                .order_by(Payment.created_at.desc(), Payment.id.desc())
            )
        ).all()
        total_spent = sum(
            payment.amount
            for payment in payments
            if payment.status == PaymentStatus.CONFIRMED.value
        )
        return {
            "payments": [payment_dto(payment) for payment in payments],
            "totalSpent": float(total_spent),
            "totalPayments": len(payments),
        }

    async def get_post_payments(
        self, session: AsyncSession, post_id: int, user_id: int
    ) -> List[Dict[str, Any]]:
        post = await session.get(Post, post_id)
        if post is None:
            raise NotFoundError("Post not found")
        if post.user_id != user_id:
            raise ForbiddenError("You can only view payments for your own posts")

        payments = (
            await session.scalars(
                select(Payment)
                .where(Payment.post_id == post_id)
                .order_by(Payment.created_at.desc(), Payment.id.desc())
            )
        ).all()
        return [payment_dto(payment) for payment in payments]

    async def cancel_payment(self, session: AsyncSession, payment_id: int, user_id: int) -> Dict[str, Any]:
        payment = await self._get_payment(session, payment_id)
        if payment.user_id != user_id:
            raise ForbiddenError("You can only cancel your own payments")
        if payment.status == PaymentStatus.CONFIRMED.value:
            raise BadRequestError("Cannot cancel confirmed payment")
        if payment.status == PaymentStatus.FAILED.value:
            raise BadRequestError("Payment already cancelled")

        payment.status = PaymentStatus.FAILED.value
        await self._release_post(session, payment)
        await session.commit()
        payment = await session.get(Payment, payment.id, populate_existing=True)
        logger.info(f"Payment {payment_id} cancelled by user {user_id}")
        return payment_dto(payment)
