from pydantic import Field

from src.models.enums import PaymentMethod

from .base import CamelModel


class CreatePaymentRequest(CamelModel):
    post_id: int = Field(..., gt=0)
    pricing_tier_id: int = Field(..., gt=0)
    payment_method: PaymentMethod


class ConfirmPaymentRequest(CamelModel):
    transaction_reference: str = Field(..., min_length=1, max_length=100)
