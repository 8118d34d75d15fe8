"""
services/payment/router.py
Recording booking payments, Stripe payment intents, payment history.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from config.database import DocumentStore, get_store
from services.payment.gateway import StripeGateway, get_payment_gateway
from services.payment.processing import PaymentProcessor
from shared.middleware.auth import Caller, get_current_user, require_admin
from shared.schemas.schemas import (
    PaymentIntentRequest,
    PaymentIntentResponse,
    PaymentRequest,
    PaymentResponse,
)
from shared.utils.errors import GatewayUnavailable

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_processor(store: DocumentStore = Depends(get_store)) -> PaymentProcessor:
    return PaymentProcessor(store)


# ── Payment Intent ────────────────────────────────────────────

@router.post("/create-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    data: PaymentIntentRequest,
    current_user: Caller = Depends(get_current_user),
    gateway: Optional[StripeGateway] = Depends(get_payment_gateway),
):
    """Create a Stripe PaymentIntent; the client confirms it with the returned secret."""
    if gateway is None:
        raise GatewayUnavailable()
    client_secret = await gateway.create_intent(data.amount, data.currency)
    return PaymentIntentResponse(client_secret=client_secret)


# ── Record Payment ────────────────────────────────────────────

@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def record_payment(
    data: PaymentRequest,
    current_user: Caller = Depends(get_current_user),
    processor: PaymentProcessor = Depends(get_processor),
):
    """
    Record a confirmed payment for a booking and mark it paid.
    A booking is paid at most once; repeats answer 409.
    """
    payment = await processor.pay(
        data.booking_id,
        data.amount,
        current_user.email,
        transaction_id=data.transaction_id,
        metadata=data.metadata,
    )
    return PaymentResponse.model_validate(payment)


# ── Read Endpoints ────────────────────────────────────────────

@router.get("/user", response_model=list[PaymentResponse])
async def my_payment_history(
    current_user: Caller = Depends(get_current_user),
    processor: PaymentProcessor = Depends(get_processor),
):
    """Get authenticated user's payment history."""
    return [PaymentResponse.model_validate(p) for p in await processor.history(current_user.email)]


@router.get("", response_model=list[PaymentResponse])
async def list_payments(
    current_user: Caller = Depends(require_admin),
    processor: PaymentProcessor = Depends(get_processor),
):
    return [PaymentResponse.model_validate(p) for p in await processor.list_all()]
