"""
services/payment/gateway.py
Stripe payment-intent creation. Optional: without STRIPE_SECRET_KEY the
gateway dependency resolves to None and intent creation answers 503,
while recording payments keeps working.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

import stripe
from starlette.concurrency import run_in_threadpool

from config.settings import settings
from shared.utils.errors import GatewayError

logger = logging.getLogger(__name__)

# ISO currencies Stripe charges in whole units
ZERO_DECIMAL_CURRENCIES = {"bif", "clp", "djf", "gnf", "jpy", "kmf", "krw", "mga",
                           "pyg", "rwf", "ugx", "vnd", "vuv", "xaf", "xof", "xpf"}


def to_minor_units(amount: float, currency: str) -> int:
    """Stripe wants integer amounts in the currency's smallest unit."""
    value = Decimal(str(amount))
    if currency.lower() not in ZERO_DECIMAL_CURRENCIES:
        value *= 100
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripeGateway:
    def __init__(self, secret_key: str, default_currency: str = "usd"):
        self.secret_key = secret_key
        self.default_currency = default_currency

    async def create_intent(self, amount: float, currency: Optional[str] = None) -> str:
        currency = (currency or self.default_currency).lower()
        try:
            intent = await run_in_threadpool(
                stripe.PaymentIntent.create,
                amount=to_minor_units(amount, currency),
                currency=currency,
                payment_method_types=["card"],
                api_key=self.secret_key,
            )
        except stripe.StripeError as e:
            logger.error("Stripe intent creation failed: %s", e)
            raise GatewayError(f"Payment gateway error: {e.user_message or str(e)}")
        return intent.client_secret


def get_payment_gateway() -> Optional[StripeGateway]:
    """FastAPI dependency. None when no gateway is configured."""
    if not settings.payments_enabled:
        return None
    return StripeGateway(settings.STRIPE_SECRET_KEY, settings.PAYMENT_CURRENCY)
