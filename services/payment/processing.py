"""
services/payment/processing.py
Recording a payment against a booking.

The booking's paymentStatus is the idempotence flag. It is flipped with a
conditional update (unpaid → paid) before anything else is written, so two
concurrent submissions cannot both record a payment.

    claim booking ─► insert payment ─► append "Completed" tracking event
     (undo: release)   (pivot, immutable)
"""

import logging
import math
from typing import Any, Dict, List, Optional

from config.database import DocumentStore
from services.tracking.trail import TrackingTrail
from shared.models.models import (
    Collections,
    PaymentStatus,
    TrackingStatus,
    payment_document,
)
from shared.utils.errors import AlreadyPaid, InvalidInput, NotFound, PaymentPartialFailure
from shared.utils.saga import Saga

logger = logging.getLogger(__name__)


class PaymentProcessor:
    def __init__(self, store: DocumentStore):
        self.bookings = store.collection(Collections.BOOKINGS)
        self.payments = store.collection(Collections.PAYMENTS)
        self.trail = TrackingTrail(store)

    async def pay(
        self,
        booking_id: Optional[str],
        amount: Optional[float],
        payer_email: str,
        transaction_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> dict:
        if not booking_id:
            raise InvalidInput("bookingId is required")
        if amount is None or isinstance(amount, bool) or not math.isfinite(amount):
            raise InvalidInput("amount must be a positive number", booking_id=booking_id)
        # Amounts are kept to the cent; anything rounding to zero is not a payment
        amount = round(float(amount), 2)
        if amount <= 0:
            raise InvalidInput("amount must be a positive number", booking_id=booking_id)

        booking = await self.bookings.find_one({"_id": booking_id})
        if not booking:
            raise NotFound("Booking not found", booking_id=booking_id)
        if booking.get("paymentStatus") == PaymentStatus.PAID.value:
            raise AlreadyPaid(booking_id=booking_id)

        payment = payment_document(booking_id, amount, transaction_id, payer_email)
        if metadata:
            payment["metadata"] = metadata

        async def claim_booking():
            matched = await self.bookings.update_one(
                {"_id": booking_id, "paymentStatus": PaymentStatus.UNPAID.value},
                {"$set": {"paymentStatus": PaymentStatus.PAID.value}},
            )
            if not matched:
                raise AlreadyPaid(booking_id=booking_id)

        async def release_booking():
            await self.bookings.update_one(
                {"_id": booking_id, "paymentStatus": PaymentStatus.PAID.value},
                {"$set": {"paymentStatus": PaymentStatus.UNPAID.value}},
            )

        async def record_payment():
            return await self.payments.insert_one(payment)

        async def track_payment():
            return await self.trail.append(
                booking_id, TrackingStatus.PAYMENT_COMPLETED.value, payer_email
            )

        await (
            Saga("pay", error_cls=PaymentPartialFailure, booking_id=booking_id)
            .step("claim_booking", claim_booking, compensate=release_booking)
            .step("record_payment", record_payment)
            .step("append_tracking", track_payment)
            .run()
        )
        logger.info(
            "Payment %s recorded: booking=%s amount=%s by=%s",
            payment["_id"], booking_id, payment["amount"], payer_email,
        )
        return payment

    async def for_booking(self, booking_id: str) -> Optional[dict]:
        return await self.payments.find_one({"bookingId": booking_id})

    async def history(self, email: str) -> List[dict]:
        return await self.payments.find({"userEmail": email}, sort=[("createdAt", -1)])

    async def list_all(self) -> List[dict]:
        return await self.payments.find({}, sort=[("createdAt", -1)])
