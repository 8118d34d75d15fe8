"""
services/booking/lifecycle.py
Booking creation and reads. The owner is always the authenticated
caller; payment state only ever changes through services/payment.
"""

import logging
from typing import List, Optional

from config.database import DocumentStore
from shared.models.models import Collections, PaymentStatus, booking_document
from shared.utils.errors import AccessDenied, InvalidInput, NotFound

logger = logging.getLogger(__name__)


class BookingLifecycle:
    def __init__(self, store: DocumentStore):
        self.bookings = store.collection(Collections.BOOKINGS)

    async def create(self, owner_email: str, details: dict) -> str:
        doc = booking_document(owner_email, details)
        booking_id = await self.bookings.insert_one(doc)
        logger.info("Booking %s created by %s (%s)", booking_id, owner_email, doc.get("serviceType"))
        return booking_id

    async def get_or_404(self, booking_id: str) -> dict:
        booking = await self.bookings.find_one({"_id": booking_id})
        if not booking:
            raise NotFound("Booking not found", booking_id=booking_id)
        return booking

    async def get_visible(self, booking_id: str, email: str, is_admin: bool) -> dict:
        """Owner, assigned decorator or an admin may read a booking."""
        booking = await self.get_or_404(booking_id)
        if not (is_admin or email in (booking.get("userEmail"), booking.get("decoratorEmail"))):
            raise AccessDenied("You cannot access this booking")
        return booking

    async def list_for_owner(self, owner_email: str) -> List[dict]:
        return await self.bookings.find({"userEmail": owner_email}, sort=[("createdAt", -1)])

    async def list_all(self, payment_status: Optional[PaymentStatus] = None) -> List[dict]:
        query = {"paymentStatus": payment_status.value} if payment_status else {}
        return await self.bookings.find(query, sort=[("createdAt", -1)])

    async def cancel(self, booking_id: str, email: str, is_admin: bool) -> None:
        """Delete an unpaid booking. Paid bookings have a payment trail and stay."""
        booking = await self.get_or_404(booking_id)
        if not is_admin and booking.get("userEmail") != email:
            raise AccessDenied("You cannot cancel this booking")

        deleted = await self.bookings.delete_one(
            {"_id": booking_id, "paymentStatus": PaymentStatus.UNPAID.value}
        )
        if not deleted:
            raise InvalidInput("Paid bookings cannot be cancelled", booking_id=booking_id)
        logger.info("Booking %s cancelled by %s", booking_id, email)
