"""
services/work_order/orders.py
Work orders ("services"): admin assignment of a decorator to a paid
booking, the strict Assigned → Confirmed → Completed status machine, and
the decorator's cash-out.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from config.database import DocumentStore, DuplicateKeyError
from config.settings import settings
from services.tracking.trail import TrackingTrail
from shared.models.models import (
    Collections,
    PaymentStatus,
    ServiceStatus,
    TrackingStatus,
    UserRole,
    is_valid_transition,
    next_service_status,
    service_document,
)
from shared.utils.errors import (
    AccessDenied,
    AlreadyCashedOut,
    DuplicateAssignment,
    InvalidInput,
    InvalidTransition,
    NotFound,
    PaymentMissing,
)
from shared.utils.saga import Saga

logger = logging.getLogger(__name__)


def decorator_amount(payment_amount: float, share: float) -> float:
    """Decorator's cut of a payment, rounded half-up to cents."""
    value = Decimal(str(payment_amount)) * Decimal(str(share))
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


class WorkOrders:
    def __init__(self, store: DocumentStore, decorator_share: Optional[float] = None):
        self.services = store.collection(Collections.SERVICES)
        self.bookings = store.collection(Collections.BOOKINGS)
        self.payments = store.collection(Collections.PAYMENTS)
        self.users = store.collection(Collections.USERS)
        self.trail = TrackingTrail(store)
        self.decorator_share = decorator_share or settings.DECORATOR_SHARE

    # ── Assignment ────────────────────────────────────────────

    async def assign(
        self,
        booking_id: str,
        decorator_email: str,
        admin_email: str,
        decorator_name: Optional[str] = None,
        decorator_phone: Optional[str] = None,
        service_type: Optional[str] = None,
    ) -> dict:
        booking = await self.bookings.find_one({"_id": booking_id})
        if not booking:
            raise NotFound("Booking not found", booking_id=booking_id)
        if booking.get("paymentStatus") != PaymentStatus.PAID.value:
            raise InvalidInput("Booking must be paid before a decorator is assigned",
                               booking_id=booking_id)
        if await self.services.find_one({"bookingId": booking_id}):
            raise DuplicateAssignment(booking_id=booking_id)

        decorator = await self.users.find_one({"email": decorator_email})
        if not decorator or decorator.get("role") != UserRole.DECORATOR.value:
            raise InvalidInput("Assignee is not an approved decorator",
                               decorator_email=decorator_email)

        service = service_document(
            booking_id,
            service_type or booking.get("serviceType"),
            decorator_email,
            decorator_name or decorator.get("name"),
            decorator_phone,
        )

        async def create_service():
            try:
                return await self.services.insert_one(service)
            except DuplicateKeyError:
                raise DuplicateAssignment(booking_id=booking_id)

        async def delete_service():
            await self.services.delete_one({"_id": service["_id"]})

        async def link_booking():
            await self.bookings.update_one(
                {"_id": booking_id}, {"$set": {"decoratorEmail": decorator_email}}
            )

        async def unlink_booking():
            await self.bookings.update_one(
                {"_id": booking_id, "decoratorEmail": decorator_email},
                {"$set": {"decoratorEmail": booking.get("decoratorEmail")}},
            )

        async def track_assignment():
            await self.trail.append(booking_id, TrackingStatus.ASSIGNED.value, admin_email)

        await (
            Saga("assign_service", booking_id=booking_id, decorator_email=decorator_email)
            .step("create_service", create_service, compensate=delete_service)
            .step("link_booking", link_booking, compensate=unlink_booking)
            .step("append_tracking", track_assignment)
            .run()
        )
        logger.info("Service %s: booking %s assigned to %s", service["_id"], booking_id, decorator_email)
        return service

    # ── Reads ─────────────────────────────────────────────────

    async def get_or_404(self, service_id: str) -> dict:
        service = await self.services.find_one({"_id": service_id})
        if not service:
            raise NotFound("Service not found", service_id=service_id)
        return service

    async def list_for_decorator(self, email: str) -> List[dict]:
        return await self.services.find({"decoratorEmail": email}, sort=[("createdAt", -1)])

    async def list_all(self, status: Optional[ServiceStatus] = None) -> List[dict]:
        query = {"status": status.value} if status else {}
        return await self.services.find(query, sort=[("createdAt", -1)])

    @staticmethod
    def ensure_assignee(service: dict, email: str, is_admin: bool) -> None:
        if not is_admin and service.get("decoratorEmail") != email:
            raise AccessDenied("Only the assigned decorator can act on this service")

    # ── Status Machine ────────────────────────────────────────

    async def update_status(self, service_id: str, requested: str, actor_email: str,
                            is_admin: bool = False) -> dict:
        service = await self.get_or_404(service_id)
        self.ensure_assignee(service, actor_email, is_admin)

        current = service.get("status")
        if not is_valid_transition(current, requested):
            successor = next_service_status(current)
            raise InvalidTransition(
                f"Cannot move service from '{current}' to '{requested}'",
                service_id=service_id,
                current=current,
                allowed=successor.value if successor else None,
            )

        async def set_status():
            # Conditional on the status we validated against
            matched = await self.services.update_one(
                {"_id": service_id, "status": current}, {"$set": {"status": requested}}
            )
            if not matched:
                raise InvalidTransition("Service status changed concurrently", service_id=service_id)

        async def restore_status():
            await self.services.update_one(
                {"_id": service_id, "status": requested}, {"$set": {"status": current}}
            )

        async def track_status():
            await self.trail.append(service["bookingId"], requested, actor_email)

        await (
            Saga("update_service_status", service_id=service_id, status=requested)
            .step("set_status", set_status, compensate=restore_status)
            .step("append_tracking", track_status)
            .run()
        )
        logger.info("Service %s: %s → %s by %s", service_id, current, requested, actor_email)

        service["status"] = requested
        return service

    # ── Cash-Out ──────────────────────────────────────────────

    async def cash_out(self, service_id: str, actor_email: str,
                       tracking_number: Optional[str] = None, is_admin: bool = False) -> dict:
        """
        Set the decorator's share as the service price and force status to
        Completed. A positive price marks the service as already cashed out.
        """
        service = await self.get_or_404(service_id)
        self.ensure_assignee(service, actor_email, is_admin)
        if (service.get("price") or 0) > 0:
            raise AlreadyCashedOut(service_id=service_id)

        booking_id = service["bookingId"]
        payment = await self.payments.find_one({"bookingId": booking_id})
        if not payment:
            raise PaymentMissing(service_id=service_id, booking_id=booking_id)

        amount = decorator_amount(payment["amount"], self.decorator_share)
        # A zero price would leave the cashed-out guard open
        if amount <= 0:
            raise InvalidInput("Payment too small to cash out",
                               service_id=service_id, payment_amount=payment["amount"])
        previous_status = service.get("status")
        previous_price = service.get("price", 0)

        async def settle_service():
            matched = await self.services.update_one(
                {"_id": service_id, "price": {"$lte": 0}},
                {"$set": {"price": amount, "status": ServiceStatus.COMPLETED.value}},
            )
            if not matched:
                raise AlreadyCashedOut(service_id=service_id)

        async def unsettle_service():
            await self.services.update_one(
                {"_id": service_id, "price": amount},
                {"$set": {"price": previous_price, "status": previous_status}},
            )

        async def track_cash_out():
            await self.trail.append(
                booking_id, TrackingStatus.CASHED_OUT.value, actor_email,
                cost=amount, tracking_number=tracking_number,
            )

        await (
            Saga("cash_out", service_id=service_id, booking_id=booking_id)
            .step("settle_service", settle_service, compensate=unsettle_service)
            .step("append_tracking", track_cash_out)
            .run()
        )
        logger.info("Service %s cashed out: %s of %s to %s",
                    service_id, amount, payment["amount"], service.get("decoratorEmail"))

        service.update(price=amount, status=ServiceStatus.COMPLETED.value)
        return service
