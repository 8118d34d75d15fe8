"""
services/booking/router.py
Customer bookings. The owner is always taken from the bearer token.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from config.database import DocumentStore, get_store
from services.booking.lifecycle import BookingLifecycle
from shared.middleware.auth import Caller, get_current_user, require_admin
from shared.models.models import PaymentStatus
from shared.schemas.schemas import (
    BookingCreateRequest,
    BookingResponse,
    InsertResponse,
    MessageResponse,
)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_lifecycle(store: DocumentStore = Depends(get_store)) -> BookingLifecycle:
    return BookingLifecycle(store)


@router.post("", response_model=InsertResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    data: BookingCreateRequest,
    current_user: Caller = Depends(get_current_user),
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
):
    """Create an unpaid booking owned by the caller."""
    details = data.model_dump(by_alias=True, exclude_none=True)
    booking_id = await lifecycle.create(current_user.email, details)
    return InsertResponse(inserted=True, id=booking_id)


@router.get("/user", response_model=list[BookingResponse])
async def my_bookings(
    current_user: Caller = Depends(get_current_user),
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
):
    """Caller's bookings, newest first."""
    docs = await lifecycle.list_for_owner(current_user.email)
    return [BookingResponse.model_validate(d) for d in docs]


@router.get("", response_model=list[BookingResponse])
async def list_bookings(
    payment_status: Optional[PaymentStatus] = Query(None, alias="paymentStatus"),
    current_user: Caller = Depends(require_admin),
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
):
    docs = await lifecycle.list_all(payment_status)
    return [BookingResponse.model_validate(d) for d in docs]


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    current_user: Caller = Depends(get_current_user),
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
):
    booking = await lifecycle.get_visible(booking_id, current_user.email, current_user.is_admin)
    return BookingResponse.model_validate(booking)


@router.delete("/{booking_id}", response_model=MessageResponse)
async def cancel_booking(
    booking_id: str,
    current_user: Caller = Depends(get_current_user),
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
):
    """Cancel (delete) an unpaid booking."""
    await lifecycle.cancel(booking_id, current_user.email, current_user.is_admin)
    return MessageResponse(message="Booking cancelled")
