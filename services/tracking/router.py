"""
services/tracking/router.py
Per-booking tracking timeline.
"""

from fastapi import APIRouter, Depends

from config.database import DocumentStore, get_store
from services.booking.lifecycle import BookingLifecycle
from services.tracking.trail import TrackingTrail
from shared.middleware.auth import Caller, get_current_user
from shared.schemas.schemas import TrackingEventResponse

router = APIRouter(prefix="/trackings", tags=["Tracking"])


@router.get("/{booking_id}", response_model=list[TrackingEventResponse])
async def booking_timeline(
    booking_id: str,
    current_user: Caller = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    """Events for a booking, oldest first. Owner, assigned decorator or admin."""
    await BookingLifecycle(store).get_visible(booking_id, current_user.email, current_user.is_admin)
    events = await TrackingTrail(store).timeline(booking_id)
    return [TrackingEventResponse.model_validate(e) for e in events]
