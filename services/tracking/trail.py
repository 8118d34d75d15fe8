"""
services/tracking/trail.py
Append-only per-booking audit trail. Entries are never updated or deleted.
"""

import logging
from typing import List, Optional

from config.database import DocumentStore
from shared.models.models import Collections, tracking_document

logger = logging.getLogger(__name__)


class TrackingTrail:
    def __init__(self, store: DocumentStore):
        self.trackings = store.collection(Collections.TRACKINGS)

    async def append(
        self,
        booking_id: str,
        status: str,
        actor_email: str,
        cost: Optional[float] = None,
        tracking_number: Optional[str] = None,
    ) -> str:
        doc = tracking_document(booking_id, status, actor_email, cost, tracking_number)
        event_id = await self.trackings.insert_one(doc)
        logger.info("Tracking %s: booking=%s status=%s by=%s", event_id, booking_id, status, actor_email)
        return event_id

    async def timeline(self, booking_id: str) -> List[dict]:
        return await self.trackings.find({"bookingId": booking_id}, sort=[("createdAt", 1)])
