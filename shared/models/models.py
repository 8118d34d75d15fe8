"""
shared/models/models.py
Document shapes for the Decor Booking Platform.

Records live in a schemaless document store, so "models" here are the
enumerations, collection names, the service status table and small
builders that stamp ids and timestamps consistently. Stored field names
are camelCase.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum
from typing import Optional


# ── Collections ───────────────────────────────────────────────

class Collections:
    USERS = "users"
    APPLICATIONS = "decoratorApplications"
    SERVICES = "services"
    BOOKINGS = "bookings"
    PAYMENTS = "payments"
    TRACKINGS = "trackings"


# ── Enumerations ──────────────────────────────────────────────

class UserRole(str, PyEnum):
    USER = "user"
    DECORATOR = "decorator"
    ADMIN = "admin"


class ApplicationStatus(str, PyEnum):
    PENDING = "pending"
    APPROVED = "approved"


class PaymentStatus(str, PyEnum):
    UNPAID = "unpaid"
    PAID = "paid"


class ServiceStatus(str, PyEnum):
    ASSIGNED = "Assigned"
    CONFIRMED = "Confirmed"
    COMPLETED = "Completed"


class TrackingStatus(str, PyEnum):
    """Statuses written to the trail by the platform itself.
    Service status changes are mirrored verbatim."""
    PAYMENT_COMPLETED = "Completed"
    ASSIGNED = "Assigned"
    CASHED_OUT = "Cashed Out"


# ── Service Status Machine ────────────────────────────────────

# Strict successor table: no skipping, no regression
SERVICE_TRANSITIONS: dict[ServiceStatus, Optional[ServiceStatus]] = {
    ServiceStatus.ASSIGNED: ServiceStatus.CONFIRMED,
    ServiceStatus.CONFIRMED: ServiceStatus.COMPLETED,
    ServiceStatus.COMPLETED: None,
}


def next_service_status(current: str) -> Optional[ServiceStatus]:
    """Designated successor of ``current``, or None if terminal/unknown."""
    try:
        return SERVICE_TRANSITIONS[ServiceStatus(current)]
    except ValueError:
        return None


def is_valid_transition(current: str, requested: str) -> bool:
    successor = next_service_status(current)
    return successor is not None and successor.value == requested


# ── Builders ──────────────────────────────────────────────────

def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def user_document(email: str, name: Optional[str] = None, photo_url: Optional[str] = None,
                  role: UserRole = UserRole.USER) -> dict:
    return {
        "_id": new_id(),
        "email": email,
        "name": name,
        "photoURL": photo_url,
        "role": role.value,
        "blocked": False,
        "createdAt": utcnow(),
    }


def application_document(email: str, name: str, phone: str, nid: str, experience: str) -> dict:
    return {
        "_id": new_id(),
        "name": name,
        "email": email,
        "phone": phone,
        "nid": nid,
        "experience": experience,
        "status": ApplicationStatus.PENDING.value,
        "createdAt": utcnow(),
    }


def booking_document(owner_email: str, details: dict) -> dict:
    doc = {k: v for k, v in details.items() if k not in ("_id", "userEmail", "paymentStatus")}
    doc.update({
        "_id": new_id(),
        "userEmail": owner_email,
        "paymentStatus": PaymentStatus.UNPAID.value,
        "decoratorEmail": None,
        "createdAt": utcnow(),
    })
    return doc


def payment_document(booking_id: str, amount: float, transaction_id: Optional[str],
                     user_email: str) -> dict:
    return {
        "_id": new_id(),
        "bookingId": booking_id,
        "amount": amount,
        "transactionId": transaction_id,
        "userEmail": user_email,
        "createdAt": utcnow(),
    }


def service_document(booking_id: str, service_type: Optional[str], decorator_email: str,
                     decorator_name: Optional[str], decorator_phone: Optional[str]) -> dict:
    return {
        "_id": new_id(),
        "bookingId": booking_id,
        "serviceType": service_type,
        "decoratorEmail": decorator_email,
        "decoratorName": decorator_name,
        "decoratorPhone": decorator_phone,
        "price": 0,
        "status": ServiceStatus.ASSIGNED.value,
        "createdAt": utcnow(),
    }


def tracking_document(booking_id: str, status: str, email: str, cost: Optional[float] = None,
                      tracking_number: Optional[str] = None) -> dict:
    doc = {
        "_id": new_id(),
        "bookingId": booking_id,
        "status": status,
        "email": email,
        "createdAt": utcnow(),
    }
    if cost is not None:
        doc["cost"] = cost
    if tracking_number is not None:
        doc["trackingNumber"] = tracking_number
    return doc
