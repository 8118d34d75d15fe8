"""
shared/utils/errors.py
Domain error taxonomy. Every error carries its HTTP status, a stable
machine-readable code and optional context for reconciliation.
main.py renders these as {"detail", "code", "context"}.
"""

from typing import Any, Dict, List, Optional


class PlatformError(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "An internal server error occurred"

    def __init__(self, message: Optional[str] = None, **context: Any):
        self.message = message or self.default_message
        self.context: Dict[str, Any] = context
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "code": self.code, "context": self.context}


# ── Auth ──────────────────────────────────────────────────────

class Unauthenticated(PlatformError):
    status_code = 401
    code = "UNAUTHENTICATED"
    default_message = "Authentication required"


class InvalidCredential(PlatformError):
    status_code = 403
    code = "INVALID_CREDENTIAL"
    default_message = "Invalid or expired token"


class AccessDenied(PlatformError):
    status_code = 403
    code = "ACCESS_DENIED"
    default_message = "Forbidden access"


# ── Lookup / Input ────────────────────────────────────────────

class NotFound(PlatformError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Not found"


class InvalidInput(PlatformError):
    status_code = 400
    code = "INVALID_INPUT"
    default_message = "Invalid input"


# ── Idempotence ───────────────────────────────────────────────

class DuplicateApplication(PlatformError):
    status_code = 400
    code = "DUPLICATE_APPLICATION"
    default_message = "You have already applied"


class DuplicateAssignment(PlatformError):
    status_code = 400
    code = "DUPLICATE_ASSIGNMENT"
    default_message = "A decorator is already assigned to this booking"


class AlreadyPaid(PlatformError):
    status_code = 409
    code = "ALREADY_PAID"
    default_message = "Booking is already paid"


class AlreadyCashedOut(PlatformError):
    status_code = 400
    code = "ALREADY_CASHED_OUT"
    default_message = "Service has already been cashed out"


# ── State ─────────────────────────────────────────────────────

class InvalidTransition(PlatformError):
    status_code = 400
    code = "INVALID_TRANSITION"
    default_message = "Invalid status transition"


class PaymentMissing(PlatformError):
    status_code = 400
    code = "PAYMENT_MISSING"
    default_message = "No payment found for this booking"


class GatewayUnavailable(PlatformError):
    status_code = 503
    code = "GATEWAY_UNAVAILABLE"
    default_message = "Payment service unavailable"


class GatewayError(PlatformError):
    status_code = 502
    code = "GATEWAY_ERROR"
    default_message = "Payment gateway error"


# ── Multi-write ───────────────────────────────────────────────

class PartialFailure(PlatformError):
    """A multi-write operation failed after at least one write landed."""

    status_code = 500
    code = "PARTIAL_FAILURE"
    default_message = "Operation partially applied; manual reconciliation required"

    def __init__(
        self,
        operation: str,
        failed_step: str,
        completed_steps: List[str],
        compensated_steps: List[str],
        message: Optional[str] = None,
        **context: Any,
    ):
        super().__init__(
            message,
            operation=operation,
            failed_step=failed_step,
            completed_steps=completed_steps,
            compensated_steps=compensated_steps,
            **context,
        )
        self.operation = operation
        self.failed_step = failed_step
        self.completed_steps = completed_steps
        self.compensated_steps = compensated_steps

    @property
    def reconciliation_required(self) -> bool:
        return set(self.completed_steps) != set(self.compensated_steps)


class PaymentPartialFailure(PartialFailure):
    code = "PAYMENT_PARTIAL_FAILURE"
    default_message = "Payment partially recorded; manual reconciliation required"
