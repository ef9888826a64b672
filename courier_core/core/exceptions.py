# courier_core/core/exceptions.py
"""
Domain errors raised by the order-management services.

Every error carries a stable ``error_code`` so callers can tell a
"re-fetch and retry" situation (``conflict``, ``already_assigned``) from a
blocking one (``invalid_transition``). The FastAPI handler registered in
``main.py`` renders them with the shared ``ErrorResponse`` schema.
"""
from typing import Any, Dict, Optional


class CourierCoreError(Exception):
    status_code: int = 400
    error_code: str = "error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class NotFound(CourierCoreError):
    status_code = 404
    error_code = "not_found"

    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            f"{entity} {entity_id} not found",
            {"entity": entity, "id": entity_id},
        )


class InvalidTransition(CourierCoreError):
    """A lifecycle event was rejected by a guard"""
    status_code = 409
    error_code = "invalid_transition"

    def __init__(self, current_status: str, event: str, precondition: str):
        super().__init__(
            f"Cannot apply '{event}' to an order in status '{current_status}': {precondition}",
            {"current_status": current_status, "event": event, "failed_precondition": precondition},
        )
        self.current_status = current_status
        self.event = event
        self.precondition = precondition


class AlreadyAssigned(CourierCoreError):
    status_code = 409
    error_code = "already_assigned"

    def __init__(self, order_id: str):
        super().__init__(
            f"Order {order_id} was already accepted by another driver",
            {"order_id": order_id},
        )


class OrderNotPayable(CourierCoreError):
    status_code = 409
    error_code = "order_not_payable"

    def __init__(self, order_id: str, reason: str):
        super().__init__(
            f"Payment action not allowed on order {order_id}: {reason}",
            {"order_id": order_id, "reason": reason},
        )


class Conflict(CourierCoreError):
    """The stored order changed since the caller last read it"""
    status_code = 409
    error_code = "conflict"

    def __init__(self, order_id: str, expected_version: Optional[int] = None, current_version: Optional[int] = None):
        super().__init__(
            f"Order {order_id} was modified concurrently, re-read and retry",
            {
                "order_id": order_id,
                "expected_version": expected_version,
                "current_version": current_version,
            },
        )


class AlreadyUsed(CourierCoreError):
    status_code = 409
    error_code = "already_used"

    def __init__(self, code: str):
        super().__init__(f"Invite code {code} has already been used", {"code": code})


class CodeInactive(CourierCoreError):
    status_code = 409
    error_code = "code_inactive"

    def __init__(self, code: str):
        super().__init__(f"Invite code {code} is not active", {"code": code})


class ValidationError(CourierCoreError):
    status_code = 422
    error_code = "validation_error"


class PermissionDenied(CourierCoreError):
    status_code = 403
    error_code = "permission_denied"


class DuplicateAccount(CourierCoreError):
    status_code = 409
    error_code = "duplicate_account"


class StorageUnavailable(CourierCoreError):
    status_code = 503
    error_code = "storage_unavailable"
