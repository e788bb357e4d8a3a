from __future__ import annotations

from typing import Any


class ServiceError(Exception):
    """Base class for failures raised by the service layer.

    ``code`` is the machine-readable discriminator sent to clients and
    ``status_code`` the HTTP status the boundary answers with.
    """

    code = "internal_error"
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": False, "message": self.message, "error": self.code}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(ServiceError):
    """Malformed or out-of-range input, rejected before any write."""

    code = "validation_error"
    status_code = 400
    default_message = "Invalid input"

    def __init__(self, message: str | None = None, *, field: str | None = None, details: Any = None):
        if details is None and field is not None:
            details = {"field": field}
        self.field = field
        super().__init__(message, details)


class ForbiddenError(ServiceError):
    code = "forbidden"
    status_code = 403
    default_message = "You are not allowed to perform this action"


class NotFoundError(ServiceError):
    code = "not_found"
    status_code = 404
    default_message = "Record not found"


class InvalidStateError(ServiceError):
    """The action is not defined from the entity's current lifecycle state."""

    code = "invalid_state"
    status_code = 409
    default_message = "Action not allowed in the current state"

    def __init__(self, message: str | None = None, *, current_state: str | None = None, action: str | None = None):
        self.current_state = current_state
        self.action = action
        details = None
        if current_state is not None or action is not None:
            details = {"current_state": current_state, "action": action}
        super().__init__(message, details)


class IncompleteDataError(ServiceError):
    """One or more people lack the fields required for leadership.

    ``items`` holds one entry per offending record with its display name and
    the list of missing field names.
    """

    code = "incomplete_data"
    status_code = 400
    default_message = "Required personal data is missing"

    def __init__(self, message: str | None = None, items: list[dict[str, Any]] | None = None):
        self.items = items or []
        super().__init__(message, self.items)


class ConflictError(ServiceError):
    """Lost a race against a concurrent write; retry with fresh data."""

    code = "conflict"
    status_code = 409
    default_message = "The record was changed by another request"


class StoreUnavailableError(ServiceError):
    code = "store_unavailable"
    status_code = 503
    default_message = "The data store is temporarily unavailable"
