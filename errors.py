"""Error types raised by the CampusEvents client core.

Two families, kept apart so callers can phrase them differently:
- ApiError: the backend could not be reached, refused the request, or
  answered with something unusable.
- PreconditionViolation: a local check failed before any network call.
"""

from enum import Enum


class ErrorCode(Enum):
    """Precondition violation codes."""

    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    ALREADY_REGISTERED = "ALREADY_REGISTERED"
    EVENT_FULL = "EVENT_FULL"
    NOT_REGISTERED = "NOT_REGISTERED"
    INVALID_CAPACITY = "INVALID_CAPACITY"
    CAPACITY_BELOW_REGISTERED = "CAPACITY_BELOW_REGISTERED"
    OPERATION_PENDING = "OPERATION_PENDING"
    PERMISSION_DENIED = "PERMISSION_DENIED"


class CampusEventsError(Exception):
    """Base class for every error the core raises."""


class ApiError(CampusEventsError):
    """Transport failure: non-success status, unreachable server or malformed body.

    A status of 0 means no HTTP response was received at all. A success
    body that cannot be parsed into the expected shape is reported with
    status 200 whatever 2xx code the backend sent.
    """

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message

    def __str__(self) -> str:
        return f"{self.status}: {self.message}"


class PreconditionViolation(CampusEventsError):
    """Base for locally detected invariant breaches."""

    def __init__(self, code: ErrorCode, message: str, event_id: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.event_id = event_id

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class EventNotFoundError(PreconditionViolation):
    """Raised when the event is not in the collection."""

    def __init__(self, event_id: str) -> None:
        super().__init__(ErrorCode.EVENT_NOT_FOUND, "Event not found", event_id)


class AlreadyRegisteredError(PreconditionViolation):
    def __init__(self, event_id: str) -> None:
        super().__init__(
            ErrorCode.ALREADY_REGISTERED,
            "You are already registered for this event",
            event_id,
        )


class EventFullError(PreconditionViolation):
    def __init__(self, event_id: str) -> None:
        super().__init__(ErrorCode.EVENT_FULL, "Event is full", event_id)


class NotRegisteredError(PreconditionViolation):
    def __init__(self, event_id: str) -> None:
        super().__init__(
            ErrorCode.NOT_REGISTERED,
            "You are not registered for this event",
            event_id,
        )


class InvalidCapacityError(PreconditionViolation):
    def __init__(self, capacity: int, event_id: str | None = None) -> None:
        super().__init__(
            ErrorCode.INVALID_CAPACITY,
            f"Capacity must be at least 1, got {capacity}",
            event_id,
        )
        self.capacity = capacity


class CapacityBelowRegisteredError(PreconditionViolation):
    """Raised when an edit would leave more registrations than seats."""

    def __init__(self, event_id: str, capacity: int, registered: int) -> None:
        super().__init__(
            ErrorCode.CAPACITY_BELOW_REGISTERED,
            f"Capacity {capacity} is below the {registered} existing registrations",
            event_id,
        )
        self.capacity = capacity
        self.registered = registered


class OperationPendingError(PreconditionViolation):
    """Raised when another change to the same event has not finished yet."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            ErrorCode.OPERATION_PENDING,
            "Another change to this event is still in progress",
            event_id,
        )


class PermissionDeniedError(PreconditionViolation):
    def __init__(self, required_role: str, actual_role: str | None) -> None:
        super().__init__(
            ErrorCode.PERMISSION_DENIED,
            f"Only {required_role}s can do this",
        )
        self.required_role = required_role
        self.actual_role = actual_role
