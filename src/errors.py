"""
Scheduling error taxonomy.

InvalidInputError and PolicyViolationError are terminal for a request.
ConflictError is retryable by re-querying availability and resubmitting.
CollaboratorUnavailableError is recovered inside RouteSequencer and only
ever logged.
"""

from typing import Optional


class SchedulingError(Exception):
    """Base class for all scheduling engine errors."""


class InvalidInputError(SchedulingError):
    """A request field failed validation before any computation ran."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"Invalid {field}: {message}")
        self.field = field

    @classmethod
    def from_validation(cls, exc) -> "InvalidInputError":
        """Wrap the first error of a pydantic ValidationError."""
        first = exc.errors()[0]
        field_name = ".".join(str(part) for part in first["loc"]) or "request"
        return cls(field_name, first["msg"])


class NotFoundError(SchedulingError):
    """The referenced appointment or provider does not exist."""

    def __init__(self, kind: str, identifier: str) -> None:
        super().__init__(f"{kind} '{identifier}' not found")
        self.kind = kind
        self.identifier = identifier


class PolicyViolationError(SchedulingError):
    """A reschedule was refused because the appointment is out of reschedules."""

    def __init__(self, appointment_id: str, count: int, limit: int) -> None:
        super().__init__(
            f"Appointment {appointment_id} has been rescheduled {count} times; "
            f"the limit is {limit}"
        )
        self.appointment_id = appointment_id
        self.count = count
        self.limit = limit


class ConflictError(SchedulingError):
    """A write lost to another write, or the requested slot is not free."""

    def __init__(self, message: str, reason: Optional[str] = None) -> None:
        super().__init__(message)
        self.reason = reason


class InvalidTransitionError(SchedulingError):
    """Raised when a lifecycle transition is not valid from the current state."""


class CollaboratorUnavailableError(SchedulingError):
    """The directions collaborator timed out or failed."""
