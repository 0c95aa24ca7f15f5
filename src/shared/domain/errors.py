"""Exception hierarchy shared by the employee and survey slices."""

from typing import Any, Dict, List, Optional


class DomainError(Exception):
    """Base exception for all business-rule violations."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ValidationError(DomainError):
    """Input failed schema validation or a cross-field business rule."""

    status_code = 400

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        self.errors = errors or []
        super().__init__(message)

    @classmethod
    def from_pydantic(cls, exc, subject: str = "input") -> "ValidationError":
        """Wrap a pydantic ValidationError, keeping the field-level details."""
        errors = [
            {"field": ".".join(str(part) for part in err["loc"]) or subject, "message": err["msg"]}
            for err in exc.errors()
        ]
        summary = "; ".join(f"{e['field']}: {e['message']}" for e in errors)
        return cls(f"Invalid {subject}: {summary}", errors=errors)


class IllegalRoleError(ValidationError):
    """Requested role cannot be granted through ordinary employee management."""

    def __init__(self, role: str, message: Optional[str] = None):
        self.role = role
        super().__init__(message or f"Role '{role}' cannot be assigned through employee management")


class NotFoundError(DomainError):
    """Entity does not exist or lies outside the caller's organization."""

    status_code = 404

    def __init__(self, entity: str, entity_id: Any = None):
        self.entity = entity
        self.entity_id = entity_id
        if entity_id is not None:
            super().__init__(f"{entity} with id {entity_id} not found")
        else:
            super().__init__(f"{entity} not found")


class ConflictError(DomainError):
    """Operation conflicts with the current state of stored data."""

    status_code = 409


class DuplicateError(ConflictError):
    """An entity with the same unique attributes already exists."""


class AlreadyInactiveError(ConflictError):
    """Employee has already been deactivated."""

    def __init__(self, employee_id: int):
        self.employee_id = employee_id
        super().__init__(f"Employee {employee_id} is already inactive")


class AlreadyRespondedError(ConflictError):
    """User has already submitted a response to a non-anonymous survey."""

    def __init__(self, survey_id: int, user_id: int):
        self.survey_id = survey_id
        self.user_id = user_id
        super().__init__(f"User {user_id} has already responded to survey {survey_id}")


class IllegalStateTransitionError(DomainError):
    """Aggregate status cannot move from its current state to the requested one."""

    status_code = 400

    def __init__(self, current: str, target: str, message: Optional[str] = None):
        self.current = current
        self.target = target
        super().__init__(message or f"Illegal transition from '{current}' to '{target}'")


class NotAvailableError(DomainError):
    """Survey is not accepting responses right now."""

    status_code = 400


class HandlerError(Exception):
    """A subscriber failed while handling an event. Never leaves the event bus."""

    def __init__(self, event_id: str, event_type: str, subscriber_id: str, subscription_id: str, cause: BaseException):
        self.event_id = event_id
        self.event_type = event_type
        self.subscriber_id = subscriber_id
        self.subscription_id = subscription_id
        self.cause = cause
        super().__init__(
            f"Handler {subscriber_id} failed for event {event_type} ({event_id}): {cause!r}"
        )
