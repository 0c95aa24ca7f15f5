"""Domain event envelope shared across slices."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import ClassVar, Generic, Optional, TypeVar
from uuid import uuid4

from shared.domain.errors import ValidationError


@dataclass(frozen=True)
class Payload:
    """Base class for typed event payloads.

    Each concrete payload declares the dot-namespaced ``event_type`` it travels
    under, so the envelope's dispatch key is always derived from the payload.
    """
    event_type: ClassVar[str] = ""
    source: ClassVar[str] = ""


P = TypeVar("P", bound=Payload)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize to UTC. Naive datetimes (e.g. read back from SQLite) are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class DomainEvent(Generic[P]):
    """Immutable record of a completed state transition."""
    type: str
    data: P
    organization_id: Optional[int]
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=utcnow)
    source: str = ""
    user_id: Optional[int] = None
    correlation_id: Optional[str] = None
    version: str = "1.0"

    def __post_init__(self):
        if not isinstance(self.type, str) or not self.type.strip():
            raise ValidationError("Event type is required")
        if not isinstance(self.data, Payload):
            raise ValidationError(f"Event {self.type} carries an untyped payload")
        if self.data.event_type != self.type:
            raise ValidationError(
                f"Payload {type(self.data).__name__} cannot be published as {self.type}"
            )

    @classmethod
    def create(
        cls,
        data: P,
        organization_id: Optional[int],
        user_id: Optional[int] = None,
        correlation_id: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> "DomainEvent[P]":
        return cls(
            type=data.event_type,
            data=data,
            organization_id=organization_id,
            timestamp=timestamp or utcnow(),
            source=data.source,
            user_id=user_id,
            correlation_id=correlation_id,
        )
