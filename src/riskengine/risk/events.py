"""Domain events emitted by risk profiles and risk assessments.

Aggregates buffer events in an outbox while a use case runs. The
orchestration layer hands each event to an ``EventPublisher`` only after the
aggregate has been persisted, removing it with ``mark_published()`` once the
publisher accepts it. Aggregates never publish by themselves.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any, ClassVar, Protocol

from riskengine.risk.types import ProfileType
from riskengine.risk.values import RiskScore


def _now() -> datetime:
    return datetime.now(UTC)


# =============================================================================
# Events
# =============================================================================


@dataclass(frozen=True, slots=True)
class ProfileCreated:
    """A risk profile was created for a customer and profile type."""

    event_type: ClassVar[str] = "ProfileCreated"

    profile_id: str
    customer_id: str
    profile_type: ProfileType
    occurred_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "profile_id": self.profile_id,
            "customer_id": self.customer_id,
            "profile_type": self.profile_type.value,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class ProfileUpdated:
    """A risk profile's factors, score or attributes changed."""

    event_type: ClassVar[str] = "ProfileUpdated"

    profile_id: str
    customer_id: str
    occurred_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "profile_id": self.profile_id,
            "customer_id": self.customer_id,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class AssessmentStarted:
    """A risk assessment was opened for a profile and policy type."""

    event_type: ClassVar[str] = "AssessmentStarted"

    assessment_id: str
    profile_id: str
    policy_type: ProfileType
    occurred_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "assessment_id": self.assessment_id,
            "profile_id": self.profile_id,
            "policy_type": self.policy_type.value,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class AssessmentOutcome:
    """A risk assessment reached a terminal state.

    Emitted for both completion and rejection; rejections carry a zero
    premium and usually no score.
    """

    event_type: ClassVar[str] = "AssessmentOutcome"

    assessment_id: str
    profile_id: str
    risk_score: RiskScore | None
    final_premium: Decimal
    occurred_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "assessment_id": self.assessment_id,
            "profile_id": self.profile_id,
            "risk_score": self.risk_score.value if self.risk_score else None,
            "final_premium": str(self.final_premium),
            "occurred_at": self.occurred_at.isoformat(),
        }


DomainEvent = ProfileCreated | ProfileUpdated | AssessmentStarted | AssessmentOutcome


# =============================================================================
# Outbox
# =============================================================================


@dataclass
class EventSource:
    """Mixin giving an aggregate an outbox of pending domain events."""

    _pending_events: list[DomainEvent] = field(
        default_factory=list, init=False, repr=False, compare=False
    )

    def _record_event(self, event: DomainEvent) -> None:
        self._pending_events.append(event)

    @property
    def pending_events(self) -> tuple[DomainEvent, ...]:
        """Events buffered since the last drain."""
        return tuple(self._pending_events)

    def pull_events(self) -> list[DomainEvent]:
        """Drain and return buffered events, oldest first."""
        events = list(self._pending_events)
        self._pending_events.clear()
        return events

    def mark_published(self, event: DomainEvent) -> None:
        """Drop the oldest buffered event once the publisher has accepted it."""
        if not self._pending_events or self._pending_events[0] is not event:
            raise ValueError("Only the oldest pending event can be marked published")
        del self._pending_events[0]

    def clear_events(self) -> None:
        """Discard buffered events."""
        self._pending_events.clear()


# =============================================================================
# Publishing
# =============================================================================


class EventPublisher(Protocol):
    """Protocol for the external event bus."""

    def publish(self, event: DomainEvent) -> None:
        """Hand one event to the transport."""
        ...


class InMemoryEventPublisher:
    """In-memory implementation of EventPublisher for testing."""

    def __init__(self) -> None:
        self.published: list[DomainEvent] = []

    def publish(self, event: DomainEvent) -> None:
        self.published.append(event)

    def of_type(self, event_cls: type) -> list[DomainEvent]:
        """Published events of one class, in publish order."""
        return [event for event in self.published if isinstance(event, event_cls)]

    def clear(self) -> None:
        self.published.clear()
