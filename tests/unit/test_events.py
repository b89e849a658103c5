"""Unit tests for domain events and the outbox."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from riskengine.risk.events import (
    AssessmentOutcome,
    AssessmentStarted,
    InMemoryEventPublisher,
    ProfileCreated,
    ProfileUpdated,
)
from riskengine.risk.profile import RiskProfile
from riskengine.risk.types import ProfileType
from riskengine.risk.values import RiskScore

OCCURRED = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


class TestEventSchemas:
    """Event payloads are field-exact."""

    def test_profile_created(self):
        event = ProfileCreated("p-1", "c-1", ProfileType.AUTO, OCCURRED)
        assert event.event_type == "ProfileCreated"
        assert event.to_dict() == {
            "profile_id": "p-1",
            "customer_id": "c-1",
            "profile_type": "AUTO",
            "occurred_at": "2025-03-01T12:00:00+00:00",
        }

    def test_profile_updated(self):
        event = ProfileUpdated("p-1", "c-1", OCCURRED)
        assert set(event.to_dict()) == {"profile_id", "customer_id", "occurred_at"}

    def test_assessment_started(self):
        event = AssessmentStarted("a-1", "p-1", ProfileType.LIFE, OCCURRED)
        assert event.to_dict()["policy_type"] == "LIFE"

    def test_assessment_outcome(self):
        event = AssessmentOutcome("a-1", "p-1", RiskScore(615), Decimal("135.00"), OCCURRED)
        assert event.to_dict() == {
            "assessment_id": "a-1",
            "profile_id": "p-1",
            "risk_score": 615,
            "final_premium": "135.00",
            "occurred_at": "2025-03-01T12:00:00+00:00",
        }

    def test_occurred_at_defaults_to_now(self):
        """Events are timestamped in UTC on creation."""
        before = datetime.now(UTC)
        event = ProfileUpdated("p-1", "c-1")
        assert before <= event.occurred_at <= datetime.now(UTC)

    def test_events_are_immutable(self):
        event = ProfileUpdated("p-1", "c-1", OCCURRED)
        with pytest.raises(AttributeError):
            event.profile_id = "p-2"  # type: ignore[misc]


class TestInMemoryEventPublisher:
    """Tests for the in-memory publisher."""

    def test_records_in_order(self):
        publisher = InMemoryEventPublisher()
        first = ProfileCreated("p-1", "c-1", ProfileType.AUTO)
        second = ProfileUpdated("p-1", "c-1")
        publisher.publish(first)
        publisher.publish(second)

        assert publisher.published == [first, second]
        assert publisher.of_type(ProfileUpdated) == [second]

    def test_mark_published_drops_oldest(self):
        """Only the oldest pending event can be marked delivered."""
        profile = RiskProfile.create("c-1", ProfileType.AUTO)
        profile.update_risk_score(RiskScore(600))
        created, updated = profile.pending_events

        with pytest.raises(ValueError):
            profile.mark_published(updated)

        profile.mark_published(created)
        assert profile.pending_events == (updated,)

    def test_clear(self):
        publisher = InMemoryEventPublisher()
        publisher.publish(ProfileUpdated("p-1", "c-1"))
        publisher.clear()
        assert publisher.published == []
