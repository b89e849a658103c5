"""Unit tests for the in-memory stores."""

import threading
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from riskengine.core.exceptions import ConcurrentModificationError, ProfileAlreadyExistsError
from riskengine.repositories import InMemoryRiskAssessmentStore, InMemoryRiskProfileStore
from riskengine.risk.assessment import RiskAssessment
from riskengine.risk.profile import RiskProfile
from riskengine.risk.types import AssessmentStatus, ProfileType
from riskengine.risk.values import RiskScore


def new_profile(customer_id: str = "customer-001", profile_type=ProfileType.AUTO) -> RiskProfile:
    return RiskProfile.create(customer_id, profile_type, age=35)


def new_assessment(
    profile_id: str = "profile-1",
    policy_type: ProfileType = ProfileType.AUTO,
    assessor_id: str | None = "agent-1",
    created_at: datetime | None = None,
) -> RiskAssessment:
    assessment = RiskAssessment.start(profile_id, policy_type, Decimal("150.00"), assessor_id)
    if created_at is not None:
        assessment.created_at = created_at
    return assessment


# =============================================================================
# Versioning
# =============================================================================


class TestOptimisticVersioning:
    """Tests for version compare-and-swap."""

    def test_first_save_sets_version_one(self, profile_store: InMemoryRiskProfileStore):
        profile = new_profile()
        saved = profile_store.save(profile)

        assert saved is profile
        assert profile.version == 1
        assert profile_store.find_by_id(profile.profile_id).version == 1

    def test_sequential_saves_increment(self, profile_store: InMemoryRiskProfileStore):
        profile = profile_store.save(new_profile())
        profile.update_risk_score(RiskScore(600))
        profile_store.save(profile)
        assert profile.version == 2

    def test_stale_write_rejected(self, profile_store: InMemoryRiskProfileStore):
        """Two writers load version 1; the second save fails."""
        profile = profile_store.save(new_profile())
        first = profile_store.find_by_id(profile.profile_id)
        second = profile_store.find_by_id(profile.profile_id)

        first.update_risk_score(RiskScore(600))
        profile_store.save(first)

        second.update_risk_score(RiskScore(700))
        with pytest.raises(ConcurrentModificationError) as exc_info:
            profile_store.save(second)

        assert exc_info.value.expected_version == 1
        assert exc_info.value.actual_version == 2
        assert second.version == 1
        assert profile_store.find_by_id(profile.profile_id).current_risk_score.value == 600

    def test_saving_new_aggregate_over_existing_id_rejected(
        self, assessment_store: InMemoryRiskAssessmentStore
    ):
        """A version-0 aggregate cannot overwrite a stored one."""
        stored = assessment_store.save(new_assessment())
        duplicate = RiskAssessment(
            assessment_id=stored.assessment_id, base_premium=Decimal("1")
        )
        with pytest.raises(ConcurrentModificationError):
            assessment_store.save(duplicate)

    def test_saving_deleted_aggregate_rejected(self, profile_store: InMemoryRiskProfileStore):
        """A versioned aggregate whose record is gone cannot be saved."""
        profile = profile_store.save(new_profile())
        profile_store.delete(profile.profile_id)

        with pytest.raises(ConcurrentModificationError) as exc_info:
            profile_store.save(profile)
        assert exc_info.value.actual_version is None

    def test_concurrent_writers_one_wins(self, profile_store: InMemoryRiskProfileStore):
        """Of many writers holding the same version, exactly one succeeds."""
        profile_id = profile_store.save(new_profile()).profile_id
        copies = [profile_store.find_by_id(profile_id) for _ in range(8)]
        outcomes: list[str] = []
        barrier = threading.Barrier(len(copies))

        def write(copy: RiskProfile) -> None:
            barrier.wait()
            try:
                profile_store.save(copy)
                outcomes.append("ok")
            except ConcurrentModificationError:
                outcomes.append("conflict")

        threads = [threading.Thread(target=write, args=(c,)) for c in copies]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert outcomes.count("ok") == 1
        assert outcomes.count("conflict") == len(copies) - 1
        assert profile_store.find_by_id(profile_id).version == 2


# =============================================================================
# Detached copies
# =============================================================================


class TestDetachedCopies:
    """Stored and returned aggregates share no state with callers."""

    def test_mutating_loaded_copy_does_not_touch_store(
        self, profile_store: InMemoryRiskProfileStore
    ):
        profile = profile_store.save(new_profile())
        loaded = profile_store.find_by_id(profile.profile_id)
        loaded.update_risk_score(RiskScore(900))

        assert profile_store.find_by_id(profile.profile_id).current_risk_score.value == 500

    def test_mutating_saved_aggregate_does_not_touch_store(
        self, profile_store: InMemoryRiskProfileStore
    ):
        profile = profile_store.save(new_profile())
        profile.update_risk_score(RiskScore(900))

        assert profile_store.find_by_id(profile.profile_id).current_risk_score.value == 500

    def test_loaded_copies_have_no_events(self, profile_store: InMemoryRiskProfileStore):
        profile = profile_store.save(new_profile())
        assert profile.pending_events  # caller keeps its outbox
        assert profile_store.find_by_id(profile.profile_id).pending_events == ()


# =============================================================================
# Profile store queries
# =============================================================================


class TestRiskProfileStore:
    """Tests for profile queries and uniqueness."""

    def test_uniqueness_per_customer_and_type(self, profile_store: InMemoryRiskProfileStore):
        profile_store.save(new_profile("customer-001", ProfileType.AUTO))
        profile_store.save(new_profile("customer-001", ProfileType.HOME))

        with pytest.raises(ProfileAlreadyExistsError) as exc_info:
            profile_store.save(new_profile("customer-001", ProfileType.AUTO))
        assert exc_info.value.customer_id == "customer-001"
        assert len(profile_store) == 2

    def test_find_by_id_missing(self, profile_store: InMemoryRiskProfileStore):
        assert profile_store.find_by_id("missing") is None

    def test_customer_queries(self, profile_store: InMemoryRiskProfileStore):
        auto = profile_store.save(new_profile("customer-001", ProfileType.AUTO))
        profile_store.save(new_profile("customer-001", ProfileType.LIFE))
        profile_store.save(new_profile("customer-002", ProfileType.AUTO))

        assert len(profile_store.find_by_customer_id("customer-001")) == 2
        found = profile_store.find_by_customer_id_and_type("customer-001", ProfileType.AUTO)
        assert found == auto
        assert profile_store.find_by_customer_id_and_type("customer-003", ProfileType.AUTO) is None
        assert profile_store.exists_by_customer_id_and_type("customer-002", ProfileType.AUTO)
        assert not profile_store.exists_by_customer_id_and_type("customer-002", ProfileType.LIFE)

    def test_find_by_type(self, profile_store: InMemoryRiskProfileStore):
        profile_store.save(new_profile("customer-001", ProfileType.AUTO))
        profile_store.save(new_profile("customer-002", ProfileType.AUTO))
        profile_store.save(new_profile("customer-003", ProfileType.HOME))

        assert len(profile_store.find_by_type(ProfileType.AUTO)) == 2
        assert profile_store.find_by_type(ProfileType.BUSINESS) == []

    def test_find_high_risk(self, profile_store: InMemoryRiskProfileStore):
        low = new_profile("customer-001")
        high = new_profile("customer-002")
        high.update_risk_score(RiskScore(650))
        very_high = new_profile("customer-003")
        very_high.update_risk_score(RiskScore(900))
        for profile in (low, high, very_high):
            profile_store.save(profile)

        ids = {p.profile_id for p in profile_store.find_high_risk()}
        assert ids == {high.profile_id, very_high.profile_id}

    def test_delete(self, profile_store: InMemoryRiskProfileStore):
        profile = profile_store.save(new_profile())
        assert profile_store.delete(profile.profile_id)
        assert not profile_store.delete(profile.profile_id)
        assert profile_store.find_all() == []


# =============================================================================
# Assessment store queries
# =============================================================================


class TestRiskAssessmentStore:
    """Tests for assessment queries."""

    def test_find_by_profile_and_most_recent(
        self, assessment_store: InMemoryRiskAssessmentStore
    ):
        now = datetime.now(UTC)
        older = assessment_store.save(new_assessment(created_at=now - timedelta(days=2)))
        newer = assessment_store.save(new_assessment(created_at=now))
        assessment_store.save(new_assessment(profile_id="profile-2"))

        found = assessment_store.find_by_profile_id("profile-1")
        assert [a.assessment_id for a in found] == [older.assessment_id, newer.assessment_id]
        assert assessment_store.find_most_recent_by_profile_id("profile-1") == newer
        assert assessment_store.find_most_recent_by_profile_id("profile-9") is None

    def test_status_queries(self, assessment_store: InMemoryRiskAssessmentStore):
        completed = new_assessment()
        completed.complete(RiskScore(600), set(), Decimal("1.000"))
        rejected = new_assessment()
        rejected.reject("No")
        for assessment in (completed, rejected, new_assessment(), new_assessment()):
            assessment_store.save(assessment)

        assert assessment_store.count_by_status(AssessmentStatus.IN_PROGRESS) == 2
        assert assessment_store.count_by_status(AssessmentStatus.COMPLETED) == 1
        assert assessment_store.count_by_status(AssessmentStatus.ON_HOLD) == 0
        assert assessment_store.find_by_status(AssessmentStatus.REJECTED) == [rejected]

    def test_policy_type_and_assessor(self, assessment_store: InMemoryRiskAssessmentStore):
        assessment_store.save(new_assessment(policy_type=ProfileType.HOME, assessor_id="a"))
        assessment_store.save(new_assessment(policy_type=ProfileType.AUTO, assessor_id="b"))

        assert len(assessment_store.find_by_policy_type(ProfileType.HOME)) == 1
        assert len(assessment_store.find_by_assessor_id("b")) == 1
        assert assessment_store.find_by_assessor_id("c") == []

    def test_created_between_is_inclusive(self, assessment_store: InMemoryRiskAssessmentStore):
        start = datetime(2025, 1, 1, tzinfo=UTC)
        end = datetime(2025, 1, 31, tzinfo=UTC)
        for created in (start - timedelta(seconds=1), start, end, end + timedelta(seconds=1)):
            assessment_store.save(new_assessment(created_at=created))

        found = assessment_store.find_by_created_at_between(start, end)
        assert [a.created_at for a in found] == [start, end]

    def test_completed_between(self, assessment_store: InMemoryRiskAssessmentStore):
        completed = new_assessment()
        completed.complete(RiskScore(600), set(), Decimal("1.000"))
        rejected = new_assessment()
        rejected.reject("No")
        assessment_store.save(completed)
        assessment_store.save(rejected)

        window_start = completed.completed_at - timedelta(minutes=1)
        window_end = completed.completed_at + timedelta(minutes=1)
        assert assessment_store.find_completed_between(window_start, window_end) == [completed]
        assert assessment_store.find_completed_between(
            window_end, window_end + timedelta(days=1)
        ) == []

    def test_pending_older_than(self, assessment_store: InMemoryRiskAssessmentStore):
        now = datetime.now(UTC)
        stale = assessment_store.save(new_assessment(created_at=now - timedelta(days=10)))
        assessment_store.save(new_assessment(created_at=now - timedelta(days=1)))
        decided = new_assessment(created_at=now - timedelta(days=10))
        decided.reject("No")
        assessment_store.save(decided)

        cutoff = now - timedelta(days=7)
        assert assessment_store.find_pending_older_than(cutoff) == [stale]
