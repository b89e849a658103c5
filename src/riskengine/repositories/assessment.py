"""Risk assessment store."""

from datetime import datetime
from typing import Protocol

from riskengine.repositories.base import InMemoryAggregateStore
from riskengine.risk.assessment import RiskAssessment
from riskengine.risk.types import AssessmentStatus, ProfileType


def _by_created(assessment: RiskAssessment) -> tuple:
    return (assessment.created_at, assessment.assessment_id)


class RiskAssessmentStore(Protocol):
    """Protocol for risk assessment persistence backends."""

    def save(self, assessment: RiskAssessment) -> RiskAssessment:
        """Persist an assessment, enforcing its version."""
        ...

    def find_by_id(self, assessment_id: str) -> RiskAssessment | None: ...

    def find_by_profile_id(self, profile_id: str) -> list[RiskAssessment]: ...

    def find_most_recent_by_profile_id(self, profile_id: str) -> RiskAssessment | None: ...

    def find_by_status(self, status: AssessmentStatus) -> list[RiskAssessment]: ...

    def find_by_policy_type(self, policy_type: ProfileType) -> list[RiskAssessment]: ...

    def find_by_assessor_id(self, assessor_id: str) -> list[RiskAssessment]: ...

    def find_by_created_at_between(
        self, start: datetime, end: datetime
    ) -> list[RiskAssessment]:
        """Assessments created within [start, end]."""
        ...

    def find_completed_between(self, start: datetime, end: datetime) -> list[RiskAssessment]:
        """COMPLETED assessments whose completion time lies within [start, end]."""
        ...

    def find_pending_older_than(self, cutoff: datetime) -> list[RiskAssessment]:
        """IN_PROGRESS assessments created before the cutoff."""
        ...

    def count_by_status(self, status: AssessmentStatus) -> int: ...

    def delete(self, assessment_id: str) -> bool: ...

    def find_all(self) -> list[RiskAssessment]: ...


class InMemoryRiskAssessmentStore(InMemoryAggregateStore[RiskAssessment]):
    """In-memory implementation of RiskAssessmentStore.

    List queries return assessments oldest first.
    """

    id_attribute = "assessment_id"

    def find_by_profile_id(self, profile_id: str) -> list[RiskAssessment]:
        return self._select(lambda a: a.profile_id == profile_id, _by_created)

    def find_most_recent_by_profile_id(self, profile_id: str) -> RiskAssessment | None:
        assessments = self.find_by_profile_id(profile_id)
        return assessments[-1] if assessments else None

    def find_by_status(self, status: AssessmentStatus) -> list[RiskAssessment]:
        return self._select(lambda a: a.status == status, _by_created)

    def find_by_policy_type(self, policy_type: ProfileType) -> list[RiskAssessment]:
        return self._select(lambda a: a.policy_type == policy_type, _by_created)

    def find_by_assessor_id(self, assessor_id: str) -> list[RiskAssessment]:
        return self._select(lambda a: a.assessor_id == assessor_id, _by_created)

    def find_by_created_at_between(
        self, start: datetime, end: datetime
    ) -> list[RiskAssessment]:
        return self._select(lambda a: start <= a.created_at <= end, _by_created)

    def find_completed_between(self, start: datetime, end: datetime) -> list[RiskAssessment]:
        return self._select(
            lambda a: (
                a.status == AssessmentStatus.COMPLETED
                and a.completed_at is not None
                and start <= a.completed_at <= end
            ),
            _by_created,
        )

    def find_pending_older_than(self, cutoff: datetime) -> list[RiskAssessment]:
        return self._select(
            lambda a: a.status == AssessmentStatus.IN_PROGRESS and a.created_at < cutoff,
            _by_created,
        )

    def count_by_status(self, status: AssessmentStatus) -> int:
        with self._lock:
            return sum(1 for a in self._records.values() if a.status == status)

    def find_all(self) -> list[RiskAssessment]:
        return self._select(lambda _: True, _by_created)
