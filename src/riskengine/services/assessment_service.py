"""Application service orchestrating risk assessments.

Completing an assessment rescores the referenced profile from its stored
attributes, gates on insurability and prices the result:

1. Load the assessment and its profile
2. Derive factors and score with the ScoringEngine
3. Reject with the configured reason if the PricingEngine finds the risk
   uninsurable
4. Otherwise compute the multiplier and complete the assessment
5. Save, then publish the buffered outcome event
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any

from riskengine.config.settings import Settings, get_settings
from riskengine.core.exceptions import (
    AssessmentNotFoundError,
    ConflictError,
    IllegalStateError,
    ProfileNotFoundError,
)
from riskengine.core.logging import LogContext, get_logger
from riskengine.repositories.assessment import InMemoryRiskAssessmentStore, RiskAssessmentStore
from riskengine.repositories.profile import InMemoryRiskProfileStore, RiskProfileStore
from riskengine.risk.assessment import RiskAssessment
from riskengine.risk.events import EventPublisher, InMemoryEventPublisher
from riskengine.risk.pricing import PricingEngine, create_pricing_engine
from riskengine.risk.profile import RiskProfile
from riskengine.risk.scoring import ScoringEngine, create_scoring_engine
from riskengine.risk.types import AssessmentStatus, ProfileType
from riskengine.risk.values import RiskScore
from riskengine.services.unit_of_work import save_and_publish

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class AssessmentStatistics:
    """Assessment counts by outcome."""

    total: int
    completed: int
    rejected: int
    pending: int

    @property
    def approval_rate(self) -> float:
        """Share of decided assessments that were approved (0.0 when none decided)."""
        decided = self.completed + self.rejected
        return self.completed / decided if decided else 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total": self.total,
            "completed": self.completed,
            "rejected": self.rejected,
            "pending": self.pending,
            "approval_rate": self.approval_rate,
        }


@dataclass(frozen=True, slots=True)
class PremiumEstimate:
    """Price indication for a profile without opening an assessment.

    Uninsurable estimates carry zero premiums.
    """

    profile_id: str
    policy_type: ProfileType | str
    insurable: bool
    base_premium: Decimal
    estimated_premium: Decimal
    annual_premium: Decimal
    discount_percentage: Decimal
    risk_score: RiskScore

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "profile_id": self.profile_id,
            "policy_type": getattr(self.policy_type, "value", self.policy_type),
            "insurable": self.insurable,
            "base_premium": str(self.base_premium),
            "estimated_premium": str(self.estimated_premium),
            "annual_premium": str(self.annual_premium),
            "discount_percentage": str(self.discount_percentage),
            "risk_score": self.risk_score.to_dict(),
        }


class RiskAssessmentService:
    """Start, price and seal risk assessments.

    Example:
        ```python
        service = RiskAssessmentService(assessment_store, profile_store)

        assessment = service.start_assessment(profile.profile_id, ProfileType.AUTO, "agent-7")
        assessment = service.complete_assessment(assessment.assessment_id, "Quote approved")
        print(assessment.status, assessment.final_premium)
        ```
    """

    def __init__(
        self,
        assessment_store: RiskAssessmentStore | None = None,
        profile_store: RiskProfileStore | None = None,
        scoring_engine: ScoringEngine | None = None,
        pricing_engine: PricingEngine | None = None,
        publisher: EventPublisher | None = None,
        settings: Settings | None = None,
    ):
        """Initialize the assessment service.

        Args:
            assessment_store: Assessment persistence backend.
            profile_store: Profile persistence backend, read only here.
            scoring_engine: Engine deriving factors and scores.
            pricing_engine: Engine deciding insurability and price.
            publisher: Event bus receiving assessment events after each save.
            settings: Application settings; defaults to the cached settings.
        """
        self.assessment_store = (
            assessment_store if assessment_store is not None else InMemoryRiskAssessmentStore()
        )
        self.profile_store = (
            profile_store if profile_store is not None else InMemoryRiskProfileStore()
        )
        self.scoring_engine = scoring_engine or create_scoring_engine()
        self.pricing_engine = pricing_engine or create_pricing_engine()
        self.publisher = publisher or InMemoryEventPublisher()
        self.settings = settings or get_settings()

    # =========================================================================
    # Write use cases
    # =========================================================================

    def start_assessment(
        self,
        profile_id: str,
        policy_type: ProfileType,
        assessor_id: str | None = None,
    ) -> RiskAssessment:
        """Open an assessment for an existing profile at the policy's base premium.

        Raises:
            ProfileNotFoundError: If the profile does not exist.
            InvalidAssessmentDataError: If the policy type is unknown.
        """
        with LogContext(use_case="start_assessment", profile_id=profile_id):
            self._load_profile(profile_id)
            base = self.pricing_engine.base_premium(policy_type)
            assessment = RiskAssessment.start(profile_id, policy_type, base, assessor_id)
            saved = self._commit(assessment)

            logger.info(
                "Risk assessment started",
                assessment_id=saved.assessment_id,
                policy_type=saved.policy_type.value,
                base_premium=str(base),
            )
            return saved

    def complete_assessment(self, assessment_id: str, notes: str | None = None) -> RiskAssessment:
        """Score, gate and price an in-progress assessment.

        Uninsurable risks are rejected with the configured reason rather than
        completed.

        Raises:
            AssessmentNotFoundError: If the assessment does not exist.
            ProfileNotFoundError: If its profile no longer exists.
            InvalidAssessmentStateError: If the assessment is already decided.
        """
        with LogContext(use_case="complete_assessment", assessment_id=assessment_id):
            assessment = self.get_assessment(assessment_id)
            self._transition(assessment, lambda a: a.require_in_progress("complete"))
            profile = self._load_profile(assessment.profile_id)

            factors = self.scoring_engine.derive_factors(profile)
            score = self.scoring_engine.calculate_score(profile, factors)

            if not self.pricing_engine.is_insurable(score, factors):
                logger.warning(
                    "Risk not insurable, rejecting assessment",
                    score=score.value,
                    factors_count=len(factors),
                )
                self._transition(assessment, lambda a: a.reject(self.settings.uninsurable_reason))
                return self._commit(assessment)

            multiplier = self.pricing_engine.risk_multiplier(score, factors)
            self._transition(assessment, lambda a: a.complete(score, factors, multiplier, notes))
            saved = self._commit(assessment)

            logger.info(
                "Risk assessment completed",
                score=score.value,
                category=score.category.value,
                multiplier=str(multiplier),
                final_premium=str(saved.final_premium),
            )
            return saved

    def reject_assessment(self, assessment_id: str, reason: str | None) -> RiskAssessment:
        """Reject an in-progress assessment.

        Raises:
            AssessmentNotFoundError: If the assessment does not exist.
            InvalidAssessmentStateError: If the assessment is already decided.
        """
        with LogContext(use_case="reject_assessment", assessment_id=assessment_id):
            assessment = self.get_assessment(assessment_id)
            self._transition(assessment, lambda a: a.reject(reason))
            saved = self._commit(assessment)

            logger.info("Risk assessment rejected", reason=reason)
            return saved

    def auto_complete_assessment(self, assessment_id: str) -> RiskAssessment:
        """Complete an assessment with the system's auto-completion notes."""
        return self.complete_assessment(assessment_id, self.settings.auto_complete_notes)

    def recalculate_assessment(self, assessment_id: str) -> RiskAssessment:
        """Price the profile again in a new assessment by the system assessor.

        The original assessment is left as it is. The new one keeps the
        original's policy type and base premium and is completed directly.

        Raises:
            AssessmentNotFoundError: If the assessment does not exist.
            ProfileNotFoundError: If its profile no longer exists.
        """
        with LogContext(use_case="recalculate_assessment", assessment_id=assessment_id):
            original = self.get_assessment(assessment_id)
            profile = self._load_profile(original.profile_id)

            factors = self.scoring_engine.derive_factors(profile)
            score = self.scoring_engine.calculate_score(profile, factors)
            multiplier = self.pricing_engine.risk_multiplier(score, factors)

            assessment = RiskAssessment.start(
                profile.profile_id,
                original.policy_type,
                original.base_premium,
                self.settings.system_assessor_id,
            )
            assessment.complete(score, factors, multiplier, self.settings.recalculation_notes)
            saved = self._commit(assessment)

            logger.info(
                "Risk assessment recalculated",
                new_assessment_id=saved.assessment_id,
                score=score.value,
                final_premium=str(saved.final_premium),
            )
            return saved

    # =========================================================================
    # Queries
    # =========================================================================

    def get_assessment(self, assessment_id: str) -> RiskAssessment:
        """Load an assessment.

        Raises:
            AssessmentNotFoundError: If the assessment does not exist.
        """
        assessment = self.assessment_store.find_by_id(assessment_id)
        if assessment is None:
            raise AssessmentNotFoundError(assessment_id)
        return assessment

    def get_assessments_for_profile(self, profile_id: str) -> list[RiskAssessment]:
        return self.assessment_store.find_by_profile_id(profile_id)

    def get_most_recent_assessment(self, profile_id: str) -> RiskAssessment | None:
        return self.assessment_store.find_most_recent_by_profile_id(profile_id)

    def get_assessments_by_status(self, status: AssessmentStatus) -> list[RiskAssessment]:
        return self.assessment_store.find_by_status(status)

    def get_assessments_by_assessor(self, assessor_id: str) -> list[RiskAssessment]:
        return self.assessment_store.find_by_assessor_id(assessor_id)

    def get_assessments_by_date_range(
        self, start: datetime, end: datetime
    ) -> list[RiskAssessment]:
        """Assessments created within [start, end]."""
        return self.assessment_store.find_by_created_at_between(start, end)

    def get_overdue_assessments(self, days: int | None = None) -> list[RiskAssessment]:
        """In-progress assessments older than ``days`` (default from settings)."""
        if days is None:
            days = self.settings.overdue_assessment_days
        cutoff = datetime.now(UTC) - timedelta(days=days)
        return self.assessment_store.find_pending_older_than(cutoff)

    def get_statistics(self) -> AssessmentStatistics:
        """Count assessments by outcome."""
        return AssessmentStatistics(
            total=len(self.assessment_store.find_all()),
            completed=self.assessment_store.count_by_status(AssessmentStatus.COMPLETED),
            rejected=self.assessment_store.count_by_status(AssessmentStatus.REJECTED),
            pending=self.assessment_store.count_by_status(AssessmentStatus.IN_PROGRESS),
        )

    def estimate_premium(self, profile_id: str, policy_type: ProfileType) -> PremiumEstimate:
        """Price a profile for a policy type without creating an assessment.

        Raises:
            ProfileNotFoundError: If the profile does not exist.
        """
        profile = self._load_profile(profile_id)
        factors = self.scoring_engine.derive_factors(profile)
        score = self.scoring_engine.calculate_score(profile, factors)
        quote = self.pricing_engine.quote(score, factors, policy_type)

        zero = Decimal("0.00")
        return PremiumEstimate(
            profile_id=profile_id,
            policy_type=quote.policy_type,
            insurable=quote.insurable,
            base_premium=quote.base_premium if quote.insurable else zero,
            estimated_premium=quote.final_premium,
            annual_premium=quote.annual_premium,
            discount_percentage=quote.discount_percentage,
            risk_score=score,
        )

    def get_assessment_history(self, customer_id: str) -> list[RiskAssessment]:
        """All assessments across a customer's profiles, newest first."""
        history = [
            assessment
            for profile in self.profile_store.find_by_customer_id(customer_id)
            for assessment in self.assessment_store.find_by_profile_id(profile.profile_id)
        ]
        history.sort(key=lambda a: (a.created_at, a.assessment_id), reverse=True)
        return history

    # =========================================================================
    # Internals
    # =========================================================================

    def _load_profile(self, profile_id: str) -> RiskProfile:
        profile = self.profile_store.find_by_id(profile_id)
        if profile is None:
            raise ProfileNotFoundError(profile_id)
        return profile

    def _transition(
        self, assessment: RiskAssessment, action: Callable[[RiskAssessment], None]
    ) -> None:
        try:
            action(assessment)
        except IllegalStateError as exc:
            logger.warning(
                "Assessment transition refused",
                status=assessment.status.value,
                error=str(exc),
            )
            raise

    def _commit(self, assessment: RiskAssessment) -> RiskAssessment:
        try:
            return save_and_publish(self.assessment_store, assessment, self.publisher, logger)
        except ConflictError as exc:
            logger.warning("Assessment save rejected", error=str(exc))
            raise
