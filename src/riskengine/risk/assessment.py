"""RiskAssessment aggregate.

One priced decision for a policy quote. An assessment starts IN_PROGRESS and
moves exactly once to COMPLETED or REJECTED; every later transition attempt
fails and leaves the assessment untouched. ON_HOLD is a declared status that
no transition produces.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from uuid_utils.compat import uuid7

from riskengine.core.exceptions import (
    InvalidAssessmentDataError,
    InvalidAssessmentStateError,
    InvalidPremiumError,
)
from riskengine.risk.events import AssessmentOutcome, AssessmentStarted, EventSource
from riskengine.risk.types import AssessmentStatus, ProfileType
from riskengine.risk.values import RiskFactor, RiskScore, to_decimal


def _now() -> datetime:
    return datetime.now(UTC)


def _positive_decimal(value: Any, name: str, message: str) -> Decimal:
    try:
        result = to_decimal(value)
    except (TypeError, ValueError) as exc:
        raise InvalidPremiumError(f"{message}, but was: {value!r}", field=name) from exc
    if result <= 0:
        raise InvalidPremiumError(f"{message}, but was: {value}", field=name)
    return result


@dataclass(eq=False)
class RiskAssessment(EventSource):
    """State machine wrapping one pricing decision.

    ``calculated_risk_score``, ``risk_multiplier`` and ``final_premium`` are
    set only by ``complete``. ``final_premium`` is the exact product of base
    premium and multiplier, without rounding.
    """

    assessment_id: str = field(default_factory=lambda: str(uuid7()))
    profile_id: str = ""
    policy_type: ProfileType = ProfileType.AUTO
    status: AssessmentStatus = AssessmentStatus.IN_PROGRESS
    calculated_risk_score: RiskScore | None = None
    base_premium: Decimal = Decimal("0")
    risk_multiplier: Decimal | None = None
    final_premium: Decimal | None = None
    assessed_risk_factors: frozenset[RiskFactor] = field(default_factory=frozenset)
    notes: str | None = None
    assessor_id: str | None = None
    created_at: datetime = field(default_factory=_now)
    completed_at: datetime | None = None
    version: int = 0

    @classmethod
    def start(
        cls,
        profile_id: str,
        policy_type: ProfileType,
        base_premium: Decimal,
        assessor_id: str | None = None,
    ) -> "RiskAssessment":
        """Open an assessment for a profile and policy type.

        Raises:
            InvalidAssessmentDataError: If the profile id is blank or the policy type unknown.
            InvalidPremiumError: If the base premium is not positive.
        """
        if not isinstance(profile_id, str) or not profile_id.strip():
            raise InvalidAssessmentDataError("Profile ID cannot be empty", field="profile_id")
        try:
            policy_type = ProfileType(policy_type)
        except ValueError as exc:
            raise InvalidAssessmentDataError(
                f"Unknown policy type: {policy_type!r}", field="policy_type"
            ) from exc
        base = _positive_decimal(base_premium, "base_premium", "Base premium must be positive")
        assessment = cls(
            profile_id=profile_id,
            policy_type=policy_type,
            status=AssessmentStatus.IN_PROGRESS,
            base_premium=base,
            assessor_id=assessor_id,
        )
        assessment._record_event(
            AssessmentStarted(
                assessment_id=assessment.assessment_id,
                profile_id=assessment.profile_id,
                policy_type=assessment.policy_type,
            )
        )
        return assessment

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def complete(
        self,
        score: RiskScore,
        factors: Iterable[RiskFactor] | None,
        multiplier: Decimal,
        notes: str | None = None,
    ) -> None:
        """Seal the assessment with a score, factor snapshot and price.

        Raises:
            InvalidAssessmentStateError: If the assessment is not in progress.
            InvalidAssessmentDataError: If the score is not a RiskScore.
            InvalidPremiumError: If the multiplier is not positive.
        """
        self.require_in_progress("complete")
        if not isinstance(score, RiskScore):
            raise InvalidAssessmentDataError(
                f"Not a risk score: {score!r}", field="calculated_risk_score"
            )
        rate = _positive_decimal(multiplier, "risk_multiplier", "Risk multiplier must be positive")
        snapshot = frozenset(factors) if factors is not None else frozenset()

        self.calculated_risk_score = score
        self.risk_multiplier = rate
        self.assessed_risk_factors = snapshot
        self.notes = notes
        self.completed_at = _now()
        self.final_premium = self.base_premium * rate
        self.status = AssessmentStatus.COMPLETED

        self._record_event(
            AssessmentOutcome(
                assessment_id=self.assessment_id,
                profile_id=self.profile_id,
                risk_score=self.calculated_risk_score,
                final_premium=self.final_premium,
            )
        )

    def reject(self, reason: str | None) -> None:
        """Seal the assessment as rejected; the outcome carries a zero premium.

        Raises:
            InvalidAssessmentStateError: If the assessment is not in progress.
        """
        self.require_in_progress("reject")

        self.status = AssessmentStatus.REJECTED
        self.notes = reason
        self.completed_at = _now()

        self._record_event(
            AssessmentOutcome(
                assessment_id=self.assessment_id,
                profile_id=self.profile_id,
                risk_score=self.calculated_risk_score,
                final_premium=Decimal("0"),
            )
        )

    def require_in_progress(self, action: str) -> None:
        """Raise InvalidAssessmentStateError unless the assessment can still transition."""
        if self.status != AssessmentStatus.IN_PROGRESS:
            raise InvalidAssessmentStateError(self.assessment_id, self.status, action)

    # -------------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------------

    @property
    def is_completed(self) -> bool:
        """Whether the assessment reached a terminal outcome (approved or rejected)."""
        return self.status in (AssessmentStatus.COMPLETED, AssessmentStatus.REJECTED)

    @property
    def is_approved(self) -> bool:
        return self.status == AssessmentStatus.COMPLETED

    @property
    def is_rejected(self) -> bool:
        return self.status == AssessmentStatus.REJECTED

    @property
    def premium_adjustment_percentage(self) -> Decimal:
        """(multiplier - 1) x 100; zero when no multiplier was set."""
        if self.risk_multiplier is None:
            return Decimal("0")
        return (self.risk_multiplier - 1) * 100

    @property
    def effective_premium(self) -> Decimal:
        """Final premium, or zero for assessments without one."""
        return self.final_premium if self.final_premium is not None else Decimal("0")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "assessment_id": self.assessment_id,
            "profile_id": self.profile_id,
            "policy_type": self.policy_type.value,
            "status": self.status.value,
            "calculated_risk_score": (
                self.calculated_risk_score.to_dict() if self.calculated_risk_score else None
            ),
            "base_premium": str(self.base_premium),
            "risk_multiplier": str(self.risk_multiplier) if self.risk_multiplier else None,
            "final_premium": str(self.final_premium) if self.final_premium is not None else None,
            "assessed_risk_factors": [
                f.to_dict()
                for f in sorted(
                    self.assessed_risk_factors, key=lambda f: (f.type.value, f.description)
                )
            ],
            "notes": self.notes,
            "assessor_id": self.assessor_id,
            "created_at": self.created_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "version": self.version,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RiskAssessment):
            return NotImplemented
        return self.assessment_id == other.assessment_id

    def __hash__(self) -> int:
        return hash(self.assessment_id)
