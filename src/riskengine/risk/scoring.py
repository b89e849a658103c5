"""Scoring engine deriving risk factors and a risk score from profile data.

This module provides the ScoringEngine that:
1. Derives explainable RiskFactors from raw profile attributes
2. Calculates a RiskScore starting from a base of 500
3. Applies age, driving history, occupation, income, factor and location
   adjustments in a fixed order
4. Clamps the result to the 300-850 band

The direct attribute adjustments and the factor adjustments deliberately
count some attributes twice (age < 25 is penalised directly and again through
the "Young driver" factor).
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from pydantic import BaseModel, Field, model_validator

from riskengine.core.logging import get_logger
from riskengine.risk.types import RiskFactorType
from riskengine.risk.values import (
    MAX_RISK_SCORE,
    MIN_RISK_SCORE,
    Address,
    DrivingHistory,
    RiskFactor,
    RiskScore,
)

logger = get_logger(__name__)


class ScorableProfile(Protocol):
    """Attributes the scoring engine reads from a profile."""

    @property
    def age(self) -> int | None: ...

    @property
    def driving_history(self) -> DrivingHistory | None: ...

    @property
    def occupation(self) -> str | None: ...

    @property
    def annual_income(self) -> Decimal | None: ...

    @property
    def address(self) -> Address | None: ...


class OccupationRule(BaseModel):
    """Occupation keyword that produces an occupation risk factor."""

    keyword: str = Field(min_length=1)
    description: str = Field(min_length=1)
    impact: Decimal = Field(gt=0)


def _default_occupation_rules() -> list[OccupationRule]:
    return [
        OccupationRule(keyword="driver", description="Professional driver", impact=Decimal("1.4")),
        OccupationRule(keyword="pilot", description="Pilot", impact=Decimal("1.3")),
        OccupationRule(
            keyword="construction", description="Construction worker", impact=Decimal("1.2")
        ),
    ]


class ScoringConfig(BaseModel):
    """Configuration for the scoring engine."""

    # Score band
    base_score: int = Field(default=500, ge=MIN_RISK_SCORE, le=MAX_RISK_SCORE)
    min_score: int = Field(default=300, ge=MIN_RISK_SCORE, le=MAX_RISK_SCORE)
    max_score: int = Field(default=850, ge=MIN_RISK_SCORE, le=MAX_RISK_SCORE)

    # Age bands
    young_age_limit: int = Field(default=25, description="Ages below this are young drivers")
    senior_age_limit: int = Field(default=65, description="Ages above this are senior drivers")
    young_adjustment: int = -50
    prime_age_adjustment: int = 25
    senior_adjustment: int = -25
    young_driver_impact: Decimal = Field(default=Decimal("1.2"), gt=0)
    senior_driver_impact: Decimal = Field(default=Decimal("1.1"), gt=0)

    # Driving history
    accident_penalty: int = Field(default=75, ge=0)
    violation_penalty: int = Field(default=50, ge=0)
    experienced_years: int = Field(default=10, ge=0)
    experienced_bonus: int = 50
    novice_years: int = Field(default=2, ge=0)
    novice_penalty: int = Field(default=75, ge=0)
    accident_impact_step: Decimal = Field(default=Decimal("0.3"), ge=0)
    violation_impact_step: Decimal = Field(default=Decimal("0.2"), ge=0)
    limited_experience_impact: Decimal = Field(default=Decimal("1.3"), gt=0)

    # Occupation
    occupation_rules: list[OccupationRule] = Field(default_factory=_default_occupation_rules)
    high_risk_occupation_adjustment: int = -40
    low_risk_occupation_keywords: tuple[str, ...] = ("teacher", "accountant", "engineer")
    low_risk_occupation_adjustment: int = 30

    # Income
    high_income_threshold: Decimal = Field(default=Decimal("100000"), ge=0)
    high_income_adjustment: int = 25
    low_income_threshold: Decimal = Field(default=Decimal("30000"), ge=0)
    low_income_adjustment: int = -25

    # Factor weighting: each factor adds (impact - 1) * -factor_weight
    factor_weight: Decimal = Field(default=Decimal("100"), ge=0)

    # Location
    high_risk_states: frozenset[str] = frozenset({"CA", "NY", "FL"})
    low_risk_states: frozenset[str] = frozenset({"ND", "SD", "WY"})
    high_risk_state_adjustment: int = -30
    low_risk_state_adjustment: int = 30
    high_risk_state_impact: Decimal = Field(default=Decimal("1.2"), gt=0)
    low_risk_state_impact: Decimal = Field(default=Decimal("0.9"), gt=0)

    @model_validator(mode="after")
    def check_score_band(self) -> "ScoringConfig":
        """Ensure the clamp band is ordered."""
        if self.min_score > self.max_score:
            raise ValueError("min_score must not exceed max_score")
        return self

    @property
    def high_risk_occupation_keywords(self) -> tuple[str, ...]:
        """Keywords that trigger the high-risk occupation adjustment."""
        return tuple(rule.keyword for rule in self.occupation_rules)


class ScoringEngine:
    """Derives risk factors and risk scores from profile attributes.

    The engine is stateless; the same profile always yields the same factors
    and score. Arithmetic is carried out in Decimal so the order in which
    factors are applied cannot change the outcome.

    Example:
        ```python
        engine = ScoringEngine()

        factors = engine.derive_factors(profile)
        score = engine.calculate_score(profile)
        print(f"Score: {score.value} ({score.category.value})")
        ```
    """

    def __init__(self, config: ScoringConfig | None = None):
        """Initialize the scoring engine.

        Args:
            config: Scoring configuration.
        """
        self.config = config or ScoringConfig()

    # -------------------------------------------------------------------------
    # Factors
    # -------------------------------------------------------------------------

    def derive_factors(self, profile: ScorableProfile) -> frozenset[RiskFactor]:
        """Derive the risk factor set from a profile's raw attributes.

        Args:
            profile: Profile to analyse.

        Returns:
            Set of factors, unique by type and description.
        """
        factors: set[RiskFactor] = set()
        factors.update(self._age_factors(profile.age))
        factors.update(self._driving_history_factors(profile.driving_history))
        factors.update(self._occupation_factors(profile.occupation))
        factors.update(self._location_factors(profile.address))
        return frozenset(factors)

    def _age_factors(self, age: int | None) -> list[RiskFactor]:
        if age is None:
            return []
        if age < self.config.young_age_limit:
            return [
                RiskFactor(
                    RiskFactorType.DEMOGRAPHIC, "Young driver", self.config.young_driver_impact
                )
            ]
        if age > self.config.senior_age_limit:
            return [
                RiskFactor(
                    RiskFactorType.DEMOGRAPHIC, "Senior driver", self.config.senior_driver_impact
                )
            ]
        return []

    def _driving_history_factors(self, history: DrivingHistory | None) -> list[RiskFactor]:
        if history is None:
            return []

        factors = []
        if history.accidents > 0:
            factors.append(
                RiskFactor(
                    RiskFactorType.DRIVING_HISTORY,
                    f"Previous accidents: {history.accidents}",
                    1 + self.config.accident_impact_step * history.accidents,
                )
            )
        if history.violations > 0:
            factors.append(
                RiskFactor(
                    RiskFactorType.DRIVING_HISTORY,
                    f"Traffic violations: {history.violations}",
                    1 + self.config.violation_impact_step * history.violations,
                )
            )
        if (
            history.years_of_experience is not None
            and history.years_of_experience < self.config.novice_years
        ):
            factors.append(
                RiskFactor(
                    RiskFactorType.DRIVING_HISTORY,
                    "Limited driving experience",
                    self.config.limited_experience_impact,
                )
            )
        return factors

    def _occupation_factors(self, occupation: str | None) -> list[RiskFactor]:
        if not occupation:
            return []

        lowered = occupation.lower()
        # First matching rule wins
        for rule in self.config.occupation_rules:
            if rule.keyword in lowered:
                return [RiskFactor(RiskFactorType.OCCUPATION, rule.description, rule.impact)]
        return []

    def _location_factors(self, address: Address | None) -> list[RiskFactor]:
        if address is None:
            return []

        state = address.state.upper()
        if state in self.config.high_risk_states:
            return [
                RiskFactor(
                    RiskFactorType.LOCATION,
                    f"High-risk state: {state}",
                    self.config.high_risk_state_impact,
                )
            ]
        if state in self.config.low_risk_states:
            return [
                RiskFactor(
                    RiskFactorType.LOCATION,
                    f"Low-risk state: {state}",
                    self.config.low_risk_state_impact,
                )
            ]
        return []

    # -------------------------------------------------------------------------
    # Score
    # -------------------------------------------------------------------------

    def calculate_score(
        self,
        profile: ScorableProfile,
        factors: frozenset[RiskFactor] | set[RiskFactor] | None = None,
    ) -> RiskScore:
        """Calculate the risk score for a profile.

        Args:
            profile: Profile to score.
            factors: Factor set for the factor adjustment step. Defaults to
                the factors derived from the profile itself.

        Returns:
            RiskScore clamped to the configured band.
        """
        if factors is None:
            factors = self.derive_factors(profile)

        score = Decimal(self.config.base_score)
        score += self._age_adjustment(profile.age)
        score += self._driving_history_adjustment(profile.driving_history)
        score += self._occupation_adjustment(profile.occupation)
        score += self._income_adjustment(profile.annual_income)
        score += self._factor_adjustment(factors)
        score += self._location_adjustment(profile.address)

        clamped = max(Decimal(self.config.min_score), min(Decimal(self.config.max_score), score))
        value = int(clamped.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        result = RiskScore(value)

        logger.debug(
            "Risk score calculated",
            raw=str(score),
            score=result.value,
            category=result.category.value,
            factors_count=len(factors),
        )

        return result

    def _age_adjustment(self, age: int | None) -> int:
        if age is None:
            return 0
        if age < self.config.young_age_limit:
            return self.config.young_adjustment
        if age <= self.config.senior_age_limit:
            return self.config.prime_age_adjustment
        return self.config.senior_adjustment

    def _driving_history_adjustment(self, history: DrivingHistory | None) -> int:
        if history is None:
            return 0

        adjustment = -history.accidents * self.config.accident_penalty
        adjustment -= history.violations * self.config.violation_penalty

        years = history.years_of_experience
        if years is not None:
            if years >= self.config.experienced_years:
                adjustment += self.config.experienced_bonus
            elif years < self.config.novice_years:
                adjustment -= self.config.novice_penalty
        return adjustment

    def _occupation_adjustment(self, occupation: str | None) -> int:
        if not occupation:
            return 0

        lowered = occupation.lower()
        if any(keyword in lowered for keyword in self.config.high_risk_occupation_keywords):
            return self.config.high_risk_occupation_adjustment
        if any(keyword in lowered for keyword in self.config.low_risk_occupation_keywords):
            return self.config.low_risk_occupation_adjustment
        return 0

    def _income_adjustment(self, income: Decimal | None) -> int:
        if income is None:
            return 0
        if income >= self.config.high_income_threshold:
            return self.config.high_income_adjustment
        if income < self.config.low_income_threshold:
            return self.config.low_income_adjustment
        return 0

    def _factor_adjustment(self, factors: frozenset[RiskFactor] | set[RiskFactor]) -> Decimal:
        return sum(
            ((factor.impact - 1) * -self.config.factor_weight for factor in factors),
            Decimal(0),
        )

    def _location_adjustment(self, address: Address | None) -> int:
        if address is None:
            return 0

        state = address.state.upper()
        if state in self.config.high_risk_states:
            return self.config.high_risk_state_adjustment
        if state in self.config.low_risk_states:
            return self.config.low_risk_state_adjustment
        return 0


def create_scoring_engine(config: ScoringConfig | None = None) -> ScoringEngine:
    """Create a scoring engine.

    Args:
        config: Optional scoring configuration.

    Returns:
        Configured ScoringEngine.
    """
    return ScoringEngine(config=config)
