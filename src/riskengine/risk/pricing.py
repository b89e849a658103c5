"""Pricing engine turning a risk score and factors into a premium.

This module provides the PricingEngine that:
1. Looks up monthly base premiums per policy type
2. Derives a risk multiplier from a score band, compounded by factor impacts
3. Gates insurability on score floor and extreme factor impacts
4. Calculates final, annual and discount figures

All money values are Decimal; multipliers carry 3 decimal places and premiums
2, rounded half-up.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from pydantic import BaseModel, Field, model_validator

from riskengine.core.exceptions import InvalidPremiumError
from riskengine.core.logging import get_logger
from riskengine.risk.types import ProfileType
from riskengine.risk.values import RiskFactor, RiskScore

logger = get_logger(__name__)

MULTIPLIER_QUANTUM = Decimal("0.001")
MONEY_QUANTUM = Decimal("0.01")


def _coerce_policy_type(policy_type: ProfileType | str) -> ProfileType | str:
    try:
        return ProfileType(policy_type)
    except ValueError:
        return policy_type


def _default_base_premiums() -> dict[ProfileType, Decimal]:
    return {
        ProfileType.AUTO: Decimal("150.00"),
        ProfileType.HOME: Decimal("100.00"),
        ProfileType.LIFE: Decimal("75.00"),
        ProfileType.HEALTH: Decimal("400.00"),
        ProfileType.BUSINESS: Decimal("500.00"),
    }


def _default_score_bands() -> list[tuple[int, Decimal]]:
    # (minimum score, multiplier), highest band first
    return [
        (750, Decimal("0.80")),
        (700, Decimal("0.90")),
        (650, Decimal("0.95")),
        (600, Decimal("1.00")),
        (550, Decimal("1.10")),
        (500, Decimal("1.25")),
        (450, Decimal("1.50")),
        (400, Decimal("1.75")),
    ]


def _default_discount_bands() -> list[tuple[int, Decimal]]:
    return [
        (750, Decimal("0.15")),
        (700, Decimal("0.10")),
        (650, Decimal("0.05")),
    ]


class PricingConfig(BaseModel):
    """Configuration for the pricing engine."""

    # Monthly base premiums
    base_premiums: dict[ProfileType, Decimal] = Field(default_factory=_default_base_premiums)
    default_base_premium: Decimal = Field(
        default=Decimal("200.00"), gt=0, description="Base premium for unlisted policy types"
    )

    # Score-banded multiplier
    score_bands: list[tuple[int, Decimal]] = Field(default_factory=_default_score_bands)
    floor_multiplier: Decimal = Field(
        default=Decimal("2.00"), gt=0, description="Multiplier below the lowest band"
    )
    min_multiplier: Decimal = Field(default=Decimal("0.5"), gt=0)
    max_multiplier: Decimal = Field(default=Decimal("3.0"), gt=0)

    # Insurability
    min_insurable_score: int = Field(default=350, ge=0)
    extreme_factor_impact: Decimal = Field(
        default=Decimal("2.0"), gt=0, description="Factor impact that makes a profile uninsurable"
    )

    # Discounts
    discount_bands: list[tuple[int, Decimal]] = Field(default_factory=_default_discount_bands)
    good_risk_discount: Decimal = Field(default=Decimal("0.05"), ge=0)
    max_discount: Decimal = Field(default=Decimal("0.25"), ge=0, le=1)

    # Annual billing
    annual_payment_factor: Decimal = Field(default=Decimal("0.98"), gt=0)

    @model_validator(mode="after")
    def check_bounds(self) -> "PricingConfig":
        """Ensure bounds are ordered and premiums are positive."""
        if self.min_multiplier > self.max_multiplier:
            raise ValueError("min_multiplier must not exceed max_multiplier")
        if any(premium <= 0 for premium in self.base_premiums.values()):
            raise ValueError("base premiums must be positive")
        self.score_bands = sorted(self.score_bands, key=lambda band: band[0], reverse=True)
        self.discount_bands = sorted(self.discount_bands, key=lambda band: band[0], reverse=True)
        return self


@dataclass(frozen=True, slots=True)
class PremiumQuote:
    """Full pricing outcome for a score, factor set and policy type.

    Uninsurable quotes carry zero multiplier and premiums.
    Policy types outside ProfileType are kept as given and priced at the
    default base premium.
    """

    policy_type: ProfileType | str
    risk_score: RiskScore
    insurable: bool
    base_premium: Decimal
    risk_multiplier: Decimal
    final_premium: Decimal
    annual_premium: Decimal
    discount_percentage: Decimal

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "policy_type": getattr(self.policy_type, "value", self.policy_type),
            "risk_score": self.risk_score.to_dict(),
            "insurable": self.insurable,
            "base_premium": str(self.base_premium),
            "risk_multiplier": str(self.risk_multiplier),
            "final_premium": str(self.final_premium),
            "annual_premium": str(self.annual_premium),
            "discount_percentage": str(self.discount_percentage),
        }


class PricingEngine:
    """Calculates insurance pricing from risk assessment results.

    Example:
        ```python
        pricing = PricingEngine()

        if pricing.is_insurable(score, factors):
            multiplier = pricing.risk_multiplier(score, factors)
            premium = pricing.final_premium(pricing.base_premium(ProfileType.AUTO), multiplier)
        ```
    """

    def __init__(self, config: PricingConfig | None = None):
        """Initialize the pricing engine.

        Args:
            config: Pricing configuration.
        """
        self.config = config or PricingConfig()

    def base_premium(self, policy_type: ProfileType | str) -> Decimal:
        """Get the monthly base premium for a policy type.

        Args:
            policy_type: Policy type; unknown types get the default premium.

        Returns:
            Base premium with 2 decimal places.
        """
        key = _coerce_policy_type(policy_type)
        if not isinstance(key, ProfileType):
            return self.config.default_base_premium
        return self.config.base_premiums.get(key, self.config.default_base_premium)

    def risk_multiplier(self, score: RiskScore, factors: Iterable[RiskFactor] = ()) -> Decimal:
        """Calculate the premium multiplier for a score and factor set.

        The score band multiplier is compounded by every factor impact, then
        clamped to the configured bounds.

        Args:
            score: Risk score.
            factors: Risk factors to compound.

        Returns:
            Multiplier rounded to 3 decimal places.
        """
        multiplier = self._score_band_multiplier(score)
        for factor in factors:
            multiplier *= factor.impact

        clamped = max(self.config.min_multiplier, min(self.config.max_multiplier, multiplier))
        result = clamped.quantize(MULTIPLIER_QUANTUM, rounding=ROUND_HALF_UP)

        logger.debug(
            "Risk multiplier calculated",
            score=score.value,
            raw=str(multiplier),
            multiplier=str(result),
        )

        return result

    def _score_band_multiplier(self, score: RiskScore) -> Decimal:
        for minimum, multiplier in self.config.score_bands:
            if score.value >= minimum:
                return multiplier
        return self.config.floor_multiplier

    def final_premium(self, base_premium: Decimal, multiplier: Decimal) -> Decimal:
        """Calculate the final premium.

        Args:
            base_premium: Monthly base premium, must be positive.
            multiplier: Risk multiplier, must be positive.

        Returns:
            base_premium x multiplier rounded to 2 decimal places.

        Raises:
            InvalidPremiumError: If either input is not positive.
        """
        if base_premium <= 0:
            raise InvalidPremiumError("Base premium must be positive", field="base_premium")
        if multiplier <= 0:
            raise InvalidPremiumError("Risk multiplier must be positive", field="risk_multiplier")
        return (base_premium * multiplier).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)

    def is_insurable(self, score: RiskScore, factors: Iterable[RiskFactor] = ()) -> bool:
        """Determine whether a risk can be offered coverage at all.

        Args:
            score: Risk score.
            factors: Risk factors.

        Returns:
            False if the score is under the floor or any factor is extreme.
        """
        if score.value < self.config.min_insurable_score:
            return False
        return not any(factor.impact >= self.config.extreme_factor_impact for factor in factors)

    def discount_percentage(self, score: RiskScore, factors: Iterable[RiskFactor] = ()) -> Decimal:
        """Calculate the good-risk discount as a fraction (0.15 = 15%).

        Args:
            score: Risk score.
            factors: Risk factors.

        Returns:
            Discount capped at the configured maximum.
        """
        discount = Decimal("0")
        for minimum, band_discount in self.config.discount_bands:
            if score.value >= minimum:
                discount += band_discount
                break

        if any(factor.decreases_risk for factor in factors):
            discount += self.config.good_risk_discount

        return min(discount, self.config.max_discount)

    def annual_premium(self, monthly_premium: Decimal) -> Decimal:
        """Calculate the annual premium with the pay-annually discount.

        Args:
            monthly_premium: Monthly premium.

        Returns:
            monthly x 12 x annual factor, rounded to 2 decimal places.
        """
        return (monthly_premium * 12 * self.config.annual_payment_factor).quantize(
            MONEY_QUANTUM, rounding=ROUND_HALF_UP
        )

    def quote(
        self,
        score: RiskScore,
        factors: Iterable[RiskFactor],
        policy_type: ProfileType | str,
    ) -> PremiumQuote:
        """Price a score and factor set for a policy type in one step.

        Args:
            score: Risk score.
            factors: Risk factors.
            policy_type: Policy type to price; known names are coerced to ProfileType.

        Returns:
            PremiumQuote; zero premiums when not insurable.
        """
        policy_type = _coerce_policy_type(policy_type)
        factor_list = list(factors)
        base = self.base_premium(policy_type)
        zero = Decimal("0.00")

        if not self.is_insurable(score, factor_list):
            logger.debug("Quote declined, risk not insurable", score=score.value)
            return PremiumQuote(
                policy_type=policy_type,
                risk_score=score,
                insurable=False,
                base_premium=base,
                risk_multiplier=zero,
                final_premium=zero,
                annual_premium=zero,
                discount_percentage=zero,
            )

        multiplier = self.risk_multiplier(score, factor_list)
        final = self.final_premium(base, multiplier)
        return PremiumQuote(
            policy_type=policy_type,
            risk_score=score,
            insurable=True,
            base_premium=base,
            risk_multiplier=multiplier,
            final_premium=final,
            annual_premium=self.annual_premium(final),
            discount_percentage=self.discount_percentage(score, factor_list),
        )


def create_pricing_engine(config: PricingConfig | None = None) -> PricingEngine:
    """Create a pricing engine.

    Args:
        config: Optional pricing configuration.

    Returns:
        Configured PricingEngine.
    """
    return PricingEngine(config=config)
