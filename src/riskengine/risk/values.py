"""Immutable value types consumed and produced by scoring and pricing.

All value types validate on construction and raise a subclass of
``DomainValidationError`` when a constraint is violated.
"""

import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from riskengine.core.exceptions import (
    InvalidAddressError,
    InvalidDrivingHistoryError,
    InvalidRiskFactorError,
    InvalidRiskScoreError,
)
from riskengine.risk.types import RiskCategory, RiskFactorType

MIN_RISK_SCORE = 0
MAX_RISK_SCORE = 1000
DEFAULT_RISK_SCORE = 500

# Legacy category multipliers; premium pricing uses PricingEngine instead
CATEGORY_MULTIPLIERS: dict[RiskCategory, Decimal] = {
    RiskCategory.LOW: Decimal("0.8"),
    RiskCategory.MEDIUM: Decimal("1.0"),
    RiskCategory.HIGH: Decimal("1.5"),
    RiskCategory.VERY_HIGH: Decimal("2.0"),
}

_ZIP_CODE_PATTERN = re.compile(r"^\d{5}(-\d{4})?$")


def to_decimal(value: Any) -> Decimal:
    """Convert a number to Decimal, using the shortest repr for floats.

    Raises:
        TypeError: If the value is not numeric
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise TypeError("Boolean is not a valid number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int | float | str):
        try:
            result = Decimal(str(value))
        except InvalidOperation as exc:
            raise ValueError(f"Not a number: {value!r}") from exc
    else:
        raise TypeError(f"Unsupported numeric type: {type(value).__name__}")

    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


# =============================================================================
# Risk Score
# =============================================================================


@dataclass(frozen=True, slots=True)
class RiskScore:
    """Bounded risk rating from 0 (lowest risk) to 1000 (highest risk).

    Category and legacy multiplier are pure functions of the value.
    """

    value: int

    def __post_init__(self) -> None:
        if (
            isinstance(self.value, bool)
            or not isinstance(self.value, int)
            or not MIN_RISK_SCORE <= self.value <= MAX_RISK_SCORE
        ):
            raise InvalidRiskScoreError(self.value)

    @property
    def category(self) -> RiskCategory:
        """Risk category for this score."""
        if self.value <= 200:
            return RiskCategory.LOW
        if self.value <= 500:
            return RiskCategory.MEDIUM
        if self.value <= 800:
            return RiskCategory.HIGH
        return RiskCategory.VERY_HIGH

    @property
    def multiplier(self) -> Decimal:
        """Legacy premium multiplier for the category."""
        return CATEGORY_MULTIPLIERS[self.category]

    @property
    def is_high_risk(self) -> bool:
        """True for HIGH and VERY_HIGH categories."""
        return self.category in (RiskCategory.HIGH, RiskCategory.VERY_HIGH)

    @classmethod
    def minimum(cls) -> "RiskScore":
        """Lowest possible score."""
        return cls(MIN_RISK_SCORE)

    @classmethod
    def maximum(cls) -> "RiskScore":
        """Highest possible score."""
        return cls(MAX_RISK_SCORE)

    @classmethod
    def default(cls) -> "RiskScore":
        """Score assigned to new profiles before the first scoring pass."""
        return cls(DEFAULT_RISK_SCORE)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "value": self.value,
            "category": self.category.value,
            "multiplier": str(self.multiplier),
        }


# =============================================================================
# Risk Factor
# =============================================================================


@dataclass(frozen=True, slots=True)
class RiskFactor:
    """A named contributor to risk with an impact multiplier.

    Impact 1.0 is neutral, above 1.0 increases risk and below 1.0 decreases it.
    Two factors with the same type and description are the same factor,
    whatever their impact.

    Attributes:
        type: Category of the factor.
        description: Human-readable wording, never blank.
        impact: Strictly positive multiplier.
    """

    type: RiskFactorType
    description: str
    impact: Decimal = field(compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.type, RiskFactorType):
            try:
                object.__setattr__(self, "type", RiskFactorType(self.type))
            except ValueError as exc:
                raise InvalidRiskFactorError(
                    f"Unknown risk factor type: {self.type!r}", field="type"
                ) from exc

        if not isinstance(self.description, str) or not self.description.strip():
            raise InvalidRiskFactorError(
                "Risk factor description cannot be empty", field="description"
            )

        try:
            impact = to_decimal(self.impact)
        except (TypeError, ValueError) as exc:
            raise InvalidRiskFactorError(
                f"Risk factor impact must be a number, but was: {self.impact!r}",
                field="impact",
            ) from exc
        if impact <= 0:
            raise InvalidRiskFactorError(
                f"Risk factor impact must be positive, but was: {self.impact}",
                field="impact",
            )
        object.__setattr__(self, "impact", impact)

    @property
    def increases_risk(self) -> bool:
        """True when impact is above neutral."""
        return self.impact > 1

    @property
    def decreases_risk(self) -> bool:
        """True when impact is below neutral."""
        return self.impact < 1

    @property
    def impact_percentage(self) -> Decimal:
        """Impact as a percentage change from neutral (1.2 -> 20)."""
        return (self.impact - 1) * 100

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": self.type.value,
            "description": self.description,
            "impact": str(self.impact),
        }


# =============================================================================
# Driving History
# =============================================================================


@dataclass(frozen=True, slots=True)
class DrivingHistory:
    """A customer's driving record."""

    accidents: int = 0
    violations: int = 0
    years_of_experience: int | None = None
    license_date: date | None = None

    def __post_init__(self) -> None:
        counts = {"accidents": self.accidents, "violations": self.violations}
        if self.years_of_experience is not None:
            counts["years_of_experience"] = self.years_of_experience

        for name, value in counts.items():
            if not isinstance(value, int) or isinstance(value, bool):
                raise InvalidDrivingHistoryError(
                    f"{name} must be a whole number, but was: {value!r}", field=name
                )
            if value < 0:
                raise InvalidDrivingHistoryError(f"{name} cannot be negative", field=name)

    @property
    def is_clean_record(self) -> bool:
        """No accidents and no violations."""
        return self.accidents == 0 and self.violations == 0

    @property
    def is_experienced_driver(self) -> bool:
        """Five or more years behind the wheel."""
        return self.years_of_experience is not None and self.years_of_experience >= 5

    @classmethod
    def clean(
        cls,
        years_of_experience: int | None = None,
        license_date: date | None = None,
    ) -> "DrivingHistory":
        """Create a record with no accidents or violations."""
        return cls(
            accidents=0,
            violations=0,
            years_of_experience=years_of_experience,
            license_date=license_date,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "accidents": self.accidents,
            "violations": self.violations,
            "years_of_experience": self.years_of_experience,
            "license_date": self.license_date.isoformat() if self.license_date else None,
        }


# =============================================================================
# Address
# =============================================================================


@dataclass(frozen=True, slots=True)
class Address:
    """Physical address used for location-based risk evaluation (US format)."""

    street: str
    city: str
    state: str
    zip_code: str
    country: str

    def __post_init__(self) -> None:
        for name in ("street", "city", "state", "country"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise InvalidAddressError(f"{name.capitalize()} cannot be empty", field=name)
        if not isinstance(self.zip_code, str) or not _ZIP_CODE_PATTERN.match(self.zip_code):
            raise InvalidAddressError(f"Invalid ZIP code: {self.zip_code}", field="zip_code")

    @property
    def full_address(self) -> str:
        """Single-line formatted address."""
        return f"{self.street}, {self.city}, {self.state} {self.zip_code}, {self.country}"

    @property
    def region(self) -> str:
        """Coarse US region derived from the first ZIP digit."""
        first = self.zip_code[0]
        if first in "01":
            return "Northeast"
        if first in "23":
            return "Southeast"
        if first in "45":
            return "Midwest"
        if first in "67":
            return "South"
        return "West"

    @property
    def is_metropolitan_area(self) -> bool:
        """Rough metro check from ZIP prefixes."""
        return self.zip_code[0] in "1239"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "country": self.country,
        }
