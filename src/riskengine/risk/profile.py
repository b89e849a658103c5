"""RiskProfile aggregate.

A risk profile is the durable record of a customer's risk-relevant
attributes and latest score for one profile type. It is mutated only through
its explicit operations; none of them recomputes the score. Callers run the
ScoringEngine and push the results in.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from uuid_utils.compat import uuid7

from riskengine.core.exceptions import InvalidProfileDataError
from riskengine.risk.events import EventSource, ProfileCreated, ProfileUpdated
from riskengine.risk.types import ProfileType, RiskFactorType
from riskengine.risk.values import Address, DrivingHistory, RiskFactor, RiskScore, to_decimal

MIN_AGE = 16
MAX_AGE = 120


def _now() -> datetime:
    return datetime.now(UTC)


def _validate_age(age: int | None) -> int | None:
    if age is None:
        return None
    if isinstance(age, bool) or not isinstance(age, int) or not MIN_AGE <= age <= MAX_AGE:
        raise InvalidProfileDataError(
            f"Age must be between {MIN_AGE} and {MAX_AGE}, but was: {age}", field="age"
        )
    return age


def _validate_income(income: Decimal | float | int | None) -> Decimal | None:
    if income is None:
        return None
    try:
        value = to_decimal(income)
    except (TypeError, ValueError) as exc:
        raise InvalidProfileDataError(
            f"Annual income must be a number, but was: {income!r}", field="annual_income"
        ) from exc
    if value < 0:
        raise InvalidProfileDataError("Annual income cannot be negative", field="annual_income")
    return value


def _validate_factors(factors: Iterable[RiskFactor]) -> frozenset[RiskFactor]:
    if factors is None:
        raise InvalidProfileDataError("Risk factors cannot be None", field="risk_factors")
    result = frozenset(factors)
    for factor in result:
        if not isinstance(factor, RiskFactor):
            raise InvalidProfileDataError(
                f"Not a risk factor: {factor!r}", field="risk_factors"
            )
    return result


@dataclass(eq=False)
class RiskProfile(EventSource):
    """A customer's risk profile for one insurance line.

    Use ``RiskProfile.create`` for new profiles; the plain constructor is for
    reconstituting stored state and performs no validation or event buffering.

    Attributes:
        profile_id: Unique identifier.
        customer_id: Owning customer.
        profile_type: Insurance line; one profile per customer and type.
        current_risk_score: Latest score pushed in by the caller.
        risk_factors: Current factor set, unique by type and description.
        driving_history: Driving record, if known.
        address: Residence, if known.
        age: Age in years (16-120), if known.
        occupation: Free-text occupation, if known.
        annual_income: Non-negative income, if known.
        created_at: Creation timestamp.
        updated_at: Timestamp of the last mutation.
        version: Optimistic concurrency version; 0 until first saved.
    """

    profile_id: str = field(default_factory=lambda: str(uuid7()))
    customer_id: str = ""
    profile_type: ProfileType = ProfileType.AUTO
    current_risk_score: RiskScore = field(default_factory=RiskScore.default)
    risk_factors: frozenset[RiskFactor] = field(default_factory=frozenset)
    driving_history: DrivingHistory | None = None
    address: Address | None = None
    age: int | None = None
    occupation: str | None = None
    annual_income: Decimal | None = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
    version: int = 0

    @classmethod
    def create(
        cls,
        customer_id: str,
        profile_type: ProfileType,
        driving_history: DrivingHistory | None = None,
        address: Address | None = None,
        age: int | None = None,
        occupation: str | None = None,
        annual_income: Decimal | float | int | None = None,
    ) -> "RiskProfile":
        """Create a new profile with the default score, pending its first scoring pass.

        Raises:
            InvalidProfileDataError: If customer, type, age or income is invalid.
        """
        if not isinstance(customer_id, str) or not customer_id.strip():
            raise InvalidProfileDataError("Customer ID cannot be empty", field="customer_id")
        try:
            profile_type = ProfileType(profile_type)
        except ValueError as exc:
            raise InvalidProfileDataError(
                f"Unknown profile type: {profile_type!r}", field="profile_type"
            ) from exc
        validated_age = _validate_age(age)
        validated_income = _validate_income(annual_income)

        now = _now()
        profile = cls(
            customer_id=customer_id,
            profile_type=profile_type,
            current_risk_score=RiskScore.default(),
            risk_factors=frozenset(),
            driving_history=driving_history,
            address=address,
            age=validated_age,
            occupation=occupation,
            annual_income=validated_income,
            created_at=now,
            updated_at=now,
        )
        profile._record_event(
            ProfileCreated(
                profile_id=profile.profile_id,
                customer_id=profile.customer_id,
                profile_type=profile.profile_type,
            )
        )
        return profile

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def update_risk_factors(self, factors: Iterable[RiskFactor]) -> None:
        """Replace the factor set."""
        self.risk_factors = _validate_factors(factors)
        self._touch()

    def update_risk_score(self, score: RiskScore) -> None:
        """Replace the current score."""
        if not isinstance(score, RiskScore):
            raise InvalidProfileDataError(
                f"Not a risk score: {score!r}", field="current_risk_score"
            )
        self.current_risk_score = score
        self._touch()

    def update_driving_history(self, driving_history: DrivingHistory | None) -> None:
        """Replace the driving history."""
        self.driving_history = driving_history
        self._touch()

    def update_personal_info(
        self,
        address: Address | None,
        age: int | None,
        occupation: str | None,
        annual_income: Decimal | float | int | None,
    ) -> None:
        """Replace address, age, occupation and income together."""
        validated_age = _validate_age(age)
        validated_income = _validate_income(annual_income)

        self.address = address
        self.age = validated_age
        self.occupation = occupation
        self.annual_income = validated_income
        self._touch()

    def _touch(self) -> None:
        self.updated_at = max(_now(), self.updated_at)
        self._record_event(
            ProfileUpdated(profile_id=self.profile_id, customer_id=self.customer_id)
        )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def is_high_risk(self) -> bool:
        """Whether the current score is HIGH or VERY_HIGH."""
        return self.current_risk_score.is_high_risk

    def factors_by_type(self, factor_type: RiskFactorType) -> frozenset[RiskFactor]:
        """Factors of one type."""
        return frozenset(f for f in self.risk_factors if f.type == factor_type)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "profile_id": self.profile_id,
            "customer_id": self.customer_id,
            "profile_type": self.profile_type.value,
            "current_risk_score": self.current_risk_score.to_dict(),
            "risk_factors": [
                f.to_dict()
                for f in sorted(self.risk_factors, key=lambda f: (f.type.value, f.description))
            ],
            "driving_history": self.driving_history.to_dict() if self.driving_history else None,
            "address": self.address.to_dict() if self.address else None,
            "age": self.age,
            "occupation": self.occupation,
            "annual_income": str(self.annual_income) if self.annual_income is not None else None,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "version": self.version,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RiskProfile):
            return NotImplemented
        return self.profile_id == other.profile_id

    def __hash__(self) -> int:
        return hash(self.profile_id)
