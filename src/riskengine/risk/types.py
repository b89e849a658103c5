"""Closed enumerations shared by the risk domain."""

from enum import Enum


class RiskCategory(str, Enum):
    """Risk classification derived from a score value."""

    LOW = "LOW"  # 0-200
    MEDIUM = "MEDIUM"  # 201-500
    HIGH = "HIGH"  # 501-800
    VERY_HIGH = "VERY_HIGH"  # 801-1000


class RiskFactorType(str, Enum):
    """Categories of risk factors."""

    DEMOGRAPHIC = "DEMOGRAPHIC"
    DRIVING_HISTORY = "DRIVING_HISTORY"
    LOCATION = "LOCATION"
    OCCUPATION = "OCCUPATION"
    VEHICLE = "VEHICLE"
    FINANCIAL = "FINANCIAL"
    HEALTH = "HEALTH"
    PROPERTY = "PROPERTY"
    BUSINESS = "BUSINESS"
    OTHER = "OTHER"


class ProfileType(str, Enum):
    """Insurance lines a profile (and an assessment's policy) can belong to."""

    AUTO = "AUTO"
    HOME = "HOME"
    LIFE = "LIFE"
    HEALTH = "HEALTH"
    BUSINESS = "BUSINESS"


class AssessmentStatus(str, Enum):
    """Lifecycle states of a risk assessment."""

    IN_PROGRESS = "IN_PROGRESS"  # Initial state
    COMPLETED = "COMPLETED"  # Terminal, priced
    REJECTED = "REJECTED"  # Terminal, not insurable
    ON_HOLD = "ON_HOLD"  # Declared, no transition enters it

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition is allowed."""
        return self in (AssessmentStatus.COMPLETED, AssessmentStatus.REJECTED)
