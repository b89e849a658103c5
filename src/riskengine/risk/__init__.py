"""Risk module: value types, scoring, pricing and the profile/assessment aggregates."""

from riskengine.risk.assessment import RiskAssessment
from riskengine.risk.events import (
    AssessmentOutcome,
    AssessmentStarted,
    DomainEvent,
    EventPublisher,
    EventSource,
    InMemoryEventPublisher,
    ProfileCreated,
    ProfileUpdated,
)
from riskengine.risk.pricing import (
    MONEY_QUANTUM,
    MULTIPLIER_QUANTUM,
    PremiumQuote,
    PricingConfig,
    PricingEngine,
    create_pricing_engine,
)
from riskengine.risk.profile import MAX_AGE, MIN_AGE, RiskProfile
from riskengine.risk.scoring import (
    OccupationRule,
    ScorableProfile,
    ScoringConfig,
    ScoringEngine,
    create_scoring_engine,
)
from riskengine.risk.types import AssessmentStatus, ProfileType, RiskCategory, RiskFactorType
from riskengine.risk.values import (
    CATEGORY_MULTIPLIERS,
    DEFAULT_RISK_SCORE,
    MAX_RISK_SCORE,
    MIN_RISK_SCORE,
    Address,
    DrivingHistory,
    RiskFactor,
    RiskScore,
)

__all__ = [
    # Types
    "AssessmentStatus",
    "ProfileType",
    "RiskCategory",
    "RiskFactorType",
    # Values
    "Address",
    "CATEGORY_MULTIPLIERS",
    "DEFAULT_RISK_SCORE",
    "DrivingHistory",
    "MAX_RISK_SCORE",
    "MIN_RISK_SCORE",
    "RiskFactor",
    "RiskScore",
    # Scoring
    "OccupationRule",
    "ScorableProfile",
    "ScoringConfig",
    "ScoringEngine",
    "create_scoring_engine",
    # Pricing
    "MONEY_QUANTUM",
    "MULTIPLIER_QUANTUM",
    "PremiumQuote",
    "PricingConfig",
    "PricingEngine",
    "create_pricing_engine",
    # Events
    "AssessmentOutcome",
    "AssessmentStarted",
    "DomainEvent",
    "EventPublisher",
    "EventSource",
    "InMemoryEventPublisher",
    "ProfileCreated",
    "ProfileUpdated",
    # Aggregates
    "MAX_AGE",
    "MIN_AGE",
    "RiskAssessment",
    "RiskProfile",
]
