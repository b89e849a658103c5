"""Store protocols and in-memory implementations for the risk aggregates."""

from riskengine.repositories.assessment import InMemoryRiskAssessmentStore, RiskAssessmentStore
from riskengine.repositories.base import InMemoryAggregateStore, VersionedAggregate
from riskengine.repositories.profile import InMemoryRiskProfileStore, RiskProfileStore

__all__ = [
    "InMemoryAggregateStore",
    "InMemoryRiskAssessmentStore",
    "InMemoryRiskProfileStore",
    "RiskAssessmentStore",
    "RiskProfileStore",
    "VersionedAggregate",
]
