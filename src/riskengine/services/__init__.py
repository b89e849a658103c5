"""Application services running the risk use cases."""

from riskengine.services.assessment_service import (
    AssessmentStatistics,
    PremiumEstimate,
    RiskAssessmentService,
)
from riskengine.services.profile_service import RiskProfileService
from riskengine.services.unit_of_work import save_and_publish

__all__ = [
    "AssessmentStatistics",
    "PremiumEstimate",
    "RiskAssessmentService",
    "RiskProfileService",
    "save_and_publish",
]
