"""Core services and utilities for riskengine."""

from .exceptions import (
    AssessmentNotFoundError,
    ConcurrentModificationError,
    ConflictError,
    DomainValidationError,
    IllegalStateError,
    InvalidAddressError,
    InvalidAssessmentDataError,
    InvalidAssessmentStateError,
    InvalidDrivingHistoryError,
    InvalidPremiumError,
    InvalidProfileDataError,
    InvalidRiskFactorError,
    InvalidRiskScoreError,
    NotFoundError,
    ProfileAlreadyExistsError,
    ProfileNotFoundError,
)
from .logging import LogContext, get_logger, setup_logging

__all__ = [
    # Exceptions
    "AssessmentNotFoundError",
    "ConcurrentModificationError",
    "ConflictError",
    "DomainValidationError",
    "IllegalStateError",
    "InvalidAddressError",
    "InvalidAssessmentDataError",
    "InvalidAssessmentStateError",
    "InvalidDrivingHistoryError",
    "InvalidPremiumError",
    "InvalidProfileDataError",
    "InvalidRiskFactorError",
    "InvalidRiskScoreError",
    "NotFoundError",
    "ProfileAlreadyExistsError",
    "ProfileNotFoundError",
    # Logging
    "LogContext",
    "get_logger",
    "setup_logging",
]
