"""Core exceptions for risk scoring, pricing and assessment lifecycle.

Four families are raised by the engine and surfaced to callers untouched:

- validation errors (bad values at construction or mutation time)
- not-found errors (lookup by identifier yields nothing)
- conflict errors (duplicate profiles, stale optimistic versions)
- illegal-state errors (assessment transitions out of a terminal state)
"""

from typing import Any

from riskengine.utils.exceptions import RiskEngineError


# =============================================================================
# Validation
# =============================================================================


class DomainValidationError(RiskEngineError, ValueError):
    """Raised when a value violates a domain constraint.

    Attributes:
        field: Name of the offending field, when known
    """

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field

    def __str__(self) -> str:
        if self.field:
            return f"{type(self).__name__}({self.field}): {self.args[0]}"
        return f"{type(self).__name__}: {self.args[0]}"


class InvalidRiskScoreError(DomainValidationError):
    """Raised when a risk score is outside the 0-1000 range.

    Attributes:
        value: The rejected score value
    """

    def __init__(self, value: Any):
        super().__init__(
            f"Risk score must be between 0 and 1000, but was: {value}",
            field="value",
        )
        self.value = value


class InvalidRiskFactorError(DomainValidationError):
    """Raised when a risk factor has no description or a non-positive impact."""


class InvalidDrivingHistoryError(DomainValidationError):
    """Raised when driving history counts are negative."""


class InvalidAddressError(DomainValidationError):
    """Raised when an address has blank parts or a malformed ZIP code."""


class InvalidProfileDataError(DomainValidationError):
    """Raised when profile attributes (age, income, customer) are out of bounds."""


class InvalidPremiumError(DomainValidationError):
    """Raised when a premium or multiplier is not strictly positive."""


class InvalidAssessmentDataError(DomainValidationError):
    """Raised when an assessment is given a blank profile, unknown policy type or no score."""


# =============================================================================
# Not found
# =============================================================================


class NotFoundError(RiskEngineError, LookupError):
    """Raised when a record cannot be found by its identifier.

    Attributes:
        resource: Kind of record that was looked up
        identifier: The identifier that yielded no record
    """

    resource = "Record"

    def __init__(self, identifier: str):
        super().__init__(f"{self.resource} not found: {identifier}")
        self.identifier = identifier

    def __str__(self) -> str:
        return f"{type(self).__name__}: {self.args[0]}"


class ProfileNotFoundError(NotFoundError):
    """Raised when a risk profile does not exist."""

    resource = "Risk profile"


class AssessmentNotFoundError(NotFoundError):
    """Raised when a risk assessment does not exist."""

    resource = "Risk assessment"


# =============================================================================
# Conflicts
# =============================================================================


class ConflictError(RiskEngineError):
    """Raised when a write conflicts with existing state."""


class ProfileAlreadyExistsError(ConflictError):
    """Raised when a profile already exists for a customer and profile type.

    Attributes:
        customer_id: The customer owning the existing profile
        profile_type: The profile type that is already taken
    """

    def __init__(self, customer_id: str, profile_type: Any):
        label = getattr(profile_type, "value", profile_type)
        super().__init__(
            f"Risk profile already exists for customer {customer_id} and type {label}"
        )
        self.customer_id = customer_id
        self.profile_type = profile_type

    def __str__(self) -> str:
        return f"ProfileAlreadyExistsError: {self.args[0]}"


class ConcurrentModificationError(ConflictError):
    """Raised when an aggregate is saved against a stale version.

    The caller must reload the aggregate and retry the whole use case.

    Attributes:
        aggregate_id: Identifier of the aggregate being saved
        expected_version: Version the writer loaded
        actual_version: Version currently stored (None if the record is gone)
    """

    def __init__(
        self,
        aggregate_id: str,
        expected_version: int,
        actual_version: int | None,
    ):
        super().__init__(f"Stale write rejected for {aggregate_id}")
        self.aggregate_id = aggregate_id
        self.expected_version = expected_version
        self.actual_version = actual_version

    def __str__(self) -> str:
        return (
            f"ConcurrentModificationError: {self.args[0]} "
            f"(expected={self.expected_version}, actual={self.actual_version})"
        )


# =============================================================================
# Illegal state
# =============================================================================


class IllegalStateError(RiskEngineError):
    """Raised when an operation is not allowed in the current state."""


class InvalidAssessmentStateError(IllegalStateError):
    """Raised when an assessment transition is attempted outside IN_PROGRESS.

    Attributes:
        assessment_id: The assessment being transitioned
        status: The status it was in
        action: The attempted transition ("complete" or "reject")
    """

    def __init__(self, assessment_id: str, status: Any, action: str):
        label = getattr(status, "value", status)
        super().__init__(
            f"Cannot {action} assessment {assessment_id}: only in-progress "
            f"assessments can transition (status={label})"
        )
        self.assessment_id = assessment_id
        self.status = status
        self.action = action

    def __str__(self) -> str:
        return f"InvalidAssessmentStateError: {self.args[0]}"
