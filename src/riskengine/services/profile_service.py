"""Application service for risk profiles.

Every write use case runs as one unit: load the profile, mutate it, save it,
then publish the events it buffered. Scoring is always done here, never inside
the aggregate.
"""

from decimal import Decimal

from riskengine.core.exceptions import (
    ConflictError,
    ProfileAlreadyExistsError,
    ProfileNotFoundError,
)
from riskengine.core.logging import LogContext, get_logger
from riskengine.repositories.profile import InMemoryRiskProfileStore, RiskProfileStore
from riskengine.risk.events import EventPublisher, InMemoryEventPublisher
from riskengine.risk.profile import RiskProfile
from riskengine.risk.scoring import ScoringEngine, create_scoring_engine
from riskengine.risk.types import ProfileType
from riskengine.risk.values import Address, DrivingHistory, RiskFactor
from riskengine.services.unit_of_work import save_and_publish

logger = get_logger(__name__)


class RiskProfileService:
    """Manage risk profiles and keep their factors and scores current.

    Example:
        ```python
        service = RiskProfileService(InMemoryRiskProfileStore())
        profile = service.create_profile(
            "customer-1", ProfileType.AUTO, age=30, address=address
        )
        print(profile.current_risk_score.value)
        ```
    """

    def __init__(
        self,
        store: RiskProfileStore | None = None,
        scoring_engine: ScoringEngine | None = None,
        publisher: EventPublisher | None = None,
    ):
        """Initialize the profile service.

        Args:
            store: Profile persistence backend.
            scoring_engine: Engine deriving factors and scores.
            publisher: Event bus receiving profile events after each save.
        """
        self.store = store if store is not None else InMemoryRiskProfileStore()
        self.scoring_engine = scoring_engine or create_scoring_engine()
        self.publisher = publisher or InMemoryEventPublisher()

    # =========================================================================
    # Write use cases
    # =========================================================================

    def create_profile(
        self,
        customer_id: str,
        profile_type: ProfileType,
        driving_history: DrivingHistory | None = None,
        address: Address | None = None,
        age: int | None = None,
        occupation: str | None = None,
        annual_income: Decimal | float | int | None = None,
    ) -> RiskProfile:
        """Create and score a profile for a customer.

        Raises:
            ProfileAlreadyExistsError: If the customer already has a profile of this type.
            InvalidProfileDataError: If the attributes are invalid.
        """
        with LogContext(use_case="create_profile", customer_id=customer_id):
            if self.store.exists_by_customer_id_and_type(customer_id, profile_type):
                logger.warning(
                    "Profile already exists",
                    profile_type=getattr(profile_type, "value", profile_type),
                )
                raise ProfileAlreadyExistsError(customer_id, profile_type)

            profile = RiskProfile.create(
                customer_id=customer_id,
                profile_type=profile_type,
                driving_history=driving_history,
                address=address,
                age=age,
                occupation=occupation,
                annual_income=annual_income,
            )
            self._rescore(profile)
            saved = self._commit(profile)

            logger.info(
                "Risk profile created",
                profile_id=saved.profile_id,
                score=saved.current_risk_score.value,
                category=saved.current_risk_score.category.value,
            )
            return saved

    def update_profile(
        self,
        profile_id: str,
        driving_history: DrivingHistory | None = None,
        address: Address | None = None,
        age: int | None = None,
        occupation: str | None = None,
        annual_income: Decimal | float | int | None = None,
    ) -> RiskProfile:
        """Replace a profile's attributes and rescore it.

        Raises:
            ProfileNotFoundError: If the profile does not exist.
            InvalidProfileDataError: If the attributes are invalid.
            ConcurrentModificationError: If the profile changed since it was loaded.
        """
        with LogContext(use_case="update_profile", profile_id=profile_id):
            profile = self.get_profile(profile_id)
            profile.update_personal_info(address, age, occupation, annual_income)
            profile.update_driving_history(driving_history)
            self._rescore(profile)
            saved = self._commit(profile)

            logger.info("Risk profile updated", score=saved.current_risk_score.value)
            return saved

    def recalculate_risk_score(self, profile_id: str) -> RiskProfile:
        """Re-derive factors and score from the stored attributes."""
        with LogContext(use_case="recalculate_risk_score", profile_id=profile_id):
            profile = self.get_profile(profile_id)
            previous = profile.current_risk_score.value
            self._rescore(profile)
            saved = self._commit(profile)

            logger.info(
                "Risk score recalculated",
                previous_score=previous,
                score=saved.current_risk_score.value,
            )
            return saved

    def add_risk_factor(self, profile_id: str, factor: RiskFactor) -> RiskProfile:
        """Add a factor to the profile's current set and rescore against that set.

        A factor equal by type and description to one already present leaves
        the existing one in place.
        """
        with LogContext(use_case="add_risk_factor", profile_id=profile_id):
            profile = self.get_profile(profile_id)
            profile.update_risk_factors(profile.risk_factors | {factor})
            profile.update_risk_score(
                self.scoring_engine.calculate_score(profile, profile.risk_factors)
            )
            saved = self._commit(profile)

            logger.info(
                "Risk factor added",
                factor_type=factor.type.value,
                description=factor.description,
                score=saved.current_risk_score.value,
            )
            return saved

    def delete_profile(self, profile_id: str) -> None:
        """Delete a profile.

        Raises:
            ProfileNotFoundError: If the profile does not exist.
        """
        if not self.store.delete(profile_id):
            raise ProfileNotFoundError(profile_id)
        logger.info("Risk profile deleted", profile_id=profile_id)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_profile(self, profile_id: str) -> RiskProfile:
        """Load a profile.

        Raises:
            ProfileNotFoundError: If the profile does not exist.
        """
        profile = self.store.find_by_id(profile_id)
        if profile is None:
            raise ProfileNotFoundError(profile_id)
        return profile

    def get_profiles_for_customer(self, customer_id: str) -> list[RiskProfile]:
        return self.store.find_by_customer_id(customer_id)

    def get_profile_for_customer_and_type(
        self, customer_id: str, profile_type: ProfileType
    ) -> RiskProfile | None:
        return self.store.find_by_customer_id_and_type(customer_id, profile_type)

    def get_high_risk_profiles(self) -> list[RiskProfile]:
        """Profiles currently scored HIGH or VERY_HIGH, for review."""
        return self.store.find_high_risk()

    def get_profiles_by_type(self, profile_type: ProfileType) -> list[RiskProfile]:
        return self.store.find_by_type(profile_type)

    def has_profile(self, customer_id: str, profile_type: ProfileType) -> bool:
        return self.store.exists_by_customer_id_and_type(customer_id, profile_type)

    # =========================================================================
    # Internals
    # =========================================================================

    def _rescore(self, profile: RiskProfile) -> None:
        factors = self.scoring_engine.derive_factors(profile)
        profile.update_risk_factors(factors)
        profile.update_risk_score(self.scoring_engine.calculate_score(profile, factors))

    def _commit(self, profile: RiskProfile) -> RiskProfile:
        try:
            return save_and_publish(self.store, profile, self.publisher, logger)
        except ConflictError as exc:
            logger.warning("Profile save rejected", error=str(exc))
            raise
