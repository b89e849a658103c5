"""Risk profile store."""

from typing import Protocol

from riskengine.core.exceptions import ProfileAlreadyExistsError
from riskengine.repositories.base import InMemoryAggregateStore
from riskengine.risk.profile import RiskProfile
from riskengine.risk.types import ProfileType


def _by_created(profile: RiskProfile) -> tuple:
    return (profile.created_at, profile.profile_id)


class RiskProfileStore(Protocol):
    """Protocol for risk profile persistence backends."""

    def save(self, profile: RiskProfile) -> RiskProfile:
        """Persist a profile, enforcing its version and (customer, type) uniqueness."""
        ...

    def find_by_id(self, profile_id: str) -> RiskProfile | None: ...

    def find_by_customer_id(self, customer_id: str) -> list[RiskProfile]: ...

    def find_by_customer_id_and_type(
        self, customer_id: str, profile_type: ProfileType
    ) -> RiskProfile | None: ...

    def exists_by_customer_id_and_type(
        self, customer_id: str, profile_type: ProfileType
    ) -> bool: ...

    def find_by_type(self, profile_type: ProfileType) -> list[RiskProfile]: ...

    def find_high_risk(self) -> list[RiskProfile]:
        """Profiles whose current score is HIGH or VERY_HIGH."""
        ...

    def delete(self, profile_id: str) -> bool: ...

    def find_all(self) -> list[RiskProfile]: ...


class InMemoryRiskProfileStore(InMemoryAggregateStore[RiskProfile]):
    """In-memory implementation of RiskProfileStore."""

    id_attribute = "profile_id"

    def _check_constraints(self, profile: RiskProfile) -> None:
        for other in self._records.values():
            if (
                other.profile_id != profile.profile_id
                and other.customer_id == profile.customer_id
                and other.profile_type == profile.profile_type
            ):
                raise ProfileAlreadyExistsError(profile.customer_id, profile.profile_type)

    def find_by_customer_id(self, customer_id: str) -> list[RiskProfile]:
        return self._select(lambda p: p.customer_id == customer_id, _by_created)

    def find_by_customer_id_and_type(
        self, customer_id: str, profile_type: ProfileType
    ) -> RiskProfile | None:
        matches = self._select(
            lambda p: p.customer_id == customer_id and p.profile_type == profile_type
        )
        return matches[0] if matches else None

    def exists_by_customer_id_and_type(
        self, customer_id: str, profile_type: ProfileType
    ) -> bool:
        with self._lock:
            return any(
                p.customer_id == customer_id and p.profile_type == profile_type
                for p in self._records.values()
            )

    def find_by_type(self, profile_type: ProfileType) -> list[RiskProfile]:
        return self._select(lambda p: p.profile_type == profile_type, _by_created)

    def find_high_risk(self) -> list[RiskProfile]:
        return self._select(lambda p: p.is_high_risk, _by_created)

    def find_all(self) -> list[RiskProfile]:
        return self._select(lambda _: True, _by_created)
