"""Base in-memory store with optimistic versioning.

Provides a generic store for versioned aggregates. Records are kept and handed
out as detached copies, so callers never share mutable state with the store
or with each other.

Usage:
    from riskengine.repositories.base import InMemoryAggregateStore

    class InMemoryWidgetStore(InMemoryAggregateStore[Widget]):
        id_attribute = "widget_id"

    store = InMemoryWidgetStore()
    widget = store.save(widget)          # version 0 -> 1
    loaded = store.find_by_id(widget.widget_id)
"""

import threading
from collections.abc import Callable
from copy import deepcopy
from typing import Generic, Protocol, TypeVar

from riskengine.core.exceptions import ConcurrentModificationError


class VersionedAggregate(Protocol):
    """Aggregate carrying an optimistic concurrency version and an outbox."""

    version: int

    def clear_events(self) -> None: ...


AggregateType = TypeVar("AggregateType", bound=VersionedAggregate)


class InMemoryAggregateStore(Generic[AggregateType]):
    """Generic thread-safe in-memory store for versioned aggregates.

    ``save`` is a compare-and-swap on the version: the aggregate's version must
    match the stored one (0 for a record that was never saved). On success the
    version is incremented on both the stored copy and the caller's aggregate.

    Attributes:
        id_attribute: Name of the aggregate's identifier attribute.
    """

    id_attribute: str

    def __init__(self) -> None:
        self._records: dict[str, AggregateType] = {}
        self._lock = threading.RLock()

    def _identity(self, aggregate: AggregateType) -> str:
        return getattr(aggregate, self.id_attribute)

    @staticmethod
    def _detach(aggregate: AggregateType) -> AggregateType:
        copy = deepcopy(aggregate)
        copy.clear_events()
        return copy

    def _check_constraints(self, aggregate: AggregateType) -> None:
        """Hook for subclasses to enforce uniqueness; called under the lock."""

    def save(self, aggregate: AggregateType) -> AggregateType:
        """Persist an aggregate.

        Args:
            aggregate: Aggregate to persist; its buffered events are left in
                place for the caller to drain.

        Returns:
            The caller's aggregate, with its version incremented.

        Raises:
            ConcurrentModificationError: If the aggregate's version is stale.
        """
        key = self._identity(aggregate)
        with self._lock:
            stored = self._records.get(key)
            actual = stored.version if stored is not None else None
            expected = aggregate.version

            if (stored is None and expected != 0) or (stored is not None and expected != actual):
                raise ConcurrentModificationError(key, expected, actual)

            self._check_constraints(aggregate)

            snapshot = self._detach(aggregate)
            snapshot.version = expected + 1
            self._records[key] = snapshot
            aggregate.version = snapshot.version
        return aggregate

    def find_by_id(self, aggregate_id: str) -> AggregateType | None:
        """Get a detached copy by identifier, or None."""
        with self._lock:
            stored = self._records.get(aggregate_id)
            return self._detach(stored) if stored is not None else None

    def delete(self, aggregate_id: str) -> bool:
        """Remove a record.

        Returns:
            True if a record was removed.
        """
        with self._lock:
            return self._records.pop(aggregate_id, None) is not None

    def find_all(self) -> list[AggregateType]:
        """All records, as detached copies."""
        return self._select(lambda _: True)

    def _select(
        self,
        predicate: Callable[[AggregateType], bool],
        sort_key: Callable[[AggregateType], object] | None = None,
    ) -> list[AggregateType]:
        with self._lock:
            matches = [self._detach(r) for r in self._records.values() if predicate(r)]
        if sort_key is not None:
            matches.sort(key=sort_key)
        return matches

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
