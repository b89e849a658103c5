"""Save-then-publish step shared by the application services."""

from typing import Any, Protocol, TypeVar

import structlog

from riskengine.core.logging import log_domain_event
from riskengine.risk.events import DomainEvent, EventPublisher


class OutboxAggregate(Protocol):
    version: int

    @property
    def pending_events(self) -> tuple[DomainEvent, ...]: ...

    def mark_published(self, event: DomainEvent) -> None: ...


AggregateType = TypeVar("AggregateType", bound=OutboxAggregate)


class AggregateStore(Protocol):
    def save(self, aggregate: Any) -> Any: ...


def save_and_publish(
    store: AggregateStore,
    aggregate: AggregateType,
    publisher: EventPublisher,
    logger: structlog.stdlib.BoundLogger,
) -> AggregateType:
    """Persist an aggregate, then deliver its outbox to the publisher in order.

    Nothing is published if ``save`` raises. Each event leaves the outbox only
    after ``publish`` returns, so if the publisher fails partway the
    undelivered events stay on the aggregate and the error propagates.

    Args:
        store: Store for the aggregate.
        aggregate: Aggregate mutated by the current use case.
        publisher: Event bus.
        logger: Logger of the calling service.

    Returns:
        The saved aggregate.
    """
    saved = store.save(aggregate)
    for event in aggregate.pending_events:
        publisher.publish(event)
        aggregate.mark_published(event)
        log_domain_event(logger, event)
    return saved
