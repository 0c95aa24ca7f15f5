# pylint: disable=broad-except
"""In-process publish/subscribe bus for domain events."""

from __future__ import annotations
import asyncio
import inspect
import logging
import time
from collections import deque
from dataclasses import dataclass, replace
from itertools import count
from typing import Awaitable, Callable, Deque, Dict, List, Optional, Set, Union
from uuid import uuid4

from shared.domain.errors import HandlerError, ValidationError
from shared.domain.events import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class Subscription:
    """Registered interest of one subscriber in one event type."""
    subscription_id: str
    event_type: str
    handler: EventHandler
    subscriber_id: str
    priority: int = 0
    timeout: Optional[float] = None
    sequence: int = 0


@dataclass
class EventTypeMetrics:
    """Delivery counters for one event type.

    ``total_events`` counts published events, the success/failure counters count
    handler deliveries, and ``average_processing_time`` is the mean dispatch
    duration in milliseconds.
    """
    total_events: int = 0
    successful_events: int = 0
    failed_events: int = 0
    average_processing_time: float = 0.0

    @property
    def success_rate(self) -> float:
        deliveries = self.successful_events + self.failed_events
        if deliveries == 0:
            return 0.0
        return round(self.successful_events / deliveries * 100, 2)


class EventBus:
    """Routes published domain events to their subscribers.

    Handlers of one event type run one after another in ascending priority
    (registration order breaks ties). A failing handler is logged, recorded and
    counted, and never reaches the publisher. In the default non-blocking mode
    ``publish`` only schedules the dispatch; ``drain`` and ``shutdown`` wait for
    outstanding dispatches.
    """

    def __init__(
        self,
        history_size: int = 1000,
        failed_delivery_size: int = 1000,
        handler_timeout: Optional[float] = 5.0,
        blocking: bool = False,
    ):
        self.handler_timeout = handler_timeout
        self.blocking = blocking
        self._subscriptions: Dict[str, List[Subscription]] = {}
        self._history: Deque[DomainEvent] = deque(maxlen=history_size)
        self._failed_deliveries: Deque[HandlerError] = deque(maxlen=failed_delivery_size)
        self._metrics: Dict[str, EventTypeMetrics] = {}
        self._in_flight: Set[asyncio.Task] = set()
        self._sequence = count()
        self._closed = False

    def subscribe(
        self,
        event_type: str,
        handler: EventHandler,
        subscriber_id: str,
        priority: int = 0,
        timeout: Optional[float] = None,
    ) -> str:
        """Register a handler for an event type and return its subscription id."""
        if not isinstance(event_type, str) or not event_type.strip():
            raise ValidationError("Event type is required to subscribe")
        if not callable(handler):
            raise ValidationError(f"Handler for {event_type} must be callable")

        subscription = Subscription(
            subscription_id=f"{subscriber_id}_{event_type}_{uuid4().hex[:12]}",
            event_type=event_type,
            handler=handler,
            subscriber_id=subscriber_id,
            priority=priority,
            timeout=timeout,
            sequence=next(self._sequence),
        )

        subscriptions = self._subscriptions.setdefault(event_type, [])
        subscriptions.append(subscription)
        subscriptions.sort(key=lambda s: (s.priority, s.sequence))

        logger.debug(f"Subscribed {subscriber_id} to {event_type} (priority {priority})")
        return subscription.subscription_id

    def unsubscribe(self, subscription_id: str) -> bool:
        """Remove a subscription. Returns False when the id is unknown."""
        for event_type, subscriptions in list(self._subscriptions.items()):
            for subscription in subscriptions:
                if subscription.subscription_id == subscription_id:
                    subscriptions.remove(subscription)
                    if not subscriptions:
                        del self._subscriptions[event_type]
                    logger.debug(f"Unsubscribed {subscription_id}")
                    return True
        return False

    async def publish(self, event: DomainEvent) -> None:
        """Record an event and deliver it to every subscriber of its type."""
        if not isinstance(event, DomainEvent):
            raise ValidationError(f"Cannot publish {type(event).__name__}, expected DomainEvent")

        if self._closed:
            logger.warning(f"Event bus is shut down, dropping event {event.type} ({event.id})")
            return

        self._history.append(event)
        subscriptions = list(self._subscriptions.get(event.type, []))
        logger.info(f"Publishing event {event.type} ({event.id}) to {len(subscriptions)} subscribers")

        if self.blocking:
            await self._dispatch(event, subscriptions)
            return

        task = asyncio.create_task(
            self._dispatch(event, subscriptions), name=f"dispatch:{event.type}:{event.id}"
        )
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def drain(self) -> None:
        """Wait until every scheduled dispatch has finished."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    async def shutdown(self, grace_period: float = 5.0) -> None:
        """Stop accepting events, then wait up to ``grace_period`` for in-flight dispatches."""
        self._closed = True
        pending = list(self._in_flight)
        if not pending:
            logger.info("Event bus shut down")
            return

        _, still_running = await asyncio.wait(pending, timeout=grace_period)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)
            logger.warning(f"Cancelled {len(still_running)} event dispatches still running at shutdown")
        logger.info("Event bus shut down")

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def get_metrics(self, event_type: Optional[str] = None):
        """Snapshot of delivery metrics, for one event type or keyed by type."""
        if event_type is not None:
            return replace(self._metrics.get(event_type, EventTypeMetrics()))
        return {name: replace(metrics) for name, metrics in self._metrics.items()}

    def get_event_history(self, limit: int = 50) -> List[DomainEvent]:
        """Most recent events across all types, newest first."""
        if limit < 0:
            raise ValidationError("History limit must not be negative")
        return list(reversed(self._history))[:limit]

    def get_failed_deliveries(self, limit: int = 50) -> List[HandlerError]:
        """Most recent handler failures, newest first."""
        return list(reversed(self._failed_deliveries))[:limit]

    def get_subscriptions(self, event_type: Optional[str] = None) -> Dict[str, List[Subscription]]:
        if event_type is not None:
            return {event_type: list(self._subscriptions.get(event_type, []))}
        return {name: list(subs) for name, subs in self._subscriptions.items()}

    async def _dispatch(self, event: DomainEvent, subscriptions: List[Subscription]) -> None:
        start = time.perf_counter()
        successful = 0
        failed = 0

        if not subscriptions:
            logger.debug(f"No subscribers for event {event.type}")

        for subscription in subscriptions:
            if await self._deliver(event, subscription):
                successful += 1
            else:
                failed += 1

        elapsed_ms = (time.perf_counter() - start) * 1000
        self._update_metrics(event.type, successful, failed, elapsed_ms)
        logger.info(
            f"Event {event.type} ({event.id}) processed: "
            f"{successful} succeeded, {failed} failed in {elapsed_ms:.1f}ms"
        )

    async def _deliver(self, event: DomainEvent, subscription: Subscription) -> bool:
        timeout = subscription.timeout if subscription.timeout is not None else self.handler_timeout
        try:
            logger.debug(f"handling event {event.type} with {subscription.subscriber_id}")
            result = subscription.handler(event)
            if inspect.isawaitable(result):
                await asyncio.wait_for(result, timeout)
            return True
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = HandlerError(
                event_id=event.id,
                event_type=event.type,
                subscriber_id=subscription.subscriber_id,
                subscription_id=subscription.subscription_id,
                cause=e,
            )
            self._failed_deliveries.append(error)
            logger.exception(
                "Exception handling event %s (%s) in %s",
                event.type, event.id, subscription.subscriber_id,
            )
            return False

    def _update_metrics(self, event_type: str, successful: int, failed: int, elapsed_ms: float):
        metrics = self._metrics.setdefault(event_type, EventTypeMetrics())
        metrics.total_events += 1
        metrics.successful_events += successful
        metrics.failed_events += failed
        metrics.average_processing_time = (
            metrics.average_processing_time * (metrics.total_events - 1) + elapsed_ms
        ) / metrics.total_events
