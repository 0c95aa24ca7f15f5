"""Unit tests for the in-process event bus."""
import asyncio
from dataclasses import dataclass
from typing import ClassVar

import pytest

from shared.domain.errors import HandlerError, ValidationError
from shared.domain.events import DomainEvent, Payload
from shared.service_layer.messagebus import EventBus


@dataclass(frozen=True)
class Pinged(Payload):
    event_type: ClassVar[str] = "test.pinged"
    source: ClassVar[str] = "tests"
    sequence: int = 0


def pinged(sequence=0, organization_id=1):
    return DomainEvent.create(Pinged(sequence=sequence), organization_id=organization_id)


@pytest.mark.asyncio
async def test_handlers_run_in_priority_order_with_registration_tiebreak():
    bus = EventBus(blocking=True)
    calls = []
    bus.subscribe("test.pinged", lambda e: calls.append("late"), "a", priority=5)
    bus.subscribe("test.pinged", lambda e: calls.append("first"), "b", priority=1)
    bus.subscribe("test.pinged", lambda e: calls.append("second"), "c", priority=1)

    await bus.publish(pinged())

    assert calls == ["first", "second", "late"]


@pytest.mark.asyncio
async def test_failing_handler_is_isolated_and_counted():
    bus = EventBus(blocking=True)
    calls = []

    def broken(event):
        raise RuntimeError("boom")

    bus.subscribe("test.pinged", broken, "broken-slice", priority=0)
    bus.subscribe("test.pinged", lambda e: calls.append(e.id), "healthy-slice", priority=1)

    event = pinged()
    await bus.publish(event)

    assert calls == [event.id]
    metrics = bus.get_metrics("test.pinged")
    assert metrics.total_events == 1
    assert metrics.failed_events == 1
    assert metrics.successful_events == 1
    assert metrics.success_rate == 50.0

    failures = bus.get_failed_deliveries()
    assert len(failures) == 1
    assert isinstance(failures[0], HandlerError)
    assert failures[0].event_id == event.id
    assert failures[0].subscriber_id == "broken-slice"
    assert isinstance(failures[0].cause, RuntimeError)


@pytest.mark.asyncio
async def test_sync_and_async_handlers_are_both_awaited():
    bus = EventBus(blocking=True)
    calls = []

    async def async_handler(event):
        await asyncio.sleep(0)
        calls.append("async")

    bus.subscribe("test.pinged", async_handler, "a")
    bus.subscribe("test.pinged", lambda e: calls.append("sync"), "b")

    await bus.publish(pinged())

    assert calls == ["async", "sync"]


@pytest.mark.asyncio
async def test_publish_rejects_anything_but_a_domain_event():
    bus = EventBus(blocking=True)

    with pytest.raises(ValidationError):
        await bus.publish({"type": "test.pinged"})

    assert bus.get_event_history() == []


def test_event_requires_matching_non_empty_type():
    with pytest.raises(ValidationError):
        DomainEvent(type="", data=Pinged(), organization_id=1)
    with pytest.raises(ValidationError):
        DomainEvent(type="test.other", data=Pinged(), organization_id=1)


def test_subscribe_validates_arguments():
    bus = EventBus()

    with pytest.raises(ValidationError):
        bus.subscribe("", lambda e: None, "slice")
    with pytest.raises(ValidationError):
        bus.subscribe("test.pinged", "not-callable", "slice")


def test_subscription_id_names_subscriber_and_event_type():
    bus = EventBus()

    subscription_id = bus.subscribe("test.pinged", lambda e: None, "slice")

    assert subscription_id.startswith("slice_test.pinged_")
    assert bus.get_subscriptions("test.pinged")["test.pinged"][0].subscription_id == subscription_id


@pytest.mark.asyncio
async def test_history_is_bounded_and_most_recent_first():
    bus = EventBus(history_size=3, blocking=True)
    events = [pinged(sequence=i) for i in range(5)]
    for event in events:
        await bus.publish(event)

    history = bus.get_event_history()

    assert [e.id for e in history] == [events[4].id, events[3].id, events[2].id]
    assert len(bus.get_event_history(limit=1)) == 1


@pytest.mark.asyncio
async def test_unsubscribed_handler_no_longer_receives_events():
    bus = EventBus(blocking=True)
    calls = []
    subscription_id = bus.subscribe("test.pinged", lambda e: calls.append(e), "slice")

    assert bus.unsubscribe(subscription_id) is True
    assert bus.unsubscribe(subscription_id) is False

    await bus.publish(pinged())
    assert calls == []
    assert bus.get_subscriptions() == {}


@pytest.mark.asyncio
async def test_subscribing_during_dispatch_does_not_affect_current_event():
    bus = EventBus(blocking=True)
    calls = []

    def late_handler(event):
        calls.append(("late", event.data.sequence))

    def registering_handler(event):
        calls.append(("registering", event.data.sequence))
        bus.subscribe("test.pinged", late_handler, "late-slice", priority=10)

    bus.subscribe("test.pinged", registering_handler, "slice")

    await bus.publish(pinged(sequence=1))
    assert calls == [("registering", 1)]


@pytest.mark.asyncio
async def test_fire_and_forget_publish_returns_before_handlers_finish():
    bus = EventBus()
    release = asyncio.Event()
    calls = []

    async def slow_handler(event):
        await release.wait()
        calls.append(event.id)

    bus.subscribe("test.pinged", slow_handler, "slice")
    event = pinged()

    await bus.publish(event)
    await asyncio.sleep(0)

    assert calls == []
    assert bus.in_flight == 1
    assert bus.get_event_history()[0].id == event.id

    release.set()
    await bus.drain()

    assert calls == [event.id]
    assert bus.in_flight == 0
    assert bus.get_metrics("test.pinged").successful_events == 1


@pytest.mark.asyncio
async def test_slow_handler_times_out_and_is_recorded_as_failure():
    bus = EventBus(blocking=True)

    async def hanging(event):
        await asyncio.sleep(5)

    bus.subscribe("test.pinged", hanging, "slice", timeout=0.01)
    await bus.publish(pinged())

    metrics = bus.get_metrics("test.pinged")
    assert metrics.failed_events == 1
    assert isinstance(bus.get_failed_deliveries()[0].cause, asyncio.TimeoutError)


@pytest.mark.asyncio
async def test_shutdown_cancels_dispatches_after_grace_period():
    bus = EventBus(handler_timeout=None)

    async def hanging(event):
        await asyncio.sleep(10)

    bus.subscribe("test.pinged", hanging, "slice")
    await bus.publish(pinged())
    assert bus.in_flight == 1

    await bus.shutdown(grace_period=0.05)

    assert bus.in_flight == 0

    await bus.publish(pinged())
    assert len(bus.get_event_history()) == 1


@pytest.mark.asyncio
async def test_metrics_snapshot_is_a_copy():
    bus = EventBus(blocking=True)
    bus.subscribe("test.pinged", lambda e: None, "slice")
    await bus.publish(pinged())

    snapshot = bus.get_metrics()
    snapshot["test.pinged"].total_events = 99

    assert bus.get_metrics("test.pinged").total_events == 1
    assert bus.get_metrics("test.unknown").total_events == 0
