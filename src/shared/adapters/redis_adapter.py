"""Redis adapter forwarding domain events to pub/sub channels."""

import abc
import json
import logging
from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from datetime import date, datetime
from enum import Enum

import redis.asyncio as redis

from config import get_redis_host_and_port
from shared.domain.events import DomainEvent

logger = logging.getLogger(__name__)

EMPLOYEE_CHANNEL = "hr:employees"
SURVEY_CHANNEL = "hr:surveys"


def _default(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _to_plain(value):
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: _to_plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Mapping):
        return {key: _to_plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(item) for item in value]
    return value


def serialize_event(event: DomainEvent) -> str:
    """Serialize event envelope and payload to JSON."""
    return json.dumps(_to_plain(event), default=_default)


class AbstractEventPublisher(abc.ABC):
    @abc.abstractmethod
    async def publish(self, channel: str, event: DomainEvent) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        pass


class LoggingEventPublisher(AbstractEventPublisher):
    """Used when fan-out is disabled; events only reach the log."""

    async def publish(self, channel, event):
        logger.debug("fan-out disabled, not publishing: channel=%s, event=%s", channel, event.id)


class RedisEventPublisher(AbstractEventPublisher):
    def __init__(self, client=None):
        self.client = client or redis.Redis(**get_redis_host_and_port())

    async def publish(self, channel, event):
        logger.info("publishing: channel=%s, event=%s (%s)", channel, event.type, event.id)
        await self.client.publish(channel, serialize_event(event))

    async def close(self):
        await self.client.aclose()
