"""Composition root wiring repositories, bus, services and handlers together."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import config
from employee.adapters.repository import SqlAlchemyEmployeeRepository
from employee.service_layer.handlers import EmployeeEventHandlers
from employee.service_layer.services import EmployeeService
from shared.adapters import orm
from shared.adapters.redis_adapter import (
    AbstractEventPublisher,
    LoggingEventPublisher,
    RedisEventPublisher,
)
from shared.domain.events import utcnow
from shared.service_layer.messagebus import EventBus
from survey.adapters.repository import SqlAlchemySurveyRepository
from survey.service_layer.handlers import SurveyEventHandlers
from survey.service_layer.services import SurveyService

logger = logging.getLogger(__name__)


@dataclass
class Container:
    bus: EventBus
    publisher: AbstractEventPublisher
    employee_service: EmployeeService
    survey_service: SurveyService
    employee_handlers: EmployeeEventHandlers
    survey_handlers: SurveyEventHandlers
    shutdown_grace_period: float = 5.0

    async def shutdown(self):
        self.employee_handlers.destroy()
        self.survey_handlers.destroy()
        await self.bus.shutdown(self.shutdown_grace_period)
        await self.publisher.close()


def default_session_factory():
    engine = create_engine(config.get_database_uri())
    orm.create_tables(engine)
    return sessionmaker(bind=engine)


def bootstrap(
    session_factory=None,
    publisher: Optional[AbstractEventPublisher] = None,
    bus: Optional[EventBus] = None,
    clock: Callable[[], datetime] = utcnow,
    start_handlers: bool = True,
) -> Container:
    bus_config = config.get_event_bus_config()
    grace_period = bus_config.pop("shutdown_grace_period")

    if session_factory is None:
        session_factory = default_session_factory()
    if publisher is None:
        publisher = RedisEventPublisher() if config.get_event_fanout_enabled() else LoggingEventPublisher()
    if bus is None:
        bus = EventBus(**bus_config)

    container = Container(
        bus=bus,
        publisher=publisher,
        employee_service=EmployeeService(SqlAlchemyEmployeeRepository(session_factory), bus, clock),
        survey_service=SurveyService(SqlAlchemySurveyRepository(session_factory), bus, clock),
        employee_handlers=EmployeeEventHandlers(bus, publisher, config.get_offboarding_checklist_size()),
        survey_handlers=SurveyEventHandlers(bus, publisher),
        shutdown_grace_period=grace_period,
    )

    if start_handlers:
        container.employee_handlers.initialize()
        container.survey_handlers.initialize()

    logger.info("HR platform core bootstrapped")
    return container
