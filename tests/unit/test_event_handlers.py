"""Unit tests for the per-slice event handler registries."""
import pytest

from employee.domain.model import EmployeeDependencies
from employee.service_layer.handlers import EmployeeEventHandlers
from shared.adapters.redis_adapter import EMPLOYEE_CHANNEL, SURVEY_CHANNEL, AbstractEventPublisher
from survey.service_layer.handlers import SurveyEventHandlers
from tests.factories import employee_payload, survey_payload


class FailingPublisher(AbstractEventPublisher):
    async def publish(self, channel, event):
        raise ConnectionError("redis is down")


def test_initialize_is_idempotent_and_destroy_unsubscribes(bus, publisher):
    handlers = EmployeeEventHandlers(bus, publisher)

    handlers.initialize()
    handlers.initialize()

    subscriptions = bus.get_subscriptions()
    assert len(subscriptions["employee.created"]) == 1
    assert {s.subscriber_id for subs in subscriptions.values() for s in subs} == {"employee-management-slice"}
    assert all(s.priority == 1 for subs in subscriptions.values() for s in subs)

    handlers.destroy()
    assert bus.get_subscriptions() == {}


def test_survey_handlers_cover_every_survey_event(bus, publisher):
    handlers = SurveyEventHandlers(bus, publisher)
    handlers.initialize()

    assert set(bus.get_subscriptions()) == {
        "survey.survey_created",
        "survey.survey_updated",
        "survey.survey_published",
        "survey.survey_deleted",
        "survey.response_submitted",
        "survey.analytics_generated",
    }

    handlers.cleanup()
    assert bus.get_subscriptions() == {}


@pytest.mark.asyncio
async def test_employee_events_are_forwarded_to_employee_channel(bus, publisher, employee_service):
    EmployeeEventHandlers(bus, publisher).initialize()

    employee = await employee_service.create_employee(employee_payload(), 1, 99)
    await employee_service.update_employee(employee.id, {"role_type": "manager"}, 99)

    assert [(channel, event.type) for channel, event in publisher.published] == [
        (EMPLOYEE_CHANNEL, "employee.created"),
        (EMPLOYEE_CHANNEL, "employee.updated"),
        (EMPLOYEE_CHANNEL, "employee.role_changed"),
    ]
    assert bus.get_metrics("employee.created").successful_events == 1


@pytest.mark.asyncio
async def test_deactivation_handler_builds_offboarding_checklist(bus, publisher, employee_service, employee_repo):
    handlers = EmployeeEventHandlers(bus, publisher)
    handlers.initialize()
    employee = await employee_service.create_employee(employee_payload(), 1, 99)
    employee_repo.dependencies[employee.id] = EmployeeDependencies(has_active_leave=True)

    await employee_service.deactivate_employee(employee.id, "Contract ended", 99)

    assert len(handlers.offboarding_checklist) == 1
    entry = handlers.offboarding_checklist[0]
    assert entry["employee_id"] == employee.id
    assert entry["task"] == "Complete or transfer pending leave requests"
    assert entry["assigned_to"] == 99


@pytest.mark.asyncio
async def test_offboarding_checklist_is_bounded_and_scoped_to_organization(bus, publisher, employee_service, employee_repo):
    handlers = EmployeeEventHandlers(bus, publisher, checklist_size=2)
    handlers.initialize()
    deps = EmployeeDependencies(has_active_posts=True, has_active_leave=True)
    jane = await employee_service.create_employee(employee_payload(), 1, 99)
    john = await employee_service.create_employee(
        employee_payload(email="john@acme.io", username="jroe", name="John", surname="Roe"), 2, 98
    )
    employee_repo.dependencies.update({jane.id: deps, john.id: deps})

    await employee_service.deactivate_employee(jane.id, "Left", 99)
    await employee_service.deactivate_employee(john.id, "Left", 98)

    assert len(handlers.offboarding_checklist) == 2
    assert [t["employee_id"] for t in handlers.get_offboarding_tasks(2)] == [john.id, john.id]
    assert handlers.get_offboarding_tasks(1) == []
    assert len(handlers.get_offboarding_tasks(2, limit=1)) == 1

    handlers.cleanup()
    assert bus.get_subscriptions() == {}


@pytest.mark.asyncio
async def test_survey_response_handler_fans_out_submissions(bus, publisher, survey_service):
    handlers = SurveyEventHandlers(bus, publisher)
    handlers.initialize()
    survey = await survey_service.create_survey(survey_payload(), 1, 5)
    survey = await survey_service.publish_survey(survey.id, 1, 5)

    await survey_service.submit_survey_response(
        {"survey_id": survey.id, "answers": [{"question_id": survey.questions[0].id, "answer_value": 10}]},
        user_id=3,
    )

    assert [channel for channel, _ in publisher.published] == [SURVEY_CHANNEL] * 3
    assert publisher.published[-1][1].data.user_id == 3


@pytest.mark.asyncio
async def test_fan_out_failure_never_reaches_the_domain_caller(bus, employee_service):
    EmployeeEventHandlers(bus, FailingPublisher()).initialize()

    employee = await employee_service.create_employee(employee_payload(), 1, 99)

    assert employee.id == 1
    metrics = bus.get_metrics("employee.created")
    assert metrics.failed_events == 1
    assert metrics.successful_events == 0
    assert isinstance(bus.get_failed_deliveries()[0].cause, ConnectionError)
