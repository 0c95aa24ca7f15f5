# pylint: disable=redefined-outer-name
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from itertools import count

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from employee.adapters.repository import AbstractEmployeeRepository
from employee.domain.model import Employee, EmployeeDependencies, EmployeeStatus
from employee.service_layer.services import EmployeeService
from shared.adapters import orm
from shared.adapters.redis_adapter import AbstractEventPublisher
from shared.service_layer.messagebus import EventBus
from survey.adapters.repository import AbstractSurveyRepository
from survey.domain.model import (
    Survey,
    SurveyAnswer,
    SurveyQuestion,
    SurveyResponse,
    SurveyStatus,
)
from survey.service_layer.services import SurveyService

NOW = datetime(2025, 6, 2, 9, 30, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class FakeEmployeeRepository(AbstractEmployeeRepository):
    def __init__(self, employees=()):
        self._employees = {e.id: e for e in employees}
        self._ids = count(max(self._employees, default=0) + 1)
        self.dependencies = {}
        self.writes = 0
        self.fail_on_add = None

    async def add(self, fields):
        if self.fail_on_add:
            raise self.fail_on_add
        employee = Employee(id=next(self._ids), **fields)
        self._employees[employee.id] = employee
        self.writes += 1
        return employee

    async def get(self, employee_id):
        return self._employees.get(employee_id)

    async def update(self, employee_id, changes):
        employee = replace(self._employees[employee_id], **changes)
        self._employees[employee_id] = employee
        self.writes += 1
        return employee

    async def deactivate(self, employee_id):
        return await self.update(employee_id, {"status": EmployeeStatus.INACTIVE})

    async def check_dependencies(self, employee_id):
        return self.dependencies.get(employee_id, EmployeeDependencies())

    async def find_duplicates(self, organization_id, email=None, name=None, surname=None, exclude_id=None):
        return [
            e for e in self._employees.values()
            if e.organization_id == organization_id
            and e.id != exclude_id
            and (
                (email and e.email.lower() == email.lower())
                or (name and surname and e.name == name and e.surname == surname)
            )
        ]

    async def list(self, organization_id, filters):
        found = [
            e for e in self._employees.values()
            if e.organization_id == organization_id and e.status == filters.status
        ]
        found.sort(key=lambda e: getattr(e, filters.sort_by) or "", reverse=filters.sort_order == "desc")
        return found[filters.offset:filters.offset + filters.limit]


class FakeSurveyRepository(AbstractSurveyRepository):
    def __init__(self):
        self._surveys = {}
        self._questions = {}
        self._responses = []
        self._ids = count(1)
        self.writes = 0

    async def create_survey_with_questions(self, fields, questions):
        survey_id = next(self._ids)
        self._questions[survey_id] = [
            SurveyQuestion(id=next(self._ids), survey_id=survey_id, **q) for q in questions
        ]
        self._surveys[survey_id] = Survey(id=survey_id, **fields)
        self.writes += 1
        return await self.get_survey(survey_id)

    async def get_survey(self, survey_id):
        survey = self._surveys.get(survey_id)
        if survey is None:
            return None
        return replace(survey, questions=tuple(self._questions.get(survey_id, [])))

    async def get_survey_questions(self, survey_id):
        return sorted(self._questions.get(survey_id, []), key=lambda q: q.order)

    async def update_survey(self, survey_id, changes):
        self._surveys[survey_id] = replace(self._surveys[survey_id], **changes)
        self.writes += 1
        return await self.get_survey(survey_id)

    async def delete_survey(self, survey_id):
        await self.update_survey(survey_id, {"status": SurveyStatus.DELETED})
        return True

    async def get_user_survey_response(self, survey_id, user_id):
        for response in self._responses:
            if response.survey_id == survey_id and response.user_id == user_id:
                return response
        return None

    async def create_survey_response_with_answers(self, fields, answers):
        response_id = next(self._ids)
        response = SurveyResponse(
            id=response_id,
            answers=tuple(
                SurveyAnswer(id=next(self._ids), response_id=response_id, **a) for a in answers
            ),
            **fields,
        )
        self._responses.append(response)
        self.writes += 1
        return response

    async def get_survey_responses(self, survey_id):
        return [r for r in self._responses if r.survey_id == survey_id]

    def add_questionless_draft(self, organization_id=1, created_by=1):
        survey_id = next(self._ids)
        self._surveys[survey_id] = Survey(
            id=survey_id, organization_id=organization_id, title="Empty", created_by=created_by
        )
        return survey_id


class RecordingPublisher(AbstractEventPublisher):
    def __init__(self):
        self.published = []

    async def publish(self, channel, event):
        self.published.append((channel, event))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def bus():
    return EventBus(blocking=True)


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def employee_repo():
    return FakeEmployeeRepository()


@pytest.fixture
def employee_service(employee_repo, bus, clock):
    return EmployeeService(employee_repo, bus, clock)


@pytest.fixture
def survey_repo():
    return FakeSurveyRepository()


@pytest.fixture
def survey_service(survey_repo, bus, clock):
    return SurveyService(survey_repo, bus, clock)


@pytest.fixture
def sqlite_session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    orm.create_tables(engine)
    yield sessionmaker(bind=engine)
    engine.dispose()
