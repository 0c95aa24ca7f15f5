import abc
import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import insert, select, update

from shared.adapters.orm import survey_answers, survey_questions, survey_responses, surveys
from shared.domain.errors import NotFoundError
from shared.domain.events import as_utc
from survey.domain.model import (
    QuestionType,
    Survey,
    SurveyAnswer,
    SurveyQuestion,
    SurveyResponse,
    SurveyStatus,
)

logger = logging.getLogger(__name__)


class AbstractSurveyRepository(abc.ABC):
    """Persistence port for surveys, their questions and responses."""

    @abc.abstractmethod
    async def create_survey_with_questions(
        self, fields: Dict[str, Any], questions: List[Dict[str, Any]]
    ) -> Survey:
        """Insert the survey and all of its questions in one transaction."""
        raise NotImplementedError

    @abc.abstractmethod
    async def get_survey(self, survey_id: int) -> Optional[Survey]:
        raise NotImplementedError

    @abc.abstractmethod
    async def get_survey_questions(self, survey_id: int) -> List[SurveyQuestion]:
        raise NotImplementedError

    @abc.abstractmethod
    async def update_survey(self, survey_id: int, changes: Dict[str, Any]) -> Survey:
        raise NotImplementedError

    @abc.abstractmethod
    async def delete_survey(self, survey_id: int) -> bool:
        raise NotImplementedError

    @abc.abstractmethod
    async def get_user_survey_response(self, survey_id: int, user_id: int) -> Optional[SurveyResponse]:
        raise NotImplementedError

    @abc.abstractmethod
    async def create_survey_response_with_answers(
        self, fields: Dict[str, Any], answers: List[Dict[str, Any]]
    ) -> SurveyResponse:
        """Insert the response and its answers in one transaction."""
        raise NotImplementedError

    @abc.abstractmethod
    async def get_survey_responses(self, survey_id: int) -> List[SurveyResponse]:
        raise NotImplementedError


def _to_row(values: Dict[str, Any]) -> Dict[str, Any]:
    row = {}
    for key, value in values.items():
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, datetime):
            value = as_utc(value)
        row[key] = value
    return row


def _to_question(row) -> SurveyQuestion:
    return SurveyQuestion(
        id=row.id,
        survey_id=row.survey_id,
        question_text=row.question_text,
        question_type=QuestionType(row.question_type),
        order=row.order,
        is_required=row.is_required,
        options=row.options,
        branching_logic=row.branching_logic,
    )


def _to_survey(row, questions=()) -> Survey:
    return Survey(
        id=row.id,
        organization_id=row.organization_id,
        title=row.title,
        created_by=row.created_by,
        description=row.description,
        status=SurveyStatus(row.status),
        is_anonymous=row.is_anonymous,
        is_mandatory=row.is_mandatory,
        start_date=as_utc(row.start_date),
        end_date=as_utc(row.end_date),
        total_recipients=row.total_recipients,
        template_type=row.template_type,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
        questions=tuple(questions),
    )


def _to_response(row, answers=()) -> SurveyResponse:
    return SurveyResponse(
        id=row.id,
        survey_id=row.survey_id,
        completed_at=as_utc(row.completed_at),
        user_id=row.user_id,
        started_at=as_utc(row.started_at),
        time_to_complete=row.time_to_complete,
        answers=tuple(
            SurveyAnswer(id=a.id, response_id=a.response_id, question_id=a.question_id, answer_value=a.answer_value)
            for a in answers
        ),
    )


class SqlAlchemySurveyRepository(AbstractSurveyRepository):
    """Survey persistence over synchronous SQLAlchemy sessions run in worker threads."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def create_survey_with_questions(self, fields, questions):
        return await asyncio.to_thread(self._create_survey_with_questions, fields, questions)

    async def get_survey(self, survey_id):
        return await asyncio.to_thread(self._read, self._load_survey, survey_id)

    async def get_survey_questions(self, survey_id):
        return await asyncio.to_thread(self._read, self._load_questions, survey_id)

    async def update_survey(self, survey_id, changes):
        return await asyncio.to_thread(self._update_survey, survey_id, changes)

    async def delete_survey(self, survey_id):
        return await asyncio.to_thread(self._delete_survey, survey_id)

    async def get_user_survey_response(self, survey_id, user_id):
        return await asyncio.to_thread(self._get_user_survey_response, survey_id, user_id)

    async def create_survey_response_with_answers(self, fields, answers):
        return await asyncio.to_thread(self._create_survey_response_with_answers, fields, answers)

    async def get_survey_responses(self, survey_id):
        return await asyncio.to_thread(self._get_survey_responses, survey_id)

    def _read(self, loader, survey_id):
        with self.session_factory() as session:
            return loader(session, survey_id)

    def _load_survey(self, session, survey_id: int) -> Optional[Survey]:
        row = session.execute(select(surveys).where(surveys.c.id == survey_id)).first()
        if row is None:
            return None
        return _to_survey(row, self._load_questions(session, survey_id))

    def _load_questions(self, session, survey_id: int) -> List[SurveyQuestion]:
        rows = session.execute(
            select(survey_questions)
            .where(survey_questions.c.survey_id == survey_id)
            .order_by(survey_questions.c.order)
        ).all()
        return [_to_question(row) for row in rows]

    def _load_response(self, session, row) -> SurveyResponse:
        answers = session.execute(
            select(survey_answers)
            .where(survey_answers.c.response_id == row.id)
            .order_by(survey_answers.c.id)
        ).all()
        return _to_response(row, answers)

    def _create_survey_with_questions(self, fields, questions):
        with self.session_factory() as session, session.begin():
            result = session.execute(insert(surveys).values(**_to_row(fields)))
            survey_id = result.inserted_primary_key[0]
            for question in questions:
                session.execute(
                    insert(survey_questions).values(survey_id=survey_id, **_to_row(question))
                )
            survey = self._load_survey(session, survey_id)
        logger.debug(f"Inserted survey {survey_id} with {len(questions)} questions")
        return survey

    def _update_survey(self, survey_id, changes):
        with self.session_factory() as session, session.begin():
            session.execute(update(surveys).where(surveys.c.id == survey_id).values(**_to_row(changes)))
            survey = self._load_survey(session, survey_id)
        if survey is None:
            raise NotFoundError("Survey", survey_id)
        return survey

    def _delete_survey(self, survey_id):
        with self.session_factory() as session, session.begin():
            result = session.execute(
                update(surveys)
                .where(surveys.c.id == survey_id)
                .values(status=SurveyStatus.DELETED.value)
            )
        return result.rowcount > 0

    def _get_user_survey_response(self, survey_id, user_id):
        with self.session_factory() as session:
            row = session.execute(
                select(survey_responses).where(
                    survey_responses.c.survey_id == survey_id,
                    survey_responses.c.user_id == user_id,
                )
            ).first()
            return self._load_response(session, row) if row else None

    def _create_survey_response_with_answers(self, fields, answers):
        with self.session_factory() as session, session.begin():
            result = session.execute(insert(survey_responses).values(**_to_row(fields)))
            response_id = result.inserted_primary_key[0]
            for answer in answers:
                session.execute(insert(survey_answers).values(response_id=response_id, **answer))
            row = session.execute(
                select(survey_responses).where(survey_responses.c.id == response_id)
            ).one()
            response = self._load_response(session, row)
        logger.debug(f"Inserted response {response_id} with {len(answers)} answers")
        return response

    def _get_survey_responses(self, survey_id):
        with self.session_factory() as session:
            rows = session.execute(
                select(survey_responses)
                .where(survey_responses.c.survey_id == survey_id)
                .order_by(survey_responses.c.completed_at)
            ).all()
            return [self._load_response(session, row) for row in rows]
