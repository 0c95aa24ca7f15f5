"""Survey authoring, publication and response submission."""

import logging
from collections import Counter
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Union

import pydantic

from shared.domain.errors import (
    AlreadyRespondedError,
    IllegalStateTransitionError,
    NotFoundError,
    ValidationError,
)
from shared.domain.events import DomainEvent, utcnow
from shared.service_layer.messagebus import EventBus
from survey.adapters.repository import AbstractSurveyRepository
from survey.domain import events
from survey.domain.model import (
    EDITABLE_FIELDS,
    Survey,
    SurveyAnalytics,
    SurveyResponse,
    SurveyStatus,
    check_transition,
)
from survey.domain.schemas import CreateSurveyData, CreateSurveyResponseData, UpdateSurveyData

logger = logging.getLogger(__name__)


def _validate(schema, data, subject: str):
    try:
        return schema.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError.from_pydantic(e, subject) from e


def _check_dates(start_date: Optional[datetime], end_date: Optional[datetime]):
    if start_date and end_date and end_date <= start_date:
        raise ValidationError("End date must be after start date")


class SurveyService:
    """Enforces the survey lifecycle and publishes its events after each change."""

    def __init__(
        self,
        repository: AbstractSurveyRepository,
        bus: EventBus,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repository = repository
        self.bus = bus
        self.clock = clock

    async def create_survey(
        self,
        data: Union[CreateSurveyData, Dict[str, Any]],
        organization_id: int,
        created_by: int,
    ) -> Survey:
        validated = _validate(CreateSurveyData, data, "survey data")
        _check_dates(validated.start_date, validated.end_date)

        orders = [q.order for q in validated.questions]
        if len(orders) != len(set(orders)):
            raise ValidationError("Question orders must be unique within the survey")

        now = self.clock()
        fields = validated.model_dump(exclude={"questions"})
        fields.update(
            organization_id=organization_id,
            created_by=created_by,
            status=SurveyStatus.DRAFT,
            total_recipients=0,
            created_at=now,
            updated_at=now,
        )
        questions = [q.model_dump() for q in validated.questions]
        survey = await self.repository.create_survey_with_questions(fields, questions)

        await self.bus.publish(DomainEvent.create(
            events.SurveyCreated(survey=survey, created_by=created_by, questions_count=len(questions)),
            organization_id=organization_id,
            user_id=created_by,
            timestamp=now,
        ))
        logger.info(f"Survey {survey.id} '{survey.title}' created with {len(questions)} questions by {created_by}")
        return survey

    async def update_survey(
        self,
        survey_id: int,
        data: Union[UpdateSurveyData, Dict[str, Any]],
        organization_id: int,
        updated_by: int,
    ) -> Survey:
        validated = _validate(UpdateSurveyData, data, "survey update")
        changes = validated.model_dump(exclude_unset=True)
        current = await self._get_scoped(survey_id, organization_id)

        updated_fields = tuple(
            name for name in EDITABLE_FIELDS
            if name in changes and getattr(current, name) != changes[name]
        )
        if not updated_fields:
            logger.info(f"No changes for survey {survey_id}, skipping update")
            return current

        target = changes.get("status", current.status)
        if current.status == SurveyStatus.PUBLISHED:
            if updated_fields != ("status",) or target != SurveyStatus.CLOSED:
                raise IllegalStateTransitionError(
                    current.status.value,
                    target.value,
                    "Cannot modify published surveys except to close them",
                )
        elif current.status != SurveyStatus.DRAFT:
            raise IllegalStateTransitionError(
                current.status.value,
                target.value,
                f"Cannot modify {current.status.value} surveys",
            )
        elif "status" in updated_fields:
            raise IllegalStateTransitionError(
                current.status.value,
                target.value,
                f"Illegal transition from 'draft' to '{target.value}' through an update",
            )

        _check_dates(
            changes.get("start_date", current.start_date),
            changes.get("end_date", current.end_date),
        )

        now = self.clock()
        updated = await self.repository.update_survey(
            survey_id, {**{name: changes[name] for name in updated_fields}, "updated_at": now}
        )

        await self.bus.publish(DomainEvent.create(
            events.SurveyUpdated(
                survey=updated,
                previous_survey=current.snapshot(),
                updated_by=updated_by,
                updated_fields=updated_fields,
            ),
            organization_id=organization_id,
            user_id=updated_by,
            timestamp=now,
        ))
        logger.info(f"Survey {survey_id} updated by {updated_by}: {', '.join(updated_fields)}")
        return updated

    async def publish_survey(
        self,
        survey_id: int,
        organization_id: int,
        published_by: int,
        total_recipients: Optional[int] = None,
    ) -> Survey:
        current = await self._get_scoped(survey_id, organization_id)
        check_transition(current.status, SurveyStatus.PUBLISHED, "Only draft surveys can be published")

        questions = await self.repository.get_survey_questions(survey_id)
        if not questions:
            raise IllegalStateTransitionError(
                current.status.value,
                SurveyStatus.PUBLISHED.value,
                "Survey must have at least one question to be published",
            )
        if total_recipients is not None and (
            isinstance(total_recipients, bool)
            or not isinstance(total_recipients, int)
            or total_recipients < 0
        ):
            raise ValidationError("Total recipients must be a non-negative integer")

        now = self.clock()
        changes = {"status": SurveyStatus.PUBLISHED, "updated_at": now}
        if total_recipients is not None:
            changes["total_recipients"] = total_recipients
        published = await self.repository.update_survey(survey_id, changes)

        await self.bus.publish(DomainEvent.create(
            events.SurveyPublished(survey=published, published_by=published_by, questions_count=len(questions)),
            organization_id=organization_id,
            user_id=published_by,
            timestamp=now,
        ))
        logger.info(f"Survey {survey_id} published by {published_by}")
        return published

    async def delete_survey(self, survey_id: int, organization_id: int, deleted_by: int) -> bool:
        current = await self._get_scoped(survey_id, organization_id)
        check_transition(current.status, SurveyStatus.DELETED, "Only draft surveys can be deleted")

        deleted = await self.repository.delete_survey(survey_id)
        if deleted:
            await self.bus.publish(DomainEvent.create(
                events.SurveyDeleted(survey=current, deleted_by=deleted_by),
                organization_id=organization_id,
                user_id=deleted_by,
                timestamp=self.clock(),
            ))
            logger.info(f"Survey {survey_id} deleted by {deleted_by}")
        return deleted

    async def submit_survey_response(
        self,
        data: Union[CreateSurveyResponseData, Dict[str, Any]],
        user_id: Optional[int] = None,
        organization_id: Optional[int] = None,
    ) -> SurveyResponse:
        validated = _validate(CreateSurveyResponseData, data, "survey response")
        survey = await self._get_scoped(validated.survey_id, organization_id)

        now = self.clock()
        survey.ensure_accepting_responses(now)

        if user_id is not None and not survey.is_anonymous:
            existing = await self.repository.get_user_survey_response(survey.id, user_id)
            if existing:
                raise AlreadyRespondedError(survey.id, user_id)

        questions = await self.repository.get_survey_questions(survey.id)
        answered = {answer.question_id for answer in validated.answers}
        for question in questions:
            if question.is_required and question.id not in answered:
                raise ValidationError(
                    f'Required question "{question.question_text}" must be answered',
                    errors=[{"field": f"question {question.id}", "message": "answer required"}],
                )

        known = {question.id for question in questions}
        seen = set()
        for answer in validated.answers:
            if answer.question_id not in known:
                raise ValidationError(f"Question with ID {answer.question_id} not found in survey")
            if answer.question_id in seen:
                raise ValidationError(f"Question with ID {answer.question_id} answered more than once")
            seen.add(answer.question_id)

        time_to_complete = None
        if validated.started_at:
            if validated.started_at > now:
                raise ValidationError("Response start time cannot be in the future")
            time_to_complete = int((now - validated.started_at).total_seconds())

        is_anonymous = user_id is None or survey.is_anonymous
        response = await self.repository.create_survey_response_with_answers(
            {
                "survey_id": survey.id,
                "user_id": None if survey.is_anonymous else user_id,
                "started_at": validated.started_at,
                "completed_at": now,
                "time_to_complete": time_to_complete,
            },
            [a.model_dump() for a in validated.answers],
        )

        await self.bus.publish(DomainEvent.create(
            events.SurveyResponseSubmitted(
                response=response,
                survey=survey,
                user_id=None if is_anonymous else user_id,
                answers_count=len(validated.answers),
                is_anonymous=is_anonymous,
            ),
            organization_id=survey.organization_id,
            user_id=None if is_anonymous else user_id,
            timestamp=now,
        ))
        logger.info(
            f"Response {response.id} submitted to survey {survey.id} "
            f"by {'anonymous' if is_anonymous else user_id}"
        )
        return response

    async def get_survey(self, survey_id: int, organization_id: Optional[int] = None) -> Survey:
        return await self._get_scoped(survey_id, organization_id)

    async def generate_survey_analytics(
        self, survey_id: int, organization_id: int, generated_by: int
    ) -> SurveyAnalytics:
        survey = await self._get_scoped(survey_id, organization_id)
        responses = await self.repository.get_survey_responses(survey_id)

        total = len(responses)
        completion_rate = 0.0
        if survey.total_recipients > 0:
            completion_rate = round(total / survey.total_recipients * 100, 2)

        timings = [r.time_to_complete for r in responses if r.time_to_complete is not None]
        average = round(sum(timings) / len(timings), 2) if timings else 0.0

        by_date = Counter(r.completed_at.date().isoformat() for r in responses)
        now = self.clock()
        analytics = SurveyAnalytics(
            survey_id=survey_id,
            total_responses=total,
            total_recipients=survey.total_recipients,
            completion_rate=completion_rate,
            average_completion_time=average,
            responses_by_date=dict(sorted(by_date.items())),
            generated_at=now,
        )

        await self.bus.publish(DomainEvent.create(
            events.SurveyAnalyticsGenerated(analytics=analytics, generated_by=generated_by),
            organization_id=organization_id,
            user_id=generated_by,
            timestamp=now,
        ))
        return analytics

    async def _get_scoped(self, survey_id: int, organization_id: Optional[int]) -> Survey:
        survey = await self.repository.get_survey(survey_id)
        if survey is None or (organization_id is not None and survey.organization_id != organization_id):
            raise NotFoundError("Survey", survey_id)
        return survey
