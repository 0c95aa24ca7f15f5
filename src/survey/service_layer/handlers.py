import logging
from typing import List

from shared.adapters.redis_adapter import SURVEY_CHANNEL, AbstractEventPublisher
from shared.domain.events import DomainEvent
from shared.service_layer.messagebus import EventBus
from survey.domain import events

logger = logging.getLogger(__name__)

SUBSCRIBER_ID = "survey-system-slice"


class SurveyEventHandlers:
    """Audit logging and fan-out for survey lifecycle events."""

    def __init__(self, bus: EventBus, publisher: AbstractEventPublisher):
        self.bus = bus
        self.publisher = publisher
        self.subscription_ids: List[str] = []

    def initialize(self) -> None:
        if self.subscription_ids:
            logger.debug("Survey event handlers already initialized")
            return

        for event_type, handler in (
            (events.SurveyCreated.event_type, self.handle_survey_created),
            (events.SurveyUpdated.event_type, self.handle_survey_updated),
            (events.SurveyPublished.event_type, self.handle_survey_published),
            (events.SurveyDeleted.event_type, self.handle_survey_deleted),
            (events.SurveyResponseSubmitted.event_type, self.handle_response_submitted),
            (events.SurveyAnalyticsGenerated.event_type, self.handle_analytics_generated),
        ):
            self.subscription_ids.append(
                self.bus.subscribe(event_type, handler, SUBSCRIBER_ID, priority=1)
            )
        logger.info(f"Survey event handlers initialized ({len(self.subscription_ids)} subscriptions)")

    def destroy(self) -> None:
        for subscription_id in self.subscription_ids:
            self.bus.unsubscribe(subscription_id)
        self.subscription_ids = []
        logger.info("Survey event handlers destroyed")

    cleanup = destroy

    async def handle_survey_created(self, event: DomainEvent[events.SurveyCreated]):
        survey = event.data.survey
        logger.info(
            f"Survey created: id={survey.id} title='{survey.title}' "
            f"questions={event.data.questions_count} by={event.data.created_by}"
        )
        await self.publisher.publish(SURVEY_CHANNEL, event)

    async def handle_survey_updated(self, event: DomainEvent[events.SurveyUpdated]):
        data = event.data
        logger.info(f"Survey updated: id={data.survey.id} fields={list(data.updated_fields)} by={data.updated_by}")
        await self.publisher.publish(SURVEY_CHANNEL, event)

    async def handle_survey_published(self, event: DomainEvent[events.SurveyPublished]):
        survey = event.data.survey
        logger.info(
            f"Survey published: id={survey.id} recipients={survey.total_recipients} "
            f"mandatory={survey.is_mandatory}"
        )
        if survey.is_mandatory:
            logger.info(f"Mandatory survey {survey.id} requires reminders until {survey.end_date or 'closed'}")
        await self.publisher.publish(SURVEY_CHANNEL, event)

    async def handle_survey_deleted(self, event: DomainEvent[events.SurveyDeleted]):
        logger.info(f"Survey deleted: id={event.data.survey.id} by={event.data.deleted_by}")
        await self.publisher.publish(SURVEY_CHANNEL, event)

    async def handle_response_submitted(self, event: DomainEvent[events.SurveyResponseSubmitted]):
        data = event.data
        respondent = "anonymous" if data.is_anonymous else data.user_id
        logger.info(
            f"Survey response: survey={data.survey.id} response={data.response.id} "
            f"respondent={respondent} answers={data.answers_count}"
        )
        await self.publisher.publish(SURVEY_CHANNEL, event)

    async def handle_analytics_generated(self, event: DomainEvent[events.SurveyAnalyticsGenerated]):
        analytics = event.data.analytics
        logger.info(
            f"Survey analytics: survey={analytics.survey_id} responses={analytics.total_responses} "
            f"completion={analytics.completion_rate}%"
        )
        await self.publisher.publish(SURVEY_CHANNEL, event)
