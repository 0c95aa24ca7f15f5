"""Domain events published by the survey system slice."""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, ClassVar, Mapping, Optional, Tuple

from shared.domain.events import Payload
from survey.domain.model import Survey, SurveyAnalytics, SurveyResponse

SOURCE = "survey-system"


@dataclass(frozen=True)
class SurveyCreated(Payload):
    event_type: ClassVar[str] = "survey.survey_created"
    source: ClassVar[str] = SOURCE
    survey: Survey
    created_by: int
    questions_count: int


@dataclass(frozen=True)
class SurveyUpdated(Payload):
    event_type: ClassVar[str] = "survey.survey_updated"
    source: ClassVar[str] = SOURCE
    survey: Survey
    previous_survey: Mapping[str, Any]
    updated_by: int
    updated_fields: Tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, "previous_survey", MappingProxyType(dict(self.previous_survey)))


@dataclass(frozen=True)
class SurveyPublished(Payload):
    event_type: ClassVar[str] = "survey.survey_published"
    source: ClassVar[str] = SOURCE
    survey: Survey
    published_by: int
    questions_count: int


@dataclass(frozen=True)
class SurveyDeleted(Payload):
    event_type: ClassVar[str] = "survey.survey_deleted"
    source: ClassVar[str] = SOURCE
    survey: Survey
    deleted_by: int


@dataclass(frozen=True)
class SurveyResponseSubmitted(Payload):
    event_type: ClassVar[str] = "survey.response_submitted"
    source: ClassVar[str] = SOURCE
    response: SurveyResponse
    survey: Survey
    user_id: Optional[int]
    answers_count: int
    is_anonymous: bool


@dataclass(frozen=True)
class SurveyAnalyticsGenerated(Payload):
    event_type: ClassVar[str] = "survey.analytics_generated"
    source: ClassVar[str] = SOURCE
    analytics: SurveyAnalytics
    generated_by: int
