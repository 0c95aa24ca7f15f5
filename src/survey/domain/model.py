from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from shared.domain.errors import IllegalStateTransitionError, NotAvailableError


class SurveyStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    CLOSED = "closed"
    DELETED = "deleted"


class QuestionType(str, Enum):
    NPS = "nps"
    SINGLE = "single"
    MULTIPLE = "multiple"
    SCALE = "scale"
    LIKERT = "likert"
    DROPDOWN = "dropdown"
    RANKING = "ranking"
    SLIDER = "slider"
    MATRIX = "matrix"
    SEMANTIC = "semantic"
    STAR = "star"
    NUMERIC = "numeric"
    DATETIME = "datetime"
    TOGGLE = "toggle"
    TEXT = "text"
    FILE = "file"
    IMAGE = "image"
    CONSTANT_SUM = "constant-sum"
    HEATMAP = "heatmap"


# draft --publish--> published --close--> closed, draft --delete--> deleted
ALLOWED_TRANSITIONS = {
    SurveyStatus.DRAFT: frozenset({SurveyStatus.PUBLISHED, SurveyStatus.DELETED}),
    SurveyStatus.PUBLISHED: frozenset({SurveyStatus.CLOSED}),
    SurveyStatus.CLOSED: frozenset(),
    SurveyStatus.DELETED: frozenset(),
}

EDITABLE_FIELDS = (
    "title",
    "description",
    "status",
    "is_anonymous",
    "is_mandatory",
    "start_date",
    "end_date",
    "template_type",
)


def check_transition(current: SurveyStatus, target: SurveyStatus, message: Optional[str] = None):
    if target not in ALLOWED_TRANSITIONS[current]:
        raise IllegalStateTransitionError(current.value, target.value, message)


@dataclass(frozen=True)
class SurveyQuestion:
    id: int
    survey_id: int
    question_text: str
    question_type: QuestionType
    order: int
    is_required: bool = True
    options: Any = None
    branching_logic: Any = None


@dataclass(frozen=True)
class Survey:
    id: int
    organization_id: int
    title: str
    created_by: int
    description: Optional[str] = None
    status: SurveyStatus = SurveyStatus.DRAFT
    is_anonymous: bool = False
    is_mandatory: bool = False
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    total_recipients: int = 0
    template_type: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    questions: Tuple[SurveyQuestion, ...] = ()

    def snapshot(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in EDITABLE_FIELDS}

    def ensure_accepting_responses(self, now: datetime):
        """Raise NotAvailableError unless the survey is published and inside its window."""
        if self.status != SurveyStatus.PUBLISHED:
            raise NotAvailableError("Survey is not available for responses")
        if self.start_date and now < self.start_date:
            raise NotAvailableError("Survey has not started yet")
        if self.end_date and now > self.end_date:
            raise NotAvailableError("Survey has ended")


@dataclass(frozen=True)
class SurveyAnswer:
    id: int
    response_id: int
    question_id: int
    answer_value: Any = None


@dataclass(frozen=True)
class SurveyResponse:
    id: int
    survey_id: int
    completed_at: datetime
    user_id: Optional[int] = None
    started_at: Optional[datetime] = None
    time_to_complete: Optional[int] = None
    answers: Tuple[SurveyAnswer, ...] = ()


@dataclass(frozen=True)
class SurveyAnalytics:
    survey_id: int
    total_responses: int
    total_recipients: int
    completion_rate: float
    average_completion_time: float
    responses_by_date: Dict[str, int]
    generated_at: datetime
