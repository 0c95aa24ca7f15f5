"""Pydantic schemas for survey authoring and response submission."""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from shared.domain.events import as_utc
from survey.domain.model import QuestionType, SurveyStatus


class CreateSurveyQuestionData(BaseModel):
    question_text: str = Field(..., min_length=1)
    question_type: QuestionType
    is_required: bool = True
    options: Any = None
    order: int = Field(..., ge=1)
    branching_logic: Any = None


class SurveyDates(BaseModel):
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def assume_utc(cls, value):
        return as_utc(value)


class CreateSurveyData(SurveyDates):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    is_anonymous: bool = False
    is_mandatory: bool = False
    template_type: Optional[str] = Field(None, max_length=50)
    questions: List[CreateSurveyQuestionData] = Field(..., min_length=1)


class UpdateSurveyData(SurveyDates):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    status: Optional[SurveyStatus] = None
    is_anonymous: Optional[bool] = None
    is_mandatory: Optional[bool] = None
    template_type: Optional[str] = Field(None, max_length=50)

    @field_validator("title", "status", "is_anonymous", "is_mandatory")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("field cannot be cleared")
        return value

    @field_validator("status")
    @classmethod
    def not_deleted(cls, value):
        if value == SurveyStatus.DELETED:
            raise ValueError("surveys are removed through delete, not update")
        return value


class CreateSurveyAnswerData(BaseModel):
    question_id: int = Field(..., ge=1)
    answer_value: Any = None


class CreateSurveyResponseData(BaseModel):
    survey_id: int = Field(..., ge=1)
    answers: List[CreateSurveyAnswerData] = Field(..., min_length=1)
    started_at: Optional[datetime] = None

    @field_validator("started_at")
    @classmethod
    def assume_utc(cls, value):
        return as_utc(value)
