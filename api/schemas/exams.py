"""Exam schemas. Candidate-facing variants never include correct answers."""

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from evaluation.types import Question, QuestionType


class ExamGenerateRequest(BaseModel):
    job_role_id: int
    question_count: Literal[10, 15, 20, 30] = Field(10, description="Number of questions")
    pass_mark: Optional[int] = Field(None, ge=0, le=100, description="Defaults to DEFAULT_PASS_MARK")
    time_limit_minutes: Optional[int] = Field(None, gt=0, le=600)
    title: Optional[str] = Field(None, max_length=255)
    include_multiple_choice: bool = True
    include_open_ended: bool = True
    seed: Optional[int] = Field(None, description="Makes generation reproducible")

    @model_validator(mode="after")
    def check_question_types(self):
        if not (self.include_multiple_choice or self.include_open_ended):
            raise ValueError("At least one question type must be included")
        return self


class ExamAssignRequest(BaseModel):
    candidate_ids: list[int] = Field(min_length=1, max_length=200)


class ExamResponse(BaseModel):
    """Full exam including answer keys, for administrators."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    job_role_id: int
    admin_id: int
    questions: list[Question]
    pass_mark: int
    time_limit_minutes: int
    created_at: datetime


class CandidateQuestion(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    text: str
    type: QuestionType
    options: Optional[list[str]] = None


class CandidateExamView(BaseModel):
    """Exam as shown to the candidate taking it."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    job_role_id: int
    questions: list[CandidateQuestion]
    pass_mark: int
    time_limit_minutes: int
