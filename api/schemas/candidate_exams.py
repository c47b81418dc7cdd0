"""Exam attempt schemas."""

from datetime import datetime
from typing import Any, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

from api.schemas.exams import CandidateExamView
from evaluation.types import AttemptStatus, FlagType, ProctoringFlag


class CandidateExamResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    candidate_id: int
    exam_id: int
    status: AttemptStatus
    score: Optional[int] = None
    passed: Optional[bool] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    answers: Optional[dict[str, Any]] = None
    flagged: bool
    flags: list[ProctoringFlag] = Field(default_factory=list)
    pending_review: Optional[list[str]] = None
    created_at: datetime


class CandidateExamDetail(CandidateExamResponse):
    exam: CandidateExamView
    deadline: Optional[datetime] = Field(None, description="started_at plus the time limit")


class FlagRequest(BaseModel):
    type: FlagType
    detail: Optional[str] = Field(None, max_length=500)
    timestamp: Optional[datetime] = Field(None, description="Defaults to the time of receipt")


class SubmitRequest(BaseModel):
    """Answers keyed by question id, or the list form with questionId entries."""

    answers: Union[dict[str, Any], list[dict[str, Any]]] = Field(default_factory=dict)
