"""Resume and application schemas."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from database.models.resumes import ResumeFileType
from evaluation.types import AttemptStatus, ParsedResume


class ResumeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    candidate_id: int
    job_role_id: int
    file_name: str
    file_type: ResumeFileType
    parsed_data: Optional[ParsedResume] = None
    score: Optional[int] = Field(None, ge=0, le=100)
    reasons: Optional[list[str]] = None
    qualified: Optional[bool] = None
    evaluated_at: Optional[datetime] = None
    created_at: datetime


class QualifyRequest(BaseModel):
    """Administrator override of the qualification decision."""

    qualified: bool
    note: Optional[str] = Field(None, max_length=500)


class ApplicationStatusResponse(BaseModel):
    """A candidate's standing for one role, read straight from persistence."""

    job_role_id: int
    applied: bool
    resume_id: Optional[int] = None
    score: Optional[int] = None
    qualified: Optional[bool] = None
    exam_attempt_id: Optional[int] = None
    exam_status: Optional[AttemptStatus] = None
