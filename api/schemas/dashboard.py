"""Dashboard and activity schemas."""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class DashboardStats(BaseModel):
    total_job_roles: int = 0
    total_resumes: int = 0
    evaluated_resumes: int = 0
    qualified_candidates: int = 0
    total_exams: int = 0
    exams_in_progress: int = 0
    exams_completed: int = 0
    exams_passed: int = 0
    flagged_attempts: int = 0
    average_resume_score: Optional[float] = None


class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[int] = None
    action: str
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
