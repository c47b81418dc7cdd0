"""Value types shared by every pipeline stage."""

from datetime import datetime
from enum import Enum as PyEnum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class QuestionType(str, PyEnum):
    """Exam question kinds."""

    MULTIPLE_CHOICE = "multiple_choice"
    OPEN_ENDED = "open_ended"


class AttemptStatus(str, PyEnum):
    """Lifecycle of a candidate's exam attempt."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class FlagType(str, PyEnum):
    """Proctoring anomaly kinds reported by the exam client."""

    NO_FACE = "no_face"
    MULTIPLE_FACES = "multiple_faces"
    LOOKING_AWAY = "looking_away"
    TAB_SWITCH = "tab_switch"


class OpenEndedPolicy(str, PyEnum):
    """How open-ended answers are scored."""

    MANUAL = "manual"  # excluded from the automatic score
    KEYWORD = "keyword"


class JobRoleProfile(BaseModel):
    """The parts of a job role the scorer and generator read."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    title: str
    description: str = ""
    responsibilities: str = ""
    requirements: str = ""
    key_skills: list[str] = Field(default_factory=list)
    location: Optional[str] = None


class ParsedResume(BaseModel):
    """Structured fields extracted from a resume. Every field is optional."""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    experience: list[str] = Field(default_factory=list)
    education: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    location: Optional[str] = None
    years_of_experience: Optional[float] = None


class Question(BaseModel):
    """A single exam question.

    ``correct_answer`` holds the option text for multiple choice questions
    and an optional reference answer for open-ended ones.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    text: str
    type: QuestionType
    options: Optional[list[str]] = None
    correct_answer: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("correct_answer", "correctAnswer"),
    )


class ProctoringFlag(BaseModel):
    """An anomaly observed while an attempt is in progress."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    type: FlagType
    detail: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("detail", "details")
    )


class ScoreResult(BaseModel):
    """Resume match score (0-100) and the reasons behind it."""

    score: int = Field(ge=0, le=100)
    reasons: list[str] = Field(default_factory=list)


class ExamDraft(BaseModel):
    """A validated, not yet persisted exam."""

    title: str
    job_role_id: Optional[int] = None
    questions: list[Question]
    pass_mark: int = Field(ge=0, le=100)
    time_limit_minutes: int = Field(gt=0)


class GradeResult(BaseModel):
    """Outcome of grading a completed attempt."""

    score: int = Field(ge=0, le=100)
    passed: bool
    correct: int = 0
    graded: int = 0
    pending_review: list[str] = Field(default_factory=list)
