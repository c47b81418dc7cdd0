"""
Candidate evaluation pipeline.

parse -> score -> qualify -> generate exam -> administer -> grade. The exam
attempt state machine lives in ``evaluation.session`` because it needs the
database models.
"""

from evaluation.gate import is_qualified
from evaluation.generator import generate_exam
from evaluation.grader import grade_exam, normalize_answers
from evaluation.parser import parse_resume, parse_resume_bytes
from evaluation.proctoring import ProctoringPolicy
from evaluation.scorer import score_resume
from evaluation.types import (
    AttemptStatus,
    ExamDraft,
    FlagType,
    GradeResult,
    JobRoleProfile,
    OpenEndedPolicy,
    ParsedResume,
    ProctoringFlag,
    Question,
    QuestionType,
    ScoreResult,
)

__all__ = [
    "is_qualified",
    "generate_exam",
    "grade_exam",
    "normalize_answers",
    "parse_resume",
    "parse_resume_bytes",
    "ProctoringPolicy",
    "score_resume",
    "AttemptStatus",
    "ExamDraft",
    "FlagType",
    "GradeResult",
    "JobRoleProfile",
    "OpenEndedPolicy",
    "ParsedResume",
    "ProctoringFlag",
    "Question",
    "QuestionType",
    "ScoreResult",
]
