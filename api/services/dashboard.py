"""Dashboard statistics."""

from typing import Any, Dict

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from database.models.candidate_exams import CandidateExam
from database.models.exams import Exam
from database.models.job_roles import JobRole
from database.models.resumes import Resume
from evaluation.types import AttemptStatus


async def get_dashboard_stats(session: AsyncSession) -> Dict[str, Any]:
    """Counts across roles, applications and exam attempts."""
    resume_stats = (
        await session.execute(
            select(
                func.count(Resume.id),
                func.count(Resume.score),
                func.count(Resume.id).filter(Resume.qualified.is_(True)),
                func.avg(Resume.score),
            )
        )
    ).one()

    attempt_stats = (
        await session.execute(
            select(
                func.count(CandidateExam.id).filter(
                    CandidateExam.status == AttemptStatus.IN_PROGRESS
                ),
                func.count(CandidateExam.id).filter(
                    CandidateExam.status == AttemptStatus.COMPLETED
                ),
                func.count(CandidateExam.id).filter(CandidateExam.passed.is_(True)),
                func.count(CandidateExam.id).filter(CandidateExam.flagged.is_(True)),
            )
        )
    ).one()

    average = resume_stats[3]
    return {
        "total_job_roles": await session.scalar(select(func.count(JobRole.id))) or 0,
        "total_resumes": resume_stats[0],
        "evaluated_resumes": resume_stats[1],
        "qualified_candidates": resume_stats[2],
        "average_resume_score": round(float(average), 1) if average is not None else None,
        "total_exams": await session.scalar(select(func.count(Exam.id))) or 0,
        "exams_in_progress": attempt_stats[0],
        "exams_completed": attempt_stats[1],
        "exams_passed": attempt_stats[2],
        "flagged_attempts": attempt_stats[3],
    }
