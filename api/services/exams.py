"""Exam service functions."""

from typing import Optional
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import Identity
from api.schemas.common import PaginationParams
from api.schemas.exams import ExamGenerateRequest
from api.services.activities import log_activity
from api.services.job_roles import get_job_role
from core.exceptions import InvalidTransition, RecordNotFound
from database.models.candidate_exams import CandidateExam
from database.models.exams import Exam
from database.models.resumes import Resume
from evaluation import session as attempts
from evaluation.generator import GenerationBackend, generate_exam
from evaluation.types import JobRoleProfile

logger = logging.getLogger(__name__)


async def create_exam(
    session: AsyncSession,
    backend: GenerationBackend,
    admin: Identity,
    request: ExamGenerateRequest,
) -> Exam:
    """Generate an exam for a role and persist it.

    The Exam row is only created after generation fully succeeds.
    """
    job_role = await get_job_role(session, request.job_role_id)
    profile = JobRoleProfile.model_validate(job_role)

    draft = await generate_exam(
        profile,
        request.question_count,
        request.pass_mark,
        backend=backend,
        seed=request.seed,
        title=request.title,
        time_limit_minutes=request.time_limit_minutes,
        include_multiple_choice=request.include_multiple_choice,
        include_open_ended=request.include_open_ended,
    )

    exam = Exam(
        title=draft.title,
        job_role_id=job_role.id,
        admin_id=admin.id,
        questions=draft.questions,
        pass_mark=draft.pass_mark,
        time_limit_minutes=draft.time_limit_minutes,
    )
    session.add(exam)
    await session.flush()
    log_activity(
        session,
        admin.id,
        "exam_created",
        {"exam_id": exam.id, "job_role_id": job_role.id, "questions": len(draft.questions)},
    )
    await session.commit()
    logger.info(f"Exam {exam.id} created for job role {job_role.id}")
    return exam


async def get_exam(session: AsyncSession, exam_id: int) -> Exam:
    exam = await session.get(Exam, exam_id)
    if exam is None:
        raise RecordNotFound("exam", exam_id)
    return exam


async def get_exam_for(session: AsyncSession, identity: Identity, exam_id: int) -> Exam:
    """Admins see any exam; candidates only exams assigned to them."""
    exam = await get_exam(session, exam_id)
    if identity.is_admin:
        return exam
    assigned = await session.scalar(
        select(CandidateExam.id).where(
            CandidateExam.exam_id == exam_id, CandidateExam.candidate_id == identity.id
        )
    )
    if assigned is None:
        raise RecordNotFound("exam", exam_id)
    return exam


async def list_exams(
    session: AsyncSession,
    pagination: PaginationParams,
    job_role_id: Optional[int] = None,
) -> tuple[list[Exam], int]:
    query = select(Exam)
    if job_role_id is not None:
        query = query.where(Exam.job_role_id == job_role_id)

    total = await session.scalar(select(func.count()).select_from(query.subquery()))
    result = await session.execute(
        query.order_by(Exam.created_at.desc(), Exam.id.desc())
        .offset(pagination.offset)
        .limit(pagination.page_size)
    )
    return list(result.scalars().all()), total or 0


async def assign_exam(
    session: AsyncSession,
    admin: Identity,
    exam_id: int,
    candidate_ids: list[int],
) -> list[CandidateExam]:
    """Assign an exam to qualified candidates.

    Candidates must have a qualified resume for the exam's role. Assigning
    again returns the candidate's existing live attempt.

    Raises:
        InvalidTransition: A candidate has no qualified application for the role
    """
    exam = await get_exam(session, exam_id)
    job_role_id = exam.job_role_id

    unique_ids = list(dict.fromkeys(candidate_ids))
    result = await session.execute(
        select(Resume.candidate_id).where(
            Resume.job_role_id == job_role_id,
            Resume.candidate_id.in_(unique_ids),
            Resume.qualified.is_(True),
        )
    )
    qualified = set(result.scalars().all())
    unqualified = [candidate_id for candidate_id in unique_ids if candidate_id not in qualified]
    if unqualified:
        raise InvalidTransition(
            "assign",
            "unqualified",
            detail=f"Candidates {unqualified} are not qualified for job role {job_role_id}",
        )

    assigned = []
    attempt_ids = []
    for candidate_id in unique_ids:
        attempt = await attempts.assign(session, candidate_id, exam_id)
        assigned.append(attempt)
        attempt_ids.append(attempt.id)

    log_activity(
        session,
        admin.id,
        "exam_assigned",
        {"exam_id": exam_id, "candidate_ids": unique_ids, "attempt_ids": attempt_ids},
    )
    await session.commit()
    return assigned
