"""Candidate exam (attempt) service functions.

Ownership checks and activity logging live here; the state transitions
themselves are in ``evaluation.session``.
"""

from datetime import timedelta
from typing import Any, Dict, Optional
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import Identity
from api.schemas.candidate_exams import FlagRequest
from api.schemas.common import PaginationParams
from api.services.activities import log_activity
from core.exceptions import RecordNotFound
from database.models.candidate_exams import CandidateExam
from database.models.exams import Exam
from evaluation import session as attempts
from evaluation.clock import as_utc, utcnow
from evaluation.types import AttemptStatus, ProctoringFlag

logger = logging.getLogger(__name__)


async def get_candidate_exam(
    session: AsyncSession, identity: Identity, attempt_id: int
) -> CandidateExam:
    attempt = await attempts.get_attempt(session, attempt_id)
    # Other candidates' attempts are reported as missing
    if not identity.is_admin and attempt.candidate_id != identity.id:
        raise RecordNotFound("candidate exam", attempt_id)
    return attempt


async def get_candidate_exam_detail(
    session: AsyncSession, identity: Identity, attempt_id: int
) -> Dict[str, Any]:
    """Attempt plus its exam, with the time-limit deadline once started."""
    attempt = await get_candidate_exam(session, identity, attempt_id)
    exam = await session.get(Exam, attempt.exam_id)
    deadline = None
    if attempt.started_at is not None:
        deadline = as_utc(attempt.started_at) + timedelta(minutes=exam.time_limit_minutes)
    return {"attempt": attempt, "exam": exam, "deadline": deadline}


async def list_candidate_exams(
    session: AsyncSession,
    identity: Identity,
    pagination: PaginationParams,
    exam_id: Optional[int] = None,
    status: Optional[AttemptStatus] = None,
    flagged: Optional[bool] = None,
) -> tuple[list[CandidateExam], int]:
    query = select(CandidateExam)
    if not identity.is_admin:
        query = query.where(CandidateExam.candidate_id == identity.id)
    if exam_id is not None:
        query = query.where(CandidateExam.exam_id == exam_id)
    if status is not None:
        query = query.where(CandidateExam.status == status)
    if flagged is not None:
        query = query.where(CandidateExam.flagged == flagged)

    total = await session.scalar(select(func.count()).select_from(query.subquery()))
    result = await session.execute(
        query.order_by(CandidateExam.created_at.desc(), CandidateExam.id.desc())
        .offset(pagination.offset)
        .limit(pagination.page_size)
    )
    return list(result.scalars().all()), total or 0


async def start_candidate_exam(
    session: AsyncSession, candidate: Identity, attempt_id: int
) -> CandidateExam:
    await _ensure_owner(session, candidate, attempt_id)
    attempt = await attempts.start(session, attempt_id)
    log_activity(
        session,
        candidate.id,
        "exam_started",
        {"attempt_id": attempt_id, "exam_id": attempt.exam_id},
    )
    await session.commit()
    return attempt


async def record_candidate_flag(
    session: AsyncSession, candidate: Identity, attempt_id: int, request: FlagRequest
) -> CandidateExam:
    await _ensure_owner(session, candidate, attempt_id)
    flag = ProctoringFlag(
        timestamp=request.timestamp or utcnow(),
        type=request.type,
        detail=request.detail,
    )
    return await attempts.record_flag(session, attempt_id, flag)


async def submit_candidate_exam(
    session: AsyncSession, candidate: Identity, attempt_id: int, answers: Any
) -> CandidateExam:
    await _ensure_owner(session, candidate, attempt_id)
    attempt = await attempts.submit_answers(session, attempt_id, answers)
    log_activity(
        session,
        candidate.id,
        "exam_completed",
        {
            "attempt_id": attempt_id,
            "exam_id": attempt.exam_id,
            "score": attempt.score,
            "passed": attempt.passed,
            "flagged": attempt.flagged,
        },
    )
    await session.commit()
    return attempt


async def _ensure_owner(session: AsyncSession, candidate: Identity, attempt_id: int) -> None:
    owner = await session.scalar(
        select(CandidateExam.candidate_id).where(CandidateExam.id == attempt_id)
    )
    if owner is None or owner != candidate.id:
        raise RecordNotFound("candidate exam", attempt_id)
