"""
Exam attempt state machine.

An attempt moves pending -> in_progress -> completed and never back. Every
transition loads the row with ``SELECT ... FOR UPDATE`` and the mapper's
version column turns a lost race into ``InvalidTransition`` instead of a
second successful write.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from core.exceptions import (
    InvalidTransition,
    InvariantViolation,
    PersistenceFailure,
    RecordNotFound,
)
from database.models import LIVE_SLOT, CandidateExam, Exam, User
from evaluation.clock import as_utc, utcnow
from evaluation.grader import grade_exam, normalize_answers
from evaluation.proctoring import ProctoringPolicy
from evaluation.types import AttemptStatus, OpenEndedPolicy, ProctoringFlag

logger = logging.getLogger(__name__)

LIVE_STATUSES = (AttemptStatus.PENDING, AttemptStatus.IN_PROGRESS)


async def assign(session: AsyncSession, candidate_id: int, exam_id: int) -> CandidateExam:
    """Create a pending attempt, or return the candidate's live attempt for the exam."""
    existing = await _live_attempt(session, candidate_id, exam_id)
    if existing is not None:
        logger.info(
            "Candidate %s already has live attempt %s for exam %s",
            candidate_id,
            existing.id,
            exam_id,
        )
        return existing

    if await session.get(Exam, exam_id) is None:
        raise RecordNotFound("exam", exam_id)
    if await session.get(User, candidate_id) is None:
        raise RecordNotFound("candidate", candidate_id)

    attempt = CandidateExam(
        candidate_id=candidate_id,
        exam_id=exam_id,
        status=AttemptStatus.PENDING,
        live_slot=LIVE_SLOT,
        flagged=False,
        flags=[],
    )
    session.add(attempt)
    try:
        await session.commit()
    except IntegrityError as exc:
        # A concurrent assign won the unique live-attempt slot
        await session.rollback()
        existing = await _live_attempt(session, candidate_id, exam_id)
        if existing is None:
            raise PersistenceFailure(f"Could not assign exam {exam_id}: {exc.orig}") from exc
        return existing
    except SQLAlchemyError as exc:
        await session.rollback()
        raise PersistenceFailure(f"Could not assign exam {exam_id}") from exc

    logger.info("Assigned exam %s to candidate %s (attempt %s)", exam_id, candidate_id, attempt.id)
    return attempt


async def start(
    session: AsyncSession, attempt_id: int, *, now: Optional[datetime] = None
) -> CandidateExam:
    attempt = await _lock_attempt(session, attempt_id)
    if attempt.status != AttemptStatus.PENDING:
        await _reject(session, "start", attempt)

    attempt.status = AttemptStatus.IN_PROGRESS
    attempt.started_at = now or utcnow()
    await _commit(session, "start", attempt_id)
    logger.info("Attempt %s started", attempt_id)
    return attempt


async def record_flag(
    session: AsyncSession,
    attempt_id: int,
    flag: ProctoringFlag | dict,
    policy: Optional[ProctoringPolicy] = None,
) -> CandidateExam:
    """Append a proctoring flag to an in-progress attempt and refresh ``flagged``.

    A flag of the same type inside the de-duplication window is dropped.
    Answers and score are never touched.
    """
    if not isinstance(flag, ProctoringFlag):
        flag = ProctoringFlag.model_validate(flag)
    policy = policy or ProctoringPolicy()

    attempt = await _lock_attempt(session, attempt_id)
    if attempt.status != AttemptStatus.IN_PROGRESS:
        await _reject(session, "flag", attempt)

    flags, flagged = policy.apply(attempt.flags or [], flag)
    if len(flags) != len(attempt.flags or []):
        attempt.flags = flags
    if flagged and not attempt.flagged:
        logger.warning("Attempt %s flagged for review after %s", attempt_id, flag.type.value)
    attempt.flagged = flagged

    await _commit(session, "flag", attempt_id)
    return attempt


async def submit_answers(
    session: AsyncSession,
    attempt_id: int,
    answers: Any,
    *,
    now: Optional[datetime] = None,
    open_ended_policy: Optional[OpenEndedPolicy] = None,
) -> CandidateExam:
    """Store answers, complete the attempt and grade it before returning."""
    attempt = await _lock_attempt(session, attempt_id)
    if attempt.status != AttemptStatus.IN_PROGRESS:
        await _reject(session, "submit", attempt)

    return await _complete(session, attempt, answers, now or utcnow(), open_ended_policy)


async def timeout(
    session: AsyncSession,
    attempt_id: int,
    answers: Any = None,
    *,
    now: Optional[datetime] = None,
    open_ended_policy: Optional[OpenEndedPolicy] = None,
) -> CandidateExam:
    """Force submission once the exam's time limit has elapsed.

    Same transition as ``submit_answers``; ``answers`` may be partial or
    absent, in which case every question counts as unanswered.
    """
    now = now or utcnow()
    attempt = await _lock_attempt(session, attempt_id)
    if attempt.status != AttemptStatus.IN_PROGRESS:
        await _reject(session, "time out", attempt)

    exam = await _get_exam(session, attempt.exam_id)
    deadline = as_utc(attempt.started_at) + timedelta(minutes=exam.time_limit_minutes)
    if as_utc(now) < deadline:
        await _reject(
            session,
            "time out",
            attempt,
            detail=f"Attempt {attempt_id} still has time left until {deadline.isoformat()}",
        )

    logger.info("Attempt %s timed out", attempt_id)
    return await _complete(session, attempt, answers, now, open_ended_policy, exam=exam)


async def expire_overdue_attempts(
    session: AsyncSession, *, now: Optional[datetime] = None
) -> list[int]:
    """Time out every in-progress attempt past its exam's time limit.

    Returns the ids of the attempts that were completed.
    """
    now = as_utc(now or utcnow())
    result = await session.execute(
        select(CandidateExam.id, CandidateExam.started_at, Exam.time_limit_minutes)
        .join(Exam, Exam.id == CandidateExam.exam_id)
        .where(CandidateExam.status == AttemptStatus.IN_PROGRESS)
        .order_by(CandidateExam.id)
    )
    overdue = [
        attempt_id
        for attempt_id, started_at, time_limit in result.all()
        if started_at is not None
        and as_utc(started_at) + timedelta(minutes=time_limit) <= now
    ]

    expired = []
    for attempt_id in overdue:
        try:
            await timeout(session, attempt_id, now=now)
        except InvalidTransition:
            # Submitted between the scan and the lock
            logger.info("Attempt %s completed before it could be expired", attempt_id)
            continue
        expired.append(attempt_id)

    if expired:
        logger.info("Expired %d overdue attempts", len(expired))
    return expired


async def get_attempt(session: AsyncSession, attempt_id: int) -> CandidateExam:
    result = await session.execute(
        select(CandidateExam)
        .where(CandidateExam.id == attempt_id)
        .execution_options(populate_existing=True)
    )
    attempt = result.scalar_one_or_none()
    if attempt is None:
        raise RecordNotFound("candidate exam", attempt_id)
    return attempt


async def _complete(
    session: AsyncSession,
    attempt: CandidateExam,
    answers: Any,
    now: datetime,
    open_ended_policy: Optional[OpenEndedPolicy],
    exam: Optional[Exam] = None,
) -> CandidateExam:
    attempt_id = attempt.id
    try:
        normalized = normalize_answers(answers)
    except TypeError as exc:
        await session.rollback()
        raise InvariantViolation(str(exc), attempt_id=attempt_id) from exc

    exam = exam or await _get_exam(session, attempt.exam_id)
    grade = grade_exam(exam.questions, normalized, exam.pass_mark, open_ended_policy)

    attempt.answers = normalized
    attempt.status = AttemptStatus.COMPLETED
    attempt.completed_at = now
    attempt.score = grade.score
    attempt.passed = grade.passed
    attempt.pending_review = grade.pending_review
    attempt.live_slot = None
    await _commit(session, "submit", attempt_id)

    logger.info(
        "Attempt %s completed: score=%d passed=%s pending_review=%d",
        attempt_id,
        grade.score,
        grade.passed,
        len(grade.pending_review),
    )
    return attempt


async def _live_attempt(
    session: AsyncSession, candidate_id: int, exam_id: int
) -> Optional[CandidateExam]:
    result = await session.execute(
        select(CandidateExam).where(
            CandidateExam.candidate_id == candidate_id,
            CandidateExam.exam_id == exam_id,
            CandidateExam.status.in_(LIVE_STATUSES),
        )
    )
    return result.scalars().first()


async def _lock_attempt(session: AsyncSession, attempt_id: int) -> CandidateExam:
    result = await session.execute(
        select(CandidateExam)
        .where(CandidateExam.id == attempt_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    attempt = result.scalar_one_or_none()
    if attempt is None:
        await session.rollback()
        raise RecordNotFound("candidate exam", attempt_id)
    return attempt


async def _get_exam(session: AsyncSession, exam_id: int) -> Exam:
    exam = await session.get(Exam, exam_id)
    if exam is None:
        raise RecordNotFound("exam", exam_id)
    return exam


async def _reject(
    session: AsyncSession,
    action: str,
    attempt: CandidateExam,
    detail: Optional[str] = None,
) -> None:
    attempt_id, status = attempt.id, attempt.status.value
    # Release the row lock before reporting
    await session.rollback()
    logger.info("Rejected %s on attempt %s (status=%s)", action, attempt_id, status)
    raise InvalidTransition(action, status, attempt_id=attempt_id, detail=detail)


async def _commit(session: AsyncSession, action: str, attempt_id: int) -> None:
    try:
        await session.commit()
    except StaleDataError as exc:
        await session.rollback()
        logger.warning("Concurrent update lost on attempt %s during %s", attempt_id, action)
        raise InvalidTransition(
            action,
            None,
            attempt_id=attempt_id,
            detail=f"Attempt {attempt_id} was modified concurrently",
        ) from exc
    except SQLAlchemyError as exc:
        await session.rollback()
        raise PersistenceFailure(f"Could not {action} attempt {attempt_id}") from exc
