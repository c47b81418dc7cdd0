"""Resume service functions: upload, evaluation, qualification and status."""

from pathlib import Path
from typing import Any, Dict, Optional
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import Identity
from api.schemas.common import PaginationParams
from api.services.activities import log_activity
from api.services.job_roles import get_job_role
from core.config import settings
from core.exceptions import (
    DuplicateApplication,
    InvalidTransition,
    ParseFailure,
    PersistenceFailure,
    RecordNotFound,
)
from core.parsers.document_parser import UnsupportedDocumentType, normalize_file_type
from core.storage.local import LocalDocumentStore
from database.models.candidate_exams import CandidateExam
from database.models.exams import Exam
from database.models.resumes import Resume, ResumeFileType
from evaluation.clock import utcnow
from evaluation.gate import is_qualified
from evaluation.parser import parse_resume, parse_resume_bytes
from evaluation.scorer import score_resume
from evaluation.types import JobRoleProfile, ParsedResume, ScoreResult

logger = logging.getLogger(__name__)


def resolve_file_type(filename: str, content_type: Optional[str] = None) -> ResumeFileType:
    """File type from the extension, falling back to the declared content type.

    Raises:
        ParseFailure: Neither names a supported type
    """
    candidates = [Path(filename or "").suffix, content_type or ""]
    for candidate in candidates:
        if not candidate:
            continue
        try:
            return ResumeFileType(normalize_file_type(candidate))
        except UnsupportedDocumentType:
            continue
    raise ParseFailure(filename, f"unsupported file type ({content_type or 'unknown'})")


async def upload_resume(
    session: AsyncSession,
    store: LocalDocumentStore,
    candidate: Identity,
    job_role_id: int,
    filename: str,
    data: bytes,
    content_type: Optional[str] = None,
) -> Resume:
    """Store, parse, score and gate a new application in one step.

    The document is parsed before anything is written, so a ParseFailure
    leaves neither a stored file nor a Resume row behind.
    """
    job_role = await get_job_role(session, job_role_id)

    existing = await session.scalar(
        select(Resume.id).where(
            Resume.candidate_id == candidate.id, Resume.job_role_id == job_role_id
        )
    )
    if existing is not None:
        raise DuplicateApplication(candidate.id, job_role_id)

    if len(data) > settings.max_upload_bytes:
        raise ParseFailure(filename, f"file exceeds {settings.max_upload_bytes} bytes")
    file_type = resolve_file_type(filename, content_type)

    profile = JobRoleProfile.model_validate(job_role)
    parsed = await parse_resume_bytes(
        data, file_type.value, file_ref=filename, skill_vocabulary=profile.key_skills
    )
    result = score_resume(parsed, profile)

    file_ref = await store.save(data, filename, subfolder=f"resumes/{candidate.id}")
    resume = Resume(
        candidate_id=candidate.id,
        job_role_id=job_role_id,
        file_name=Path(filename).name,
        file_ref=file_ref,
        file_type=file_type,
    )
    apply_evaluation(resume, parsed, result)
    session.add(resume)

    try:
        await session.flush()
        log_activity(
            session,
            candidate.id,
            "resume_uploaded",
            {
                "resume_id": resume.id,
                "job_role_id": job_role_id,
                "score": resume.score,
                "qualified": resume.qualified,
            },
        )
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        await store.delete(file_ref)
        raise PersistenceFailure(f"Could not save resume for job role {job_role_id}") from exc

    logger.info(
        f"Resume {resume.id} uploaded for job role {job_role_id}: "
        f"score={resume.score} qualified={resume.qualified}"
    )
    return resume


async def evaluate_resume(
    session: AsyncSession,
    store: LocalDocumentStore,
    resume_id: int,
    requested_by: Optional[int] = None,
) -> Resume:
    """Re-run parse, score and gate on a stored resume.

    Nothing is written unless every stage succeeds.
    """
    resume = await _get_resume(session, resume_id)
    job_role = await get_job_role(session, resume.job_role_id)
    profile = JobRoleProfile.model_validate(job_role)

    parsed = await parse_resume(
        resume.file_ref,
        resume.file_type.value,
        store,
        skill_vocabulary=profile.key_skills,
    )
    result = score_resume(parsed, profile)
    apply_evaluation(resume, parsed, result)

    log_activity(
        session,
        requested_by,
        "resume_evaluated",
        {"resume_id": resume.id, "score": resume.score, "qualified": resume.qualified},
    )
    await session.commit()
    logger.info(f"Resume {resume_id} evaluated: score={resume.score}")
    return resume


def apply_evaluation(resume: Resume, parsed: ParsedResume, result: ScoreResult) -> None:
    resume.parsed_data = parsed.model_dump(mode="json")
    resume.score = result.score
    resume.reasons = list(result.reasons)
    resume.qualified = is_qualified(result.score)
    resume.evaluated_at = utcnow()


async def qualify_resume(
    session: AsyncSession,
    admin: Identity,
    resume_id: int,
    qualified: bool,
    note: Optional[str] = None,
) -> Resume:
    """Administrator override of the gate's decision for an evaluated resume."""
    resume = await _get_resume(session, resume_id)
    if resume.score is None:
        raise InvalidTransition(
            "qualify",
            "unevaluated",
            detail=f"Resume {resume_id} has not been evaluated yet",
        )

    previous = resume.qualified
    resume.qualified = qualified
    log_activity(
        session,
        admin.id,
        "resume_qualification_overridden",
        {
            "resume_id": resume_id,
            "previous": previous,
            "qualified": qualified,
            "note": note,
        },
    )
    await session.commit()
    logger.info(f"Admin {admin.id} set resume {resume_id} qualified={qualified}")
    return resume


async def get_resume(session: AsyncSession, identity: Identity, resume_id: int) -> Resume:
    resume = await _get_resume(session, resume_id)
    # Candidates only see their own applications
    if not identity.is_admin and resume.candidate_id != identity.id:
        raise RecordNotFound("resume", resume_id)
    return resume


async def list_resumes(
    session: AsyncSession,
    identity: Identity,
    pagination: PaginationParams,
    job_role_id: Optional[int] = None,
    qualified: Optional[bool] = None,
) -> tuple[list[Resume], int]:
    query = select(Resume)
    if not identity.is_admin:
        query = query.where(Resume.candidate_id == identity.id)
    if job_role_id is not None:
        query = query.where(Resume.job_role_id == job_role_id)
    if qualified is not None:
        query = query.where(Resume.qualified == qualified)

    total = await session.scalar(select(func.count()).select_from(query.subquery()))
    result = await session.execute(
        query.order_by(Resume.score.desc().nulls_last(), Resume.id)
        .offset(pagination.offset)
        .limit(pagination.page_size)
    )
    return list(result.scalars().all()), total or 0


async def get_application_status(
    session: AsyncSession, candidate_id: int, job_role_id: int
) -> Dict[str, Any]:
    """Whether the candidate applied to the role, and where their exam stands."""
    resume = (
        await session.execute(
            select(Resume)
            .where(Resume.candidate_id == candidate_id, Resume.job_role_id == job_role_id)
            .order_by(Resume.id.desc())
            .limit(1)
        )
    ).scalar_one_or_none()

    status: Dict[str, Any] = {
        "job_role_id": job_role_id,
        "applied": resume is not None,
        "resume_id": resume.id if resume else None,
        "score": resume.score if resume else None,
        "qualified": resume.qualified if resume else None,
        "exam_attempt_id": None,
        "exam_status": None,
    }

    attempt = (
        await session.execute(
            select(CandidateExam)
            .join(Exam, Exam.id == CandidateExam.exam_id)
            .where(CandidateExam.candidate_id == candidate_id, Exam.job_role_id == job_role_id)
            .order_by(CandidateExam.id.desc())
            .limit(1)
        )
    ).scalar_one_or_none()
    if attempt is not None:
        status["exam_attempt_id"] = attempt.id
        status["exam_status"] = attempt.status

    return status


async def _get_resume(session: AsyncSession, resume_id: int) -> Resume:
    resume = await session.get(Resume, resume_id)
    if resume is None:
        raise RecordNotFound("resume", resume_id)
    return resume
