"""Job role service functions."""

from typing import Optional
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import Identity
from api.schemas.common import PaginationParams
from api.schemas.job_roles import JobRoleCreate, JobRoleUpdate
from api.services.activities import log_activity
from core.exceptions import RecordInUse, RecordNotFound
from database.models.exams import Exam
from database.models.job_roles import JobRole
from database.models.resumes import Resume
from evaluation.clock import utcnow

logger = logging.getLogger(__name__)


async def create_job_role(
    session: AsyncSession, admin: Identity, data: JobRoleCreate
) -> JobRole:
    job_role = JobRole(admin_id=admin.id, **data.model_dump())
    session.add(job_role)
    await session.flush()
    log_activity(
        session,
        admin.id,
        "job_role_created",
        {"job_role_id": job_role.id, "title": job_role.title},
    )
    await session.commit()
    logger.info(f"Job role {job_role.id} created by admin {admin.id}")
    return job_role


async def get_job_role(session: AsyncSession, job_role_id: int) -> JobRole:
    job_role = await session.get(JobRole, job_role_id)
    if job_role is None:
        raise RecordNotFound("job role", job_role_id)
    return job_role


async def list_job_roles(
    session: AsyncSession,
    pagination: PaginationParams,
    admin_id: Optional[int] = None,
) -> tuple[list[JobRole], int]:
    query = select(JobRole)
    if admin_id is not None:
        query = query.where(JobRole.admin_id == admin_id)

    total = await session.scalar(select(func.count()).select_from(query.subquery()))
    result = await session.execute(
        query.order_by(JobRole.created_at.desc(), JobRole.id.desc())
        .offset(pagination.offset)
        .limit(pagination.page_size)
    )
    return list(result.scalars().all()), total or 0


async def update_job_role(
    session: AsyncSession, admin: Identity, job_role_id: int, data: JobRoleUpdate
) -> JobRole:
    """Apply a partial update. Only the owning administrator may change a role."""
    job_role = await get_job_role(session, job_role_id)
    if job_role.admin_id != admin.id:
        raise PermissionError(f"Job role {job_role_id} belongs to another administrator")

    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is not None or field == "location":
            setattr(job_role, field, value)
    job_role.updated_at = utcnow()

    log_activity(
        session,
        admin.id,
        "job_role_updated",
        {"job_role_id": job_role_id, "fields": sorted(changes)},
    )
    await session.commit()
    return job_role


async def delete_job_role(session: AsyncSession, admin: Identity, job_role_id: int) -> None:
    """Delete a role that nothing references yet.

    Raises:
        RecordInUse: Resumes or exams still point at the role
    """
    job_role = await get_job_role(session, job_role_id)
    if job_role.admin_id != admin.id:
        raise PermissionError(f"Job role {job_role_id} belongs to another administrator")

    resumes = await session.scalar(
        select(func.count(Resume.id)).where(Resume.job_role_id == job_role_id)
    )
    exams = await session.scalar(
        select(func.count(Exam.id)).where(Exam.job_role_id == job_role_id)
    )
    if resumes or exams:
        raise RecordInUse(
            f"Job role {job_role_id} is referenced by {resumes} resumes and {exams} exams",
            job_role_id=job_role_id,
        )

    await session.delete(job_role)
    log_activity(session, admin.id, "job_role_deleted", {"job_role_id": job_role_id})
    try:
        await session.commit()
    except IntegrityError as exc:
        # A resume or exam arrived after the reference check
        await session.rollback()
        raise RecordInUse(
            f"Job role {job_role_id} is still referenced", job_role_id=job_role_id
        ) from exc
