"""
Job role management endpoints.

Administrators create and maintain the roles candidates apply to.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import Identity, get_db, get_identity, require_admin
from api.schemas.common import ERROR_RESPONSES, PaginatedResponse, PaginationParams
from api.schemas.job_roles import JobRoleCreate, JobRoleResponse, JobRoleUpdate
from api.services import job_roles as job_role_service

router = APIRouter(prefix="/job-roles", tags=["job-roles"], responses=ERROR_RESPONSES)


@router.post(
    "",
    response_model=JobRoleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Job Role",
)
async def create_job_role(
    data: JobRoleCreate,
    admin: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    return await job_role_service.create_job_role(session, admin, data)


@router.get(
    "",
    response_model=PaginatedResponse[JobRoleResponse],
    summary="List Job Roles",
    description="List job roles, newest first. Admins may filter to their own roles.",
)
async def list_job_roles(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    mine: bool = Query(False, description="Only roles created by the calling admin"),
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_db),
):
    pagination = PaginationParams(page=page, page_size=page_size)
    admin_id: Optional[int] = identity.id if mine and identity.is_admin else None
    items, total = await job_role_service.list_job_roles(session, pagination, admin_id=admin_id)
    return PaginatedResponse.create(
        [JobRoleResponse.model_validate(item) for item in items], total, pagination
    )


@router.get("/{job_role_id}", response_model=JobRoleResponse, summary="Get Job Role")
async def get_job_role(
    job_role_id: int = Path(..., description="Job role ID"),
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_db),
):
    return await job_role_service.get_job_role(session, job_role_id)


@router.patch("/{job_role_id}", response_model=JobRoleResponse, summary="Update Job Role")
async def update_job_role(
    data: JobRoleUpdate,
    job_role_id: int = Path(..., description="Job role ID"),
    admin: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    return await job_role_service.update_job_role(session, admin, job_role_id, data)


@router.delete(
    "/{job_role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Job Role",
    description="Fails with 409 while resumes or exams still reference the role.",
)
async def delete_job_role(
    job_role_id: int = Path(..., description="Job role ID"),
    admin: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    await job_role_service.delete_job_role(session, admin, job_role_id)
