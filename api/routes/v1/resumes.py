"""
Resume endpoints.

Candidates upload a resume per job role; it is parsed, scored and gated in
the same request. Administrators can re-run evaluation or override the
qualification decision.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Path, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    Identity,
    get_db,
    get_document_store,
    get_identity,
    require_admin,
    require_candidate,
)
from api.schemas.common import ERROR_RESPONSES, PaginatedResponse, PaginationParams
from api.schemas.resumes import ApplicationStatusResponse, QualifyRequest, ResumeResponse
from api.services import resumes as resume_service
from core.storage.local import LocalDocumentStore

router = APIRouter(prefix="/resumes", tags=["resumes"], responses=ERROR_RESPONSES)


@router.post(
    "/upload",
    response_model=ResumeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload Resume",
    description="Upload a PDF or DOCX resume for a job role. Returns the evaluated application.",
)
async def upload_resume(
    job_role_id: int = Form(..., description="Job role being applied to"),
    file: UploadFile = File(..., description="PDF or DOCX resume"),
    candidate: Identity = Depends(require_candidate),
    session: AsyncSession = Depends(get_db),
    store: LocalDocumentStore = Depends(get_document_store),
):
    data = await file.read()
    return await resume_service.upload_resume(
        session,
        store,
        candidate,
        job_role_id,
        file.filename or "resume",
        data,
        content_type=file.content_type,
    )


@router.get(
    "",
    response_model=PaginatedResponse[ResumeResponse],
    summary="List Resumes",
    description="Admins see every application ranked by score; candidates see their own.",
)
async def list_resumes(
    job_role_id: Optional[int] = Query(None),
    qualified: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_db),
):
    pagination = PaginationParams(page=page, page_size=page_size)
    items, total = await resume_service.list_resumes(
        session, identity, pagination, job_role_id=job_role_id, qualified=qualified
    )
    return PaginatedResponse.create(
        [ResumeResponse.model_validate(item) for item in items], total, pagination
    )


@router.get(
    "/application-status",
    response_model=ApplicationStatusResponse,
    summary="Application Status",
)
async def application_status(
    job_role_id: int = Query(...),
    candidate_id: Optional[int] = Query(None, description="Admins only; defaults to the caller"),
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_db),
):
    """Whether the caller applied to the role, was qualified, and where their exam stands."""
    target = candidate_id if identity.is_admin and candidate_id is not None else identity.id
    return await resume_service.get_application_status(session, target, job_role_id)


@router.get("/{resume_id}", response_model=ResumeResponse, summary="Get Resume")
async def get_resume(
    resume_id: int = Path(...),
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_db),
):
    return await resume_service.get_resume(session, identity, resume_id)


@router.post("/{resume_id}/evaluate", response_model=ResumeResponse, summary="Re-evaluate Resume")
async def evaluate_resume(
    resume_id: int = Path(...),
    admin: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
    store: LocalDocumentStore = Depends(get_document_store),
):
    return await resume_service.evaluate_resume(session, store, resume_id, requested_by=admin.id)


@router.post(
    "/{resume_id}/qualify",
    response_model=ResumeResponse,
    summary="Override Qualification",
)
async def qualify_resume(
    request: QualifyRequest,
    resume_id: int = Path(...),
    admin: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    return await resume_service.qualify_resume(
        session, admin, resume_id, request.qualified, request.note
    )
