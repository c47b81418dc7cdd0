"""
Exam endpoints.

Generation and assignment are admin operations. Candidates may read an exam
they have been assigned, without answer keys.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    Identity,
    get_db,
    get_generation_backend,
    get_identity,
    require_admin,
)
from api.schemas.candidate_exams import CandidateExamResponse
from api.schemas.common import ERROR_RESPONSES, PaginatedResponse, PaginationParams
from api.schemas.exams import (
    CandidateExamView,
    ExamAssignRequest,
    ExamGenerateRequest,
    ExamResponse,
)
from api.services import exams as exam_service
from evaluation.generator import GenerationBackend

router = APIRouter(
    prefix="/exams",
    tags=["exams"],
    responses={**ERROR_RESPONSES, 502: {"description": "Question generation failed"}},
)


@router.post(
    "/generate",
    response_model=ExamResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Generate Exam",
    description="Generate an exam with exactly `question_count` questions for a job role.",
)
async def generate_exam(
    request: ExamGenerateRequest,
    admin: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
    backend: GenerationBackend = Depends(get_generation_backend),
):
    return await exam_service.create_exam(session, backend, admin, request)


@router.get("", response_model=PaginatedResponse[ExamResponse], summary="List Exams")
async def list_exams(
    job_role_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    admin: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    pagination = PaginationParams(page=page, page_size=page_size)
    items, total = await exam_service.list_exams(session, pagination, job_role_id=job_role_id)
    return PaginatedResponse.create(
        [ExamResponse.model_validate(item) for item in items], total, pagination
    )


@router.get("/{exam_id}", summary="Get Exam")
async def get_exam(
    exam_id: int = Path(...),
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_db),
):
    """Admins receive answer keys; candidates get the question-only view."""
    exam = await exam_service.get_exam_for(session, identity, exam_id)
    if identity.is_admin:
        return ExamResponse.model_validate(exam)
    return CandidateExamView.model_validate(exam)


@router.post(
    "/{exam_id}/assign",
    response_model=list[CandidateExamResponse],
    summary="Assign Exam",
    description="Assign to qualified candidates. Re-assigning returns the existing live attempt.",
)
async def assign_exam(
    request: ExamAssignRequest,
    exam_id: int = Path(...),
    admin: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
):
    return await exam_service.assign_exam(session, admin, exam_id, request.candidate_ids)
