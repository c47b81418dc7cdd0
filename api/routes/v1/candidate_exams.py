"""
Exam attempt endpoints.

A candidate starts an assigned attempt, reports proctoring flags while it
runs, and submits answers. Illegal transitions return 409.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import Identity, get_db, get_identity, require_candidate
from api.schemas.candidate_exams import (
    CandidateExamDetail,
    CandidateExamResponse,
    FlagRequest,
    SubmitRequest,
)
from api.schemas.common import ERROR_RESPONSES, PaginatedResponse, PaginationParams
from api.schemas.exams import CandidateExamView
from api.services import candidate_exams as attempt_service
from evaluation.types import AttemptStatus

router = APIRouter(prefix="/candidate-exams", tags=["candidate-exams"], responses=ERROR_RESPONSES)


@router.get("", response_model=PaginatedResponse[CandidateExamResponse], summary="List Attempts")
async def list_candidate_exams(
    exam_id: Optional[int] = Query(None),
    status: Optional[AttemptStatus] = Query(None),
    flagged: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_db),
):
    pagination = PaginationParams(page=page, page_size=page_size)
    items, total = await attempt_service.list_candidate_exams(
        session, identity, pagination, exam_id=exam_id, status=status, flagged=flagged
    )
    return PaginatedResponse.create(
        [CandidateExamResponse.model_validate(item) for item in items], total, pagination
    )


@router.get("/{attempt_id}", response_model=CandidateExamDetail, summary="Get Attempt")
async def get_candidate_exam(
    attempt_id: int = Path(...),
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_db),
):
    """The attempt with its questions (no answer keys) and deadline."""
    detail = await attempt_service.get_candidate_exam_detail(session, identity, attempt_id)
    attempt = CandidateExamResponse.model_validate(detail["attempt"])
    return CandidateExamDetail(
        **attempt.model_dump(),
        exam=CandidateExamView.model_validate(detail["exam"]),
        deadline=detail["deadline"],
    )


@router.post("/{attempt_id}/start", response_model=CandidateExamResponse, summary="Start Attempt")
async def start_candidate_exam(
    attempt_id: int = Path(...),
    candidate: Identity = Depends(require_candidate),
    session: AsyncSession = Depends(get_db),
):
    return await attempt_service.start_candidate_exam(session, candidate, attempt_id)


@router.post(
    "/{attempt_id}/flags",
    response_model=CandidateExamResponse,
    summary="Record Proctoring Flag",
)
async def record_flag(
    request: FlagRequest,
    attempt_id: int = Path(...),
    candidate: Identity = Depends(require_candidate),
    session: AsyncSession = Depends(get_db),
):
    return await attempt_service.record_candidate_flag(session, candidate, attempt_id, request)


@router.post(
    "/{attempt_id}/submit",
    response_model=CandidateExamResponse,
    summary="Submit Answers",
)
async def submit_candidate_exam(
    request: SubmitRequest,
    attempt_id: int = Path(...),
    candidate: Identity = Depends(require_candidate),
    session: AsyncSession = Depends(get_db),
):
    return await attempt_service.submit_candidate_exam(
        session, candidate, attempt_id, request.answers
    )
