"""Resume evaluation tasks."""

import asyncio
import logging

from celery import Task

from api.services import resumes as resume_service
from core.exceptions import StorageUnavailable
from core.storage.local import LocalDocumentStore
from workers.celery_app import celery_app
from workers.db import task_session

logger = logging.getLogger(__name__)


async def _evaluate(resume_id: int, requested_by: int | None) -> dict:
    async with task_session() as session:
        resume = await resume_service.evaluate_resume(
            session, LocalDocumentStore(), resume_id, requested_by=requested_by
        )
        return {
            "status": "success",
            "resume_id": resume.id,
            "score": resume.score,
            "qualified": resume.qualified,
        }


@celery_app.task(name="workers.tasks.resumes.evaluate_resume", bind=True, max_retries=3)
def evaluate_resume(self: Task, resume_id: int, requested_by: int | None = None) -> dict:
    """Re-run parse, score and gate for a stored resume.

    Storage outages are retried with exponential backoff. Parse failures are
    final and propagate as the task's error.
    """
    try:
        logger.info(f"Evaluating resume {resume_id}")
        return asyncio.run(_evaluate(resume_id, requested_by))
    except StorageUnavailable as exc:
        logger.warning(f"Storage unavailable for resume {resume_id}: {exc}")
        raise self.retry(exc=exc, countdown=2 ** self.request.retries)
