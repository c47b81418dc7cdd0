"""Exam attempt maintenance tasks."""

import asyncio
import logging

from evaluation import session as attempts
from workers.celery_app import celery_app
from workers.db import task_session

logger = logging.getLogger(__name__)


async def _expire() -> list[int]:
    async with task_session() as session:
        return await attempts.expire_overdue_attempts(session)


@celery_app.task(name="workers.tasks.exams.expire_overdue_attempts")
def expire_overdue_attempts() -> dict:
    """Complete in-progress attempts whose time limit has elapsed."""
    expired = asyncio.run(_expire())
    if expired:
        logger.info(f"Timed out {len(expired)} exam attempts: {expired}")
    return {"status": "success", "expired": expired}
