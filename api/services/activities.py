"""Activity log service functions."""

from typing import Any, Optional
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database.models.activities import Activity

logger = logging.getLogger(__name__)


def log_activity(
    session: AsyncSession,
    user_id: Optional[int],
    action: str,
    details: Optional[dict[str, Any]] = None,
) -> Activity:
    """Stage an activity row; it is written with the caller's commit."""
    activity = Activity(user_id=user_id, action=action, details=details or {})
    session.add(activity)
    logger.debug("Activity %s by user %s: %s", action, user_id, details)
    return activity


async def list_recent_activities(session: AsyncSession, limit: int = 10) -> list[Activity]:
    result = await session.execute(
        select(Activity).order_by(Activity.created_at.desc(), Activity.id.desc()).limit(limit)
    )
    return list(result.scalars().all())
