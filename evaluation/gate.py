from typing import Optional

from core.config import settings


def is_qualified(score: int, threshold: Optional[int] = None) -> bool:
    """Return True when ``score`` reaches the qualification threshold (inclusive)."""
    if threshold is None:
        threshold = settings.qualification_threshold
    return score >= threshold
