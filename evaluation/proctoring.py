"""Proctoring flag policy: de-duplication and the flagged verdict."""

from collections import Counter
from typing import Iterable, Optional, Sequence

from core.config import settings
from evaluation.clock import as_utc
from evaluation.types import FlagType, ProctoringFlag


class ProctoringPolicy:
    """Decides which flags are recorded and when an attempt counts as flagged.

    An attempt is flagged as soon as any severe flag type is recorded, or
    when one flag type recurs ``recurrence_threshold`` times. A flag of the
    same type arriving within ``dedup_window_seconds`` of the previous one
    is treated as the same event.
    """

    def __init__(
        self,
        severe_types: Optional[Iterable[str]] = None,
        recurrence_threshold: Optional[int] = None,
        dedup_window_seconds: Optional[float] = None,
    ):
        if severe_types is None:
            severe_types = settings.proctoring_severe_flags
        self.severe_types = frozenset(FlagType(t) for t in severe_types)
        self.recurrence_threshold = recurrence_threshold or settings.proctoring_recurrence_threshold
        self.dedup_window_seconds = (
            settings.proctoring_dedup_window_seconds
            if dedup_window_seconds is None
            else dedup_window_seconds
        )

    def is_duplicate(self, flags: Sequence[ProctoringFlag], flag: ProctoringFlag) -> bool:
        for previous in reversed(flags):
            if previous.type == flag.type:
                gap = abs((as_utc(flag.timestamp) - as_utc(previous.timestamp)).total_seconds())
                return gap < self.dedup_window_seconds
        return False

    def is_flagged(self, flags: Sequence[ProctoringFlag]) -> bool:
        if any(flag.type in self.severe_types for flag in flags):
            return True
        counts = Counter(flag.type for flag in flags)
        return any(count >= self.recurrence_threshold for count in counts.values())

    def apply(
        self, flags: Sequence[ProctoringFlag], flag: ProctoringFlag
    ) -> tuple[list[ProctoringFlag], bool]:
        """Return the updated flag list and the flagged verdict."""
        updated = list(flags)
        if not self.is_duplicate(updated, flag):
            updated.append(flag)
        return updated, self.is_flagged(updated)
