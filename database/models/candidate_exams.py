from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    Integer,
    Boolean,
    DateTime,
    ForeignKey,
    JSON,
    UniqueConstraint,
    func,
    Enum as SQLEnum,
)
from database.engine import Base
from database.types import BigIntPK, FlagListType
from evaluation.clock import utcnow
from evaluation.types import AttemptStatus, ProctoringFlag
from datetime import datetime

# live_slot holds this value while an attempt is pending or in progress and
# NULL once it completes. NULLs never collide in a unique constraint, so any
# number of completed attempts can coexist with at most one live one.
LIVE_SLOT = 1


class CandidateExam(Base):
    """One candidate's attempt at one exam."""

    __tablename__ = "candidate_exams"
    __table_args__ = (
        UniqueConstraint(
            "candidate_id", "exam_id", "live_slot", name="uq_candidate_exams_live_attempt"
        ),
    )

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    candidate_id: Mapped[int] = mapped_column(
        BigIntPK, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    exam_id: Mapped[int] = mapped_column(
        BigIntPK, ForeignKey("exams.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    # Lifecycle
    status: Mapped[AttemptStatus] = mapped_column(
        SQLEnum(
            AttemptStatus,
            native_enum=False,
            length=20,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=AttemptStatus.PENDING,
        index=True,
    )
    live_slot: Mapped[int | None] = mapped_column(Integer, default=LIVE_SLOT)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Outcome, set only on completion
    answers: Mapped[dict | None] = mapped_column(JSON)
    score: Mapped[int | None] = mapped_column(Integer)  # 0-100
    passed: Mapped[bool | None] = mapped_column(Boolean)
    pending_review: Mapped[list | None] = mapped_column(JSON)  # open-ended question ids

    # Proctoring
    flagged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    flags: Mapped[list[ProctoringFlag]] = mapped_column(
        FlagListType, nullable=False, default=list
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __mapper_args__ = {"version_id_col": version}
