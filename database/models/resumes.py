from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Integer,
    Boolean,
    DateTime,
    ForeignKey,
    JSON,
    func,
    Enum as SQLEnum,
)
from database.engine import Base
from database.types import BigIntPK
from evaluation.clock import utcnow
from datetime import datetime
from enum import Enum as PyEnum


class ResumeFileType(str, PyEnum):
    PDF = "pdf"
    DOC = "doc"
    DOCX = "docx"


class Resume(Base):
    """
    A candidate's application to one job role.

    parsed_data, score, reasons and qualified stay NULL until the evaluation
    pipeline has run; only the pipeline and the admin override write them.
    """

    __tablename__ = "resumes"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    candidate_id: Mapped[int] = mapped_column(
        BigIntPK, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    job_role_id: Mapped[int] = mapped_column(
        BigIntPK, ForeignKey("job_roles.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    # Document
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_ref: Mapped[str] = mapped_column(String(512), nullable=False)
    file_type: Mapped[ResumeFileType] = mapped_column(
        SQLEnum(
            ResumeFileType,
            native_enum=False,
            length=10,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )

    # Pipeline output
    parsed_data: Mapped[dict | None] = mapped_column(JSON)
    score: Mapped[int | None] = mapped_column(Integer)  # 0-100
    reasons: Mapped[list | None] = mapped_column(JSON)
    qualified: Mapped[bool | None] = mapped_column(Boolean)
    evaluated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
