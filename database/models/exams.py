from sqlalchemy.orm import Mapped, mapped_column, validates
from sqlalchemy import String, Integer, DateTime, ForeignKey, CheckConstraint, func
from database.engine import Base
from database.types import BigIntPK, QuestionListType
from evaluation.clock import utcnow
from evaluation.generator import check_question_invariants
from evaluation.types import Question
from core.exceptions import InvariantViolation
from datetime import datetime
from pydantic import TypeAdapter, ValidationError

_questions_adapter = TypeAdapter(list[Question])


class Exam(Base):
    """A generated screening exam. Immutable once created."""

    __tablename__ = "exams"
    __table_args__ = (
        CheckConstraint("pass_mark >= 0 AND pass_mark <= 100", name="ck_exams_pass_mark"),
        CheckConstraint("time_limit_minutes > 0", name="ck_exams_time_limit"),
    )

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    job_role_id: Mapped[int] = mapped_column(
        BigIntPK, ForeignKey("job_roles.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    admin_id: Mapped[int] = mapped_column(
        BigIntPK, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    questions: Mapped[list[Question]] = mapped_column(QuestionListType, nullable=False)
    pass_mark: Mapped[int] = mapped_column(Integer, nullable=False)
    time_limit_minutes: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    @validates("questions")
    def validate_questions(self, key, value):
        try:
            questions = _questions_adapter.validate_python(value)
        except ValidationError as exc:
            raise InvariantViolation(f"Malformed exam questions: {exc}") from exc
        if not questions:
            raise InvariantViolation("An exam needs at least one question")
        check_question_invariants(questions)
        return questions
