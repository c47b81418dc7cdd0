from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, DateTime, func, Enum as SQLEnum
from database.engine import Base
from database.types import BigIntPK
from evaluation.clock import utcnow
from datetime import datetime
from enum import Enum as PyEnum


# ==================== User Role ===================== #
class UserRole(str, PyEnum):
    ADMIN = "admin"  # posts job roles, generates and assigns exams
    CANDIDATE = "candidate"  # applies with resumes, takes exams


class User(Base):
    """
    Identity anchor for admins and candidates.

    Credentials live outside this service; rows only give foreign keys
    something to point at.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        BigIntPK, primary_key=True, nullable=False, autoincrement=True
    )
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(
            UserRole,
            native_enum=False,
            length=20,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=UserRole.CANDIDATE,
    )
    location: Mapped[str | None] = mapped_column(String(255))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
