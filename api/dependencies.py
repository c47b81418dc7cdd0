"""FastAPI dependencies for dependency injection."""

from dataclasses import dataclass
from typing import Optional
from fastapi import Depends, Header, HTTPException, status

from agents import get_generation_backend as _configured_backend
from core.storage.local import LocalDocumentStore
from database.engine import get_db  # noqa: F401  re-exported for routes
from database.models.users import UserRole


@dataclass(frozen=True)
class Identity:
    """The caller as resolved by the upstream auth layer. Credentials never reach us."""

    id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


async def get_identity(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Identity:
    """Resolve the opaque identity forwarded in ``X-User-Id``/``X-User-Role``."""
    if not x_user_id or not x_user_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Identity headers required",
        )
    try:
        return Identity(id=int(x_user_id), role=UserRole(x_user_role.strip().lower()))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid identity headers",
        )


async def require_admin(identity: Identity = Depends(get_identity)) -> Identity:
    """Require the caller to be an admin."""
    if not identity.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return identity


async def require_candidate(identity: Identity = Depends(get_identity)) -> Identity:
    """Require the caller to be a candidate."""
    if identity.role != UserRole.CANDIDATE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Candidate access required",
        )
    return identity


def get_document_store() -> LocalDocumentStore:
    return LocalDocumentStore()


def get_generation_backend():
    return _configured_backend()
