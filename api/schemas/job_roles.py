"""Job role schemas."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from evaluation.scorer import unique_skills


class JobRoleBase(BaseModel):
    title: str = Field(min_length=1, max_length=255, description="Role title")
    description: str = Field(default="", description="What the role is about")
    responsibilities: str = Field(default="", description="Day to day responsibilities")
    requirements: str = Field(
        default="", description="Free text requirements, e.g. '3+ years Python, BSc degree'"
    )
    key_skills: list[str] = Field(
        default_factory=list, description="Required skills in priority order"
    )
    location: Optional[str] = Field(None, max_length=255)

    @field_validator("key_skills")
    @classmethod
    def clean_skills(cls, v: list[str]) -> list[str]:
        """Strip skills and drop blanks and case-insensitive duplicates, keeping order."""
        return unique_skills(v)


class JobRoleCreate(JobRoleBase):
    """Schema for creating a job role."""


class JobRoleUpdate(BaseModel):
    """Schema for updating a job role. Omitted fields are left unchanged."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    responsibilities: Optional[str] = None
    requirements: Optional[str] = None
    key_skills: Optional[list[str]] = None
    location: Optional[str] = Field(None, max_length=255)

    @field_validator("key_skills")
    @classmethod
    def clean_skills(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        return None if v is None else unique_skills(v)


class JobRoleResponse(JobRoleBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    admin_id: int
    created_at: datetime
    updated_at: datetime
