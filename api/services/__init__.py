"""
API Services Layer.

Database operations behind the API endpoints. Every function takes the
request's AsyncSession; pipeline logic lives in ``evaluation``.
"""

from api.services import (
    activities,
    candidate_exams,
    dashboard,
    exams,
    job_roles,
    resumes,
)

__all__ = [
    "activities",
    "candidate_exams",
    "dashboard",
    "exams",
    "job_roles",
    "resumes",
]
