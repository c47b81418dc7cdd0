from database.models.users import User, UserRole
from database.models.job_roles import JobRole
from database.models.resumes import Resume, ResumeFileType
from database.models.exams import Exam
from database.models.candidate_exams import CandidateExam, LIVE_SLOT
from database.models.activities import Activity

__all__ = [
    "User",
    "UserRole",
    "JobRole",
    "Resume",
    "ResumeFileType",
    "Exam",
    "CandidateExam",
    "LIVE_SLOT",
    "Activity",
]
