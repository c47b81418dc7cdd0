"""Shared fixtures and utilities for tests."""

import os
import tempfile

# Settings are read at import time, so the test environment goes first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["GENERATION_BACKEND"] = "question_bank"
os.environ["OPEN_ENDED_GRADING"] = "manual"
os.environ["JSON_LOGS"] = "false"
os.environ.setdefault("DOCUMENT_STORAGE_PATH", tempfile.mkdtemp(prefix="screenwise-tests-"))
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")

from datetime import timedelta
from io import BytesIO
from types import SimpleNamespace

import pytest
import pytest_asyncio
from docx import Document
from docx.shared import Pt
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.pool import StaticPool

from core.storage.local import LocalDocumentStore
from database.engine import build_engine, init_db
from database.models import Exam, JobRole, Resume, ResumeFileType, User, UserRole
from evaluation.clock import utcnow
from evaluation.types import Question, QuestionType


SAMPLE_RESUME_LINES = [
    "Jane Doe",
    "jane.doe@example.com | +1 650 253 0000",
    "Location: San Francisco, CA",
    "Summary",
    "Backend engineer with 6 years of experience building data services.",
    "Experience",
    "Senior Engineer, Acme Corp, Jan 2019 - Present",
    "- Built Python services on PostgreSQL",
    "Engineer, Widgets Inc, 2016 - 2018",
    "Education",
    "B.Sc. Computer Science, State University, 2015",
    "Skills",
    "Python, Django, Docker",
]


def _create_minimal_pdf(text: str) -> bytes:
    """Create a minimal valid PDF with embedded text."""
    pdf = (
        b"%PDF-1.4\n"
        b"1 0 obj<</Type/Catalog/Pages 2 0 R>>endobj\n"
        b"2 0 obj<</Type/Pages/Kids[3 0 R]/Count 1>>endobj\n"
        b"3 0 obj<</Type/Page/Parent 2 0 R/MediaBox[0 0 612 792]/Contents 4 0 R/Resources<</Font<</F1 5 0 R>>>>>>endobj\n"
        b"4 0 obj<</Length 44>>stream\nBT /F1 12 Tf 100 700 Td ("
        + text.encode()
        + b") Tj ET\nendstream endobj\n"
        b"5 0 obj<</Type/Font/Subtype/Type1/BaseFont/Helvetica>>endobj\n"
        b"xref\n0 6\n0000000000 65535 f \n0000000009 00000 n \n0000000058 00000 n \n0000000115 00000 n \n0000000214 00000 n \n0000000306 00000 n \n"
        b"trailer<</Size 6/Root 1 0 R>>\nstartxref\n388\n%%EOF"
    )
    return pdf


def _create_test_docx(
    para_text: str, cell_text: str = "", paragraphs_only: bool = True
) -> BytesIO:
    """Create a simple DOCX document for testing."""
    stream = BytesIO()
    doc = Document()

    para1 = doc.add_paragraph(para_text)
    para1.runs[0].font.size = Pt(12)

    if cell_text and paragraphs_only:
        para2 = doc.add_paragraph(cell_text)
        para2.runs[0].font.size = Pt(12)

    if not paragraphs_only:
        table = doc.add_table(rows=1, cols=1)
        cell = table.rows[0].cells[0]
        cell.text = cell_text or "Table Cell"

    doc.save(stream)
    stream.seek(0)
    return stream


def _create_resume_docx(lines: list[str] = SAMPLE_RESUME_LINES) -> bytes:
    """DOCX resume with one paragraph per line."""
    stream = BytesIO()
    doc = Document()
    for line in lines:
        doc.add_paragraph(line)
    doc.save(stream)
    return stream.getvalue()


def make_questions() -> list[Question]:
    """Two multiple choice questions and one open-ended question."""
    return [
        Question(
            id="q1",
            text="Which keyword defines a function in Python?",
            type=QuestionType.MULTIPLE_CHOICE,
            options=["func", "def", "lambda", "fn"],
            correct_answer="def",
        ),
        Question(
            id="q2",
            text="Which SQL clause filters grouped rows?",
            type=QuestionType.MULTIPLE_CHOICE,
            options=["WHERE", "HAVING", "ORDER BY", "LIMIT"],
            correct_answer="HAVING",
        ),
        Question(
            id="q3",
            text="Describe how you would profile a slow query.",
            type=QuestionType.OPEN_ENDED,
            correct_answer="explain plan, indexes, query statistics",
        ),
    ]


@pytest.fixture
def minimal_pdf():
    """Fixture providing a minimal valid PDF."""
    return _create_minimal_pdf("Test PDF")


@pytest.fixture
def simple_docx():
    """Fixture providing a simple DOCX document."""
    return _create_test_docx("Test paragraph", "Test cell", paragraphs_only=False)


@pytest.fixture
def resume_docx() -> bytes:
    return _create_resume_docx()


@pytest.fixture
def store(tmp_path):
    return LocalDocumentStore(base_path=str(tmp_path / "documents"), timeout=5)


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test; StaticPool keeps the one connection alive."""
    test_engine = build_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as db_session:
        yield db_session


async def seed_records(session) -> SimpleNamespace:
    """Admin, two candidates, a Python/SQL role and a three-question exam."""
    admin = User(email="admin@example.com", name="Ada Admin", role=UserRole.ADMIN)
    candidate = User(email="cand@example.com", name="Carl Candidate", role=UserRole.CANDIDATE)
    other = User(email="other@example.com", name="Olga Other", role=UserRole.CANDIDATE)
    session.add_all([admin, candidate, other])
    await session.flush()

    job_role = JobRole(
        admin_id=admin.id,
        title="Backend Engineer",
        description="Build and run data services.",
        responsibilities="Design REST APIs. Maintain PostgreSQL schemas.",
        requirements="3+ years of experience with Python and SQL.",
        key_skills=["SQL", "Python"],
        location="San Francisco",
    )
    session.add(job_role)
    await session.flush()

    exam = Exam(
        title="Backend Engineer Assessment",
        job_role_id=job_role.id,
        admin_id=admin.id,
        questions=make_questions(),
        pass_mark=50,
        time_limit_minutes=30,
    )
    session.add(exam)
    await session.commit()

    # Plain ids: ORM objects expire whenever a rejected transition rolls back
    return SimpleNamespace(
        admin_id=admin.id,
        candidate_id=candidate.id,
        other_id=other.id,
        job_role_id=job_role.id,
        exam_id=exam.id,
    )


@pytest_asyncio.fixture
async def seed(session):
    return await seed_records(session)


async def add_qualified_resume(session, candidate_id: int, job_role_id: int, score: int = 80):
    resume = Resume(
        candidate_id=candidate_id,
        job_role_id=job_role_id,
        file_name="resume.docx",
        file_ref=f"resumes/{candidate_id}/resume.docx",
        file_type=ResumeFileType.DOCX,
        parsed_data={},
        score=score,
        reasons=[],
        qualified=score >= 60,
        evaluated_at=utcnow(),
    )
    session.add(resume)
    await session.commit()
    return resume


async def make_started_attempt(session, candidate_id: int, exam_id: int, minutes_ago: int = 0):
    """Attempt already in progress, started ``minutes_ago`` minutes back."""
    from evaluation import session as attempts

    attempt = await attempts.assign(session, candidate_id, exam_id)
    return await attempts.start(
        session, attempt.id, now=utcnow() - timedelta(minutes=minutes_ago)
    )


def auth_headers(user_id: int, role: str = "candidate") -> dict:
    """Identity headers as forwarded by the upstream auth layer."""
    return {"X-User-Id": str(user_id), "X-User-Role": role}


@pytest_asyncio.fixture
async def client(session_factory, store):
    """HTTP client bound to the app, the test database and the temp document store."""
    from httpx import ASGITransport, AsyncClient

    from api.dependencies import get_document_store
    from api.main import app
    from database.engine import get_db

    async def override_get_db():
        async with session_factory() as db_session:
            yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_document_store] = lambda: store
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()
