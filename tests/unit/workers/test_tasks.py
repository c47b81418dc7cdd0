"""Tests for the Celery tasks and their configuration."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, patch

import pytest

from core.exceptions import StorageUnavailable
from evaluation.types import AttemptStatus
from tests.conftest import _create_resume_docx, make_started_attempt
from workers import celery_config
from workers.celery_app import celery_app
from workers.tasks import exams as exam_tasks
from workers.tasks import resumes as resume_tasks


def use_session(monkeypatch, module, session):
    @asynccontextmanager
    async def fake_task_session(database_url=None):
        yield session

    monkeypatch.setattr(module, "task_session", fake_task_session)


class TestCeleryConfig:
    def test_tasks_are_registered(self):
        celery_app.loader.import_default_modules()

        assert "workers.tasks.exams.expire_overdue_attempts" in celery_app.tasks
        assert "workers.tasks.resumes.evaluate_resume" in celery_app.tasks

    def test_resume_tasks_use_their_own_queue(self):
        assert celery_config.task_routes["workers.tasks.resumes.*"] == {"queue": "resume_processing"}

    def test_expiry_runs_every_minute(self):
        entry = celery_config.beat_schedule["expire-overdue-exam-attempts"]

        assert entry["task"] == exam_tasks.expire_overdue_attempts.name
        assert entry["schedule"].total_seconds() == 60


class TestExpireTask:
    @pytest.mark.asyncio
    async def test_expire_times_out_overdue_attempts(self, monkeypatch, session, seed):
        overdue = await make_started_attempt(session, seed.candidate_id, seed.exam_id, minutes_ago=31)
        overdue_id = overdue.id
        use_session(monkeypatch, exam_tasks, session)

        expired = await exam_tasks._expire()

        assert expired == [overdue_id]
        reloaded = await exam_tasks.attempts.get_attempt(session, overdue_id)
        assert reloaded.status == AttemptStatus.COMPLETED

    def test_task_result_shape(self):
        with patch.object(exam_tasks, "_expire", AsyncMock(return_value=[4, 9])):
            result = exam_tasks.expire_overdue_attempts()

        assert result == {"status": "success", "expired": [4, 9]}


class TestEvaluateResumeTask:
    @pytest.mark.asyncio
    async def test_evaluate(self, monkeypatch, session, seed, store):
        from database.models import Resume, ResumeFileType

        file_ref = await store.save(_create_resume_docx(), "cv.docx", subfolder="resumes/2")
        resume = Resume(
            candidate_id=seed.candidate_id,
            job_role_id=seed.job_role_id,
            file_name="cv.docx",
            file_ref=file_ref,
            file_type=ResumeFileType.DOCX,
        )
        session.add(resume)
        await session.commit()

        use_session(monkeypatch, resume_tasks, session)
        monkeypatch.setattr(resume_tasks, "LocalDocumentStore", lambda: store)

        result = await resume_tasks._evaluate(resume.id, seed.admin_id)

        assert result == {
            "status": "success",
            "resume_id": resume.id,
            "score": 61,
            "qualified": True,
        }

    def test_storage_outage_is_retried(self):
        outage = AsyncMock(side_effect=StorageUnavailable("disk offline"))

        # Outside a worker, retry re-raises the original error
        with patch.object(resume_tasks, "_evaluate", outage):
            with pytest.raises(StorageUnavailable):
                resume_tasks.evaluate_resume(7)

        outage.assert_called_once_with(7, None)
