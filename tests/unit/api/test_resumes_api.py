"""Tests for resume upload, evaluation and qualification endpoints."""

import pytest
from sqlalchemy import func, select

from core.middleware.error_handling import PARSE_FAILURE_MESSAGE
from database.models import Activity, Resume
from tests.conftest import auth_headers

BASE = "/api/v1/resumes"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


async def upload(client, seed, data, filename="jane_doe.docx", content_type=DOCX_MIME, user_id=None):
    return await client.post(
        f"{BASE}/upload",
        data={"job_role_id": str(seed.job_role_id)},
        files={"file": (filename, data, content_type)},
        headers=auth_headers(user_id or seed.candidate_id),
    )


class TestUpload:
    @pytest.mark.asyncio
    async def test_upload_scores_and_gates(self, client, seed, resume_docx, store):
        response = await upload(client, seed, resume_docx)

        assert response.status_code == 201
        body = response.json()
        assert body["score"] == 61
        assert body["qualified"] is True
        assert body["file_type"] == "docx"
        assert body["file_name"] == "jane_doe.docx"
        assert body["parsed_data"]["email"] == "jane.doe@example.com"
        assert "missing skill: SQL" in body["reasons"]
        assert body["evaluated_at"] is not None

    @pytest.mark.asyncio
    async def test_duplicate_application(self, client, seed, resume_docx):
        await upload(client, seed, resume_docx)
        response = await upload(client, seed, resume_docx)

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "DUPLICATE_APPLICATION"

    @pytest.mark.asyncio
    async def test_unsupported_file_type(self, client, seed, session):
        response = await upload(client, seed, b"plain text resume", "resume.txt", "text/plain")

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "PARSE_FAILURE"
        assert error["message"] == PARSE_FAILURE_MESSAGE
        assert await session.scalar(select(func.count(Resume.id))) == 0

    @pytest.mark.asyncio
    async def test_corrupt_document_persists_nothing(self, client, seed, session, store):
        response = await upload(client, seed, b"not really a docx")

        assert response.status_code == 422
        assert response.json()["error"]["message"] == PARSE_FAILURE_MESSAGE
        assert await session.scalar(select(func.count(Resume.id))) == 0
        assert not list(store.base_path.rglob("*.docx"))

    @pytest.mark.asyncio
    async def test_unknown_job_role(self, client, seed, resume_docx):
        response = await client.post(
            f"{BASE}/upload",
            data={"job_role_id": "999"},
            files={"file": ("cv.docx", resume_docx, DOCX_MIME)},
            headers=auth_headers(seed.candidate_id),
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_admin_cannot_upload(self, client, seed, resume_docx):
        response = await client.post(
            f"{BASE}/upload",
            data={"job_role_id": str(seed.job_role_id)},
            files={"file": ("cv.docx", resume_docx, DOCX_MIME)},
            headers=auth_headers(seed.admin_id, "admin"),
        )
        assert response.status_code == 403


class TestResumeAccess:
    @pytest.mark.asyncio
    async def test_candidates_only_see_their_own(self, client, seed, resume_docx):
        resume_id = (await upload(client, seed, resume_docx)).json()["id"]

        own = await client.get(f"{BASE}/{resume_id}", headers=auth_headers(seed.candidate_id))
        other = await client.get(f"{BASE}/{resume_id}", headers=auth_headers(seed.other_id))

        assert own.status_code == 200
        assert other.status_code == 404

        listing = await client.get(BASE, headers=auth_headers(seed.other_id))
        assert listing.json()["total"] == 0

    @pytest.mark.asyncio
    async def test_admin_list_filters(self, client, seed, resume_docx):
        await upload(client, seed, resume_docx)
        headers = auth_headers(seed.admin_id, "admin")

        qualified = await client.get(BASE, params={"qualified": "true"}, headers=headers)
        unqualified = await client.get(BASE, params={"qualified": "false"}, headers=headers)

        assert qualified.json()["total"] == 1
        assert unqualified.json()["total"] == 0


class TestEvaluateAndQualify:
    @pytest.mark.asyncio
    async def test_re_evaluate(self, client, seed, resume_docx):
        resume_id = (await upload(client, seed, resume_docx)).json()["id"]

        response = await client.post(
            f"{BASE}/{resume_id}/evaluate", headers=auth_headers(seed.admin_id, "admin")
        )

        assert response.status_code == 200
        assert response.json()["score"] == 61

    @pytest.mark.asyncio
    async def test_override_qualification(self, client, seed, resume_docx, session):
        resume_id = (await upload(client, seed, resume_docx)).json()["id"]

        response = await client.post(
            f"{BASE}/{resume_id}/qualify",
            json={"qualified": False, "note": "Needs more SQL"},
            headers=auth_headers(seed.admin_id, "admin"),
        )

        assert response.status_code == 200
        assert response.json()["qualified"] is False
        assert response.json()["score"] == 61

        actions = (await session.execute(select(Activity.action).order_by(Activity.id))).scalars().all()
        assert actions[-1] == "resume_qualification_overridden"

    @pytest.mark.asyncio
    async def test_candidate_cannot_qualify(self, client, seed, resume_docx):
        resume_id = (await upload(client, seed, resume_docx)).json()["id"]

        response = await client.post(
            f"{BASE}/{resume_id}/qualify",
            json={"qualified": True},
            headers=auth_headers(seed.candidate_id),
        )
        assert response.status_code == 403


class TestApplicationStatus:
    @pytest.mark.asyncio
    async def test_before_applying(self, client, seed):
        response = await client.get(
            f"{BASE}/application-status",
            params={"job_role_id": seed.job_role_id},
            headers=auth_headers(seed.candidate_id),
        )

        assert response.status_code == 200
        assert response.json()["applied"] is False
        assert response.json()["exam_status"] is None

    @pytest.mark.asyncio
    async def test_after_applying(self, client, seed, resume_docx):
        await upload(client, seed, resume_docx)

        response = await client.get(
            f"{BASE}/application-status",
            params={"job_role_id": seed.job_role_id},
            headers=auth_headers(seed.candidate_id),
        )
        body = response.json()
        assert body["applied"] is True
        assert body["score"] == 61
        assert body["qualified"] is True

    @pytest.mark.asyncio
    async def test_admin_can_query_any_candidate(self, client, seed, resume_docx):
        await upload(client, seed, resume_docx)

        response = await client.get(
            f"{BASE}/application-status",
            params={"job_role_id": seed.job_role_id, "candidate_id": seed.candidate_id},
            headers=auth_headers(seed.admin_id, "admin"),
        )
        assert response.json()["applied"] is True
