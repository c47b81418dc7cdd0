"""Tests for exam generation, viewing and assignment endpoints."""

import pytest

from tests.conftest import add_qualified_resume, auth_headers

BASE = "/api/v1/exams"


class TestGenerate:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [10, 15])
    async def test_generate_from_question_bank(self, client, seed, count):
        response = await client.post(
            f"{BASE}/generate",
            json={"job_role_id": seed.job_role_id, "question_count": count, "seed": 3},
            headers=auth_headers(seed.admin_id, "admin"),
        )

        assert response.status_code == 201
        body = response.json()
        assert len(body["questions"]) == count
        assert body["pass_mark"] == 70
        assert body["time_limit_minutes"] == 45
        assert body["title"] == "Backend Engineer Assessment"
        choices = [q for q in body["questions"] if q["type"] == "multiple_choice"]
        assert all(q["correct_answer"] in q["options"] for q in choices)

    @pytest.mark.asyncio
    async def test_unsupported_question_count(self, client, seed):
        response = await client.post(
            f"{BASE}/generate",
            json={"job_role_id": seed.job_role_id, "question_count": 12},
            headers=auth_headers(seed.admin_id, "admin"),
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_no_question_types(self, client, seed):
        response = await client.post(
            f"{BASE}/generate",
            json={
                "job_role_id": seed.job_role_id,
                "include_multiple_choice": False,
                "include_open_ended": False,
            },
            headers=auth_headers(seed.admin_id, "admin"),
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_candidate_cannot_generate(self, client, seed):
        response = await client.post(
            f"{BASE}/generate",
            json={"job_role_id": seed.job_role_id},
            headers=auth_headers(seed.candidate_id),
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_role(self, client, seed):
        response = await client.post(
            f"{BASE}/generate",
            json={"job_role_id": 999},
            headers=auth_headers(seed.admin_id, "admin"),
        )
        assert response.status_code == 404


class TestViewExam:
    @pytest.mark.asyncio
    async def test_admin_sees_answer_keys(self, client, seed):
        response = await client.get(
            f"{BASE}/{seed.exam_id}", headers=auth_headers(seed.admin_id, "admin")
        )

        questions = response.json()["questions"]
        assert questions[0]["correct_answer"] == "def"

    @pytest.mark.asyncio
    async def test_unassigned_candidate(self, client, seed):
        response = await client.get(f"{BASE}/{seed.exam_id}", headers=auth_headers(seed.candidate_id))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_assigned_candidate_sees_no_answers(self, client, seed, session):
        await add_qualified_resume(session, seed.candidate_id, seed.job_role_id)
        await client.post(
            f"{BASE}/{seed.exam_id}/assign",
            json={"candidate_ids": [seed.candidate_id]},
            headers=auth_headers(seed.admin_id, "admin"),
        )

        response = await client.get(f"{BASE}/{seed.exam_id}", headers=auth_headers(seed.candidate_id))

        assert response.status_code == 200
        questions = response.json()["questions"]
        assert len(questions) == 3
        assert all("correct_answer" not in q for q in questions)
        assert questions[0]["options"] == ["func", "def", "lambda", "fn"]

    @pytest.mark.asyncio
    async def test_list_is_admin_only(self, client, seed):
        admin = await client.get(BASE, headers=auth_headers(seed.admin_id, "admin"))
        candidate = await client.get(BASE, headers=auth_headers(seed.candidate_id))

        assert admin.json()["total"] == 1
        assert candidate.status_code == 403


class TestAssign:
    @pytest.mark.asyncio
    async def test_unqualified_candidate(self, client, seed):
        response = await client.post(
            f"{BASE}/{seed.exam_id}/assign",
            json={"candidate_ids": [seed.candidate_id]},
            headers=auth_headers(seed.admin_id, "admin"),
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_TRANSITION"

    @pytest.mark.asyncio
    async def test_below_threshold_is_not_qualified(self, client, seed, session):
        await add_qualified_resume(session, seed.candidate_id, seed.job_role_id, score=59)

        response = await client.post(
            f"{BASE}/{seed.exam_id}/assign",
            json={"candidate_ids": [seed.candidate_id]},
            headers=auth_headers(seed.admin_id, "admin"),
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_assign_is_idempotent(self, client, seed, session):
        await add_qualified_resume(session, seed.candidate_id, seed.job_role_id)
        headers = auth_headers(seed.admin_id, "admin")
        payload = {"candidate_ids": [seed.candidate_id, seed.candidate_id]}

        first = await client.post(f"{BASE}/{seed.exam_id}/assign", json=payload, headers=headers)
        second = await client.post(f"{BASE}/{seed.exam_id}/assign", json=payload, headers=headers)

        assert first.status_code == 200
        assert len(first.json()) == 1
        assert first.json()[0]["status"] == "pending"
        assert first.json()[0]["id"] == second.json()[0]["id"]

    @pytest.mark.asyncio
    async def test_empty_candidate_list(self, client, seed):
        response = await client.post(
            f"{BASE}/{seed.exam_id}/assign",
            json={"candidate_ids": []},
            headers=auth_headers(seed.admin_id, "admin"),
        )
        assert response.status_code == 422
