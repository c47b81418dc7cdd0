"""Tests for job role endpoints and identity handling."""

import pytest

from tests.conftest import auth_headers

BASE = "/api/v1/job-roles"

ROLE_PAYLOAD = {
    "title": "Data Analyst",
    "description": "Reporting and dashboards.",
    "responsibilities": "Build weekly reports.",
    "requirements": "2 years of experience with SQL.",
    "key_skills": ["SQL", " sql ", "Tableau", ""],
    "location": "Remote",
}


class TestIdentity:
    """Identity headers are required and roles are enforced."""

    @pytest.mark.asyncio
    async def test_missing_headers(self, client, seed):
        response = await client.get(BASE)

        assert response.status_code == 401
        error = response.json()["error"]
        assert error["code"] == "HTTP_EXCEPTION"
        assert error["path"] == BASE
        assert error["method"] == "GET"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("headers", [
        {"X-User-Id": "abc", "X-User-Role": "admin"},
        {"X-User-Id": "1", "X-User-Role": "superuser"},
    ])
    async def test_invalid_headers(self, client, seed, headers):
        response = await client.get(BASE, headers=headers)
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_candidate_cannot_create(self, client, seed):
        response = await client.post(BASE, json=ROLE_PAYLOAD, headers=auth_headers(seed.candidate_id))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, client, seed):
        response = await client.get(f"{BASE}/999", headers={
            **auth_headers(seed.admin_id, "admin"),
            "X-Request-ID": "req-123",
        })
        assert response.json()["error"]["request_id"] == "req-123"


class TestJobRoleCrud:
    @pytest.mark.asyncio
    async def test_create(self, client, seed):
        response = await client.post(
            BASE, json=ROLE_PAYLOAD, headers=auth_headers(seed.admin_id, "admin")
        )

        assert response.status_code == 201
        body = response.json()
        assert body["title"] == "Data Analyst"
        assert body["key_skills"] == ["SQL", "Tableau"]
        assert body["admin_id"] == seed.admin_id

    @pytest.mark.asyncio
    async def test_create_requires_title(self, client, seed):
        response = await client.post(
            BASE, json={"title": ""}, headers=auth_headers(seed.admin_id, "admin")
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_list_and_get(self, client, seed):
        response = await client.get(BASE, headers=auth_headers(seed.candidate_id))

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["items"][0]["title"] == "Backend Engineer"

        single = await client.get(f"{BASE}/{seed.job_role_id}", headers=auth_headers(seed.candidate_id))
        assert single.json()["key_skills"] == ["SQL", "Python"]

    @pytest.mark.asyncio
    async def test_get_missing(self, client, seed):
        response = await client.get(f"{BASE}/999", headers=auth_headers(seed.candidate_id))

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_update(self, client, seed):
        response = await client.patch(
            f"{BASE}/{seed.job_role_id}",
            json={"location": None, "key_skills": ["Python", "Go"]},
            headers=auth_headers(seed.admin_id, "admin"),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["location"] is None
        assert body["key_skills"] == ["Python", "Go"]
        assert body["title"] == "Backend Engineer"

    @pytest.mark.asyncio
    async def test_update_by_other_admin(self, client, seed):
        response = await client.patch(
            f"{BASE}/{seed.job_role_id}",
            json={"title": "Hijacked"},
            headers=auth_headers(seed.admin_id + 100, "admin"),
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "PERMISSION_DENIED"

    @pytest.mark.asyncio
    async def test_delete_referenced_role(self, client, seed):
        response = await client.delete(
            f"{BASE}/{seed.job_role_id}", headers=auth_headers(seed.admin_id, "admin")
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "RECORD_IN_USE"

    @pytest.mark.asyncio
    async def test_delete_unused_role(self, client, seed):
        headers = auth_headers(seed.admin_id, "admin")
        created = await client.post(BASE, json=ROLE_PAYLOAD, headers=headers)
        role_id = created.json()["id"]

        response = await client.delete(f"{BASE}/{role_id}", headers=headers)
        assert response.status_code == 204

        missing = await client.get(f"{BASE}/{role_id}", headers=headers)
        assert missing.status_code == 404
