"""
Tests for Identifier Endpoints
"""

from uuid import uuid4

import pytest
from httpx import AsyncClient


class TestGenerateIdentifier:
    """Tests for POST /api/v1/tenants/{tenant_id}/identifiers"""

    @pytest.mark.asyncio
    async def test_generate_admission_number(self, client: AsyncClient, test_tenant):
        response = await client.post(
            f"/api/v1/tenants/{test_tenant.id}/identifiers",
            json={"academic_year": 2025, "branch_code": "KB"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["identifier"] == "KB-ADM-2025-001"
        assert data["kind"] == "ADMISSION"
        assert data["scope_key"] == "ADM:2025"

    @pytest.mark.asyncio
    async def test_generate_staff_number(self, client: AsyncClient, test_tenant):
        response = await client.post(f"/api/v1/tenants/{test_tenant.id}/identifiers", json={"kind": "STAFF"})

        assert response.status_code == 201
        assert response.json()["identifier"] == "STF-0001"

    @pytest.mark.asyncio
    async def test_admission_without_year(self, client: AsyncClient, test_tenant):
        response = await client.post(
            f"/api/v1/tenants/{test_tenant.id}/identifiers",
            json={"branch_code": "KB"},
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_tenant(self, client: AsyncClient):
        response = await client.post(
            f"/api/v1/tenants/{uuid4()}/identifiers",
            json={"academic_year": 2025, "branch_code": "KB"},
        )

        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

    @pytest.mark.asyncio
    async def test_missing_branch_for_prefixed_format(self, client: AsyncClient, test_tenant):
        response = await client.post(
            f"/api/v1/tenants/{test_tenant.id}/identifiers",
            json={"academic_year": 2025},
        )

        assert response.status_code == 422
        assert response.json()["error"] == "InvalidConfiguration"


class TestPreviewAndReset:
    @pytest.mark.asyncio
    async def test_preview(self, client: AsyncClient, test_tenant):
        url = f"/api/v1/tenants/{test_tenant.id}/identifiers/preview"
        params = {"academic_year": 2025, "branch_code": "NRB"}

        before = await client.get(url, params=params)
        assert before.status_code == 200
        assert before.json()["next_identifier"] is None

        await client.post(
            f"/api/v1/tenants/{test_tenant.id}/identifiers",
            json={"academic_year": 2025, "branch_code": "KB"},
        )

        after = await client.get(url, params=params)
        assert after.json()["next_identifier"] == "NRB-ADM-2025-002"

    @pytest.mark.asyncio
    async def test_preview_branches(self, client: AsyncClient, test_tenant):
        response = await client.get(
            f"/api/v1/tenants/{test_tenant.id}/identifiers/preview/branches",
            params={"academic_year": 2025},
        )

        assert response.status_code == 200
        assert [b["branch_code"] for b in response.json()] == ["KB", "NRB"]

    @pytest.mark.asyncio
    async def test_reset(self, client: AsyncClient, test_tenant):
        for _ in range(3):
            await client.post(f"/api/v1/tenants/{test_tenant.id}/identifiers", json={"kind": "STAFF"})

        response = await client.post(
            f"/api/v1/tenants/{test_tenant.id}/sequences/reset",
            json={"kind": "STAFF", "value": 0, "actor": "admin@test.com"},
        )

        assert response.status_code == 200
        assert response.json() == {"scope_key": "STF", "previous_value": 3, "new_value": 0}

        again = await client.post(f"/api/v1/tenants/{test_tenant.id}/identifiers", json={"kind": "STAFF"})
        assert again.json()["identifier"] == "STF-0001"

    @pytest.mark.asyncio
    async def test_reset_requires_actor(self, client: AsyncClient, test_tenant):
        response = await client.post(
            f"/api/v1/tenants/{test_tenant.id}/sequences/reset",
            json={"kind": "STAFF"},
        )

        assert response.status_code == 422


class TestParseIdentifier:
    @pytest.mark.asyncio
    async def test_parse(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/identifiers/parse",
            json={"identifier": "ADM/KB/2025/042", "format_type": "PREFIX_MIDDLE", "separator": "/"},
        )

        assert response.status_code == 200
        assert response.json() == {"sequence": 42, "year": 2025, "prefix": "KB"}

    @pytest.mark.asyncio
    async def test_parse_malformed(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/identifiers/parse",
            json={"identifier": "KB-ADM-25-1", "format_type": "PREFIX_START"},
        )

        assert response.status_code == 422
        assert response.json()["error"] == "MalformedIdentifier"
