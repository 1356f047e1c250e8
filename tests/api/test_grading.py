"""
Tests for Grading Endpoints
"""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from school_records.core.models.grading import GradingConfig, StrategyType


class TestGradingConfig:
    """Tests for GET /api/v1/tenants/{tenant_id}/grading/config"""

    @pytest.mark.asyncio
    async def test_fallback_when_nothing_configured(self, client: AsyncClient, test_tenant):
        response = await client.get(
            f"/api/v1/tenants/{test_tenant.id}/grading/config",
            params={"assessment_type": "QUIZ", "grade": "G1"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["strategy"] == "SIMPLE_AVERAGE"
        assert data["is_default"] is True

    @pytest.mark.asyncio
    async def test_most_specific_config(self, client: AsyncClient, services, test_tenant):
        await services.grading.save_aggregation_config(
            GradingConfig(tenant_id=test_tenant.id, assessment_type="QUIZ", strategy=StrategyType.SIMPLE_AVERAGE)
        )
        await services.grading.save_aggregation_config(
            GradingConfig(
                tenant_id=test_tenant.id, assessment_type="QUIZ", grade="G1", strategy=StrategyType.BEST_N, n=2
            )
        )

        response = await client.get(
            f"/api/v1/tenants/{test_tenant.id}/grading/config",
            params={"assessment_type": "QUIZ", "grade": "G1", "learning_area": "ENGLISH"},
        )

        data = response.json()
        assert data["strategy"] == "BEST_N"
        assert data["n"] == 2
        assert data["grade"] == "G1"
        assert data["is_default"] is False


class TestAggregate:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "strategy,n,expected",
        [
            ("SIMPLE_AVERAGE", None, 70),
            ("BEST_N", 2, 75),
            ("DROP_LOWEST_N", 1, 75),
            ("MEDIAN", None, 70),
            ("BEST_N", 0, 0),
        ],
    )
    async def test_aggregate(self, client: AsyncClient, strategy, n, expected):
        response = await client.post(
            "/api/v1/grading/aggregate",
            json={"scores": [{"score": 80}, {"score": 60}, {"score": 70}], "strategy": strategy, "n": n},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["result"] == pytest.approx(expected)
        assert data["count"] == 3

    @pytest.mark.asyncio
    async def test_unknown_strategy_falls_back_to_simple_average(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/grading/aggregate",
            json={"scores": [{"score": 80}, {"score": 60}, {"score": 70}], "strategy": "TOP_HEAVY"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["result"] == pytest.approx(70)
        assert data["strategy"] == "SIMPLE_AVERAGE"

    @pytest.mark.asyncio
    async def test_weighted_average(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/grading/aggregate",
            json={
                "scores": [{"score": 80, "weight": 2}, {"score": 50}],
                "strategy": "WEIGHTED_AVERAGE",
            },
        )

        assert response.json()["result"] == pytest.approx(70)

    @pytest.mark.asyncio
    async def test_empty_scores(self, client: AsyncClient):
        response = await client.post("/api/v1/grading/aggregate", json={"scores": []})
        assert response.json()["result"] == 0

    @pytest.mark.asyncio
    async def test_strategy_catalogue(self, client: AsyncClient):
        response = await client.get("/api/v1/grading/strategies")

        assert response.status_code == 200
        strategies = {s["strategy"]: s["requires_n"] for s in response.json()}
        assert strategies == {
            "SIMPLE_AVERAGE": False,
            "BEST_N": True,
            "DROP_LOWEST_N": True,
            "WEIGHTED_AVERAGE": False,
            "MEDIAN": False,
        }


class TestBand:
    @pytest.mark.asyncio
    async def test_summative_band(self, client: AsyncClient, test_tenant):
        response = await client.post(
            f"/api/v1/tenants/{test_tenant.id}/grading/band",
            json={"percentage": 79.5},
        )

        assert response.status_code == 200
        band = response.json()["band"]
        assert band["code"] == "B"
        assert band["points"] == 3

    @pytest.mark.asyncio
    async def test_cbc_band(self, client: AsyncClient, test_tenant):
        response = await client.post(
            f"/api/v1/tenants/{test_tenant.id}/grading/band",
            json={"percentage": 95, "system_type": "CBC"},
        )

        assert response.json()["band"]["code"] == "EE1"

    @pytest.mark.asyncio
    async def test_unknown_tenant(self, client: AsyncClient):
        response = await client.post(f"/api/v1/tenants/{uuid4()}/grading/band", json={"percentage": 50})
        assert response.status_code == 404
