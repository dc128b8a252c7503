"""Tests for the score API endpoints.

Endpoints:
- GET /api/scores/top
- GET /api/scores/tier/{tier}
- GET /api/scores/stats
- GET /api/products/{product_id}/score
"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from product_intel.api.app import create_app
from product_intel.db.base import Database


async def make_client(database: Database, settings) -> AsyncClient:
    app = create_app(database, settings)
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest_asyncio.fixture
async def client(database, settings) -> AsyncGenerator[AsyncClient, None]:
    """Client for an app backed by the test database."""
    async with await make_client(database, settings) as client:
        yield client


@pytest_asyncio.fixture
async def seeded(persistence, score_result_factory):
    """Store five scores across tiers."""
    for product_id, overall in [("p-72", 72), ("p-95", 95), ("p-85", 85), ("p-88", 88), ("p-40", 40)]:
        await persistence.upsert_score(score_result_factory(product_id, overall))


class TestHealth:
    """Tests for GET /health."""

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_title_from_settings(self, database, settings):
        app = create_app(database, settings.model_copy(update={"app_name": "catalog-scores"}))
        assert app.title == "catalog-scores API"


class TestTopScores:
    """Tests for GET /api/scores/top."""

    @pytest.mark.asyncio
    async def test_empty(self, client):
        response = await client.get("/api/scores/top")
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_sorted_and_limited(self, client, seeded):
        response = await client.get("/api/scores/top", params={"limit": 2})

        assert response.status_code == 200
        data = response.json()
        assert [item["product_id"] for item in data] == ["p-95", "p-88"]
        assert data[0]["score_tier"] == "A+"
        assert data[0]["recommendations"] == ["Enhance product images and description"]

    @pytest.mark.asyncio
    async def test_invalid_limit(self, client):
        response = await client.get("/api/scores/top", params={"limit": 0})
        assert response.status_code == 422


class TestScoresByTier:
    """Tests for GET /api/scores/tier/{tier}."""

    @pytest.mark.asyncio
    async def test_tier(self, client, seeded):
        response = await client.get("/api/scores/tier/A")

        assert response.status_code == 200
        assert [item["product_id"] for item in response.json()] == ["p-88", "p-85"]

    @pytest.mark.asyncio
    async def test_a_plus_tier(self, client, seeded):
        response = await client.get("/api/scores/tier/A%2B")

        assert response.status_code == 200
        assert [item["product_id"] for item in response.json()] == ["p-95"]

    @pytest.mark.asyncio
    async def test_unknown_tier(self, client):
        response = await client.get("/api/scores/tier/Z")
        assert response.status_code == 422


class TestScoreStats:
    """Tests for GET /api/scores/stats."""

    @pytest.mark.asyncio
    async def test_empty_store(self, client):
        response = await client.get("/api/scores/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["total_scored"] == 0
        assert data["average_score"] == 0
        assert data["tier_distribution"] == {}
        assert data["last_scored_at"] is None

    @pytest.mark.asyncio
    async def test_stats(self, client, seeded):
        data = (await client.get("/api/scores/stats")).json()

        assert data["total_scored"] == 5
        assert data["average_score"] == 76
        assert data["tier_distribution"]["A"] == 2


class TestProductScore:
    """Tests for GET /api/products/{product_id}/score."""

    @pytest.mark.asyncio
    async def test_get_score(self, client, seeded):
        response = await client.get("/api/products/p-85/score")

        assert response.status_code == 200
        data = response.json()
        assert data["product_id"] == "p-85"
        assert data["overall_score"] == 85
        assert data["score_tier"] == "A"

    @pytest.mark.asyncio
    async def test_not_found(self, client):
        response = await client.get("/api/products/missing/score")

        assert response.status_code == 404
        assert response.json()["detail"] == "Product score not found"


class TestStoreUnavailable:
    """Store failures map to 503."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "path",
        ["/api/scores/top", "/api/scores/tier/B", "/api/scores/stats", "/api/products/p-1/score"],
    )
    async def test_503(self, broken_database, settings, path):
        async with await make_client(broken_database, settings) as client:
            response = await client.get(path)

        assert response.status_code == 503
