"""Pytest fixtures for scoring and database testing."""

from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

from product_intel.config import Settings
from product_intel.db.base import Database
from product_intel.db.persistence import ScorePersistence
from product_intel.scoring.models import (
    FeatureVector,
    NormalizedPriceSnapshot,
    NormalizedProduct,
    ScoreBreakdown,
    ScoreResult,
)
from product_intel.scoring.scorer import get_score_tier

# Fixed reference time so freshness is reproducible
NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def database_url(path: Path) -> str:
    """File-backed SQLite URL; concurrent sessions need a real file."""
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture
def now() -> datetime:
    """Reference time for extraction."""
    return NOW


@pytest.fixture
def settings() -> Settings:
    """Settings with no inter-chunk pause."""
    return Settings(_env_file=None, analysis_batch_pause_seconds=0)


@pytest_asyncio.fixture
async def database(tmp_path: Path) -> AsyncGenerator[Database, None]:
    """Provide a fresh database with all tables created."""
    db = Database(database_url(tmp_path / "test.db"))
    await db.create_all()
    try:
        yield db
    finally:
        await db.dispose()


@pytest_asyncio.fixture
async def broken_database(tmp_path: Path) -> AsyncGenerator[Database, None]:
    """A database whose tables were never created, so every query fails."""
    db = Database(database_url(tmp_path / "empty.db"))
    try:
        yield db
    finally:
        await db.dispose()


@pytest.fixture
def persistence(database: Database) -> ScorePersistence:
    """Persistence gateway on the test database."""
    return ScorePersistence(database)


@pytest.fixture
def strong_product() -> NormalizedProduct:
    """An imported product with complete, excellent data."""
    return NormalizedProduct(
        id="prod-strong",
        asin="B000000001",
        title="Wireless Noise Cancelling Headphones",
        brand="Sony",
        category="Electronics > Audio > Headphones > Over-Ear > Wireless > Premium",
        description="x" * 2000,
        main_image="https://example.com/1.jpg",
        images=[f"https://example.com/{i}.jpg" for i in range(10)],
        rating=5.0,
        ratings_total=100_000,
        source="rainforest_import",
        updated_at=NOW,
    )


@pytest.fixture
def strong_snapshot() -> NormalizedPriceSnapshot:
    """Snapshot with 100% markup, BSR #1 and Prime."""
    return NormalizedPriceSnapshot(
        product_id="prod-strong",
        current_price=20.0,
        cost_price=10.0,
        bsr_rank=1,
        is_prime=True,
    )


@pytest.fixture
def bare_product() -> NormalizedProduct:
    """A product with nothing but an id."""
    return NormalizedProduct(id="prod-bare")


@pytest.fixture
def product_factory() -> Callable[..., NormalizedProduct]:
    """Build products with sensible defaults and overrides."""

    def _make(product_id: str, **overrides: Any) -> NormalizedProduct:
        data: dict[str, Any] = {
            "id": product_id,
            "asin": f"ASIN-{product_id}",
            "title": f"Product {product_id}",
            "brand": "Acme",
            "category": "Home > Kitchen > Knives",
            "description": "A sturdy kitchen knife. " * 10,
            "images": ["https://example.com/a.jpg"] * 4,
            "rating": 4.3,
            "ratings_total": 1500,
            "source": "rainforest_import",
            "updated_at": NOW,
        }
        data.update(overrides)
        return NormalizedProduct(**data)

    return _make


@pytest.fixture
def score_result_factory() -> Callable[..., ScoreResult]:
    """Build score results with a given overall score."""

    def _make(product_id: str, overall_score: int, **overrides: Any) -> ScoreResult:
        data: dict[str, Any] = {
            "product_id": product_id,
            "overall_score": overall_score,
            "score_tier": get_score_tier(overall_score),
            "score_breakdown": ScoreBreakdown(demand=30, price=25, content=15, market=10),
            "feature_vector": FeatureVector(
                product_id=product_id,
                rating_score=0.8,
                feature_confidence=0.9,
                extraction_timestamp=NOW,
            ),
            "recommendations": ["Enhance product images and description"],
            "risk_factors": [],
            "opportunities": ["Prime eligibility expands customer reach"],
        }
        data.update(overrides)
        return ScoreResult(**data)

    return _make
