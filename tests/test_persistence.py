"""Tests for score persistence."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from product_intel.db.models import FeatureVectorRecord, Product, ProductScore
from product_intel.db.persistence import LogOutcome, PersistenceResult, ScorePersistence
from product_intel.scoring import ScoreTier, extract_features, score_features


async def count_rows(persistence: ScorePersistence, model: type) -> int:
    async with persistence.database.session_maker() as session:
        result = await session.execute(select(func.count()).select_from(model))
        return result.scalar_one()


class TestUpsertScore:
    """Tests for writing and reading scores."""

    @pytest.mark.asyncio
    async def test_upsert_and_get(self, persistence, score_result_factory):
        result = score_result_factory("prod-1", 85)

        written = await persistence.upsert_score(result)
        assert written.success is True

        read = await persistence.get_score("prod-1")
        assert read.success is True
        score = read.data
        assert score.product_id == "prod-1"
        assert score.overall_score == 85
        assert score.score_tier == ScoreTier.A
        assert score.demand_score == 30
        assert score.price_score == 25
        assert score.content_score == 15
        assert score.market_score == 10
        assert score.recommendations == ["Enhance product images and description"]
        assert score.feature_confidence == pytest.approx(0.9)
        assert score.scored_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_upsert_replaces_existing(self, persistence, score_result_factory):
        await persistence.upsert_score(score_result_factory("prod-1", 85))
        await persistence.upsert_score(
            score_result_factory("prod-1", 62, recommendations=[], risk_factors=["Risky"])
        )

        score = (await persistence.get_score("prod-1")).data
        assert score.overall_score == 62
        assert score.score_tier == ScoreTier.C
        assert score.recommendations == []
        assert score.risk_factors == ["Risky"]
        assert await count_rows(persistence, ProductScore) == 1

    @pytest.mark.asyncio
    async def test_explicit_scored_at(self, persistence, score_result_factory):
        scored_at = datetime(2026, 1, 1, 8, 30, tzinfo=timezone.utc)

        await persistence.upsert_score(score_result_factory("prod-1", 70), scored_at=scored_at)

        score = (await persistence.get_score("prod-1")).data
        assert score.scored_at == scored_at

    @pytest.mark.asyncio
    async def test_missing_score_is_not_an_error(self, persistence):
        read = await persistence.get_score("nope")
        assert read.success is True
        assert read.data is None

    @pytest.mark.asyncio
    async def test_store_failure_returns_error(self, broken_database, score_result_factory):
        persistence = ScorePersistence(broken_database)

        written = await persistence.upsert_score(score_result_factory("prod-1", 70))
        assert written.success is False
        assert "product_scores" in written.error

        read = await persistence.get_score("prod-1")
        assert read.success is False
        assert read.error


class TestUpsertAnalysis:
    """Tests for writing a vector and score together."""

    @pytest.mark.asyncio
    async def test_writes_vector_and_score(self, persistence, strong_product, strong_snapshot, now):
        result = score_features(extract_features(strong_product, strong_snapshot, now=now))

        written = await persistence.upsert_analysis(result)
        assert written.success is True

        analysis = (await persistence.get_analysis("prod-strong")).data
        assert analysis["score"].overall_score == 97
        vector = analysis["vector"]
        assert vector.product_id == "prod-strong"
        assert vector.market_opportunity == pytest.approx(0.84)
        assert vector.feature_confidence == 1.0
        assert vector.asin == "B000000001"
        assert vector.extraction_timestamp == now
        assert vector.extraction_timestamp.tzinfo is not None

    @pytest.mark.asyncio
    async def test_vector_update_replaces_row(self, persistence, score_result_factory):
        first = score_result_factory("prod-1", 70)
        await persistence.upsert_analysis(first)

        updated_vector = first.feature_vector.model_copy(update={"rating_score": 0.2})
        await persistence.upsert_analysis(
            score_result_factory("prod-1", 40, feature_vector=updated_vector)
        )

        vector = (await persistence.get_feature_vector("prod-1")).data
        assert vector.rating_score == pytest.approx(0.2)
        assert await count_rows(persistence, FeatureVectorRecord) == 1

    @pytest.mark.asyncio
    async def test_score_failure_leaves_vector(self, persistence, score_result_factory):
        """The two writes are not atomic."""
        with patch.object(
            persistence,
            "upsert_score",
            AsyncMock(return_value=PersistenceResult.fail("disk full")),
        ):
            written = await persistence.upsert_analysis(score_result_factory("prod-1", 70))

        assert written.success is False
        assert written.error == "disk full"

        vector = await persistence.get_feature_vector("prod-1")
        assert vector.success is True
        assert vector.data is not None

        score = await persistence.get_score("prod-1")
        assert score.data is None

    @pytest.mark.asyncio
    async def test_get_analysis_missing(self, persistence):
        analysis = await persistence.get_analysis("nope")
        assert analysis.success is True
        assert analysis.data == {"score": None, "vector": None}


class TestAggregateReads:
    """Tests for listing queries and stats."""

    @pytest_asyncio.fixture
    async def seeded(self, persistence, score_result_factory):
        for product_id, overall in [("p-72", 72), ("p-95", 95), ("p-85", 85), ("p-88", 88), ("p-40", 40)]:
            await persistence.upsert_score(score_result_factory(product_id, overall))
        return persistence

    @pytest.mark.asyncio
    async def test_top_scoring(self, seeded):
        result = await seeded.get_top_scoring_products(limit=3)
        assert result.success is True
        assert [s.overall_score for s in result.data] == [95, 88, 85]

    @pytest.mark.asyncio
    async def test_by_tier(self, seeded):
        result = await seeded.get_products_by_tier(ScoreTier.A)
        assert [s.product_id for s in result.data] == ["p-88", "p-85"]

    @pytest.mark.asyncio
    async def test_by_tier_string(self, seeded):
        result = await seeded.get_products_by_tier("A+")
        assert [s.product_id for s in result.data] == ["p-95"]

    @pytest.mark.asyncio
    async def test_by_unknown_tier(self, seeded):
        result = await seeded.get_products_by_tier("Z")

        assert result.success is False
        assert result.error == "Unknown score tier: Z"

    @pytest.mark.asyncio
    async def test_scores_above(self, seeded):
        result = await seeded.get_scores_above(min_score=85)
        assert [s.overall_score for s in result.data] == [95, 88, 85]

    @pytest.mark.asyncio
    async def test_stats(self, seeded):
        stats = (await seeded.get_scoring_stats()).data

        assert stats.total_scored == 5
        # (72 + 95 + 85 + 88 + 40) / 5 = 76
        assert stats.average_score == 76
        assert stats.tier_distribution == {"A+": 1, "A": 2, "B": 1, "D": 1}
        assert stats.last_scored_at is not None

    @pytest.mark.asyncio
    async def test_stats_empty(self, persistence):
        result = await persistence.get_scoring_stats()

        assert result.success is True
        assert result.data.total_scored == 0
        assert result.data.average_score == 0
        assert result.data.tier_distribution == {}
        assert result.data.last_scored_at is None

    @pytest.mark.asyncio
    async def test_store_failure(self, broken_database):
        persistence = ScorePersistence(broken_database)

        assert (await persistence.get_top_scoring_products()).success is False
        assert (await persistence.get_scoring_stats()).success is False


class TestAnalysisLog:
    """Tests for the append-only audit log."""

    @pytest.mark.asyncio
    async def test_initial_analysis(self, persistence):
        outcome = await persistence.log_analysis_change("prod-1", None, 80, "system", 12)
        assert outcome == LogOutcome.LOGGED

        entries = (await persistence.get_analysis_log("prod-1")).data
        assert len(entries) == 1
        entry = entries[0]
        assert entry.analysis_type == "initial"
        assert entry.previous_score is None
        assert entry.new_score == 80
        assert entry.score_change is None
        assert entry.processing_time_ms == 12
        assert entry.triggered_by == "system"

    @pytest.mark.asyncio
    async def test_rescore_records_delta(self, persistence):
        await persistence.log_analysis_change("prod-1", 80, 72, "user", 5)

        entry = (await persistence.get_analysis_log("prod-1")).data[0]
        assert entry.analysis_type == "re_score"
        assert entry.previous_score == 80
        assert entry.score_change == -8

    @pytest.mark.asyncio
    async def test_error_row(self, persistence):
        await persistence.log_analysis_error("prod-1", "boom", "system_batch", 3)

        entry = (await persistence.get_analysis_log("prod-1")).data[0]
        assert entry.error_message == "boom"
        assert entry.new_score is None
        assert entry.triggered_by == "system_batch"

    @pytest.mark.asyncio
    async def test_oldest_first(self, persistence):
        await persistence.log_analysis_change("prod-1", None, 50, "system", 1)
        await persistence.log_analysis_change("prod-1", 50, 60, "system", 1)
        await persistence.log_analysis_error("prod-1", "boom", "system", 1)
        await persistence.log_analysis_change("prod-2", None, 99, "system", 1)

        entries = (await persistence.get_analysis_log("prod-1")).data
        assert [e.new_score for e in entries] == [50, 60, None]

    @pytest.mark.asyncio
    async def test_log_failure_reported(self, broken_database):
        persistence = ScorePersistence(broken_database)

        assert await persistence.log_analysis_change("p", None, 1, "system", 0) == LogOutcome.LOG_FAILED
        assert await persistence.log_analysis_error("p", "x", "system", 0) == LogOutcome.LOG_FAILED


class TestProductsForRescore:
    """Tests for selecting catalog products due for rescoring."""

    @pytest.mark.asyncio
    async def test_selection(self, persistence):
        now = datetime.now(timezone.utc)
        async with persistence.database.session_maker() as session:
            session.add_all(
                [
                    # Old update, price checked: due
                    Product(
                        id="old",
                        asin="A1",
                        title="Old",
                        brand="Acme",
                        category="Home > Kitchen",
                        rating=4.2,
                        ratings_total=300,
                        source="rainforest_import",
                        updated_at=now - timedelta(hours=48),
                        last_price_check=now,
                    ),
                    # Never price checked: due
                    Product(id="unchecked", asin="A2", title="Unchecked", updated_at=now),
                    # Recent and checked: not due
                    Product(id="fresh", asin="A3", title="Fresh", updated_at=now, last_price_check=now),
                    # No ASIN: never selected
                    Product(id="no-asin", asin=None, title="Local", updated_at=now - timedelta(days=9)),
                ]
            )
            await session.commit()

        result = await persistence.get_products_for_rescore(100, now - timedelta(hours=24))

        assert result.success is True
        products = {p.id: p for p in result.data}
        assert set(products) == {"old", "unchecked"}

        assert products["old"].brand == "Acme"
        assert products["old"].source == "rainforest_import"
        assert products["unchecked"].brand == "Unknown"
        assert products["unchecked"].category == "General"
        assert products["unchecked"].description == ""

    @pytest.mark.asyncio
    async def test_limit(self, persistence):
        async with persistence.database.session_maker() as session:
            session.add_all([Product(id=f"p{i}", asin=f"A{i}", title="P") for i in range(5)])
            await session.commit()

        result = await persistence.get_products_for_rescore(2, datetime.now(timezone.utc))
        assert len(result.data) == 2
