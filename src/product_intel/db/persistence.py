"""Persistence for scores, feature vectors and the analysis log.

Every operation returns a ``PersistenceResult`` instead of raising:
a store failure is ``success=False`` with the error message, and a
missing row is ``success=True`` with ``data=None``.

Usage:
    persistence = ScorePersistence(database)
    result = await persistence.upsert_analysis(score_result)
    if not result.success:
        logger.warning(result.error)
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from sqlalchemy import desc, func, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from product_intel.db.base import Database
from product_intel.db.models import (
    AnalysisLogEntry,
    AnalysisType,
    FeatureVectorRecord,
    Product,
    ProductScore,
)
from product_intel.scoring.models import (
    AnalysisLogRecord,
    FeatureVector,
    NormalizedProduct,
    ScoreRecord,
    ScoreResult,
    ScoreTier,
    ScoringStats,
)
from product_intel.scoring.scorer import round_half_up

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class PersistenceResult(Generic[T]):
    """Outcome of a store operation."""

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Optional[T] = None) -> "PersistenceResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "PersistenceResult[T]":
        return cls(success=False, error=error)


class LogOutcome(str, Enum):
    """Whether an audit log row was written."""

    LOGGED = "logged"
    LOG_FAILED = "log_failed"


# Vector fields mirrored into feature_vectors
VECTOR_FIELDS: tuple[str, ...] = (
    "asin",
    "source",
    "rating_score",
    "review_volume_score",
    "demand_tier_score",
    "price_competitiveness_score",
    "bsr_competitiveness_score",
    "prime_eligibility_score",
    "content_richness_score",
    "category_specificity_score",
    "data_freshness_score",
    "market_saturation_score",
    "brand_recognition_score",
    "demand_strength",
    "price_advantage",
    "content_quality",
    "market_opportunity",
    "feature_confidence",
    "extraction_timestamp",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_normalized_product(row: Product) -> NormalizedProduct:
    """Convert a catalog row to the normalized input model.

    Missing brand and category fall back to "Unknown" and "General".
    """
    return NormalizedProduct(
        id=row.id,
        asin=row.asin or "",
        title=row.title or "",
        brand=row.brand or "Unknown",
        category=row.category or "General",
        description=row.description or "",
        main_image=row.main_image or "",
        images=list(row.images or []),
        rating=row.rating,
        ratings_total=row.ratings_total,
        status=row.status or "active",
        source=row.source or "unknown",
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class ScorePersistence:
    """Reads and writes scoring results.

    Each write runs in its own short transaction. Writes are upserts
    keyed by product id, so re-analysis replaces the previous rows.
    """

    def __init__(self, database: Database):
        """Initialize persistence.

        Args:
            database: Database handle owning the engine and sessions.
        """
        self.database = database

    def _upsert(self, model: type, values: dict[str, Any]):
        insert = pg_insert if self.database.dialect_name == "postgresql" else sqlite_insert
        stmt = insert(model).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=[model.product_id],
            set_={key: stmt.excluded[key] for key in values if key != "product_id"},
        )

    async def _execute_write(self, stmt, table: str, product_id: str) -> PersistenceResult[None]:
        try:
            async with self.database.session_maker() as session:
                await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            logger.warning(f"Failed to upsert {table} for product {product_id}: {e}")
            return PersistenceResult.fail(str(e))
        return PersistenceResult.ok()

    # --- Writes ---

    async def upsert_feature_vector(self, vector: FeatureVector) -> PersistenceResult[None]:
        """Create or replace the feature vector row for a product."""
        values = {"product_id": vector.product_id}
        values.update({name: getattr(vector, name) for name in VECTOR_FIELDS})
        values["updated_at"] = _utcnow()

        stmt = self._upsert(FeatureVectorRecord, values)
        return await self._execute_write(stmt, "feature_vectors", vector.product_id)

    async def upsert_score(
        self,
        result: ScoreResult,
        scored_at: Optional[datetime] = None,
    ) -> PersistenceResult[None]:
        """Create or replace the score row for a product.

        Args:
            result: Score result to store.
            scored_at: Scoring time (defaults to now).
        """
        now = _utcnow()
        values = {
            "product_id": result.product_id,
            "overall_score": result.overall_score,
            "demand_score": result.score_breakdown.demand,
            "price_score": result.score_breakdown.price,
            "content_score": result.score_breakdown.content,
            "market_score": result.score_breakdown.market,
            "recommendations": list(result.recommendations),
            "risk_factors": list(result.risk_factors),
            "opportunities": list(result.opportunities),
            "feature_confidence": result.feature_vector.feature_confidence,
            "score_tier": result.score_tier.value,
            "scored_at": scored_at or now,
            "updated_at": now,
        }

        stmt = self._upsert(ProductScore, values)
        return await self._execute_write(stmt, "product_scores", result.product_id)

    async def upsert_analysis(
        self,
        result: ScoreResult,
        scored_at: Optional[datetime] = None,
    ) -> PersistenceResult[None]:
        """Store the feature vector, then the score.

        The two writes are separate transactions. If the score write
        fails after the vector write succeeded, the vector row stays in
        place until the next successful analysis overwrites it.
        """
        vector_result = await self.upsert_feature_vector(result.feature_vector)
        if not vector_result.success:
            return vector_result

        return await self.upsert_score(result, scored_at=scored_at)

    # --- Single-product reads ---

    async def get_score(self, product_id: str) -> PersistenceResult[ScoreRecord]:
        """Score row for a product, or None if it was never scored."""
        try:
            async with self.database.session_maker() as session:
                result = await session.execute(
                    select(ProductScore).where(ProductScore.product_id == product_id)
                )
                row = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.warning(f"Failed to read score for product {product_id}: {e}")
            return PersistenceResult.fail(str(e))

        return PersistenceResult.ok(ScoreRecord.model_validate(row) if row else None)

    async def get_feature_vector(self, product_id: str) -> PersistenceResult[FeatureVector]:
        """Feature vector row for a product, or None if absent."""
        try:
            async with self.database.session_maker() as session:
                result = await session.execute(
                    select(FeatureVectorRecord).where(FeatureVectorRecord.product_id == product_id)
                )
                row = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.warning(f"Failed to read feature vector for product {product_id}: {e}")
            return PersistenceResult.fail(str(e))

        return PersistenceResult.ok(FeatureVector.model_validate(row) if row else None)

    async def get_analysis(self, product_id: str) -> PersistenceResult[dict[str, Any]]:
        """Score and feature vector for a product.

        Returns:
            Result whose data is {"score": ScoreRecord | None,
            "vector": FeatureVector | None}.
        """
        score_result, vector_result = await asyncio.gather(
            self.get_score(product_id),
            self.get_feature_vector(product_id),
        )
        if not score_result.success:
            return PersistenceResult.fail(score_result.error or "score read failed")
        if not vector_result.success:
            return PersistenceResult.fail(vector_result.error or "vector read failed")

        return PersistenceResult.ok({"score": score_result.data, "vector": vector_result.data})

    # --- Aggregate reads ---

    async def _list_scores(self, query, description: str) -> PersistenceResult[list[ScoreRecord]]:
        try:
            async with self.database.session_maker() as session:
                result = await session.execute(query)
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.warning(f"Failed to read {description}: {e}")
            return PersistenceResult.fail(str(e))

        return PersistenceResult.ok([ScoreRecord.model_validate(row) for row in rows])

    async def get_top_scoring_products(self, limit: int = 50) -> PersistenceResult[list[ScoreRecord]]:
        """Highest scores first."""
        query = select(ProductScore).order_by(desc(ProductScore.overall_score)).limit(limit)
        return await self._list_scores(query, "top scoring products")

    async def get_products_by_tier(
        self,
        tier: ScoreTier | str,
        limit: int = 50,
    ) -> PersistenceResult[list[ScoreRecord]]:
        """Scores within one tier, highest first."""
        try:
            tier_value = ScoreTier(tier).value
        except ValueError:
            return PersistenceResult.fail(f"Unknown score tier: {tier}")
        query = (
            select(ProductScore)
            .where(ProductScore.score_tier == tier_value)
            .order_by(desc(ProductScore.overall_score))
            .limit(limit)
        )
        return await self._list_scores(query, f"tier {tier_value} products")

    async def get_scores_above(
        self,
        min_score: int = 70,
        limit: int = 50,
    ) -> PersistenceResult[list[ScoreRecord]]:
        """Scores at or above a minimum, for channel product selection."""
        query = (
            select(ProductScore)
            .where(ProductScore.overall_score >= min_score)
            .order_by(desc(ProductScore.overall_score))
            .limit(limit)
        )
        return await self._list_scores(query, f"products scoring >= {min_score}")

    async def get_scoring_stats(self) -> PersistenceResult[ScoringStats]:
        """Count, average score, tier histogram and latest scoring time."""
        try:
            async with self.database.session_maker() as session:
                totals = await session.execute(
                    select(
                        func.count(ProductScore.id),
                        func.avg(ProductScore.overall_score),
                        func.max(ProductScore.scored_at),
                    )
                )
                total, average, last_scored_at = totals.one()

                tiers = await session.execute(
                    select(ProductScore.score_tier, func.count(ProductScore.id)).group_by(
                        ProductScore.score_tier
                    )
                )
                tier_distribution = {tier: count for tier, count in tiers.all()}
        except SQLAlchemyError as e:
            logger.warning(f"Failed to compute scoring stats: {e}")
            return PersistenceResult.fail(str(e))

        return PersistenceResult.ok(
            ScoringStats(
                total_scored=total or 0,
                average_score=round_half_up(float(average)) if average is not None else 0,
                tier_distribution=tier_distribution,
                last_scored_at=last_scored_at,
            )
        )

    # --- Analysis log ---

    async def _append_log(self, entry: AnalysisLogEntry) -> LogOutcome:
        try:
            async with self.database.session_maker() as session:
                session.add(entry)
                await session.commit()
        except SQLAlchemyError as e:
            logger.warning(f"Failed to write analysis log for product {entry.product_id}: {e}")
            return LogOutcome.LOG_FAILED
        return LogOutcome.LOGGED

    async def log_analysis_change(
        self,
        product_id: str,
        previous_score: Optional[int],
        new_score: int,
        triggered_by: str,
        processing_time_ms: int,
    ) -> LogOutcome:
        """Append a score-change row.

        A product with no previous score is logged as an initial analysis
        with no delta.
        """
        if previous_score is None:
            analysis_type = AnalysisType.INITIAL
            score_change = None
        else:
            analysis_type = AnalysisType.RE_SCORE
            score_change = new_score - previous_score

        entry = AnalysisLogEntry(
            product_id=product_id,
            analysis_type=analysis_type.value,
            previous_score=previous_score,
            new_score=new_score,
            score_change=score_change,
            processing_time_ms=processing_time_ms,
            triggered_by=triggered_by,
            created_at=_utcnow(),
        )
        return await self._append_log(entry)

    async def log_analysis_error(
        self,
        product_id: str,
        error_message: str,
        triggered_by: str,
        processing_time_ms: int,
    ) -> LogOutcome:
        """Append an error row for a failed analysis."""
        entry = AnalysisLogEntry(
            product_id=product_id,
            analysis_type=AnalysisType.RE_SCORE.value,
            error_message=error_message,
            processing_time_ms=processing_time_ms,
            triggered_by=triggered_by,
            created_at=_utcnow(),
        )
        return await self._append_log(entry)

    async def get_analysis_log(self, product_id: str) -> PersistenceResult[list[AnalysisLogRecord]]:
        """Audit rows for a product, oldest first."""
        try:
            async with self.database.session_maker() as session:
                result = await session.execute(
                    select(AnalysisLogEntry)
                    .where(AnalysisLogEntry.product_id == product_id)
                    .order_by(AnalysisLogEntry.created_at)
                )
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.warning(f"Failed to read analysis log for product {product_id}: {e}")
            return PersistenceResult.fail(str(e))

        return PersistenceResult.ok([AnalysisLogRecord.model_validate(row) for row in rows])

    # --- Catalog ---

    async def get_products_for_rescore(
        self,
        limit: int,
        cutoff: datetime,
    ) -> PersistenceResult[list[NormalizedProduct]]:
        """Catalog products due for rescoring.

        Selects products with an ASIN whose last update is older than
        ``cutoff`` or whose price has never been checked.
        """
        query = (
            select(Product)
            .where(Product.asin.is_not(None))
            .where(or_(Product.updated_at < cutoff, Product.last_price_check.is_(None)))
            .limit(limit)
        )
        try:
            async with self.database.session_maker() as session:
                result = await session.execute(query)
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.warning(f"Failed to select products for rescore: {e}")
            return PersistenceResult.fail(str(e))

        return PersistenceResult.ok([to_normalized_product(row) for row in rows])
