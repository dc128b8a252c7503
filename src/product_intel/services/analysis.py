"""Analysis Service - orchestrates feature extraction, scoring, and persistence.

Decides whether a product needs (re)scoring, runs extract -> score ->
persist, and appends one audit row per attempt. Nothing raised during an
analysis escapes; callers always get an ``AnalysisResult``.

Usage:
    service = AnalysisService(ScorePersistence(database), settings)
    result = await service.analyze_product(product, price_snapshot)
    print(f"{result.product_id}: {result.overall_score} ({result.score_tier})")
"""

import asyncio
import logging
import time
from collections.abc import Awaitable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from product_intel.config import Settings, get_settings
from product_intel.db.persistence import LogOutcome, PersistenceResult, ScorePersistence
from product_intel.scoring.features import extract_features
from product_intel.scoring.models import (
    NormalizedPriceSnapshot,
    NormalizedProduct,
    NormalizedShopifyProduct,
    ScoreRecord,
    ScoreTier,
    ScoringConfig,
    ScoringStats,
    as_utc,
)
from product_intel.scoring.scorer import score_features

logger = logging.getLogger(__name__)


@dataclass
class AnalysisOptions:
    """Options for a single analysis."""

    force_rescore: bool = False  # Ignore a fresh cached score
    log_analysis: bool = True  # Append an audit row
    triggered_by: str = "system"


@dataclass
class AnalysisResult:
    """Outcome of analyzing one product."""

    success: bool
    product_id: str
    overall_score: Optional[int] = None
    score_tier: Optional[ScoreTier] = None
    processing_time_ms: int = 0
    error: Optional[str] = None
    previous_score: Optional[int] = None
    score_change: Optional[int] = None
    cached: bool = False
    log_outcome: Optional[LogOutcome] = None


@dataclass
class RescoreSummary:
    """Result of a system-wide rescore run."""

    success: bool
    processed: int = 0
    errors: int = 0
    results: list[AnalysisResult] = field(default_factory=list)


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class AnalysisService:
    """Service for analyzing products.

    Orchestrates:
    1. Staleness check (reuse a score younger than the staleness window)
    2. Feature extraction and scoring
    3. Persistence and audit logging

    Usage:
        service = AnalysisService(persistence)
        results = await service.analyze_products(products, price_snapshots)
    """

    def __init__(
        self,
        persistence: ScorePersistence,
        settings: Optional[Settings] = None,
        scoring_config: Optional[ScoringConfig] = None,
    ):
        """Initialize analysis service.

        Args:
            persistence: Score persistence gateway.
            settings: Application settings (uses cached settings if None).
            scoring_config: Extraction heuristics (uses defaults if None).
        """
        self.persistence = persistence
        self.settings = settings or get_settings()
        self.scoring_config = scoring_config or ScoringConfig()

    def is_fresh(self, score: ScoreRecord, now: datetime) -> bool:
        """Whether a stored score is young enough to reuse."""
        age_hours = (as_utc(now) - as_utc(score.scored_at)).total_seconds() / 3600
        return age_hours < self.settings.staleness_hours

    async def _record(self, write: Awaitable[LogOutcome]) -> LogOutcome:
        # Audit logging must never change the analysis outcome
        try:
            return await write
        except Exception as e:
            logger.warning(f"Analysis log write failed: {e}")
            return LogOutcome.LOG_FAILED

    async def _failure(
        self,
        product_id: str,
        error: str,
        options: AnalysisOptions,
        started: float,
    ) -> AnalysisResult:
        logger.error(f"Analysis failed for product {product_id}: {error}")
        log_outcome = None
        if options.log_analysis:
            log_outcome = await self._record(
                self.persistence.log_analysis_error(
                    product_id, error, options.triggered_by, _elapsed_ms(started)
                )
            )
        return AnalysisResult(
            success=False,
            product_id=product_id,
            error=error,
            processing_time_ms=_elapsed_ms(started),
            log_outcome=log_outcome,
        )

    async def analyze_product(
        self,
        product: NormalizedProduct,
        price_snapshot: Optional[NormalizedPriceSnapshot] = None,
        storefront_product: Optional[NormalizedShopifyProduct] = None,
        options: Optional[AnalysisOptions] = None,
    ) -> AnalysisResult:
        """Extract features, score, and persist one product.

        Args:
            product: Normalized catalog product.
            price_snapshot: Latest price snapshot, if any.
            storefront_product: Storefront listing, if any.
            options: Analysis options (defaults if None).

        Returns:
            AnalysisResult; never raises.
        """
        if options is None:
            options = AnalysisOptions()

        started = time.perf_counter()
        now = datetime.now(timezone.utc)

        try:
            # Existing score serves both the cache check and the change log
            existing: Optional[ScoreRecord] = None
            if not options.force_rescore or options.log_analysis:
                existing_result = await self.persistence.get_score(product.id)
                if not existing_result.success:
                    return await self._failure(
                        product.id,
                        f"Failed to read existing score: {existing_result.error}",
                        options,
                        started,
                    )
                existing = existing_result.data

            if not options.force_rescore and existing is not None and self.is_fresh(existing, now):
                logger.debug(f"Using cached score for product {product.id}")
                return AnalysisResult(
                    success=True,
                    product_id=product.id,
                    overall_score=existing.overall_score,
                    score_tier=existing.score_tier,
                    processing_time_ms=_elapsed_ms(started),
                    cached=True,
                )

            features = extract_features(
                product,
                price_snapshot,
                storefront_product,
                config=self.scoring_config,
                now=now,
            )
            score = score_features(features)

            persisted = await self.persistence.upsert_analysis(score)
            if not persisted.success:
                return await self._failure(
                    product.id,
                    f"Failed to persist analysis: {persisted.error}",
                    options,
                    started,
                )
        except Exception as e:
            return await self._failure(product.id, str(e) or type(e).__name__, options, started)

        previous_score = existing.overall_score if existing is not None else None
        score_change = score.overall_score - previous_score if previous_score is not None else None

        log_outcome = None
        if options.log_analysis:
            log_outcome = await self._record(
                self.persistence.log_analysis_change(
                    product.id,
                    previous_score,
                    score.overall_score,
                    options.triggered_by,
                    _elapsed_ms(started),
                )
            )

        return AnalysisResult(
            success=True,
            product_id=product.id,
            overall_score=score.overall_score,
            score_tier=score.score_tier,
            processing_time_ms=_elapsed_ms(started),
            previous_score=previous_score,
            score_change=score_change,
            log_outcome=log_outcome,
        )

    async def _analyze_chunk(
        self,
        chunk: list[NormalizedProduct],
        price_snapshots: dict[str, NormalizedPriceSnapshot],
        storefront_products: dict[str, NormalizedShopifyProduct],
        options: Optional[AnalysisOptions],
    ) -> list[AnalysisResult]:
        # gather keeps results in argument order
        return list(
            await asyncio.gather(
                *(
                    self.analyze_product(
                        product,
                        price_snapshots.get(product.id),
                        storefront_products.get(product.id),
                        options,
                    )
                    for product in chunk
                )
            )
        )

    async def _pause(self) -> None:
        await asyncio.sleep(self.settings.analysis_batch_pause_seconds)

    async def analyze_products(
        self,
        products: list[NormalizedProduct],
        price_snapshots: Optional[dict[str, NormalizedPriceSnapshot]] = None,
        storefront_products: Optional[dict[str, NormalizedShopifyProduct]] = None,
        options: Optional[AnalysisOptions] = None,
    ) -> list[AnalysisResult]:
        """Analyze products in sequential chunks.

        Products within a chunk are analyzed concurrently; the next chunk
        starts only after the whole chunk finished and a short pause.

        Args:
            products: Products to analyze.
            price_snapshots: Price snapshots keyed by product id.
            storefront_products: Storefront listings keyed by product id.
            options: Options applied to every product.

        Returns:
            One result per product, in input order.
        """
        price_snapshots = price_snapshots or {}
        storefront_products = storefront_products or {}
        batch_size = self.settings.analysis_batch_size

        results: list[AnalysisResult] = []
        for start in range(0, len(products), batch_size):
            chunk = products[start : start + batch_size]
            results.extend(
                await self._analyze_chunk(chunk, price_snapshots, storefront_products, options)
            )

            # Backpressure for the store between chunks
            if start + batch_size < len(products):
                await self._pause()

        return results

    async def rescore_all_products(
        self,
        limit: Optional[int] = None,
        min_age_hours: Optional[float] = None,
    ) -> RescoreSummary:
        """Force a rescore of catalog products that are due.

        Args:
            limit: Maximum products to rescore (settings default if None).
            min_age_hours: Rescore products not updated for this long
                (settings default if None). Products never price-checked
                are always due.

        Returns:
            RescoreSummary with processed and error counts.
        """
        if limit is None:
            limit = self.settings.rescore_limit
        if min_age_hours is None:
            min_age_hours = self.settings.rescore_min_age_hours

        cutoff = datetime.now(timezone.utc) - timedelta(hours=min_age_hours)
        selection = await self.persistence.get_products_for_rescore(limit, cutoff)
        if not selection.success:
            logger.error(f"Failed to select products for rescore: {selection.error}")
            return RescoreSummary(success=False, processed=0, errors=1)

        products = selection.data or []
        if not products:
            logger.info("No products due for rescore")
            return RescoreSummary(success=True)

        logger.info(f"Rescoring {len(products)} products (min_age_hours={min_age_hours})")
        results = await self.analyze_products(
            products,
            options=AnalysisOptions(force_rescore=True, triggered_by="system_batch"),
        )

        processed = sum(1 for r in results if r.success)
        errors = len(results) - processed
        logger.info(f"Rescored {len(results)} products: {processed} processed, {errors} errors")

        return RescoreSummary(success=True, processed=processed, errors=errors, results=results)

    async def get_analysis_stats(self) -> PersistenceResult[ScoringStats]:
        """Scoring statistics across all products."""
        return await self.persistence.get_scoring_stats()

    async def get_top_scoring_products(self, limit: int = 50) -> PersistenceResult[list[ScoreRecord]]:
        """Highest scoring products."""
        return await self.persistence.get_top_scoring_products(limit)
