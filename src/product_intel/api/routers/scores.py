"""Product score API endpoints.

Read-only views over persisted scores.

Endpoints:
- GET /scores/top - highest scoring products
- GET /scores/tier/{tier} - products within one tier
- GET /scores/stats - count, average and tier distribution
- GET /products/{product_id}/score - score for one product
"""

from typing import Optional, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from product_intel.db.persistence import PersistenceResult, ScorePersistence
from product_intel.scoring.models import ScoreRecord, ScoreTier, ScoringStats

router = APIRouter(tags=["scores"])

T = TypeVar("T")


def get_persistence(request: Request) -> ScorePersistence:
    """Persistence gateway bound to the running app."""
    return request.app.state.persistence


def _unwrap(result: PersistenceResult[T]) -> Optional[T]:
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Score store unavailable",
        )
    return result.data


@router.get("/scores/top", response_model=list[ScoreRecord])
async def list_top_scores(
    limit: int = Query(50, ge=1, le=500, description="Maximum number of results"),
    persistence: ScorePersistence = Depends(get_persistence),
) -> list[ScoreRecord]:
    """List the highest scoring products, best first."""
    return _unwrap(await persistence.get_top_scoring_products(limit)) or []


@router.get("/scores/tier/{tier}", response_model=list[ScoreRecord])
async def list_scores_by_tier(
    tier: ScoreTier,
    limit: int = Query(50, ge=1, le=500, description="Maximum number of results"),
    persistence: ScorePersistence = Depends(get_persistence),
) -> list[ScoreRecord]:
    """List products in one tier (A+, A, B, C, D), best first."""
    return _unwrap(await persistence.get_products_by_tier(tier, limit)) or []


@router.get("/scores/stats", response_model=ScoringStats)
async def get_score_stats(
    persistence: ScorePersistence = Depends(get_persistence),
) -> ScoringStats:
    """Scoring statistics across all products."""
    return _unwrap(await persistence.get_scoring_stats()) or ScoringStats()


@router.get("/products/{product_id}/score", response_model=ScoreRecord)
async def get_product_score(
    product_id: str,
    persistence: ScorePersistence = Depends(get_persistence),
) -> ScoreRecord:
    """Get the stored score for a specific product."""
    score = _unwrap(await persistence.get_score(product_id))

    if score is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product score not found",
        )

    return score
