"""Deterministic scoring engine.

Category weights:
| Category | Weight | Sub-features (weight)                                      |
|----------|--------|------------------------------------------------------------|
| Demand   | 0.35   | rating (0.4), review volume (0.3), demand tier (0.3)       |
| Price    | 0.30   | price competitiveness (0.4), BSR (0.3), Prime (0.3)        |
| Content  | 0.20   | richness (0.5), specificity (0.3), freshness (0.2)         |
| Market   | 0.15   | 1 - saturation (0.4), brand (0.3), market opportunity (0.3)|

Overall Score = round((Σ weighted categories) × feature confidence × 100)

The breakdown reports each weighted category ×100 before the confidence
multiplier, so it does not sum to the overall score when confidence < 1.
"""

import math

from product_intel.scoring.features import clamp
from product_intel.scoring.models import (
    CATEGORY_WEIGHTS,
    CONTENT_WEIGHTS,
    DEMAND_WEIGHTS,
    MARKET_WEIGHTS,
    PRICE_WEIGHTS,
    TIER_DESCRIPTIONS,
    TIER_THRESHOLDS,
    FeatureVector,
    ScoreBreakdown,
    ScoreResult,
    ScoreTier,
)
from product_intel.scoring.rules import (
    generate_recommendations,
    identify_opportunities,
    identify_risk_factors,
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def _category_score(values: dict[str, float], weights: dict[str, float]) -> float:
    return sum(values[name] * weight for name, weight in weights.items())


def calculate_component_scores(features: FeatureVector) -> dict[str, float]:
    """Weighted score of each category on a 0-1 scale.

    Args:
        features: Feature vector to score

    Returns:
        Dict of category -> category score × category weight
    """
    values = features.model_dump()
    market_values = dict(values, saturation=1 - features.market_saturation_score)

    return {
        "demand": _category_score(values, DEMAND_WEIGHTS) * CATEGORY_WEIGHTS["demand"],
        "price": _category_score(values, PRICE_WEIGHTS) * CATEGORY_WEIGHTS["price"],
        "content": _category_score(values, CONTENT_WEIGHTS) * CATEGORY_WEIGHTS["content"],
        "market": _category_score(market_values, MARKET_WEIGHTS) * CATEGORY_WEIGHTS["market"],
    }


def get_score_tier(score: int) -> ScoreTier:
    """Letter tier for an overall score (lower bounds inclusive)."""
    for threshold, tier in TIER_THRESHOLDS:
        if score >= threshold:
            return tier
    return ScoreTier.D


def describe_tier(tier: ScoreTier) -> dict[str, str]:
    """Human-readable label and description for a tier."""
    label, description = TIER_DESCRIPTIONS[tier]
    return {"tier": tier.value, "label": label, "description": description}


def score_features(features: FeatureVector) -> ScoreResult:
    """Calculate the score for a feature vector.

    This is the main entry point for scoring. It has no side effects and
    returns the same result for the same vector.

    Args:
        features: Feature vector produced by extraction

    Returns:
        ScoreResult with overall score, tier, breakdown and insights
    """
    components = calculate_component_scores(features)

    raw_score = sum(components.values())
    adjusted_score = raw_score * features.feature_confidence
    overall_score = int(clamp(round_half_up(adjusted_score * 100), 0, 100))

    breakdown = ScoreBreakdown(
        demand=round_half_up(components["demand"] * 100),
        price=round_half_up(components["price"] * 100),
        content=round_half_up(components["content"] * 100),
        market=round_half_up(components["market"] * 100),
    )

    return ScoreResult(
        product_id=features.product_id,
        overall_score=overall_score,
        score_tier=get_score_tier(overall_score),
        score_breakdown=breakdown,
        feature_vector=features,
        recommendations=generate_recommendations(features),
        risk_factors=identify_risk_factors(features),
        opportunities=identify_opportunities(features),
    )


def batch_score(vectors: list[FeatureVector]) -> list[ScoreResult]:
    """Score vectors independently, highest overall score first.

    The sort is stable: vectors with equal scores keep their input order.
    """
    results = [score_features(vector) for vector in vectors]
    return sorted(results, key=lambda result: result.overall_score, reverse=True)
