"""Feature extraction from normalized product data.

Every signal is derived only from the normalized snapshots passed in and
is clamped to [0, 1]. Missing snapshots or missing fields fall back to a
documented default; extraction never raises for absent data.

Signal groups:
| Group   | Signals                                          |
|---------|--------------------------------------------------|
| Demand  | rating, review volume, demand tier               |
| Price   | price competitiveness, BSR, Prime eligibility    |
| Content | richness, category specificity, data freshness   |
| Market  | saturation, brand recognition                    |
"""

import math
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Optional

from product_intel.scoring.models import (
    CONTENT_WEIGHTS,
    DEMAND_WEIGHTS,
    MARKET_OPPORTUNITY_WEIGHTS,
    PRICE_WEIGHTS,
    FeatureVector,
    NormalizedPriceSnapshot,
    NormalizedProduct,
    NormalizedShopifyProduct,
    ScoringConfig,
    SourceKind,
    as_utc,
)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def _log_ratio(value: float, cap: float) -> float:
    return math.log(value) / math.log(cap)


# --- Demand ---


def _import_demand_tier(product: NormalizedProduct, config: ScoringConfig) -> float:
    # Imported listings carry marketplace review data; bucket on it
    if not (product.ratings_total and product.rating):
        return config.default_demand_tier
    if product.ratings_total > config.high_demand_reviews and product.rating >= config.high_demand_rating:
        return 1.0
    if product.ratings_total > config.medium_demand_reviews and product.rating >= config.medium_demand_rating:
        return 0.6
    return config.default_demand_tier


def _storefront_demand_tier(product: NormalizedProduct, config: ScoringConfig) -> float:
    return config.storefront_demand_tier


def _default_demand_tier(product: NormalizedProduct, config: ScoringConfig) -> float:
    return config.default_demand_tier


DEMAND_TIER_STRATEGIES: dict[SourceKind, Callable[[NormalizedProduct, ScoringConfig], float]] = {
    SourceKind.IMPORT: _import_demand_tier,
    SourceKind.STOREFRONT: _storefront_demand_tier,
    SourceKind.OTHER: _default_demand_tier,
}


def extract_demand_signals(
    product: NormalizedProduct,
    config: ScoringConfig,
) -> dict[str, float]:
    """Rating, review volume and demand tier.

    Args:
        product: Normalized catalog product
        config: Scoring configuration

    Returns:
        Dict with rating_score, review_volume_score, demand_tier_score
    """
    rating_score = clamp(product.rating / 5) if product.rating else 0.0

    # Log scale: 10 reviews and 10k reviews should not be 1000x apart
    review_volume_score = 0.0
    if product.ratings_total and product.ratings_total > 0:
        review_volume_score = clamp(_log_ratio(product.ratings_total, config.max_reviews))

    strategy = DEMAND_TIER_STRATEGIES[product.source_kind]

    return {
        "rating_score": rating_score,
        "review_volume_score": review_volume_score,
        "demand_tier_score": clamp(strategy(product, config)),
    }


# --- Price ---


def extract_price_signals(
    snapshot: Optional[NormalizedPriceSnapshot],
    config: ScoringConfig,
) -> dict[str, float]:
    """Price competitiveness, BSR competitiveness and Prime eligibility.

    Price competitiveness is the markup over cost when both prices are
    known, 0.5 when only one is, 0 otherwise. A non-Prime listing (or no
    snapshot at all) gets a penalty score rather than zero.
    """
    price_competitiveness_score = 0.0
    bsr_competitiveness_score = 0.0
    prime_eligibility_score = config.non_prime_score

    if snapshot is None:
        return {
            "price_competitiveness_score": price_competitiveness_score,
            "bsr_competitiveness_score": bsr_competitiveness_score,
            "prime_eligibility_score": prime_eligibility_score,
        }

    if snapshot.current_price and snapshot.cost_price:
        margin = (snapshot.current_price - snapshot.cost_price) / snapshot.cost_price
        price_competitiveness_score = clamp(margin)
    elif snapshot.current_price or snapshot.cost_price:
        price_competitiveness_score = 0.5

    # Lower rank is better; rank 1 scores 1.0, max_bsr_rank and beyond 0
    if snapshot.bsr_rank and snapshot.bsr_rank > 0:
        bsr_competitiveness_score = clamp(1 - _log_ratio(snapshot.bsr_rank, config.max_bsr_rank))

    if snapshot.is_prime:
        prime_eligibility_score = 1.0

    return {
        "price_competitiveness_score": price_competitiveness_score,
        "bsr_competitiveness_score": bsr_competitiveness_score,
        "prime_eligibility_score": prime_eligibility_score,
    }


# --- Content ---


def _image_score(image_count: int, config: ScoringConfig) -> float:
    if image_count < config.min_images:
        return 0.0
    return min(image_count / config.max_images, 1.0)


def _description_score(description: Optional[str], config: ScoringConfig) -> float:
    if not description or len(description) < config.min_description_length:
        return 0.0
    span = config.max_description_length - config.min_description_length
    return min((len(description) - config.min_description_length) / span, 1.0)


def extract_content_signals(
    product: NormalizedProduct,
    config: ScoringConfig,
    now: datetime,
) -> dict[str, float]:
    """Content richness, category specificity and data freshness."""
    content_richness_score = clamp(
        _image_score(len(product.images), config) * config.image_share
        + _description_score(product.description, config) * config.description_share
    )

    # "Home > Kitchen > Knives" is 3 levels, worth 2 * depth bonus
    category_specificity_score = 0.0
    if product.category:
        levels = len(product.category.split(">"))
        category_specificity_score = clamp((levels - 1) * config.category_depth_bonus)

    data_freshness_score = 0.0
    if product.updated_at is not None:
        hours = (as_utc(now) - as_utc(product.updated_at)).total_seconds() / 3600
        if hours <= config.data_freshness_hours:
            data_freshness_score = clamp(1 - hours / config.data_freshness_hours)

    return {
        "content_richness_score": content_richness_score,
        "category_specificity_score": category_specificity_score,
        "data_freshness_score": data_freshness_score,
    }


# --- Market ---


def _saturation_score(product: NormalizedProduct, config: ScoringConfig) -> float:
    reviews = product.ratings_total
    rating = product.rating
    if not (reviews and rating):
        return 0.0

    # Many reviews but a middling rating means a crowded market
    if reviews > config.high_saturation_reviews and rating < config.high_saturation_max_rating:
        return config.high_saturation_score
    if reviews > config.medium_saturation_reviews and rating < config.medium_saturation_max_rating:
        return config.medium_saturation_score
    if reviews < config.low_saturation_reviews:
        return config.low_saturation_score
    return config.default_saturation_score


def _brand_score(brand: Optional[str], config: ScoringConfig) -> float:
    if not brand:
        return 0.3

    name = brand.lower()
    if any(major in name for major in config.major_brands):
        return 1.0
    if len(name) > 2 and name not in config.generic_brands:
        return 0.6
    if len(name) > 1:
        return 0.4
    return 0.3


def extract_market_signals(
    product: NormalizedProduct,
    config: ScoringConfig,
) -> dict[str, float]:
    """Market saturation and brand recognition."""
    return {
        "market_saturation_score": clamp(_saturation_score(product, config)),
        "brand_recognition_score": clamp(_brand_score(product.brand, config)),
    }


# --- Confidence ---


def calculate_feature_confidence(
    product: NormalizedProduct,
    snapshot: Optional[NormalizedPriceSnapshot],
    config: ScoringConfig,
) -> float:
    """Data completeness estimate in [0, 1].

    Applied later as a multiplier on the overall score, not as a scoring
    category of its own.
    """
    confidence = config.base_confidence

    if product.rating and product.ratings_total:
        confidence += 0.2
    if snapshot is not None:
        confidence += 0.2
    if len(product.images) > 0:
        confidence += 0.1
    if product.description and len(product.description) > 100:
        confidence += 0.1

    return clamp(confidence)


def _weighted(signals: dict[str, float], weights: dict[str, float]) -> float:
    return clamp(sum(signals[name] * weight for name, weight in weights.items()))


def extract_features(
    product: NormalizedProduct,
    price_snapshot: Optional[NormalizedPriceSnapshot] = None,
    storefront_product: Optional[NormalizedShopifyProduct] = None,
    config: Optional[ScoringConfig] = None,
    now: Optional[datetime] = None,
) -> FeatureVector:
    """Build the feature vector for a product.

    This is the main entry point for extraction. It is a pure function of
    its arguments: pass ``now`` to make data freshness reproducible.

    Args:
        product: Normalized catalog product
        price_snapshot: Latest price/rank snapshot, if any
        storefront_product: Storefront listing, if any. Reserved for
            storefront signals; no feature reads it yet.
        config: Scoring configuration (uses defaults if None)
        now: Reference time for freshness (defaults to current UTC time)

    Returns:
        FeatureVector with every signal in [0, 1]
    """
    if config is None:
        config = ScoringConfig()
    if now is None:
        now = datetime.now(timezone.utc)

    signals: dict[str, float] = {}
    signals.update(extract_demand_signals(product, config))
    signals.update(extract_price_signals(price_snapshot, config))
    signals.update(extract_content_signals(product, config, now))
    signals.update(extract_market_signals(product, config))

    # Composite scores
    opportunity_inputs = dict(signals, saturation=1 - signals["market_saturation_score"])
    composites = {
        "demand_strength": _weighted(signals, DEMAND_WEIGHTS),
        "price_advantage": _weighted(signals, PRICE_WEIGHTS),
        "content_quality": _weighted(signals, CONTENT_WEIGHTS),
        "market_opportunity": _weighted(opportunity_inputs, MARKET_OPPORTUNITY_WEIGHTS),
    }

    return FeatureVector(
        product_id=product.id,
        asin=product.asin,
        source=product.source,
        **signals,
        **composites,
        feature_confidence=calculate_feature_confidence(product, price_snapshot, config),
        extraction_timestamp=now,
    )
