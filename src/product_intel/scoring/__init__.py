"""Product scoring module."""

from product_intel.scoring.features import (
    calculate_feature_confidence,
    extract_content_signals,
    extract_demand_signals,
    extract_features,
    extract_market_signals,
    extract_price_signals,
)
from product_intel.scoring.models import (
    FeatureVector,
    NormalizedPriceSnapshot,
    NormalizedProduct,
    NormalizedShopifyProduct,
    ScoreBreakdown,
    ScoreRecord,
    ScoreResult,
    ScoreTier,
    ScoringConfig,
    SourceKind,
)
from product_intel.scoring.rules import (
    generate_recommendations,
    identify_opportunities,
    identify_risk_factors,
)
from product_intel.scoring.scorer import (
    batch_score,
    calculate_component_scores,
    describe_tier,
    get_score_tier,
    score_features,
)

__all__ = [
    # Models
    "FeatureVector",
    "NormalizedPriceSnapshot",
    "NormalizedProduct",
    "NormalizedShopifyProduct",
    "ScoreBreakdown",
    "ScoreRecord",
    "ScoreResult",
    "ScoreTier",
    "ScoringConfig",
    "SourceKind",
    # Extraction
    "calculate_feature_confidence",
    "extract_content_signals",
    "extract_demand_signals",
    "extract_features",
    "extract_market_signals",
    "extract_price_signals",
    # Rules
    "generate_recommendations",
    "identify_opportunities",
    "identify_risk_factors",
    # Scorer
    "batch_score",
    "calculate_component_scores",
    "describe_tier",
    "get_score_tier",
    "score_features",
]
