"""Data models for product scoring.

Inputs are normalized snapshots produced upstream (catalog, price sync,
storefront sync). Everything derived from them - the feature vector and
the score result - is immutable.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SourceKind(str, Enum):
    """Where a catalog product was ingested from."""

    IMPORT = "rainforest_import"
    STOREFRONT = "shopify"
    OTHER = "other"

    @classmethod
    def resolve(cls, source: Optional[str]) -> "SourceKind":
        """Map a raw source tag onto a known kind, OTHER if unrecognized."""
        for kind in (cls.IMPORT, cls.STOREFRONT):
            if source == kind.value:
                return kind
        return cls.OTHER


class ScoreTier(str, Enum):
    """Letter grade for an overall score."""

    A_PLUS = "A+"
    A = "A"
    B = "B"
    C = "C"
    D = "D"


# Lower bound (inclusive) for each tier, highest first
TIER_THRESHOLDS: list[tuple[int, ScoreTier]] = [
    (90, ScoreTier.A_PLUS),
    (80, ScoreTier.A),
    (70, ScoreTier.B),
    (60, ScoreTier.C),
]

TIER_DESCRIPTIONS: dict[ScoreTier, tuple[str, str]] = {
    ScoreTier.A_PLUS: ("Excellent", "Outstanding product with strong market position"),
    ScoreTier.A: ("Very Good", "Strong product with good market potential"),
    ScoreTier.B: ("Good", "Decent product with moderate potential"),
    ScoreTier.C: ("Fair", "Product needs improvement to compete"),
    ScoreTier.D: ("Poor", "Significant issues need addressing"),
}


# --- Weights ---

# Category weights (sum to 1.0)
CATEGORY_WEIGHTS: dict[str, float] = {
    "demand": 0.35,  # Market demand and traction
    "price": 0.30,  # Price competitiveness and margins
    "content": 0.20,  # Content quality and completeness
    "market": 0.15,  # Market position and opportunity
}

DEMAND_WEIGHTS: dict[str, float] = {
    "rating_score": 0.4,
    "review_volume_score": 0.3,
    "demand_tier_score": 0.3,
}

PRICE_WEIGHTS: dict[str, float] = {
    "price_competitiveness_score": 0.4,
    "bsr_competitiveness_score": 0.3,
    "prime_eligibility_score": 0.3,
}

CONTENT_WEIGHTS: dict[str, float] = {
    "content_richness_score": 0.5,
    "category_specificity_score": 0.3,
    "data_freshness_score": 0.2,
}

# Market category; saturation is inverted before weighting
MARKET_WEIGHTS: dict[str, float] = {
    "saturation": 0.4,
    "brand_recognition_score": 0.3,
    "market_opportunity": 0.3,
}

# Composite market_opportunity on the vector itself uses BSR as the
# position signal instead of the composite
MARKET_OPPORTUNITY_WEIGHTS: dict[str, float] = {
    "saturation": 0.4,
    "brand_recognition_score": 0.3,
    "bsr_competitiveness_score": 0.3,
}


# --- Inputs ---


class NormalizedProduct(BaseModel):
    """Catalog product as produced by the normalization layer."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Catalog product id")
    asin: str = Field("", description="Amazon ASIN")
    title: str = Field("", description="Product title")
    brand: Optional[str] = Field(None, description="Brand name")
    category: Optional[str] = Field(None, description="'>'-separated category path")
    description: Optional[str] = Field(None, description="Plain-text description")
    main_image: str = Field("", description="Primary image URL")
    images: list[str] = Field(default_factory=list, description="All image URLs")
    rating: Optional[float] = Field(None, description="Average star rating (0-5)")
    ratings_total: Optional[int] = Field(None, description="Number of ratings")
    status: str = Field("active", description="Catalog status")
    source: str = Field("unknown", description="Ingestion source tag")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def source_kind(self) -> SourceKind:
        return SourceKind.resolve(self.source)


class NormalizedPriceSnapshot(BaseModel):
    """Latest price / rank data for a product."""

    model_config = ConfigDict(frozen=True)

    product_id: Optional[str] = None
    asin: Optional[str] = None
    current_price: Optional[float] = Field(None, description="Our selling price (USD)")
    cost_price: Optional[float] = Field(None, description="Supplier cost (USD)")
    bsr_rank: Optional[int] = Field(None, description="Best Sellers Rank")
    bsr_category: Optional[str] = None
    is_prime: Optional[bool] = None
    availability: Optional[str] = None
    sync_date: Optional[datetime] = None


class NormalizedShopifyProduct(BaseModel):
    """Storefront listing for a product.

    Accepted by extraction but not read by any feature yet; reserved for
    storefront-side signals.
    """

    model_config = ConfigDict(frozen=True)

    shopify_id: Optional[int] = None
    product_id: Optional[str] = None
    title: str = ""
    handle: str = ""
    vendor: str = ""
    status: str = ""
    body_html: str = ""
    tags: str = ""
    published_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ScoringConfig(BaseModel):
    """Tunable constants and business heuristics used by extraction."""

    # Caps for log-scaled signals
    max_reviews: int = Field(100_000, description="Review count treated as 1.0")
    max_bsr_rank: int = Field(100_000, description="BSR rank treated as 0.0")

    # Content
    min_description_length: int = 50
    max_description_length: int = 2000
    min_images: int = Field(3, description="Images below this count score nothing")
    max_images: int = 10
    image_share: float = Field(0.6, description="Share of content richness from images")
    description_share: float = 0.4
    category_depth_bonus: float = Field(0.2, description="Score per category level past the first")

    # Freshness
    data_freshness_hours: float = 24.0

    # Demand tier (import-sourced products)
    high_demand_reviews: int = 5000
    high_demand_rating: float = 4.5
    medium_demand_reviews: int = 1000
    medium_demand_rating: float = 4.0
    storefront_demand_tier: float = 0.6
    default_demand_tier: float = 0.3

    # Prime
    non_prime_score: float = Field(0.3, description="Penalty score for non-Prime listings")

    # Market saturation buckets
    high_saturation_reviews: int = 10_000
    high_saturation_max_rating: float = 4.5
    high_saturation_score: float = 0.8
    medium_saturation_reviews: int = 5000
    medium_saturation_max_rating: float = 4.0
    medium_saturation_score: float = 0.6
    low_saturation_reviews: int = 1000
    low_saturation_score: float = 0.2
    default_saturation_score: float = 0.4

    # Brand recognition
    major_brands: tuple[str, ...] = (
        "sony",
        "samsung",
        "apple",
        "lg",
        "microsoft",
        "canon",
        "nikon",
        "panasonic",
        "philips",
        "bosch",
        "black & decker",
        "craftsman",
        "colgate",
        "crest",
        "gillette",
        "schick",
        "neutrogena",
        "clean & clear",
    )
    generic_brands: tuple[str, ...] = ("unknown", "generic")

    # Confidence
    base_confidence: float = 0.5


# --- Derived values ---


class FeatureVector(BaseModel):
    """Normalized [0, 1] summary of one product's signals."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    # Identity
    product_id: str
    asin: Optional[str] = ""
    source: Optional[str] = "unknown"

    # Demand signals
    rating_score: float = Field(0.0, ge=0, le=1)
    review_volume_score: float = Field(0.0, ge=0, le=1)
    demand_tier_score: float = Field(0.0, ge=0, le=1)

    # Price signals
    price_competitiveness_score: float = Field(0.0, ge=0, le=1)
    bsr_competitiveness_score: float = Field(0.0, ge=0, le=1)
    prime_eligibility_score: float = Field(0.0, ge=0, le=1)

    # Content signals
    content_richness_score: float = Field(0.0, ge=0, le=1)
    category_specificity_score: float = Field(0.0, ge=0, le=1)
    data_freshness_score: float = Field(0.0, ge=0, le=1)

    # Market signals
    market_saturation_score: float = Field(0.0, ge=0, le=1)
    brand_recognition_score: float = Field(0.0, ge=0, le=1)

    # Composites
    demand_strength: float = Field(0.0, ge=0, le=1)
    price_advantage: float = Field(0.0, ge=0, le=1)
    content_quality: float = Field(0.0, ge=0, le=1)
    market_opportunity: float = Field(0.0, ge=0, le=1)

    # Metadata
    feature_confidence: float = Field(0.0, ge=0, le=1)
    extraction_timestamp: Optional[datetime] = None

    @field_validator("extraction_timestamp")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value) if value is not None else None


class ScoreBreakdown(BaseModel):
    """Weighted contribution of each category, scaled to 0-100.

    Components are rounded independently and are not adjusted for
    feature confidence, so they need not sum to the overall score.
    """

    model_config = ConfigDict(frozen=True)

    demand: int
    price: int
    content: int
    market: int


class ScoreResult(BaseModel):
    """Output of the scoring engine for one feature vector."""

    model_config = ConfigDict(frozen=True)

    product_id: str
    overall_score: int = Field(..., ge=0, le=100)
    score_tier: ScoreTier
    score_breakdown: ScoreBreakdown
    feature_vector: FeatureVector
    recommendations: list[str] = Field(default_factory=list, max_length=5)
    risk_factors: list[str] = Field(default_factory=list, max_length=5)
    opportunities: list[str] = Field(default_factory=list, max_length=5)


class ScoreRecord(BaseModel):
    """Persisted score row for a product."""

    model_config = ConfigDict(from_attributes=True)

    product_id: str
    overall_score: int
    demand_score: int
    price_score: int
    content_score: int
    market_score: int
    recommendations: list[str] = Field(default_factory=list)
    risk_factors: list[str] = Field(default_factory=list)
    opportunities: list[str] = Field(default_factory=list)
    feature_confidence: float
    score_tier: ScoreTier
    scored_at: datetime
    updated_at: Optional[datetime] = None

    @field_validator("scored_at", "updated_at")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # SQLite hands back naive datetimes; stored values are UTC
        return as_utc(value) if value is not None else None


class AnalysisLogRecord(BaseModel):
    """Audit row for one analysis attempt."""

    model_config = ConfigDict(from_attributes=True)

    product_id: str
    analysis_type: str
    previous_score: Optional[int] = None
    new_score: Optional[int] = None
    score_change: Optional[int] = None
    processing_time_ms: int
    triggered_by: str
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("created_at")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value) if value is not None else None


class ScoringStats(BaseModel):
    """Summary over all persisted scores."""

    total_scored: int = 0
    average_score: int = 0
    tier_distribution: dict[str, int] = Field(default_factory=dict)
    last_scored_at: Optional[datetime] = None

    @field_validator("last_scored_at")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value) if value is not None else None
