"""Database models for catalog products, scores and the analysis log."""

import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Float, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from product_intel.db.base import Base


class AnalysisType(str, enum.Enum):
    """Kind of analysis recorded in the audit log."""

    INITIAL = "initial"  # No previous score existed
    RE_SCORE = "re_score"


class Product(Base):
    """Catalog product, owned by the catalog. Read here for rescoring."""

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    asin: Mapped[str | None] = mapped_column(String(20), nullable=True, index=True)
    title: Mapped[str] = mapped_column(String(500), default="")
    brand: Mapped[str | None] = mapped_column(String(255), nullable=True)
    category: Mapped[str | None] = mapped_column(String(500), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Media
    main_image: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    images: Mapped[list[str]] = mapped_column(JSON, default=list)

    # Reviews
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    ratings_total: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Status
    status: Mapped[str] = mapped_column(String(50), default="active")
    source: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True,
    )
    last_price_check: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Product {self.id}: {self.title}>"


class ProductScore(Base):
    """Latest score for a product. One row per product."""

    __tablename__ = "product_scores"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    product_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)

    # Scores (0-100)
    overall_score: Mapped[int] = mapped_column(Integer, index=True)
    demand_score: Mapped[int] = mapped_column(Integer)
    price_score: Mapped[int] = mapped_column(Integer)
    content_score: Mapped[int] = mapped_column(Integer)
    market_score: Mapped[int] = mapped_column(Integer)

    # Insights (ordered)
    recommendations: Mapped[list[str]] = mapped_column(JSON, default=list)
    risk_factors: Mapped[list[str]] = mapped_column(JSON, default=list)
    opportunities: Mapped[list[str]] = mapped_column(JSON, default=list)

    feature_confidence: Mapped[float] = mapped_column(Float)
    score_tier: Mapped[str] = mapped_column(String(2), index=True)

    # Timestamps
    scored_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<ProductScore {self.product_id}: {self.overall_score} ({self.score_tier})>"


class FeatureVectorRecord(Base):
    """Feature vector behind the latest score. One row per product."""

    __tablename__ = "feature_vectors"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    product_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    asin: Mapped[str | None] = mapped_column(String(20), nullable=True, index=True)
    source: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Demand signals
    rating_score: Mapped[float] = mapped_column(Float)
    review_volume_score: Mapped[float] = mapped_column(Float)
    demand_tier_score: Mapped[float] = mapped_column(Float)

    # Price signals
    price_competitiveness_score: Mapped[float] = mapped_column(Float)
    bsr_competitiveness_score: Mapped[float] = mapped_column(Float)
    prime_eligibility_score: Mapped[float] = mapped_column(Float)

    # Content signals
    content_richness_score: Mapped[float] = mapped_column(Float)
    category_specificity_score: Mapped[float] = mapped_column(Float)
    data_freshness_score: Mapped[float] = mapped_column(Float)

    # Market signals
    market_saturation_score: Mapped[float] = mapped_column(Float)
    brand_recognition_score: Mapped[float] = mapped_column(Float)

    # Composites
    demand_strength: Mapped[float] = mapped_column(Float, index=True)
    price_advantage: Mapped[float] = mapped_column(Float)
    content_quality: Mapped[float] = mapped_column(Float)
    market_opportunity: Mapped[float] = mapped_column(Float)

    # Metadata
    feature_confidence: Mapped[float] = mapped_column(Float)
    extraction_timestamp: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<FeatureVectorRecord {self.product_id}>"


class AnalysisLogEntry(Base):
    """Append-only audit row, one per analysis attempt."""

    __tablename__ = "analysis_log"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    product_id: Mapped[str] = mapped_column(String(64), index=True)
    analysis_type: Mapped[str] = mapped_column(String(20), default=AnalysisType.RE_SCORE.value)

    previous_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    new_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    score_change: Mapped[int | None] = mapped_column(Integer, nullable=True)
    processing_time_ms: Mapped[int] = mapped_column(Integer, default=0)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    triggered_by: Mapped[str] = mapped_column(String(50), default="system")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True,
    )

    def __repr__(self) -> str:
        return f"<AnalysisLogEntry {self.product_id}: {self.score_change}>"
