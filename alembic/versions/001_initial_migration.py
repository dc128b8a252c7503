"""Initial migration - catalog products, scores, feature vectors, analysis log.

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create products table (catalog, read for rescoring)
    op.create_table(
        "products",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("asin", sa.String(20), nullable=True, index=True),
        sa.Column("title", sa.String(500), nullable=False, server_default=""),
        sa.Column("brand", sa.String(255), nullable=True),
        sa.Column("category", sa.String(500), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        # Media
        sa.Column("main_image", sa.String(1000), nullable=True),
        sa.Column("images", postgresql.JSON(), nullable=False, server_default="[]"),
        # Reviews
        sa.Column("rating", sa.Float(), nullable=True),
        sa.Column("ratings_total", sa.Integer(), nullable=True),
        # Status
        sa.Column("status", sa.String(50), nullable=False, server_default="active"),
        sa.Column("source", sa.String(50), nullable=True),
        # Timestamps
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
        sa.Column("last_price_check", sa.DateTime(timezone=True), nullable=True),
    )

    # Create product_scores table
    op.create_table(
        "product_scores",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("product_id", sa.String(64), nullable=False, unique=True, index=True),
        # Scores (0-100)
        sa.Column("overall_score", sa.Integer(), nullable=False, index=True),
        sa.Column("demand_score", sa.Integer(), nullable=False),
        sa.Column("price_score", sa.Integer(), nullable=False),
        sa.Column("content_score", sa.Integer(), nullable=False),
        sa.Column("market_score", sa.Integer(), nullable=False),
        # Insights
        sa.Column("recommendations", postgresql.JSON(), nullable=False, server_default="[]"),
        sa.Column("risk_factors", postgresql.JSON(), nullable=False, server_default="[]"),
        sa.Column("opportunities", postgresql.JSON(), nullable=False, server_default="[]"),
        sa.Column("feature_confidence", sa.Float(), nullable=False),
        sa.Column("score_tier", sa.String(2), nullable=False, index=True),
        # Timestamps
        sa.Column("scored_at", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("overall_score BETWEEN 0 AND 100", name="ck_product_scores_overall"),
        sa.CheckConstraint(
            "score_tier IN ('A+', 'A', 'B', 'C', 'D')",
            name="ck_product_scores_tier",
        ),
    )

    # Create feature_vectors table
    op.create_table(
        "feature_vectors",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("product_id", sa.String(64), nullable=False, unique=True, index=True),
        sa.Column("asin", sa.String(20), nullable=True, index=True),
        sa.Column("source", sa.String(50), nullable=True),
        # Demand signals
        sa.Column("rating_score", sa.Float(), nullable=False),
        sa.Column("review_volume_score", sa.Float(), nullable=False),
        sa.Column("demand_tier_score", sa.Float(), nullable=False),
        # Price signals
        sa.Column("price_competitiveness_score", sa.Float(), nullable=False),
        sa.Column("bsr_competitiveness_score", sa.Float(), nullable=False),
        sa.Column("prime_eligibility_score", sa.Float(), nullable=False),
        # Content signals
        sa.Column("content_richness_score", sa.Float(), nullable=False),
        sa.Column("category_specificity_score", sa.Float(), nullable=False),
        sa.Column("data_freshness_score", sa.Float(), nullable=False),
        # Market signals
        sa.Column("market_saturation_score", sa.Float(), nullable=False),
        sa.Column("brand_recognition_score", sa.Float(), nullable=False),
        # Composites
        sa.Column("demand_strength", sa.Float(), nullable=False, index=True),
        sa.Column("price_advantage", sa.Float(), nullable=False),
        sa.Column("content_quality", sa.Float(), nullable=False),
        sa.Column("market_opportunity", sa.Float(), nullable=False),
        # Metadata
        sa.Column("feature_confidence", sa.Float(), nullable=False),
        sa.Column("extraction_timestamp", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # Create analysis_log table (append-only)
    op.create_table(
        "analysis_log",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("product_id", sa.String(64), nullable=False, index=True),
        sa.Column("analysis_type", sa.String(20), nullable=False, server_default="re_score"),
        sa.Column("previous_score", sa.Integer(), nullable=True),
        sa.Column("new_score", sa.Integer(), nullable=True),
        sa.Column("score_change", sa.Integer(), nullable=True),
        sa.Column("processing_time_ms", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("triggered_by", sa.String(50), nullable=False, server_default="system"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
    )


def downgrade() -> None:
    op.drop_table("analysis_log")
    op.drop_table("feature_vectors")
    op.drop_table("product_scores")
    op.drop_table("products")
