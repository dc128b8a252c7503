"""Command-line interface for the scoring pipeline."""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from product_intel.config import Settings, get_settings
from product_intel.db.base import Database
from product_intel.db.persistence import ScorePersistence
from product_intel.scoring.features import extract_features
from product_intel.scoring.models import NormalizedPriceSnapshot, NormalizedProduct
from product_intel.scoring.scorer import describe_tier, score_features
from product_intel.services.analysis import AnalysisService


def create_example_product() -> NormalizedProduct:
    """Create an example imported product with full data."""
    return NormalizedProduct(
        id="example-001",
        asin="B0EXAMPLE1",
        title="Wireless Noise Cancelling Headphones",
        brand="Sony",
        category="Electronics > Headphones > Over-Ear Headphones",
        description=(
            "Industry-leading noise cancellation with dual processors. "
            "Up to 30 hours of battery life with quick charging, touch "
            "controls and speak-to-chat. Lightweight design for all-day comfort."
        ),
        main_image="https://example.com/images/headphones-1.jpg",
        images=[f"https://example.com/images/headphones-{i}.jpg" for i in range(1, 8)],
        rating=4.6,
        ratings_total=12500,
        source="rainforest_import",
        updated_at=datetime.now(timezone.utc),
    )


def create_example_price_snapshot() -> NormalizedPriceSnapshot:
    """Create a price snapshot for the example product."""
    return NormalizedPriceSnapshot(
        product_id="example-001",
        asin="B0EXAMPLE1",
        current_price=279.99,
        cost_price=189.00,
        bsr_rank=850,
        bsr_category="Electronics",
        is_prime=True,
        availability="In Stock",
    )


def example_payload() -> dict[str, Any]:
    """Example input as JSON-compatible data."""
    return {
        "product": create_example_product().model_dump(mode="json", exclude_none=True),
        "price_snapshot": create_example_price_snapshot().model_dump(
            mode="json", exclude_none=True
        ),
    }


def score_command(args: argparse.Namespace) -> None:
    """Score a product from JSON or use example."""
    if args.json:
        data = json.loads(args.json)
        product = NormalizedProduct(**data["product"])
        snapshot_data = data.get("price_snapshot")
        price_snapshot = NormalizedPriceSnapshot(**snapshot_data) if snapshot_data else None
    else:
        product = create_example_product()
        price_snapshot = create_example_price_snapshot()
        print("Using example product (use --json to provide your own)\n")

    result = score_features(extract_features(product, price_snapshot))
    tier = describe_tier(result.score_tier)
    features = result.feature_vector

    # Output
    print(f"Product: {product.title or product.id}")
    print(f"{'=' * 50}")
    print(f"\nFeatures:")
    print(f"  Demand strength:    {features.demand_strength:.2f}")
    print(f"  Price advantage:    {features.price_advantage:.2f}")
    print(f"  Content quality:    {features.content_quality:.2f}")
    print(f"  Market opportunity: {features.market_opportunity:.2f}")
    print(f"  Confidence:         {features.feature_confidence:.2f}")

    print(f"\nScoring:")
    print(f"  Score: {result.overall_score}/100")
    print(f"\n  Breakdown:")
    for category, points in result.score_breakdown.model_dump().items():
        print(f"    {category:8}: {points}")

    for heading, items in (
        ("Recommendations", result.recommendations),
        ("Risks", result.risk_factors),
        ("Opportunities", result.opportunities),
    ):
        if items:
            print(f"\n{heading}:")
            for item in items:
                print(f"  - {item}")

    print(f"\n{'=' * 50}")
    print(f"Tier: {tier['tier']} ({tier['label']}) - {tier['description']}")


async def init_db_command(settings: Settings) -> None:
    """Create all tables."""
    database = Database(settings.database_url)
    try:
        await database.create_all()
    finally:
        await database.dispose()
    print("Database initialized!")


async def rescore_command(args: argparse.Namespace, settings: Settings) -> int:
    """Rescore catalog products that are due."""
    database = Database(settings.database_url)
    try:
        service = AnalysisService(ScorePersistence(database), settings)
        summary = await service.rescore_all_products(
            limit=args.limit,
            min_age_hours=args.min_age_hours,
        )
    finally:
        await database.dispose()

    if not summary.success:
        print("Rescore failed: could not select products")
        return 1

    print(f"Processed: {summary.processed}")
    print(f"Errors:    {summary.errors}")
    return 0


async def stats_command(settings: Settings) -> int:
    """Print scoring statistics."""
    database = Database(settings.database_url)
    try:
        result = await ScorePersistence(database).get_scoring_stats()
    finally:
        await database.dispose()

    if not result.success:
        print(f"Failed to read stats: {result.error}")
        return 1

    stats = result.data
    print(f"Total scored:  {stats.total_scored}")
    print(f"Average score: {stats.average_score}")
    print(f"Last scored:   {stats.last_scored_at or '-'}")
    if stats.tier_distribution:
        print("\nTiers:")
        for tier, count in sorted(stats.tier_distribution.items()):
            print(f"  {tier:3}: {count}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="product-intel",
        description="Product Scoring Pipeline",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Score command
    score_parser = subparsers.add_parser("score", help="Score a product")
    score_parser.add_argument(
        "--json",
        type=str,
        help='Input as JSON string: {"product": {...}, "price_snapshot": {...}}',
    )

    # Example command
    example_parser = subparsers.add_parser(
        "example",
        help="Show example input JSON",
    )
    example_parser.add_argument(
        "--pretty",
        action="store_true",
        help="Pretty print JSON",
    )

    # Database commands
    subparsers.add_parser("init-db", help="Create database tables")

    rescore_parser = subparsers.add_parser("rescore", help="Rescore stale catalog products")
    rescore_parser.add_argument(
        "--limit",
        type=int,
        help="Maximum products to rescore (default: from settings)",
    )
    rescore_parser.add_argument(
        "--min-age-hours",
        type=float,
        help="Rescore products not updated for this many hours (default: from settings)",
    )

    subparsers.add_parser("stats", help="Show scoring statistics")

    args = parser.parse_args(argv)

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "score":
        score_command(args)
    elif args.command == "example":
        data = example_payload()
        if args.pretty:
            print(json.dumps(data, indent=2))
        else:
            print(json.dumps(data))
    elif args.command == "init-db":
        asyncio.run(init_db_command(settings))
    elif args.command == "rescore":
        return asyncio.run(rescore_command(args, settings))
    elif args.command == "stats":
        return asyncio.run(stats_command(settings))
    else:
        parser.print_help()
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
