"""Tests for the command-line interface."""

import asyncio
import json
from datetime import datetime, timezone

import pytest

from product_intel.cli import create_example_product, main
from product_intel.config import get_settings
from product_intel.db.base import Database
from product_intel.db.models import Product


@pytest.fixture
def cli_database_url(tmp_path, monkeypatch) -> str:
    """Point the CLI at a temporary database."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    get_settings.cache_clear()
    yield url
    get_settings.cache_clear()


def add_catalog_product(url: str) -> None:
    async def _add() -> None:
        database = Database(url)
        try:
            async with database.session_maker() as session:
                session.add(
                    Product(
                        id="cli-1",
                        asin="B0CLI00001",
                        title="CLI Product",
                        rating=4.4,
                        ratings_total=2500,
                        source="rainforest_import",
                        updated_at=datetime.now(timezone.utc),
                    )
                )
                await session.commit()
        finally:
            await database.dispose()

    asyncio.run(_add())


class TestExampleCommand:
    """Tests for `example`."""

    def test_prints_json(self, capsys):
        assert main(["example"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["product"]["id"] == "example-001"
        assert data["price_snapshot"]["is_prime"] is True

    def test_pretty(self, capsys):
        assert main(["example", "--pretty"]) == 0
        assert "\n  " in capsys.readouterr().out


class TestScoreCommand:
    """Tests for `score`."""

    def test_example_product(self, capsys):
        assert main(["score"]) == 0

        out = capsys.readouterr().out
        assert "Using example product" in out
        assert create_example_product().title in out
        assert "Tier:" in out
        assert "Score:" in out

    def test_json_input(self, capsys):
        payload = {
            "product": {"id": "json-1", "title": "Bare Product"},
        }

        assert main(["score", "--json", json.dumps(payload)]) == 0

        out = capsys.readouterr().out
        assert "Bare Product" in out
        # Bare product scores well below C
        assert "Tier: D (Poor)" in out
        assert "Insufficient data" not in out

    def test_example_output_round_trips(self, capsys):
        main(["example"])
        example = capsys.readouterr().out.strip()

        assert main(["score", "--json", example]) == 0
        assert "Wireless Noise Cancelling Headphones" in capsys.readouterr().out


class TestDatabaseCommands:
    """Tests for `init-db`, `rescore` and `stats`."""

    def test_stats_on_empty_store(self, cli_database_url, capsys):
        assert main(["init-db"]) == 0
        assert "Database initialized!" in capsys.readouterr().out

        assert main(["stats"]) == 0
        out = capsys.readouterr().out
        assert "Total scored:  0" in out
        assert "Average score: 0" in out

    def test_rescore_then_stats(self, cli_database_url, capsys):
        main(["init-db"])
        add_catalog_product(cli_database_url)
        capsys.readouterr()

        assert main(["rescore", "--limit", "10", "--min-age-hours", "1"]) == 0
        out = capsys.readouterr().out
        assert "Processed: 1" in out
        assert "Errors:    0" in out

        main(["stats"])
        assert "Total scored:  1" in capsys.readouterr().out

    def test_stats_without_tables(self, cli_database_url, capsys):
        assert main(["stats"]) == 1
        assert "Failed to read stats" in capsys.readouterr().out


class TestNoCommand:
    """Tests for missing command."""

    def test_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out
