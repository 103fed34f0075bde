# tests/conftest.py

"""Shared pytest fixtures for all price_tracker tests."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest

from price_tracker.config.settings import Settings


@pytest.fixture(autouse=True)
def isolated_paths(tmp_path: Path) -> Generator[None, None, None]:
    """Point the database, charts and logs at a per-test temp dir."""
    with (
        patch.object(Settings, "PRICE_DB_PATH", tmp_path / "prices.db"),
        patch.object(Settings, "CHARTS_DIR", tmp_path / "charts"),
        patch.object(Settings, "LOGS_DIR", tmp_path / "logs"),
    ):
        yield
