"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator

import pytest

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
for _import_root in (_PROJECT_ROOT / "src", _PROJECT_ROOT):
    if str(_import_root) not in sys.path:
        sys.path.insert(0, str(_import_root))

from core.config import TripscopeConfig  # noqa: E402
from store.trip_database import TripDatabase  # noqa: E402
from tests.fixture_paths import MANHATTAN_ZONE, QUEENS_ZONE  # noqa: E402


@pytest.fixture
def tripscope_config(tmp_path: Path) -> TripscopeConfig:
    """Config rooted in a per-test temporary directory."""
    return TripscopeConfig(data_root=tmp_path, batch_size=2)


@pytest.fixture
def trip_database(tripscope_config: TripscopeConfig) -> Iterator[TripDatabase]:
    """SQLite store with schema created and no rows."""
    database = TripDatabase.from_url(tripscope_config.resolved_database_url())
    database.create_schema()
    yield database
    database.dispose()


@pytest.fixture
def zone_database(trip_database: TripDatabase) -> TripDatabase:
    """SQLite store holding the Manhattan and Queens zones with centroids."""
    trip_database.replace_zones([MANHATTAN_ZONE, QUEENS_ZONE])
    return trip_database
