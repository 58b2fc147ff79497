"""Unit tests for zone polygon centroids."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.errors import TripscopeGeometryError, TripscopeIngestError
from ingest.zone_geometry import (
    ZoneShape,
    build_transformer,
    iter_zone_shapes,
    ring_centroid,
    zone_centroid,
)
from tests.fixture_paths import MIDTOWN_SQUARE, write_zone_shapefile


def test_ring_centroid_averages_numeric_vertices() -> None:
    """The centroid is the arithmetic mean of the vertices."""
    ring = [[0.0, 0.0], [4.0, 0.0], [4.0, 2.0], [0.0, 2.0], [None, 7.0]]

    assert ring_centroid(ring) == (2.0, 1.0)


def test_ring_centroid_raises_without_numeric_vertices() -> None:
    """A ring with nothing usable should be reported as degenerate."""
    with pytest.raises(TripscopeGeometryError):
        ring_centroid([["a", "b"], [None, None]])


def test_zone_centroid_reprojects_to_wgs84() -> None:
    """State-plane feet should reproject into New York City lat/lon."""
    shape = ZoneShape(location_id=1, rings=(tuple(MIDTOWN_SQUARE),))

    centroid = zone_centroid(shape, build_transformer())

    assert centroid.location_id == 1
    assert 40.5 < centroid.lat < 41.0
    assert -74.1 < centroid.lon < -73.7


def test_zone_centroid_rejects_shape_without_rings() -> None:
    """Empty geometry should raise a per-zone geometry error."""
    with pytest.raises(TripscopeGeometryError):
        zone_centroid(ZoneShape(location_id=3, rings=()), build_transformer())


def test_iter_zone_shapes_reads_ids_and_rings(tmp_path: Path) -> None:
    """Shapes should carry their LocationID and polygon rings in file order."""
    shapefile_path = write_zone_shapefile(tmp_path / "taxi_zones")

    shapes = list(iter_zone_shapes(shapefile_path))

    assert [shape.location_id for shape in shapes] == [1, 2, 3]
    assert len(shapes[0].rings) == 1 and shapes[2].rings == ()


def test_iter_zone_shapes_raises_for_missing_file(tmp_path: Path) -> None:
    """A missing geometry source should surface as an ingest error."""
    with pytest.raises(TripscopeIngestError):
        list(iter_zone_shapes(tmp_path / "missing.shp"))
