"""Zone store loading.

This module repopulates the zone table from the lookup CSV and, when a
polygon source is available, backfills zone centroids in a second pass.
"""

from __future__ import annotations

from pathlib import Path

import pyarrow as pa
import pyarrow.csv as pacsv

from core.constants import LOOKUP_COLUMNS
from core.errors import TripscopeGeometryError, TripscopeIngestError
from core.logging_config import get_logger
from core.types import ZoneCentroid, ZoneIngestSummary, ZoneLookupRow
from ingest.zone_geometry import build_transformer, iter_zone_shapes, zone_centroid
from store.trip_database import TripDatabase
from transforms.field_parsing import clean_text, parse_int

_LOGGER = get_logger(__name__)


def ingest_zones(
    lookup_path: Path,
    database: TripDatabase,
    geometry_path: Path | None = None,
) -> ZoneIngestSummary:
    """Load the lookup table, then backfill centroids if geometry exists.

    Args:
        lookup_path: Zone lookup CSV.
        database: Target store.
        geometry_path: Optional zone ``.shp`` file.

    Returns:
        Lookup row count and number of centroids written.
    """
    zone_count = load_zones(lookup_path, database)
    if geometry_path is None or not _has_geometry_pair(geometry_path):
        _LOGGER.info(
            "zone_geometry_unavailable",
            geometry_path=str(geometry_path) if geometry_path else None,
        )
        return ZoneIngestSummary(zone_count=zone_count, centroids_updated=0)
    centroids_updated = backfill_centroids(geometry_path, database)
    return ZoneIngestSummary(zone_count=zone_count, centroids_updated=centroids_updated)


def load_zones(lookup_path: Path, database: TripDatabase) -> int:
    """Clear and repopulate the zone table from a lookup CSV.

    Rows whose ``LocationID`` is not numeric are skipped. Running twice
    with the same file leaves an identical zone table.

    Args:
        lookup_path: Zone lookup CSV with ``LocationID``, ``Borough``,
            ``Zone`` and ``service_zone`` columns.
        database: Target store.

    Returns:
        Number of lookup rows read, including skipped rows.

    Raises:
        TripscopeIngestError: If the lookup file is missing or unreadable.
        TripscopePersistenceError: If the zone write fails.
    """
    lookup_rows = read_lookup_rows(lookup_path)
    zones_by_id = {
        row.location_id: row.to_zone() for row in lookup_rows if row.location_id is not None
    }
    database.replace_zones(list(zones_by_id.values()))
    _LOGGER.info(
        "zones_loaded",
        lookup_path=str(lookup_path),
        row_count=len(lookup_rows),
        zone_count=len(zones_by_id),
    )
    return len(lookup_rows)


def read_lookup_rows(lookup_path: Path) -> list[ZoneLookupRow]:
    """Parse the zone lookup CSV into typed rows."""
    if not lookup_path.is_file():
        raise TripscopeIngestError(
            f"Zone lookup not found at {lookup_path}. "
            "Provide taxi_zone_lookup.csv from the TLC reference data."
        )
    convert_options = pacsv.ConvertOptions(
        column_types={column: pa.string() for column in LOOKUP_COLUMNS},
        strings_can_be_null=True,
    )
    try:
        table = pacsv.read_csv(lookup_path, convert_options=convert_options)
    except (OSError, pa.ArrowInvalid) as error:
        raise TripscopeIngestError(
            f"Failed to parse zone lookup at {lookup_path}: {error}. "
            "Check the file is a comma-separated lookup table."
        ) from error
    return [_lookup_row(record) for record in table.to_pylist()]


def backfill_centroids(geometry_path: Path, database: TripDatabase) -> int:
    """Compute polygon centroids and write them onto existing zones.

    Zones with missing or degenerate geometry keep null centroids.

    Args:
        geometry_path: Zone ``.shp`` file with its ``.dbf`` beside it.
        database: Target store.

    Returns:
        Number of zone rows updated.
    """
    transformer = build_transformer()
    centroids: list[ZoneCentroid] = []
    skipped = 0
    for shape in iter_zone_shapes(geometry_path):
        try:
            centroids.append(zone_centroid(shape, transformer))
        except TripscopeGeometryError as error:
            skipped += 1
            _LOGGER.warning(
                "zone_geometry_skipped",
                location_id=shape.location_id,
                reason=str(error),
            )
    updated = database.update_centroids(centroids)
    _LOGGER.info(
        "centroids_backfilled",
        geometry_path=str(geometry_path),
        computed=len(centroids),
        updated=updated,
        skipped=skipped,
    )
    return updated


def _lookup_row(record: dict[str, object]) -> ZoneLookupRow:
    return ZoneLookupRow(
        location_id=parse_int(record.get("LocationID"), None),
        borough=clean_text(record.get("Borough")),
        zone_name=clean_text(record.get("Zone")),
        service_zone=clean_text(record.get("service_zone")),
    )


def _has_geometry_pair(geometry_path: Path) -> bool:
    """Return whether the ``.shp`` file and its ``.dbf`` both exist."""
    return geometry_path.is_file() and geometry_path.with_suffix(".dbf").is_file()
