"""Unit tests for batched trip persistence."""

from __future__ import annotations

import pytest

from core.types import Trip, ZoneContext
from ingest.batch_writer import TripBatchWriter
from store.trip_database import TripDatabase
from tests.fixture_paths import MANHATTAN_ZONE, QUEENS_ZONE, sample_trip_row
from transforms.trip_enrichment import enrich_trip
from transforms.trip_validation import validate_trip


class RecordingDatabase:
    """Stand-in store that records each bulk insert."""

    def __init__(self) -> None:
        self.batches: list[list[Trip]] = []

    def insert_trips(self, trips: list[Trip]) -> None:
        self.batches.append(list(trips))


def _trip() -> Trip:
    zones = ZoneContext.from_zones([MANHATTAN_ZONE, QUEENS_ZONE])
    row = sample_trip_row()
    outcome = validate_trip(row, zones)
    assert outcome.accepted is not None
    return enrich_trip(row, outcome.accepted, zones)


def test_batch_writer_flushes_full_batches_and_remainder() -> None:
    """Five trips with batch size two should produce batches of 2, 2, 1."""
    database = RecordingDatabase()
    writer = TripBatchWriter(database, batch_size=2)  # type: ignore[arg-type]

    writer.write([_trip() for _ in range(5)])
    pending_before_close = writer.pending_count
    writer.close()

    assert pending_before_close == 1
    assert [len(batch) for batch in database.batches] == [2, 2, 1]
    assert writer.flushed_count == 5 and writer.pending_count == 0


def test_batch_writer_close_without_trips_writes_nothing() -> None:
    """An empty stream should not issue an insert."""
    database = RecordingDatabase()
    writer = TripBatchWriter(database, batch_size=2)  # type: ignore[arg-type]

    writer.close()

    assert database.batches == []


def test_batch_writer_rejects_non_positive_batch_size() -> None:
    """Batch size must be positive."""
    with pytest.raises(ValueError):
        TripBatchWriter(RecordingDatabase(), batch_size=0)  # type: ignore[arg-type]


def test_batch_writer_persists_to_database(zone_database: TripDatabase) -> None:
    """Flushed trips should be visible in the store."""
    writer = TripBatchWriter(zone_database, batch_size=2)

    writer.write([_trip() for _ in range(3)])
    writer.close()

    assert zone_database.count_trips() == 3
