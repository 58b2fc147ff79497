"""Unit tests for streaming trip readers."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from core.errors import TripscopeIngestError
from ingest.trip_reader import find_trip_file, iter_trip_rows, resolve_trip_source
from tests.fixture_paths import fixture_path

_CSV_HEADER = (
    "VendorID,tpep_pickup_datetime,tpep_dropoff_datetime,passenger_count,trip_distance,"
    "PULocationID,DOLocationID,fare_amount,total_amount,Airport_fee"
)


def test_iter_trip_rows_reads_csv_as_text() -> None:
    """CSV values should reach the row model as unconverted text."""
    rows = list(iter_trip_rows(fixture_path("trips/yellow_tripdata_2024-01.csv")))

    assert len(rows) == 5
    assert rows[0].pickup_datetime == "2024-01-01 08:00:00"
    assert rows[1].trip_distance == "1,2" and rows[1].store_and_fwd_flag == ""
    assert rows[2].pu_location_id == "999"


def test_iter_trip_rows_reads_parquet(tmp_path: Path) -> None:
    """Parquet timestamps and numbers should be rendered as source text."""
    table = pa.table(
        {
            "VendorID": pa.array([2], pa.int32()),
            "tpep_pickup_datetime": pa.array([datetime(2024, 1, 1, 8, 0)], pa.timestamp("us")),
            "tpep_dropoff_datetime": pa.array([datetime(2024, 1, 1, 8, 20)], pa.timestamp("us")),
            "passenger_count": pa.array([None], pa.float64()),
            "trip_distance": pa.array([5.0]),
            "PULocationID": pa.array([1], pa.int32()),
            "DOLocationID": pa.array([2], pa.int32()),
            "Airport_fee": pa.array([1.75]),
        }
    )
    source_path = tmp_path / "yellow_tripdata_2024-01.parquet"
    pq.write_table(table, source_path)

    rows = list(iter_trip_rows(source_path))

    assert len(rows) == 1
    assert rows[0].pickup_datetime == "2024-01-01 08:00:00"
    assert rows[0].pu_location_id == "1" and rows[0].passenger_count is None
    assert rows[0].extra_fields == {"Airport_fee": "1.75"}


def test_iter_trip_rows_raises_for_missing_file(tmp_path: Path) -> None:
    """A missing source should fail the run before any row is read."""
    with pytest.raises(TripscopeIngestError):
        list(iter_trip_rows(tmp_path / "missing.csv"))


def test_iter_trip_rows_raises_for_unsupported_extension(tmp_path: Path) -> None:
    """Only CSV and Parquet sources are supported."""
    source_path = tmp_path / "yellow_tripdata.json"
    source_path.write_text("{}", encoding="utf-8")

    with pytest.raises(TripscopeIngestError):
        list(iter_trip_rows(source_path))


def test_iter_trip_rows_raises_for_corrupt_parquet(tmp_path: Path) -> None:
    """Unreadable Parquet should surface as an ingest error."""
    source_path = tmp_path / "yellow_tripdata.parquet"
    source_path.write_bytes(b"not parquet at all")

    with pytest.raises(TripscopeIngestError):
        list(iter_trip_rows(source_path))


def test_find_trip_file_prefers_parquet(tmp_path: Path) -> None:
    """Parquet should win when both formats are present."""
    (tmp_path / "yellow_tripdata_2024-01.csv").write_text("VendorID\n", encoding="utf-8")
    (tmp_path / "yellow_tripdata_2024-01.parquet").write_bytes(b"")
    (tmp_path / "green_tripdata_2024-01.parquet").write_bytes(b"")

    found = find_trip_file(tmp_path)

    assert found.name == "yellow_tripdata_2024-01.parquet"


def test_find_trip_file_raises_when_absent(tmp_path: Path) -> None:
    """An empty directory should fail with an actionable message."""
    with pytest.raises(TripscopeIngestError, match="yellow_tripdata"):
        find_trip_file(tmp_path)


def test_resolve_trip_source_accepts_directory() -> None:
    """A directory argument should resolve to the trip file inside it."""
    resolved = resolve_trip_source(fixture_path("trips"))

    assert resolved.name == "yellow_tripdata_2024-01.csv"


def test_resolve_trip_source_raises_for_missing_path(tmp_path: Path) -> None:
    """A path that is neither file nor directory should fail early."""
    with pytest.raises(TripscopeIngestError):
        resolve_trip_source(tmp_path / "nothing-here")


def test_iter_trip_rows_keeps_csv_cells_verbatim(tmp_path: Path) -> None:
    """Empty cells and extra-column text should survive unchanged."""
    source_path = tmp_path / "yellow_tripdata_2024-01.csv"
    source_path.write_text(
        _CSV_HEADER + "\n" + _csv_line(passenger_count="", airport_fee="1.50") + "\n",
        encoding="utf-8",
    )

    rows = list(iter_trip_rows(source_path))

    raw = rows[0].as_raw_dict()
    assert raw["passenger_count"] == ""
    assert raw["Airport_fee"] == "1.50"


def test_iter_trip_rows_reads_extra_column_populated_after_first_block(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A column empty in early blocks and filled later should still parse."""
    monkeypatch.setattr("ingest.trip_reader.DEFAULT_READ_BLOCK_SIZE", 4096)
    lines = [_CSV_HEADER]
    lines.extend(_csv_line(passenger_count="1", airport_fee="") for _ in range(300))
    lines.append(_csv_line(passenger_count="1", airport_fee="1.75"))
    source_path = tmp_path / "yellow_tripdata_2024-01.csv"
    source_path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    rows = list(iter_trip_rows(source_path))

    assert len(rows) == 301
    assert rows[0].extra_fields == {"Airport_fee": ""}
    assert rows[-1].extra_fields == {"Airport_fee": "1.75"}


def _csv_line(passenger_count: str, airport_fee: str) -> str:
    return (
        f"2,2024-01-01 08:00:00,2024-01-01 08:20:00,{passenger_count},5.0,"
        f"1,2,20.00,25.00,{airport_fee}"
    )
