"""Streaming trip source readers.

This module yields typed trip rows lazily from CSV or Parquet files.
Rows are pulled one record batch at a time so memory stays bounded
regardless of file size.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pyarrow as pa
import pyarrow.csv as pacsv
import pyarrow.parquet as pq

from core.constants import (
    DEFAULT_PARQUET_BATCH_SIZE,
    DEFAULT_READ_BLOCK_SIZE,
    SUPPORTED_TRIP_EXTENSIONS,
    TRIP_FILE_PREFIX,
)
from core.errors import TripscopeIngestError
from core.types import TripRow


def iter_trip_rows(source_path: Path) -> Iterator[TripRow]:
    """Stream trip rows from a CSV or Parquet file.

    Args:
        source_path: Trip file path.

    Yields:
        Trip rows in source order.

    Raises:
        TripscopeIngestError: If the file is missing, unsupported, or unreadable.
    """
    if not source_path.is_file():
        raise TripscopeIngestError(
            f"Failed to read trips at {source_path}: file does not exist. "
            "Provide an existing .csv or .parquet trip file."
        )
    suffix = source_path.suffix.lower()
    if suffix == ".parquet":
        batches = _iter_parquet_batches(source_path)
    elif suffix == ".csv":
        batches = _iter_csv_batches(source_path)
    else:
        raise TripscopeIngestError(
            f"Unsupported trip file extension '{suffix}' for {source_path}. "
            f"Supported extensions: {SUPPORTED_TRIP_EXTENSIONS}."
        )
    for batch in batches:
        for record in batch.to_pylist():
            yield TripRow.from_mapping(record)


def find_trip_file(directory: Path) -> Path:
    """Locate the trip file in a directory, preferring Parquet over CSV.

    Args:
        directory: Directory to search (not recursive).

    Returns:
        First matching ``yellow_tripdata*`` file by name.

    Raises:
        TripscopeIngestError: If no trip file is present.
    """
    if not directory.is_dir():
        raise TripscopeIngestError(
            f"Failed to search for trip files in {directory}: not a directory."
        )
    for extension in SUPPORTED_TRIP_EXTENSIONS:
        candidates = sorted(
            path
            for path in directory.iterdir()
            if path.is_file()
            and path.name.lower().startswith(TRIP_FILE_PREFIX)
            and path.suffix.lower() == extension
        )
        if candidates:
            return candidates[0]
    raise TripscopeIngestError(
        f"No {TRIP_FILE_PREFIX}*.parquet or {TRIP_FILE_PREFIX}*.csv found in {directory}. "
        "Download a TLC trip file into that directory and retry."
    )


def resolve_trip_source(source_path: Path) -> Path:
    """Return the trip file for a file or directory argument.

    Raises:
        TripscopeIngestError: If the path does not exist or holds no trip file.
    """
    if source_path.is_dir():
        return find_trip_file(source_path)
    if not source_path.exists():
        raise TripscopeIngestError(
            f"Trip source {source_path} does not exist. "
            "Pass a trip file or a directory holding one."
        )
    return source_path


def _iter_csv_batches(source_path: Path) -> Iterator[pa.RecordBatch]:
    """Yield CSV record batches with every column kept as verbatim text.

    Column types are pinned from the header row so that a column empty in
    the first block and populated later cannot fail type inference, and
    empty cells stay empty strings rather than nulls.
    """
    read_options = pacsv.ReadOptions(block_size=DEFAULT_READ_BLOCK_SIZE)
    try:
        header = _read_csv_header(source_path, read_options)
        convert_options = pacsv.ConvertOptions(
            column_types={column: pa.string() for column in header},
            strings_can_be_null=False,
        )
        reader = pacsv.open_csv(
            source_path, read_options=read_options, convert_options=convert_options
        )
        yield from reader
    except (OSError, pa.ArrowInvalid) as error:
        raise TripscopeIngestError(
            f"Failed to parse trip CSV at {source_path}: {error}. "
            "Check the file is a complete comma-separated export."
        ) from error


def _read_csv_header(source_path: Path, read_options: pacsv.ReadOptions) -> list[str]:
    """Return the column names from the CSV header row."""
    with pacsv.open_csv(source_path, read_options=read_options) as reader:
        return list(reader.schema.names)


def _iter_parquet_batches(source_path: Path) -> Iterator[pa.RecordBatch]:
    """Yield Parquet record batches."""
    try:
        parquet_file = pq.ParquetFile(source_path)
        yield from parquet_file.iter_batches(batch_size=DEFAULT_PARQUET_BATCH_SIZE)
    except (OSError, pa.ArrowInvalid) as error:
        raise TripscopeIngestError(
            f"Failed to read trip Parquet at {source_path}: {error}. "
            "Check the file is a valid Parquet export."
        ) from error
