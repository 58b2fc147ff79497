"""Trip ingest orchestration.

This module streams raw trip rows through validation, exclusion logging,
enrichment, and batched persistence for one ingest run.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from core.config import TripscopeConfig
from core.constants import PROGRESS_LOG_INTERVAL
from core.logging_config import get_logger
from core.types import IngestSummary, TripRow, ZoneContext
from ingest.batch_writer import TripBatchWriter
from ingest.exclusion_log import ExclusionLogger
from ingest.trip_reader import iter_trip_rows, resolve_trip_source
from store.trip_database import TripDatabase
from transforms.trip_enrichment import enrich_trip
from transforms.trip_validation import validate_trip

_LOGGER = get_logger(__name__)


class TripIngestRunner:
    """Single-consumer runner for one trip ingest run.

    The zone snapshot is read once at construction and reused for every
    row, so zone edits made during the run are not observed.
    """

    def __init__(
        self,
        zones: ZoneContext,
        writer: TripBatchWriter,
        exclusions: ExclusionLogger,
    ) -> None:
        self._zones = zones
        self._writer = writer
        self._exclusions = exclusions
        self._processed = 0
        self._valid = 0

    def run(self, rows: Iterable[TripRow]) -> IngestSummary:
        """Consume rows in order and return run counters.

        Raises:
            TripscopeIngestError: If the source becomes unreadable.
            TripscopePersistenceError: If a batch flush fails; earlier
                batches stay committed.
        """
        for row in rows:
            self._process_row(row)
        self._writer.close()
        return IngestSummary(
            processed=self._processed,
            valid=self._valid,
            excluded=self._exclusions.rejected_count,
            exclusion_log_path=str(self._exclusions.log_path),
        )

    def _process_row(self, row: TripRow) -> None:
        self._processed += 1
        if self._processed % PROGRESS_LOG_INTERVAL == 0:
            _LOGGER.info(
                "trip_ingest_progress",
                processed=self._processed,
                valid=self._valid,
                excluded=self._exclusions.rejected_count,
            )
        outcome = validate_trip(row, self._zones)
        if outcome.accepted is None:
            reason = outcome.reason.value if outcome.reason else "unknown"
            self._exclusions.log(reason, row.as_raw_dict())
            return
        self._writer.add(enrich_trip(row, outcome.accepted, self._zones))
        self._valid += 1


def ingest_trips(
    source_path: Path,
    database: TripDatabase,
    config: TripscopeConfig,
) -> IngestSummary:
    """Run the trip ingest pipeline for one source file.

    Args:
        source_path: Trip file, or a directory holding a ``yellow_tripdata*`` file.
        database: Target store; zones must be loaded beforehand.
        config: Runtime configuration for batch size and exclusion logging.

    Returns:
        Processed, valid, and excluded counts for the run.

    Raises:
        TripscopeIngestError: If the source is missing or unreadable.
        TripscopePersistenceError: If zone reads or trip writes fail.
    """
    trip_path = resolve_trip_source(source_path)
    zones = database.load_zone_context()
    _LOGGER.info("trip_ingest_started", source_path=str(trip_path), zone_count=len(zones))
    runner = TripIngestRunner(
        zones=zones,
        writer=TripBatchWriter(database, config.batch_size),
        exclusions=ExclusionLogger(
            config.resolved_exclusion_log_path(), config.exclusion_log_limit
        ),
    )
    summary = runner.run(iter_trip_rows(trip_path))
    _log_ingest_completion(trip_path, summary)
    return summary


def _log_ingest_completion(trip_path: Path, summary: IngestSummary) -> None:
    """Log pipeline completion with contextual metadata."""
    _LOGGER.info(
        "trip_ingest_completed",
        source_path=str(trip_path),
        processed=summary.processed,
        valid=summary.valid,
        excluded=summary.excluded,
        exclusion_log_path=summary.exclusion_log_path,
    )
