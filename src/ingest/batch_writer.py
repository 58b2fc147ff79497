"""Batched trip persistence.

The writer buffers enriched trips and flushes one bulk insert per full
batch. Flushing is synchronous, so the caller pulls no further rows
until the batch is durable.
"""

from __future__ import annotations

from core.constants import DEFAULT_BATCH_SIZE
from core.logging_config import get_logger
from core.types import Trip
from store.trip_database import TripDatabase

_LOGGER = get_logger(__name__)


class TripBatchWriter:
    """Accumulates trips and writes them in fixed-size batches."""

    def __init__(self, database: TripDatabase, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}.")
        self._database = database
        self._batch_size = batch_size
        self._pending: list[Trip] = []
        self._flushed_count = 0
        self._batch_count = 0

    @property
    def flushed_count(self) -> int:
        """Trips already committed to the store."""
        return self._flushed_count

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def add(self, trip: Trip) -> None:
        """Buffer one trip, flushing when the batch threshold is reached.

        Raises:
            TripscopePersistenceError: If the triggered flush fails.
        """
        self._pending.append(trip)
        if len(self._pending) >= self._batch_size:
            self.flush()

    def write(self, trips: list[Trip]) -> None:
        """Buffer several trips, flushing every full batch on the way."""
        for trip in trips:
            self.add(trip)

    def flush(self) -> None:
        """Write all pending trips as one bulk insert.

        Pending trips are kept when the insert fails so the failure is
        visible to the caller, which aborts the run.

        Raises:
            TripscopePersistenceError: On connectivity or constraint failure.
        """
        if not self._pending:
            return
        self._database.insert_trips(self._pending)
        self._batch_count += 1
        self._flushed_count += len(self._pending)
        _LOGGER.debug(
            "trip_batch_flushed",
            batch_number=self._batch_count,
            batch_size=len(self._pending),
            flushed_count=self._flushed_count,
        )
        self._pending = []

    def close(self) -> None:
        """Flush the final partial batch at end of stream."""
        self.flush()
