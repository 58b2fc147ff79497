"""Python SDK for ingest and clustering operations.

This module exposes the operations an outer API layer calls: zone
ingest, trip ingest, and on-demand clustering of persisted trips.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
import random
from typing import Sequence

from analysis.kmeans import RandomSource, kmeans
from core.config import TripscopeConfig
from core.constants import (
    DEFAULT_CLUSTER_K,
    DEFAULT_CLUSTER_MAX_ITERATIONS,
    DEFAULT_CLUSTER_ROW_LIMIT,
    MAX_CLUSTER_K,
    MAX_CLUSTER_ROW_LIMIT,
    MIN_CLUSTER_ROW_LIMIT,
)
from core.logging_config import get_logger
from core.types import ClusteringResult, ClusterPoint, IngestSummary, ZoneIngestSummary
from ingest.pipeline import ingest_trips
from ingest.zone_loader import ingest_zones
from store.trip_database import TripDatabase

_LOGGER = get_logger(__name__)


class TripscopeClient:
    """Primary SDK entry point for ingest and clustering workflows."""

    def __init__(
        self,
        config: TripscopeConfig | None = None,
        database: TripDatabase | None = None,
        rng: RandomSource | None = None,
    ) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
            database: Optional store; built from the config URL when omitted.
            rng: Optional random source for clustering; seeded from
                ``config.random_seed`` when omitted.
        """
        self._config = config or TripscopeConfig.from_env()
        self._database = database or TripDatabase.from_url(self._config.resolved_database_url())
        self._rng = rng if rng is not None else random.Random(self._config.random_seed)

    @property
    def database(self) -> TripDatabase:
        return self._database

    def setup_database(self) -> None:
        """Create the zone and trip schema if it does not exist."""
        self._database.create_schema()

    def ingest_zones(
        self,
        lookup_path: str | Path,
        geometry_path: str | Path | None = None,
    ) -> ZoneIngestSummary:
        """Repopulate zones from a lookup CSV and optional polygon shapefile.

        Args:
            lookup_path: Zone lookup CSV path.
            geometry_path: Optional ``.shp`` path for centroid backfill.

        Returns:
            Zone row count and centroid update count.

        Raises:
            TripscopeIngestError: If the lookup file cannot be read.
            TripscopePersistenceError: If zone writes fail.
        """
        return ingest_zones(
            Path(lookup_path).expanduser(),
            self._database,
            Path(geometry_path).expanduser() if geometry_path else None,
        )

    def ingest_trips(self, source_path: str | Path) -> IngestSummary:
        """Stream a trip file through validation, enrichment, and persistence.

        Args:
            source_path: Trip CSV/Parquet file or directory containing one.

        Returns:
            Processed, valid, and excluded counts.

        Raises:
            TripscopeIngestError: If the source cannot be read.
            TripscopePersistenceError: If a batch write fails.
        """
        return ingest_trips(Path(source_path).expanduser(), self._database, self._config)

    def run_clustering(
        self,
        points: Sequence[ClusterPoint],
        k: int,
        max_iterations: int = DEFAULT_CLUSTER_MAX_ITERATIONS,
    ) -> ClusteringResult:
        """Cluster caller-supplied points.

        Args:
            points: Already-bounded point set.
            k: Requested cluster count.
            max_iterations: Refinement bound.

        Returns:
            Non-empty clusters with counters.
        """
        clusters = kmeans(points, k, max_iterations, rng=self._rng)
        _LOGGER.info(
            "clustering_completed",
            requested_k=k,
            cluster_count=len(clusters),
            total_points=len(points),
        )
        return ClusteringResult(
            clusters=tuple(clusters),
            cluster_count=len(clusters),
            total_points=len(points),
        )

    def cluster_trips(
        self,
        k: int = DEFAULT_CLUSTER_K,
        limit: int = DEFAULT_CLUSTER_ROW_LIMIT,
        max_iterations: int = DEFAULT_CLUSTER_MAX_ITERATIONS,
    ) -> ClusteringResult:
        """Cluster a bounded sample of persisted trips by pickup centroid.

        ``k`` is clamped to ``[1, 20]`` and ``limit`` to ``[10, 50000]``.
        """
        bounded_k = clamp(k, 1, MAX_CLUSTER_K)
        bounded_limit = clamp(limit, MIN_CLUSTER_ROW_LIMIT, MAX_CLUSTER_ROW_LIMIT)
        points = self._database.fetch_cluster_points(bounded_limit)
        if not points:
            return ClusteringResult(clusters=(), cluster_count=0, total_points=0)
        return self.run_clustering(points, bounded_k, max_iterations)

    def with_data_root(self, data_root: str) -> "TripscopeClient":
        """Clone the client with a different local data root.

        Args:
            data_root: New data root path.

        Returns:
            New SDK client instance bound to that root's database.
        """
        resolved_root = Path(data_root).expanduser().resolve()
        updated_config = replace(self._config, data_root=resolved_root)
        return TripscopeClient(updated_config)


def clamp(value: int, lower: int, upper: int) -> int:
    """Clamp an integer into an inclusive range."""
    return max(lower, min(value, upper))
