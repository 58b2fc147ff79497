"""Public SDK surface for Tripscope.

This module provides a stable import path for SDK users.
It re-exports the primary client, configuration, and result models.
"""

from __future__ import annotations

from analysis.kmeans import kmeans
from core.config import TripscopeConfig
from core.types import (
    Cluster,
    ClusteringResult,
    ClusterPoint,
    IngestSummary,
    Trip,
    TripRow,
    Zone,
    ZoneContext,
    ZoneIngestSummary,
)
from store.client_sdk import TripscopeClient
from transforms.trip_enrichment import enrich_trip
from transforms.trip_validation import RejectionReason, validate_trip

__all__ = [
    "Cluster",
    "ClusterPoint",
    "ClusteringResult",
    "IngestSummary",
    "RejectionReason",
    "Trip",
    "TripRow",
    "TripscopeClient",
    "TripscopeConfig",
    "Zone",
    "ZoneContext",
    "ZoneIngestSummary",
    "enrich_trip",
    "kmeans",
    "validate_trip",
]
