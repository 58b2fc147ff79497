"""Shared typed models.

This module defines immutable data models used by the ingest, store,
clustering, and SDK layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Mapping

from core.constants import MILES_TO_KM

_TIMESTAMP_TEXT_FORMAT = "%Y-%m-%d %H:%M:%S"

_TRIP_ROW_COLUMNS = (
    ("vendor_id", "VendorID"),
    ("pickup_datetime", "tpep_pickup_datetime"),
    ("dropoff_datetime", "tpep_dropoff_datetime"),
    ("passenger_count", "passenger_count"),
    ("trip_distance", "trip_distance"),
    ("rate_code_id", "RatecodeID"),
    ("store_and_fwd_flag", "store_and_fwd_flag"),
    ("pu_location_id", "PULocationID"),
    ("do_location_id", "DOLocationID"),
    ("payment_type", "payment_type"),
    ("fare_amount", "fare_amount"),
    ("extra", "extra"),
    ("mta_tax", "mta_tax"),
    ("tip_amount", "tip_amount"),
    ("tolls_amount", "tolls_amount"),
    ("improvement_surcharge", "improvement_surcharge"),
    ("total_amount", "total_amount"),
    ("congestion_surcharge", "congestion_surcharge"),
)


@dataclass(frozen=True)
class Zone:
    """Named taxi service area.

    Attributes:
        location_id: Stable integer zone identifier.
        borough: Borough name, may be empty.
        zone_name: Zone display name, may be empty.
        service_zone: Service zone label, may be empty.
        centroid_lat: Geographic centroid latitude once backfilled.
        centroid_lon: Geographic centroid longitude once backfilled.
    """

    location_id: int
    borough: str = ""
    zone_name: str = ""
    service_zone: str = ""
    centroid_lat: float | None = None
    centroid_lon: float | None = None


@dataclass(frozen=True)
class ZoneLookupRow:
    """Typed row of the zone lookup table.

    Attributes:
        location_id: Parsed zone id, ``None`` when the source value is not numeric.
        borough: Trimmed borough name.
        zone_name: Trimmed zone name.
        service_zone: Trimmed service zone label.
    """

    location_id: int | None
    borough: str = ""
    zone_name: str = ""
    service_zone: str = ""

    def to_zone(self) -> Zone:
        """Convert a row with a numeric id into a zone without centroid."""
        if self.location_id is None:
            raise ValueError("Cannot build a zone from a lookup row without location id.")
        return Zone(
            location_id=self.location_id,
            borough=self.borough,
            zone_name=self.zone_name,
            service_zone=self.service_zone,
        )


@dataclass(frozen=True)
class ZoneCentroid:
    """Geographic centroid computed for one zone polygon."""

    location_id: int
    lat: float
    lon: float


@dataclass(frozen=True)
class ZoneContext:
    """Run-scoped read-only snapshot of the zone store.

    Built once before trip streaming begins and shared by reference with
    the validator and enricher for the lifetime of one ingest run.
    """

    zones: Mapping[int, Zone] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "zones", MappingProxyType(dict(self.zones)))

    @classmethod
    def from_zones(cls, zones: list[Zone]) -> "ZoneContext":
        """Build a context keyed by zone id."""
        return cls(zones={zone.location_id: zone for zone in zones})

    def contains(self, location_id: int | None) -> bool:
        """Return whether the zone id resolves in this snapshot."""
        return location_id is not None and location_id in self.zones

    def borough_of(self, location_id: int) -> str:
        """Return the borough name for a zone, or an empty string."""
        zone = self.zones.get(location_id)
        if zone is None:
            return ""
        return zone.borough or ""

    def __len__(self) -> int:
        return len(self.zones)


@dataclass(frozen=True)
class TripRow:
    """Raw trip record for the fixed trip column set.

    Every field holds source text, or ``None`` when the column is absent or
    null. Parsing into numbers and timestamps happens in the validator.

    Attributes:
        extra_fields: Source columns outside the known trip schema.
    """

    vendor_id: str | None = None
    pickup_datetime: str | None = None
    dropoff_datetime: str | None = None
    passenger_count: str | None = None
    trip_distance: str | None = None
    rate_code_id: str | None = None
    store_and_fwd_flag: str | None = None
    pu_location_id: str | None = None
    do_location_id: str | None = None
    payment_type: str | None = None
    fare_amount: str | None = None
    extra: str | None = None
    mta_tax: str | None = None
    tip_amount: str | None = None
    tolls_amount: str | None = None
    improvement_surcharge: str | None = None
    total_amount: str | None = None
    congestion_surcharge: str | None = None
    extra_fields: Mapping[str, str | None] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, record: Mapping[str, Any]) -> "TripRow":
        """Build a trip row from a parsed CSV or Parquet record.

        Args:
            record: Column name to value mapping from the source reader.

        Returns:
            Typed trip row with text values.
        """
        known_columns = {column for _, column in _TRIP_ROW_COLUMNS}
        values = {
            attribute: _to_text(record.get(column)) for attribute, column in _TRIP_ROW_COLUMNS
        }
        extra_fields = {
            str(column): _to_text(value)
            for column, value in record.items()
            if column not in known_columns
        }
        return cls(**values, extra_fields=extra_fields)

    def as_raw_dict(self) -> dict[str, str | None]:
        """Return the record keyed by source column names."""
        payload = {column: getattr(self, attribute) for attribute, column in _TRIP_ROW_COLUMNS}
        payload.update(self.extra_fields)
        return payload


@dataclass(frozen=True)
class Trip:
    """Validated, enriched trip ready for persistence.

    Attributes:
        trip_duration_sec: Dropoff minus pickup, rounded to whole seconds.
        speed_kmh: Average speed, capped at 200 km/h.
        fare_per_km: Fare divided by distance in km, 0 for zero distance.
        tip_rate: Tip divided by total amount, 0 for zero total.
        hour_of_day: Pickup hour, 0-23.
        day_of_week: Pickup weekday, Sunday = 0.
        month: Pickup month, 1-12.
        trip_type: ``Within Borough`` or ``Cross Borough``.
    """

    vendor_id: int | None
    pickup_datetime: datetime
    dropoff_datetime: datetime
    passenger_count: int
    trip_distance: float
    rate_code_id: int | None
    store_and_fwd_flag: str | None
    pu_location_id: int
    do_location_id: int
    payment_type: int | None
    fare_amount: float
    extra: float
    mta_tax: float
    tip_amount: float
    tolls_amount: float
    improvement_surcharge: float
    total_amount: float
    congestion_surcharge: float
    trip_duration_sec: int
    speed_kmh: float
    fare_per_km: float
    tip_rate: float
    hour_of_day: int
    day_of_week: int
    month: int
    pickup_borough: str
    dropoff_borough: str
    trip_type: str

    @property
    def distance_km(self) -> float:
        """Trip distance converted to kilometres."""
        return self.trip_distance * MILES_TO_KM


@dataclass(frozen=True)
class IngestSummary:
    """Outcome counters for one trip ingest run."""

    processed: int
    valid: int
    excluded: int
    exclusion_log_path: str | None = None


@dataclass(frozen=True)
class ZoneIngestSummary:
    """Outcome counters for one zone ingest run."""

    zone_count: int
    centroids_updated: int = 0


@dataclass(frozen=True)
class ClusterPoint:
    """One point handed to the clustering engine.

    Attributes:
        lat: Latitude; non-numeric values count as 0.
        lon: Longitude; non-numeric values count as 0.
        duration: Trip duration in seconds; non-numeric values count as 0.
        attributes: Pass-through fields returned with the cluster.
    """

    lat: Any
    lon: Any
    duration: Any
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly payload."""
        return {"lat": self.lat, "lon": self.lon, "duration": self.duration, **self.attributes}


@dataclass(frozen=True)
class Centroid:
    """Numeric centroid in the clustering feature space."""

    lat: float
    lon: float
    duration: float


@dataclass(frozen=True)
class Cluster:
    """Non-empty group of points sharing a centroid."""

    points: tuple[ClusterPoint, ...]
    centroid: Centroid

    def __len__(self) -> int:
        return len(self.points)


@dataclass(frozen=True)
class ClusteringResult:
    """Clusters plus the counters reported to callers."""

    clusters: tuple[Cluster, ...]
    cluster_count: int
    total_points: int

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly payload with per-cluster centroids."""
        return {
            "clusters": [
                {
                    "centroid": {
                        "lat": cluster.centroid.lat,
                        "lon": cluster.centroid.lon,
                        "duration": cluster.centroid.duration,
                    },
                    "size": len(cluster),
                    "points": [point.to_dict() for point in cluster.points],
                }
                for cluster in self.clusters
            ],
            "cluster_count": self.cluster_count,
            "total_points": self.total_points,
        }


def _to_text(value: Any) -> str | None:
    """Render a reader value as source text."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.strftime(_TIMESTAMP_TEXT_FORMAT)
    return str(value)
