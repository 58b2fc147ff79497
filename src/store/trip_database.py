"""Zone and trip persistence.

This module owns every read and write against the relational store.
Each write runs in its own transaction so flushed batches stay durable
even when a later batch fails.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Sequence

from sqlalchemy import create_engine, delete, func, insert, select, update
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.exc import ArgumentError, NoSuchModuleError, SQLAlchemyError

from core.constants import MILES_TO_KM
from core.errors import (
    TripscopeConfigError,
    TripscopeDependencyError,
    TripscopePersistenceError,
)
from core.logging_config import get_logger
from core.types import ClusterPoint, Trip, Zone, ZoneCentroid, ZoneContext
from store.schema import metadata, trips_table, zones_table

_LOGGER = get_logger(__name__)

_ZONE_UPDATE_COLUMNS = ("borough", "zone", "service_zone", "centroid_lat", "centroid_lon")


class TripDatabase:
    """SQLAlchemy-backed zone and trip store."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @classmethod
    def from_url(cls, database_url: str) -> "TripDatabase":
        """Create a store for a SQLAlchemy database URL.

        Args:
            database_url: ``sqlite:///...`` or ``postgresql+psycopg://...`` URL.

        Returns:
            Store bound to a new engine.

        Raises:
            TripscopeConfigError: If the URL cannot be parsed.
            TripscopeDependencyError: If the database driver is not installed.
        """
        try:
            url = make_url(database_url)
        except ArgumentError as error:
            raise TripscopeConfigError(
                f"Invalid database URL '{database_url}': {error}. "
                "Use sqlite:///path/to.db or postgresql+psycopg://user@host/db."
            ) from error
        if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
            Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)
        try:
            engine = create_engine(url)
        except (ImportError, NoSuchModuleError) as error:
            raise TripscopeDependencyError(
                f"Database driver for '{url.drivername}' is not installed: {error}. "
                "Install the postgres extra (psycopg) or use a sqlite:/// URL."
            ) from error
        return cls(engine)

    @property
    def engine(self) -> Engine:
        """Return the bound SQLAlchemy engine."""
        return self._engine

    @property
    def url(self) -> str:
        """Return the bound database URL with any password masked."""
        return self._engine.url.render_as_string(hide_password=True)

    @property
    def dialect_name(self) -> str:
        """Return the SQLAlchemy dialect name of the bound engine."""
        return self._engine.dialect.name

    def create_schema(self) -> None:
        """Create zone and trip tables with their indexes if missing."""
        try:
            metadata.create_all(self._engine)
        except SQLAlchemyError as error:
            raise TripscopePersistenceError(
                f"Failed to create database schema: {error}. "
                "Check database connectivity and permissions."
            ) from error
        _LOGGER.info("schema_ready", dialect=self.dialect_name)

    def replace_zones(self, zones: Sequence[Zone]) -> None:
        """Overwrite the zone table wholesale with the given zones.

        Rows are upserted by ``location_id`` and zones absent from the new
        set are removed, all in one transaction.

        Args:
            zones: Complete zone set.

        Raises:
            TripscopePersistenceError: If the write fails.
        """
        location_ids = [zone.location_id for zone in zones]
        with self._transaction("replace zones") as connection:
            if zones:
                connection.execute(self._zone_upsert_statement(), [_zone_row(z) for z in zones])
            connection.execute(
                delete(zones_table).where(zones_table.c.location_id.not_in(location_ids))
            )

    def update_centroids(self, centroids: Sequence[ZoneCentroid]) -> int:
        """Backfill centroid coordinates for existing zones.

        Args:
            centroids: Computed zone centroids.

        Returns:
            Number of zone rows updated.
        """
        updated = 0
        with self._transaction("update zone centroids") as connection:
            for centroid in centroids:
                result = connection.execute(
                    update(zones_table)
                    .where(zones_table.c.location_id == centroid.location_id)
                    .values(centroid_lat=centroid.lat, centroid_lon=centroid.lon)
                )
                updated += result.rowcount or 0
        return updated

    def fetch_zones(self) -> list[Zone]:
        """Return all zones ordered by id."""
        statement = select(zones_table).order_by(zones_table.c.location_id)
        with self._connection("read zones") as connection:
            rows = connection.execute(statement).mappings().all()
        return [_zone_from_row(row) for row in rows]

    def load_zone_context(self) -> ZoneContext:
        """Read the zone table once into an immutable run snapshot."""
        return ZoneContext.from_zones(self.fetch_zones())

    def insert_trips(self, trips: Sequence[Trip]) -> None:
        """Bulk insert one batch of enriched trips in a single transaction.

        Raises:
            TripscopePersistenceError: On connectivity or constraint failure.
        """
        if not trips:
            return
        with self._transaction("insert trip batch") as connection:
            connection.execute(insert(trips_table), [_trip_row(trip) for trip in trips])

    def count_trips(self) -> int:
        """Return the number of persisted trips."""
        return self._count(trips_table)

    def fetch_cluster_points(self, limit: int) -> list[ClusterPoint]:
        """Read a bounded sample of trips joined with pickup zone centroids.

        Only trips with a pickup borough and a zone centroid are returned.

        Args:
            limit: Maximum number of rows to read.

        Returns:
            Cluster points with pass-through trip attributes.
        """
        statement = (
            select(
                zones_table.c.centroid_lat.label("lat"),
                zones_table.c.centroid_lon.label("lon"),
                trips_table.c.trip_duration_sec.label("duration"),
                (trips_table.c.trip_distance * MILES_TO_KM).label("distance_km"),
                trips_table.c.speed_kmh,
                trips_table.c.pickup_borough,
                trips_table.c.hour_of_day,
            )
            .select_from(
                trips_table.join(
                    zones_table, trips_table.c.pu_location_id == zones_table.c.location_id
                )
            )
            .where(
                trips_table.c.pickup_borough.is_not(None),
                trips_table.c.pickup_borough != "",
                zones_table.c.centroid_lat.is_not(None),
                zones_table.c.centroid_lon.is_not(None),
            )
            .limit(limit)
        )
        with self._connection("read cluster points") as connection:
            rows = connection.execute(statement).mappings().all()
        return [_cluster_point_from_row(row) for row in rows]

    def dispose(self) -> None:
        """Release pooled connections."""
        self._engine.dispose()

    def _count(self, table: Any) -> int:
        with self._connection(f"count {table.name}") as connection:
            return int(connection.execute(select(func.count()).select_from(table)).scalar_one())

    def _zone_upsert_statement(self) -> Any:
        """Build the dialect-specific ``ON CONFLICT DO UPDATE`` insert."""
        if self.dialect_name == "postgresql":
            from sqlalchemy.dialects.postgresql import insert as dialect_insert
        elif self.dialect_name == "sqlite":
            from sqlalchemy.dialects.sqlite import insert as dialect_insert
        else:
            raise TripscopePersistenceError(
                f"Zone upsert is not supported for dialect '{self.dialect_name}'. "
                "Use a SQLite or PostgreSQL database URL."
            )
        statement = dialect_insert(zones_table)
        return statement.on_conflict_do_update(
            index_elements=[zones_table.c.location_id],
            set_={column: statement.excluded[column] for column in _ZONE_UPDATE_COLUMNS},
        )

    @contextmanager
    def _transaction(self, action: str) -> Iterator[Connection]:
        """Open a committed transaction, mapping driver errors."""
        try:
            with self._engine.begin() as connection:
                yield connection
        except SQLAlchemyError as error:
            raise TripscopePersistenceError(
                f"Failed to {action}: {error}. "
                "Check database connectivity and that the schema exists (tripscope setup-db)."
            ) from error

    @contextmanager
    def _connection(self, action: str) -> Iterator[Connection]:
        """Open a read connection, mapping driver errors."""
        try:
            with self._engine.connect() as connection:
                yield connection
        except SQLAlchemyError as error:
            raise TripscopePersistenceError(
                f"Failed to {action}: {error}. "
                "Check database connectivity and that the schema exists (tripscope setup-db)."
            ) from error


def _zone_row(zone: Zone) -> dict[str, object]:
    return {
        "location_id": zone.location_id,
        "borough": zone.borough,
        "zone": zone.zone_name,
        "service_zone": zone.service_zone,
        "centroid_lat": zone.centroid_lat,
        "centroid_lon": zone.centroid_lon,
    }


def _zone_from_row(row: Any) -> Zone:
    return Zone(
        location_id=int(row["location_id"]),
        borough=row["borough"] or "",
        zone_name=row["zone"] or "",
        service_zone=row["service_zone"] or "",
        centroid_lat=_optional_float(row["centroid_lat"]),
        centroid_lon=_optional_float(row["centroid_lon"]),
    )


def _trip_row(trip: Trip) -> dict[str, object]:
    """Map an enriched trip onto trip table columns."""
    return {
        "vendor_id": trip.vendor_id,
        "tpep_pickup_datetime": trip.pickup_datetime,
        "tpep_dropoff_datetime": trip.dropoff_datetime,
        "passenger_count": trip.passenger_count,
        "trip_distance": trip.trip_distance,
        "rate_code_id": trip.rate_code_id,
        "store_and_fwd_flag": trip.store_and_fwd_flag,
        "pu_location_id": trip.pu_location_id,
        "do_location_id": trip.do_location_id,
        "payment_type": trip.payment_type,
        "fare_amount": trip.fare_amount,
        "extra": trip.extra,
        "mta_tax": trip.mta_tax,
        "tip_amount": trip.tip_amount,
        "tolls_amount": trip.tolls_amount,
        "improvement_surcharge": trip.improvement_surcharge,
        "total_amount": trip.total_amount,
        "congestion_surcharge": trip.congestion_surcharge,
        "trip_duration_sec": trip.trip_duration_sec,
        "speed_kmh": trip.speed_kmh,
        "fare_per_km": trip.fare_per_km,
        "tip_rate": trip.tip_rate,
        "hour_of_day": trip.hour_of_day,
        "day_of_week": trip.day_of_week,
        "month": trip.month,
        "pickup_borough": trip.pickup_borough,
        "dropoff_borough": trip.dropoff_borough,
        "trip_type": trip.trip_type,
    }


def _cluster_point_from_row(row: Any) -> ClusterPoint:
    return ClusterPoint(
        lat=_optional_float(row["lat"]),
        lon=_optional_float(row["lon"]),
        duration=row["duration"],
        attributes={
            "distance_km": _optional_float(row["distance_km"]),
            "speed_kmh": _optional_float(row["speed_kmh"]),
            "pickup_borough": row["pickup_borough"],
            "hour_of_day": row["hour_of_day"],
        },
    )


def _optional_float(value: object) -> float | None:
    if value is None:
        return None
    return float(value)  # type: ignore[arg-type]
