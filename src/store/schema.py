"""Relational schema for zones and trips.

Tables and secondary indexes are declared with SQLAlchemy Core so the
same definition serves SQLite and PostgreSQL deployments.
"""

from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Numeric,
    SmallInteger,
    String,
    Table,
    func,
)

metadata = MetaData()

zones_table = Table(
    "zones",
    metadata,
    Column("location_id", Integer, primary_key=True, autoincrement=False),
    Column("borough", String(50)),
    Column("zone", String(255)),
    Column("service_zone", String(50)),
    Column("centroid_lat", Numeric(10, 7, asdecimal=False)),
    Column("centroid_lon", Numeric(10, 7, asdecimal=False)),
)

trips_table = Table(
    "trips",
    metadata,
    Column(
        "trip_id",
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    ),
    Column("vendor_id", Integer),
    Column("tpep_pickup_datetime", DateTime, nullable=False),
    Column("tpep_dropoff_datetime", DateTime, nullable=False),
    Column("passenger_count", SmallInteger),
    Column("trip_distance", Float),
    Column("rate_code_id", SmallInteger),
    Column("store_and_fwd_flag", String(1)),
    Column("pu_location_id", Integer, ForeignKey("zones.location_id")),
    Column("do_location_id", Integer, ForeignKey("zones.location_id")),
    Column("payment_type", SmallInteger),
    Column("fare_amount", Float),
    Column("extra", Float),
    Column("mta_tax", Float),
    Column("tip_amount", Float),
    Column("tolls_amount", Float),
    Column("improvement_surcharge", Float),
    Column("total_amount", Float),
    Column("congestion_surcharge", Float),
    Column("trip_duration_sec", Integer),
    Column("speed_kmh", Float),
    Column("fare_per_km", Float),
    Column("tip_rate", Float),
    Column("hour_of_day", SmallInteger),
    Column("day_of_week", SmallInteger),
    Column("month", SmallInteger),
    Column("pickup_borough", String(50)),
    Column("dropoff_borough", String(50)),
    Column("trip_type", String(20)),
    Column("created_at", DateTime, server_default=func.current_timestamp()),
    Index("idx_trips_pickup_datetime", "tpep_pickup_datetime"),
    Index("idx_trips_trip_duration", "trip_duration_sec"),
    Index("idx_trips_pu_location", "pu_location_id"),
    Index("idx_trips_do_location", "do_location_id"),
    Index("idx_trips_hour", "hour_of_day"),
    Index("idx_trips_pickup_borough", "pickup_borough"),
    Index("idx_trips_dropoff_borough", "dropoff_borough"),
    Index("idx_trips_trip_type", "trip_type"),
    Index("idx_trips_total_amount", "total_amount"),
    Index("idx_trips_trip_distance", "trip_distance"),
)
