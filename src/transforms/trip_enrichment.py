"""Trip feature enrichment.

This module maps an accepted raw trip row to the persisted trip shape,
deriving speed, fare, tip, calendar, and borough features.
"""

from __future__ import annotations

import re

from core.constants import (
    CROSS_BOROUGH,
    MAX_SPEED_KMH,
    MILES_TO_KM,
    WITHIN_BOROUGH,
)
from core.types import Trip, TripRow, ZoneContext
from transforms.field_parsing import parse_float, parse_int, parse_timestamp
from transforms.trip_validation import AcceptedTrip

_HOUR_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}\s(\d{1,2}):")
_DEFAULT_STORE_AND_FWD_FLAG = "N"


def enrich_trip(row: TripRow, accepted: AcceptedTrip, zones: ZoneContext) -> Trip:
    """Build the persisted trip for a row that passed validation.

    Args:
        row: Raw trip row.
        accepted: Normalized values from the validator.
        zones: Zone snapshot used for borough lookups.

    Returns:
        Enriched immutable trip.
    """
    tip_amount = parse_float(row.tip_amount, 0.0)
    distance_km = accepted.trip_distance * MILES_TO_KM
    pickup_borough = zones.borough_of(accepted.pu_location_id)
    dropoff_borough = zones.borough_of(accepted.do_location_id)
    day_of_week, month = day_and_month(row.pickup_datetime)
    return Trip(
        vendor_id=parse_int(row.vendor_id, None),
        pickup_datetime=accepted.pickup,
        dropoff_datetime=accepted.dropoff,
        passenger_count=accepted.passenger_count,
        trip_distance=accepted.trip_distance,
        rate_code_id=parse_int(row.rate_code_id, None),
        store_and_fwd_flag=_store_and_fwd_flag(row.store_and_fwd_flag),
        pu_location_id=accepted.pu_location_id,
        do_location_id=accepted.do_location_id,
        payment_type=parse_int(row.payment_type, None),
        fare_amount=accepted.fare_amount,
        extra=parse_float(row.extra, 0.0),
        mta_tax=parse_float(row.mta_tax, 0.0),
        tip_amount=tip_amount,
        tolls_amount=parse_float(row.tolls_amount, 0.0),
        improvement_surcharge=parse_float(row.improvement_surcharge, 0.0),
        total_amount=accepted.total_amount,
        congestion_surcharge=parse_float(row.congestion_surcharge, 0.0),
        trip_duration_sec=accepted.duration_sec,
        speed_kmh=speed_kmh(distance_km, accepted.duration_sec),
        fare_per_km=accepted.fare_amount / distance_km if distance_km > 0 else 0.0,
        tip_rate=tip_amount / accepted.total_amount if accepted.total_amount > 0 else 0.0,
        hour_of_day=hour_of_day(row.pickup_datetime),
        day_of_week=day_of_week,
        month=month,
        pickup_borough=pickup_borough,
        dropoff_borough=dropoff_borough,
        trip_type=classify_trip(pickup_borough, dropoff_borough),
    )


def speed_kmh(distance_km: float, duration_sec: int) -> float:
    """Return average speed in km/h, capped, and 0 for zero duration."""
    duration_hours = duration_sec / 3600
    if duration_hours <= 0:
        return 0.0
    return min(MAX_SPEED_KMH, distance_km / duration_hours)


def classify_trip(pickup_borough: str, dropoff_borough: str) -> str:
    """Return the trip classification from the two borough names."""
    if pickup_borough and dropoff_borough and pickup_borough != dropoff_borough:
        return CROSS_BOROUGH
    return WITHIN_BOROUGH


def hour_of_day(raw_pickup: str | None) -> int:
    """Extract the pickup hour, preferring the literal source text.

    Returns 0 when the value is missing or unparseable.
    """
    if raw_pickup is None or not raw_pickup.strip():
        return 0
    text = raw_pickup.strip()
    match = _HOUR_PREFIX.match(text)
    if match:
        return int(match.group(1)) % 24
    parsed = parse_timestamp(text)
    return parsed.hour if parsed else 0


def day_and_month(raw_pickup: str | None) -> tuple[int, int]:
    """Extract weekday (Sunday = 0) and month, defaulting to ``(0, 1)``."""
    parsed = parse_timestamp(raw_pickup)
    if parsed is None:
        return 0, 1
    return (parsed.weekday() + 1) % 7, parsed.month


def _store_and_fwd_flag(value: str | None) -> str | None:
    """Keep only the first character of the store-and-forward flag."""
    text = (value or _DEFAULT_STORE_AND_FWD_FLAG).strip()
    return text[:1] or None
