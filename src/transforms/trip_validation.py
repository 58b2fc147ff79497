"""Row-level trip validation.

This module applies the ordered acceptance rules to one raw trip row.
The first failing rule decides the rejection reason.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import math

from core.constants import (
    MAX_FARE_AMOUNT,
    MAX_PASSENGER_COUNT,
    MAX_TOTAL_AMOUNT,
    MAX_TRIP_DISTANCE_MILES,
    MAX_TRIP_DURATION_SEC,
    MIN_TRIP_DURATION_SEC,
)
from core.types import TripRow, ZoneContext
from transforms.field_parsing import parse_float, parse_int, parse_timestamp

_MISSING = -1


class RejectionReason(str, Enum):
    """Closed set of reason codes written to the exclusion log."""

    INVALID_OR_UNKNOWN_ZONE = "invalid_or_unknown_zone"
    INVALID_TIMESTAMP = "invalid_timestamp"
    DURATION_OUT_OF_RANGE = "duration_out_of_range"
    INVALID_PASSENGER_COUNT = "invalid_passenger_count"
    TRIP_DISTANCE_OUT_OF_RANGE = "trip_distance_out_of_range"
    FARE_OUT_OF_RANGE = "fare_out_of_range"
    TOTAL_AMOUNT_OUT_OF_RANGE = "total_amount_out_of_range"


@dataclass(frozen=True)
class AcceptedTrip:
    """Normalized values produced by a passing validation.

    Attributes:
        duration_sec: Rounded dropoff minus pickup in seconds.
    """

    pu_location_id: int
    do_location_id: int
    pickup: datetime
    dropoff: datetime
    duration_sec: int
    passenger_count: int
    trip_distance: float
    fare_amount: float
    total_amount: float


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of validating one trip row.

    Exactly one of ``accepted`` or ``reason`` is set.
    """

    accepted: AcceptedTrip | None = None
    reason: RejectionReason | None = None

    @property
    def is_accepted(self) -> bool:
        """Return whether the row passed every rule."""
        return self.accepted is not None


def validate_trip(row: TripRow, zones: ZoneContext) -> ValidationOutcome:
    """Validate one trip row against the run's zone snapshot.

    Args:
        row: Raw trip row.
        zones: Immutable zone snapshot for the current run.

    Returns:
        Accepted outcome with normalized values, or a rejection reason.
    """
    pu_location_id = parse_int(row.pu_location_id, None)
    do_location_id = parse_int(row.do_location_id, None)
    if not zones.contains(pu_location_id) or not zones.contains(do_location_id):
        return _reject(RejectionReason.INVALID_OR_UNKNOWN_ZONE)
    pickup = parse_timestamp(row.pickup_datetime)
    dropoff = parse_timestamp(row.dropoff_datetime)
    if pickup is None or dropoff is None:
        return _reject(RejectionReason.INVALID_TIMESTAMP)
    duration_sec = trip_duration_seconds(pickup, dropoff)
    if duration_sec < MIN_TRIP_DURATION_SEC or duration_sec > MAX_TRIP_DURATION_SEC:
        return _reject(RejectionReason.DURATION_OUT_OF_RANGE)
    passenger_count = parse_int(row.passenger_count, _MISSING)
    if passenger_count < 0 or passenger_count > MAX_PASSENGER_COUNT:
        return _reject(RejectionReason.INVALID_PASSENGER_COUNT)
    trip_distance = parse_float(row.trip_distance, _MISSING)
    if not _in_range(trip_distance, MAX_TRIP_DISTANCE_MILES):
        return _reject(RejectionReason.TRIP_DISTANCE_OUT_OF_RANGE)
    fare_amount = parse_float(row.fare_amount, _MISSING)
    if not _in_range(fare_amount, MAX_FARE_AMOUNT):
        return _reject(RejectionReason.FARE_OUT_OF_RANGE)
    total_amount = parse_float(row.total_amount, _MISSING)
    if not _in_range(total_amount, MAX_TOTAL_AMOUNT):
        return _reject(RejectionReason.TOTAL_AMOUNT_OUT_OF_RANGE)
    accepted = AcceptedTrip(
        pu_location_id=int(pu_location_id),
        do_location_id=int(do_location_id),
        pickup=pickup,
        dropoff=dropoff,
        duration_sec=duration_sec,
        passenger_count=passenger_count,
        trip_distance=float(trip_distance),
        fare_amount=float(fare_amount),
        total_amount=float(total_amount),
    )
    return ValidationOutcome(accepted=accepted)


def trip_duration_seconds(pickup: datetime, dropoff: datetime) -> int:
    """Return dropoff minus pickup in seconds, rounding halves up.

    Sub-second precision is truncated to milliseconds first.
    """
    elapsed = dropoff - pickup
    elapsed_ms = elapsed.days * 86_400_000 + elapsed.seconds * 1000 + elapsed.microseconds // 1000
    return math.floor(elapsed_ms / 1000 + 0.5)


def _in_range(value: float, upper_bound: float) -> bool:
    """Return whether a parsed amount lies in ``[0, upper_bound]``."""
    return 0 <= value <= upper_bound


def _reject(reason: RejectionReason) -> ValidationOutcome:
    return ValidationOutcome(reason=reason)
