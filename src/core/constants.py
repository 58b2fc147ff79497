"""Core constants used across Tripscope modules.

This module centralizes unit conversions, validation bounds, and defaults.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".tripscope")
DATABASE_FILE_NAME = "tripscope.db"
LOGS_DIR_NAME = "logs"
EXCLUSION_LOG_FILE_NAME = "excluded_records.log"

MILES_TO_KM = 1.60934
MAX_SPEED_KMH = 200.0

DEFAULT_BATCH_SIZE = 2000
DEFAULT_EXCLUSION_LOG_LIMIT = 5000
PROGRESS_LOG_INTERVAL = 50_000
DEFAULT_READ_BLOCK_SIZE = 1 << 20
DEFAULT_PARQUET_BATCH_SIZE = 65_536

MIN_TRIP_DURATION_SEC = 60
MAX_TRIP_DURATION_SEC = 86_400
MAX_PASSENGER_COUNT = 9
MAX_TRIP_DISTANCE_MILES = 500.0
MAX_FARE_AMOUNT = 10_000.0
MAX_TOTAL_AMOUNT = 10_000.0

WITHIN_BOROUGH = "Within Borough"
CROSS_BOROUGH = "Cross Borough"

TRIP_FILE_PREFIX = "yellow_tripdata"
DEFAULT_TRIP_SOURCE_DIR = "data"
SUPPORTED_TRIP_EXTENSIONS = (".parquet", ".csv")

LOOKUP_COLUMNS = ("LocationID", "Borough", "Zone", "service_zone")

# NAD83 / New York Long Island state plane (US feet), as shipped with the
# TLC taxi_zones shapefile. Equivalent to EPSG:2263.
ZONE_SOURCE_CRS_WKT = (
    'PROJCS["NAD_1983_StatePlane_New_York_Long_Island_FIPS_3104_Feet",'
    'GEOGCS["GCS_North_American_1983",DATUM["D_North_American_1983",'
    'SPHEROID["GRS_1980",6378137.0,298.257222101]],PRIMEM["Greenwich",0.0],'
    'UNIT["Degree",0.0174532925199433]],PROJECTION["Lambert_Conformal_Conic"],'
    'PARAMETER["False_Easting",984250.0],PARAMETER["False_Northing",0.0],'
    'PARAMETER["Central_Meridian",-74.0],'
    'PARAMETER["Standard_Parallel_1",40.66666666666666],'
    'PARAMETER["Standard_Parallel_2",41.03333333333333],'
    'PARAMETER["Latitude_Of_Origin",40.16666666666666],'
    'UNIT["Foot_US",0.3048006096012192]]'
)
ZONE_TARGET_CRS = "EPSG:4326"

DEFAULT_CLUSTER_K = 5
MAX_CLUSTER_K = 20
DEFAULT_CLUSTER_MAX_ITERATIONS = 100
CLUSTER_CONVERGENCE_THRESHOLD = 0.001
CLUSTER_DURATION_SCALE = 1000.0
DEFAULT_CLUSTER_ROW_LIMIT = 10_000
MIN_CLUSTER_ROW_LIMIT = 10
MAX_CLUSTER_ROW_LIMIT = 50_000
