"""Runtime configuration model for Tripscope.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DATABASE_FILE_NAME,
    DEFAULT_BATCH_SIZE,
    DEFAULT_DATA_ROOT,
    DEFAULT_EXCLUSION_LOG_LIMIT,
    EXCLUSION_LOG_FILE_NAME,
    LOGS_DIR_NAME,
)
from core.errors import TripscopeConfigError


@dataclass(frozen=True)
class TripscopeConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local root directory for the default database and logs.
        database_url: Optional SQLAlchemy URL; SQLite under data_root if unset.
        batch_size: Number of enriched trips per bulk insert.
        exclusion_log_path: Optional override for the exclusion audit file.
        exclusion_log_limit: Maximum exclusion lines written per ingest run.
        random_seed: Optional seed for clustering; unseeded when None.
    """

    data_root: Path
    database_url: str | None = None
    batch_size: int = DEFAULT_BATCH_SIZE
    exclusion_log_path: Path | None = None
    exclusion_log_limit: int = DEFAULT_EXCLUSION_LOG_LIMIT
    random_seed: int | None = None

    @classmethod
    def from_env(cls) -> "TripscopeConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            TripscopeConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("TRIPSCOPE_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        exclusion_log_value = os.getenv("TRIPSCOPE_EXCLUSION_LOG")
        random_seed_value = os.getenv("TRIPSCOPE_RANDOM_SEED")
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            database_url=os.getenv("TRIPSCOPE_DATABASE_URL") or None,
            batch_size=_parse_positive_int(
                "TRIPSCOPE_BATCH_SIZE",
                os.getenv("TRIPSCOPE_BATCH_SIZE", str(DEFAULT_BATCH_SIZE)),
            ),
            exclusion_log_path=(
                Path(exclusion_log_value).expanduser().resolve()
                if exclusion_log_value
                else None
            ),
            exclusion_log_limit=_parse_positive_int(
                "TRIPSCOPE_EXCLUSION_LOG_LIMIT",
                os.getenv("TRIPSCOPE_EXCLUSION_LOG_LIMIT", str(DEFAULT_EXCLUSION_LOG_LIMIT)),
            ),
            random_seed=(
                _parse_random_seed(random_seed_value) if random_seed_value else None
            ),
        )

    def resolved_database_url(self) -> str:
        """Return the configured database URL or the local SQLite default."""
        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.data_root / DATABASE_FILE_NAME}"

    def resolved_exclusion_log_path(self) -> Path:
        """Return the exclusion audit log path."""
        if self.exclusion_log_path is not None:
            return self.exclusion_log_path
        return self.data_root / LOGS_DIR_NAME / EXCLUSION_LOG_FILE_NAME


def _parse_positive_int(variable_name: str, raw_value: str) -> int:
    """Parse a strictly positive integer environment value.

    Args:
        variable_name: Environment variable name for error context.
        raw_value: Raw string from environment.

    Returns:
        Parsed integer.

    Raises:
        TripscopeConfigError: If value is not a positive integer.
    """
    try:
        parsed = int(raw_value)
    except ValueError as error:
        raise TripscopeConfigError(
            f"Invalid {variable_name} value: expected integer, got '{raw_value}'. "
            f"Set {variable_name} to a positive whole number."
        ) from error
    if parsed <= 0:
        raise TripscopeConfigError(
            f"Invalid {variable_name} value: expected a positive integer, got {parsed}. "
            f"Set {variable_name} to a value greater than zero."
        )
    return parsed


def _parse_random_seed(raw_value: str) -> int:
    """Parse the random seed environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Parsed integer seed.

    Raises:
        TripscopeConfigError: If value cannot be parsed into int.
    """
    try:
        return int(raw_value)
    except ValueError as error:
        raise TripscopeConfigError(
            "Invalid TRIPSCOPE_RANDOM_SEED value: "
            f"expected integer, got '{raw_value}'. "
            "Set TRIPSCOPE_RANDOM_SEED to a numeric value or unset it."
        ) from error
