"""Append-only audit log for rejected trip rows.

Each line is ``<ISO timestamp>\\t<reason code>\\t<raw record JSON>``.
Writes stop after a per-run cap while rejections keep being counted.
"""

from __future__ import annotations

from datetime import datetime, timezone
import json
from pathlib import Path
from typing import Mapping

from core.constants import DEFAULT_EXCLUSION_LOG_LIMIT
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


class ExclusionLogger:
    """Per-run exclusion sink with a bounded number of written lines."""

    def __init__(self, log_path: Path, max_entries: int = DEFAULT_EXCLUSION_LOG_LIMIT) -> None:
        self._log_path = log_path
        self._max_entries = max_entries
        self._rejected_count = 0
        self._written_count = 0
        self._write_failed = False

    @property
    def log_path(self) -> Path:
        return self._log_path

    @property
    def rejected_count(self) -> int:
        """Rejections seen this run, including those past the cap."""
        return self._rejected_count

    @property
    def written_count(self) -> int:
        return self._written_count

    def log(self, reason: str, raw_record: Mapping[str, object]) -> None:
        """Record one rejection, appending a line while under the cap.

        Args:
            reason: Rejection reason code.
            raw_record: Original record, serialized verbatim.
        """
        self._rejected_count += 1
        if self._written_count >= self._max_entries or self._write_failed:
            return
        line = format_exclusion_line(reason, raw_record, datetime.now(timezone.utc))
        try:
            self._log_path.parent.mkdir(parents=True, exist_ok=True)
            with self._log_path.open("a", encoding="utf-8") as handle:
                handle.write(line)
        except OSError as error:
            self._write_failed = True
            _LOGGER.error(
                "exclusion_log_write_failed",
                log_path=str(self._log_path),
                error=str(error),
            )
            return
        self._written_count += 1


def format_exclusion_line(
    reason: str,
    raw_record: Mapping[str, object],
    logged_at: datetime,
) -> str:
    """Render one tab-separated exclusion line with trailing newline."""
    timestamp = logged_at.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    payload = json.dumps(dict(raw_record), default=str)
    return f"{timestamp}\t{reason}\t{payload}\n"
