"""Unit tests for the exclusion audit log."""

from __future__ import annotations

from datetime import datetime, timezone
import json
from pathlib import Path

from ingest.exclusion_log import ExclusionLogger, format_exclusion_line


def test_format_exclusion_line_is_tab_separated() -> None:
    """Lines should hold timestamp, reason, and the raw record as JSON."""
    logged_at = datetime(2024, 1, 1, 8, 0, 0, 123_000, tzinfo=timezone.utc)

    line = format_exclusion_line("fare_out_of_range", {"fare_amount": "-5"}, logged_at)
    timestamp, reason, payload = line.rstrip("\n").split("\t")

    assert timestamp == "2024-01-01T08:00:00.123Z"
    assert reason == "fare_out_of_range"
    assert json.loads(payload) == {"fare_amount": "-5"}
    assert line.endswith("\n")


def test_exclusion_logger_appends_lines(tmp_path: Path) -> None:
    """Each rejection under the cap should append one line."""
    log_path = tmp_path / "logs" / "excluded_records.log"
    logger = ExclusionLogger(log_path, max_entries=10)

    logger.log("invalid_timestamp", {"tpep_pickup_datetime": "garbage"})
    logger.log("invalid_or_unknown_zone", {"PULocationID": "999"})

    lines = log_path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2 and lines[1].split("\t")[1] == "invalid_or_unknown_zone"


def test_exclusion_logger_stops_writing_at_cap(tmp_path: Path) -> None:
    """Writes stop at the cap while rejections keep being counted."""
    log_path = tmp_path / "excluded.log"
    logger = ExclusionLogger(log_path, max_entries=3)

    for index in range(7):
        logger.log("fare_out_of_range", {"row": index})

    assert logger.rejected_count == 7 and logger.written_count == 3
    assert len(log_path.read_text(encoding="utf-8").splitlines()) == 3


def test_exclusion_logger_survives_unwritable_path(tmp_path: Path) -> None:
    """A write failure should not abort ingest; counting continues."""
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("", encoding="utf-8")
    logger = ExclusionLogger(blocker / "excluded.log", max_entries=5)

    logger.log("fare_out_of_range", {"row": 1})
    logger.log("fare_out_of_range", {"row": 2})

    assert logger.rejected_count == 2 and logger.written_count == 0
