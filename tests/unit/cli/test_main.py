"""Unit tests for CLI command handling."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from cli.main import build_parser, main
from tests.fixture_paths import fixture_path, write_zone_shapefile


def _base_args(tmp_path: Path) -> list[str]:
    return ["--data-root", str(tmp_path)]


def test_cli_setup_db_prints_database_url(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """setup-db should create the schema and print the store location."""
    exit_code = main(_base_args(tmp_path) + ["setup-db"])
    output = capsys.readouterr().out.strip()

    assert exit_code == 0 and output.startswith("database_url=sqlite:")
    assert (tmp_path / "tripscope.db").exists()


def test_cli_ingest_zones_prints_counts(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """ingest-zones should report zone rows and centroid updates."""
    shapefile_path = write_zone_shapefile(tmp_path / "taxi_zones")
    args = _base_args(tmp_path) + [
        "ingest-zones",
        str(fixture_path("taxi_zone_lookup.csv")),
        "--geometry",
        str(shapefile_path),
    ]

    exit_code = main(args)
    output = capsys.readouterr().out.splitlines()

    assert exit_code == 0
    assert output == ["zone_count=5", "centroids_updated=2"]


def test_cli_ingest_trips_then_cluster(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Trips ingested via the CLI should be clusterable as JSON output."""
    shapefile_path = write_zone_shapefile(tmp_path / "taxi_zones")
    main(
        _base_args(tmp_path)
        + [
            "ingest-zones",
            str(fixture_path("taxi_zone_lookup.csv")),
            "--geometry",
            str(shapefile_path),
        ]
    )
    capsys.readouterr()

    ingest_exit = main(_base_args(tmp_path) + ["ingest-trips", str(fixture_path("trips"))])
    ingest_output = capsys.readouterr().out.splitlines()
    cluster_exit = main(_base_args(tmp_path) + ["cluster", "--k", "3", "--limit", "5"])
    payload = json.loads(capsys.readouterr().out)

    assert ingest_exit == 0 and cluster_exit == 0
    assert ingest_output[:3] == ["processed=5", "valid=2", "excluded=3"]
    assert payload["total_points"] == 2 and payload["cluster_count"] == 1
    assert payload["clusters"][0]["size"] == 2


def test_cli_reports_ingest_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Domain errors should become a non-zero exit code with a message."""
    exit_code = main(_base_args(tmp_path) + ["ingest-trips", str(tmp_path / "nothing-here")])
    output = capsys.readouterr().out.strip()

    assert exit_code == 1 and output.startswith("error=")


def test_cluster_parser_defaults() -> None:
    """Cluster options should default to k=5, limit=10000, 100 iterations."""
    args = build_parser().parse_args(["cluster"])

    assert (args.k, args.limit, args.max_iterations) == (5, 10000, 100)


def test_ingest_trips_parser_defaults_to_data_directory() -> None:
    """The trip source should default to the local data directory."""
    args = build_parser().parse_args(["ingest-trips"])

    assert args.source == "data"
