"""Tripscope CLI entry points.
This module exposes commands for schema setup, zone and trip ingest,
and trip clustering. It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
import json
from pathlib import Path
from typing import Any, Sequence

from core.config import TripscopeConfig
from core.constants import (
    DEFAULT_CLUSTER_K,
    DEFAULT_CLUSTER_MAX_ITERATIONS,
    DEFAULT_CLUSTER_ROW_LIMIT,
    DEFAULT_TRIP_SOURCE_DIR,
)
from core.errors import TripscopeError
from store.client_sdk import TripscopeClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="tripscope", description="Tripscope taxi trip CLI")
    parser.add_argument("--data-root", help="Override TRIPSCOPE_DATA_ROOT for this command")
    parser.add_argument("--database-url", help="Override TRIPSCOPE_DATABASE_URL for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_setup_db_command(subparsers)
    _add_ingest_zones_command(subparsers)
    _add_ingest_trips_command(subparsers)
    _add_cluster_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Tripscope CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = _build_client(args.data_root, args.database_url)
        if args.command == "setup-db":
            return _run_setup_db_command(client)
        if args.command == "ingest-zones":
            return _run_ingest_zones_command(client, args)
        if args.command == "ingest-trips":
            return _run_ingest_trips_command(client, args)
        if args.command == "cluster":
            return _run_cluster_command(client, args)
    except TripscopeError as error:
        print(f"error={error}")
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(data_root: str | None, database_url: str | None) -> TripscopeClient:
    """Build SDK client with optional data-root and database overrides.

    Args:
        data_root: Optional override path.
        database_url: Optional override URL.

    Returns:
        Configured SDK client.
    """
    config = TripscopeConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    if database_url:
        config = replace(config, database_url=database_url)
    return TripscopeClient(config)


def _run_setup_db_command(client: TripscopeClient) -> int:
    client.setup_database()
    print(f"database_url={client.database.url}")
    return 0


def _run_ingest_zones_command(client: TripscopeClient, args: argparse.Namespace) -> int:
    """Handle ingest-zones command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    client.setup_database()
    summary = client.ingest_zones(args.lookup, args.geometry)
    print(f"zone_count={summary.zone_count}")
    print(f"centroids_updated={summary.centroids_updated}")
    return 0


def _run_ingest_trips_command(client: TripscopeClient, args: argparse.Namespace) -> int:
    """Handle ingest-trips command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    summary = client.ingest_trips(args.source)
    print(f"processed={summary.processed}")
    print(f"valid={summary.valid}")
    print(f"excluded={summary.excluded}")
    print(f"exclusion_log_path={summary.exclusion_log_path}")
    return 0


def _run_cluster_command(client: TripscopeClient, args: argparse.Namespace) -> int:
    result = client.cluster_trips(k=args.k, limit=args.limit, max_iterations=args.max_iterations)
    print(json.dumps(result.to_dict(), default=str))
    return 0


def _add_setup_db_command(subparsers: Any) -> None:
    """Register setup-db subcommand."""
    subparsers.add_parser("setup-db", help="Create zone and trip tables")


def _add_ingest_zones_command(subparsers: Any) -> None:
    """Register ingest-zones subcommand."""
    parser = subparsers.add_parser("ingest-zones", help="Load the taxi zone lookup table")
    parser.add_argument("lookup", help="Zone lookup CSV path")
    parser.add_argument("--geometry", help="Optional zone polygon .shp path for centroids")


def _add_ingest_trips_command(subparsers: Any) -> None:
    """Register ingest-trips subcommand."""
    parser = subparsers.add_parser("ingest-trips", help="Validate, enrich, and store trip records")
    parser.add_argument(
        "source",
        nargs="?",
        default=DEFAULT_TRIP_SOURCE_DIR,
        help="Trip CSV/Parquet file, or a directory holding a yellow_tripdata file",
    )


def _add_cluster_command(subparsers: Any) -> None:
    """Register cluster subcommand."""
    parser = subparsers.add_parser("cluster", help="Cluster stored trips and print JSON")
    parser.add_argument("--k", type=int, default=DEFAULT_CLUSTER_K, help="Cluster count, 1-20")
    parser.add_argument(
        "--limit",
        type=int,
        default=DEFAULT_CLUSTER_ROW_LIMIT,
        help="Trips sampled for clustering, 10-50000",
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=DEFAULT_CLUSTER_MAX_ITERATIONS,
        help="Upper bound on refinement rounds",
    )
