"""Tripscope exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class TripscopeError(Exception):
    """Base exception for all Tripscope failures."""


class TripscopeConfigError(TripscopeError):
    """Raised for invalid runtime configuration."""


class TripscopeIngestError(TripscopeError):
    """Raised when a source file is missing, unreadable, or malformed."""


class TripscopeGeometryError(TripscopeError):
    """Raised for missing or degenerate zone polygons."""


class TripscopePersistenceError(TripscopeError):
    """Raised for database connectivity and constraint failures."""


class TripscopeDependencyError(TripscopeError):
    """Raised when an optional runtime dependency is missing."""
