"""Relational storage layer.

This module defines the zone and trip schema and persists reference and
enriched trip records. It also exposes the SDK client over the store.
"""
