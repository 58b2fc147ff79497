"""Trip and zone ingestion pipeline.

This module reads raw trip files and zone reference data, validates and
enriches trip rows, and hands accepted trips to the store layer.
"""
