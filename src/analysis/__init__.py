"""Trip analysis components.

This module clusters stored trips by pickup location and duration.
"""
