"""Utility functions for probe-annotator.

Provides statistical helpers used across modules.
"""

from .stats import (
    compute_percentiles,
    count_outside,
)

__all__ = [
    "compute_percentiles",
    "count_outside",
]
