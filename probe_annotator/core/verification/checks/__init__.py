"""Check implementations for the Verification module.

This package contains checks organized by category:
- integrity: Structure, missing values, duplicates, summary agreement
- distribution: Value ranges and gene representation
"""

from .base import BaseCheck, CheckResult
from .registry import CheckRegistry

# Import check modules to trigger registration
from . import integrity
from . import distribution

__all__ = [
    "BaseCheck",
    "CheckResult",
    "CheckRegistry",
]
