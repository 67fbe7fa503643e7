"""Core annotation and verification modules.

- annotation: platform resolution, expression loading, joining, statistics
- verification: independent checks over exported annotated tables
"""

from .errors import (
    ProbeAnnotationError,
    SchemaResolutionError,
    MalformedMatrixError,
    DivisionByZeroError,
    MissingAssignmentError,
)

__all__ = [
    "ProbeAnnotationError",
    "SchemaResolutionError",
    "MalformedMatrixError",
    "DivisionByZeroError",
    "MissingAssignmentError",
]
