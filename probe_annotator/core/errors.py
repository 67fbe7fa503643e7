"""Error taxonomy for the annotation pipeline.

Each error names the unit of work it aborts:

- SchemaResolutionError: one platform (and every dataset assigned to it)
- MalformedMatrixError: one dataset
- DivisionByZeroError: one dataset (empty expression matrix)
- MissingAssignmentError: one dataset
"""

from pathlib import Path
from typing import Optional, Union


class ProbeAnnotationError(Exception):
    """Base class for recoverable pipeline errors."""

    pass


class SchemaResolutionError(ProbeAnnotationError):
    """Raised when a platform table has no usable probe or gene-symbol column."""

    def __init__(self, message: str, platform_id: Optional[str] = None):
        super().__init__(message)
        self.platform_id = platform_id


class MalformedMatrixError(ProbeAnnotationError):
    """Raised when an expression cell cannot be parsed as a value.

    Parameters
    ----------
    message : str
        Human-readable description
    path : str or Path, optional
        Source file
    line : int, optional
        1-based line number in the source file
    probe_id : str, optional
        Row key of the offending cell
    column : str, optional
        Sample column of the offending cell
    value : str, optional
        Raw cell text
    """

    def __init__(
        self,
        message: str,
        path: Optional[Union[str, Path]] = None,
        line: Optional[int] = None,
        probe_id: Optional[str] = None,
        column: Optional[str] = None,
        value: Optional[str] = None,
    ):
        super().__init__(message)
        self.path = str(path) if path is not None else None
        self.line = line
        self.probe_id = probe_id
        self.column = column
        self.value = value


class DivisionByZeroError(ProbeAnnotationError, ZeroDivisionError):
    """Raised when a retention rate is requested for a matrix with no probes."""

    pass


class MissingAssignmentError(ProbeAnnotationError):
    """Raised when a dataset has no usable platform assignment."""

    def __init__(self, message: str, dataset_id: Optional[str] = None):
        super().__init__(message)
        self.dataset_id = dataset_id
