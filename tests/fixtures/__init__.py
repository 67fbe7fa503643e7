"""Test fixtures for probe-annotator.

Provides mock table writers and test utilities.
"""

from .mock_tables import (
    write_platform_table,
    write_table,
    write_expression_matrix,
    create_mock_platform,
    create_mock_expression,
    create_run_directory,
)

__all__ = [
    "write_platform_table",
    "write_table",
    "write_expression_matrix",
    "create_mock_platform",
    "create_mock_expression",
    "create_run_directory",
]
