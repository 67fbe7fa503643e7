"""I/O utilities for probe-annotator.

Provides run-log files and delimited-table I/O.
"""

from .runlog import RunLog, config_block, dated_log_path
from .tables import (
    ensure_output_dir,
    resolve_path,
    table_extension,
    count_preamble_lines,
    read_string_table,
    write_dataframe,
)

__all__ = [
    # Run logs
    "RunLog",
    "config_block",
    "dated_log_path",
    # Tables
    "ensure_output_dir",
    "resolve_path",
    "table_extension",
    "count_preamble_lines",
    "read_string_table",
    "write_dataframe",
]
