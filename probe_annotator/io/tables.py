"""Delimited-table I/O utilities for probe-annotator.

Provides functions for reading raw string tables (platform annotation files,
expression matrices, exported annotated tables) and writing DataFrames.
GEO-style preambles (lines starting with ``#`` or ``!``) are skipped.
"""

from __future__ import annotations

import bz2
import gzip
import logging
from pathlib import Path
from typing import IO, Optional, Sequence, Union

import pandas as pd

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

DEFAULT_COMMENT_PREFIXES = ("#", "!")
METADATA_PREFIX = "!"

# Trailer emitted at the end of GEO series-matrix tables
TABLE_END_MARKERS = ("!series_matrix_table_end",)


def ensure_output_dir(path: PathLike) -> Path:
    """Create the directory at path if it does not exist and return it.

    Parameters
    ----------
    path : PathLike
        Directory path to create.

    Returns
    -------
    Path
        The created/existing directory path.
    """
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def resolve_path(value: PathLike, base: Path) -> Path:
    """Resolve a path relative to a base directory."""
    candidate = Path(value)
    if not candidate.is_absolute():
        candidate = (base / candidate).resolve()
    return candidate


def table_extension(sep: str) -> str:
    """Return the conventional file extension for a separator."""
    return "csv" if sep == "," else "tsv"


def _open_text(path: Path) -> IO[str]:
    """Open a possibly compressed text file for reading."""
    suffix = path.suffix.lower()
    if suffix == ".gz":
        return gzip.open(path, "rt", encoding="utf-8", errors="replace")
    if suffix == ".bz2":
        return bz2.open(path, "rt", encoding="utf-8", errors="replace")
    return open(path, "r", encoding="utf-8", errors="replace")


def count_preamble_lines(
    path: PathLike,
    prefixes: Sequence[str] = DEFAULT_COMMENT_PREFIXES,
    sep: Optional[str] = "\t",
) -> int:
    """Count leading comment lines before the table header.

    GEO metadata lines (``!``) are always preamble. A line with any other
    comment prefix that contains the field separator is the header row
    itself (e.g. ``#ID\\tS1``) and ends the preamble.

    Parameters
    ----------
    path : PathLike
        Table file (plain, .gz or .bz2).
    prefixes : Sequence[str]
        Line prefixes that mark preamble lines.
    sep : str, optional
        Field separator of the table. None disables header detection.

    Returns
    -------
    int
        Number of lines to skip before the header row.
    """
    if not prefixes:
        return 0
    prefixes = tuple(prefixes)
    n_skip = 0
    with _open_text(Path(path)) as handle:
        for line in handle:
            if not line.startswith(prefixes):
                break
            if sep and not line.startswith(METADATA_PREFIX) and sep in line:
                break
            n_skip += 1
    return n_skip


def read_string_table(
    path: PathLike,
    sep: str = "\t",
    comment_prefixes: Sequence[str] = DEFAULT_COMMENT_PREFIXES,
    index_col: Optional[int] = None,
) -> tuple[pd.DataFrame, int]:
    """Read a delimited table with every cell kept as raw text.

    Parameters
    ----------
    path : PathLike
        Table file. Compression is inferred from the suffix.
    sep : str
        Field separator (default: tab).
    comment_prefixes : Sequence[str]
        Leading lines with these prefixes are skipped.
    index_col : int, optional
        Column to use as row index. Headers one field shorter than the data
        rows are accepted when this is set.

    Returns
    -------
    tuple[pd.DataFrame, int]
        (table, number of preamble lines skipped). Empty cells are empty
        strings; no NA conversion is applied.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    pandas.errors.ParserError
        If the table structure is inconsistent.
    """
    table_path = Path(path)
    if not table_path.exists():
        raise FileNotFoundError(f"Table not found: {table_path}")

    n_skip = count_preamble_lines(table_path, comment_prefixes, sep=sep)
    df = pd.read_csv(
        table_path,
        sep=sep,
        dtype=str,
        keep_default_na=False,
        na_filter=False,
        skiprows=n_skip,
        index_col=index_col,
        compression="infer",
    )

    # A header one field short makes pandas move the row names to the index
    implicit_index = index_col is not None or not isinstance(df.index, pd.RangeIndex)
    if len(df) > 0 and (implicit_index or df.shape[1] > 0):
        first = df.index if implicit_index else df.iloc[:, 0]
        trailer = pd.Series(first, dtype=str).str.strip().isin(TABLE_END_MARKERS)
        if trailer.any():
            df = df.loc[~trailer.to_numpy()]

    return df, n_skip


def write_dataframe(
    df: pd.DataFrame,
    path: PathLike,
    *,
    sep: str = "\t",
    index: bool = False,
    float_format: Optional[str] = None,
) -> Path:
    """Write DataFrame to path ensuring the parent directory exists.

    Parameters
    ----------
    df : pd.DataFrame
        DataFrame to write.
    path : PathLike
        Output path.
    sep : str
        Field separator (default: tab).
    index : bool
        Whether to write row index (default: False).
    float_format : str, optional
        Format string for floats (default: full precision).

    Returns
    -------
    Path
        The output path.
    """
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, sep=sep, index=index, float_format=float_format)
    logger.debug("Wrote %d rows to %s", len(df), output_path)
    return output_path
