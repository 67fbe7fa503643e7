"""Table loaders for the annotation stage.

Reads platform annotation tables (kept as raw text) and expression matrices
(parsed strictly: every cell is a finite number or an explicit missing
token, anything else aborts the dataset).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional, Union

import numpy as np
import pandas as pd

from probe_annotator.io import read_string_table

from ..errors import MalformedMatrixError, SchemaResolutionError
from .config import LoaderConfig
from .tables import GENE_SYMBOL_COLUMN, PROBE_ID_COLUMN, ExpressionMatrix, PlatformTable

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

RESERVED_COLUMNS = (PROBE_ID_COLUMN, GENE_SYMBOL_COLUMN)

_TABLE_SUFFIXES = {".gz", ".bz2", ".txt", ".tsv", ".csv", ".tab", ".annot", ".soft"}


def dataset_id_from_path(path: PathLike) -> str:
    """Derive an identifier from a file name by stripping table suffixes.

    Example: ``GSE2034_series_matrix.txt.gz`` -> ``GSE2034_series_matrix``
    """
    path = Path(path)
    name = path.name
    while Path(name).suffix.lower() in _TABLE_SUFFIXES:
        name = Path(name).stem
    return name


class ExpressionLoader:
    """Loader for platform tables and expression matrices.

    Parameters
    ----------
    config : LoaderConfig, optional
        Loader configuration

    Example
    -------
    >>> loader = ExpressionLoader()
    >>> matrix = loader.load("data/GSE2034.txt", dataset_id="GSE2034")
    >>> matrix.n_probes, matrix.n_samples
    (22283, 286)
    """

    def __init__(self, config: Optional[LoaderConfig] = None):
        self.config = config or LoaderConfig()
        self._na_tokens = set(self.config.na_tokens)

    def load_platform_table(
        self,
        path: PathLike,
        platform_id: Optional[str] = None,
    ) -> PlatformTable:
        """Load a platform annotation table.

        Parameters
        ----------
        path : PathLike
            Tab-delimited annotation file
        platform_id : str, optional
            Platform identifier (default: derived from the file name)

        Returns
        -------
        PlatformTable
            Raw string table

        Raises
        ------
        FileNotFoundError
            If the file does not exist
        SchemaResolutionError
            If the file cannot be parsed as a table
        """
        path = Path(path)
        platform_id = platform_id or dataset_id_from_path(path)
        try:
            frame, _ = read_string_table(
                path,
                sep=self.config.sep,
                comment_prefixes=self.config.comment_prefixes,
            )
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise SchemaResolutionError(
                f"Platform {platform_id}: cannot parse {path}: {e}",
                platform_id=platform_id,
            ) from e

        # Implicit row-name index: restore it as the leading column
        if not isinstance(frame.index, pd.RangeIndex):
            frame = frame.reset_index()

        logger.debug("Loaded platform %s: %d rows, %d columns", platform_id, len(frame), frame.shape[1])
        return PlatformTable(platform_id=platform_id, frame=frame, source=path)

    def _split_probe_ids(self, frame: pd.DataFrame, path: Path) -> tuple[pd.Series, pd.DataFrame]:
        """Separate the probe-ID column from the sample columns."""
        row_name_column = self.config.row_name_column
        if row_name_column is not None:
            if row_name_column not in frame.columns:
                raise MalformedMatrixError(
                    f"{path}: row-name column '{row_name_column}' not found",
                    path=path,
                    column=row_name_column,
                )
            if not isinstance(frame.index, pd.RangeIndex):
                frame = frame.reset_index()
            probe_ids = frame[row_name_column]
            return probe_ids, frame.drop(columns=[row_name_column])

        if isinstance(frame.index, pd.RangeIndex):
            if frame.shape[1] == 0:
                raise MalformedMatrixError(f"{path}: table has no columns", path=path)
            return frame.iloc[:, 0], frame.iloc[:, 1:]

        return pd.Series(frame.index, dtype=str), frame

    def load(self, path: PathLike, dataset_id: Optional[str] = None) -> ExpressionMatrix:
        """Load a probe x sample expression matrix.

        Parameters
        ----------
        path : PathLike
            Tab-delimited expression file; header row of sample IDs, first
            column (or ``row_name_column``) holds probe IDs
        dataset_id : str, optional
            Dataset identifier (default: derived from the file name)

        Returns
        -------
        ExpressionMatrix
            Float matrix indexed by probe ID, samples in file order

        Raises
        ------
        FileNotFoundError
            If the file does not exist
        MalformedMatrixError
            If a cell is neither a finite number nor a missing token, a row
            is shorter than the header, a probe ID is blank, a sample column
            is named Probe_ID or Gene_Symbol, or the table cannot be parsed
        """
        path = Path(path)
        dataset_id = dataset_id or dataset_id_from_path(path)
        try:
            frame, n_skip = read_string_table(
                path,
                sep=self.config.sep,
                comment_prefixes=self.config.comment_prefixes,
            )
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise MalformedMatrixError(f"{path}: cannot parse table: {e}", path=path) from e

        probe_series, samples = self._split_probe_ids(frame, path)
        probe_ids = [str(p).strip() for p in probe_series]

        # 1-based file line of the first data row: preamble + header
        first_data_line = n_skip + 2

        for pos, probe_id in enumerate(probe_ids):
            if not probe_id:
                raise MalformedMatrixError(
                    f"{path}: empty probe ID at line {first_data_line + pos}",
                    path=path,
                    line=first_data_line + pos,
                )

        reserved = [str(c) for c in samples.columns if str(c) in RESERVED_COLUMNS]
        if reserved:
            raise MalformedMatrixError(
                f"{path}: sample column '{reserved[0]}' clashes with an annotated-table column",
                path=path,
                line=n_skip + 1,
                column=reserved[0],
            )

        columns: Dict[str, np.ndarray] = {}
        for col in samples.columns:
            # na_filter is off, so NaN only marks fields absent from a short row
            truncated = samples[col].isna().to_numpy()
            if truncated.any():
                pos = int(np.flatnonzero(truncated)[0])
                line = first_data_line + pos
                raise MalformedMatrixError(
                    f"{path}: row too short at line {line}, probe '{probe_ids[pos]}', "
                    f"no field for column '{col}'",
                    path=path,
                    line=line,
                    probe_id=probe_ids[pos],
                    column=str(col),
                )

            raw = samples[col].astype(str).str.strip()
            missing = raw.isin(self._na_tokens).to_numpy()
            numeric = pd.to_numeric(raw.where(~missing), errors="coerce").to_numpy(dtype=float)
            bad = (np.isnan(numeric) & ~missing) | np.isinf(numeric)
            if not self.config.allow_missing:
                bad |= missing

            if bad.any():
                pos = int(np.flatnonzero(bad)[0])
                value = raw.iloc[pos]
                line = first_data_line + pos
                kind = "missing value" if missing[pos] else f"non-numeric value {value!r}"
                raise MalformedMatrixError(
                    f"{path}: {kind} at line {line}, probe '{probe_ids[pos]}', column '{col}'",
                    path=path,
                    line=line,
                    probe_id=probe_ids[pos],
                    column=str(col),
                    value=value,
                )
            columns[str(col)] = numeric

        index = pd.Index(probe_ids, name=PROBE_ID_COLUMN, dtype=object)
        values = pd.DataFrame(columns, index=index, columns=list(columns.keys()), dtype=float)
        matrix = ExpressionMatrix(dataset_id=dataset_id, values=values, source=path)

        duplicates = matrix.duplicated_probes()
        if duplicates:
            logger.warning(
                "Dataset %s: %d probe IDs occur on more than one row; all rows are kept (e.g. %s)",
                dataset_id, len(duplicates), ", ".join(duplicates[:5]),
            )
        if matrix.n_samples == 0:
            logger.warning("Dataset %s: matrix has no sample columns", dataset_id)

        logger.debug(
            "Loaded dataset %s: %d probes x %d samples (%d missing cells)",
            dataset_id, matrix.n_probes, matrix.n_samples, matrix.n_missing,
        )
        return matrix


def load_expression_matrix(
    path: PathLike,
    dataset_id: Optional[str] = None,
    config: Optional[LoaderConfig] = None,
) -> ExpressionMatrix:
    """Load an expression matrix with a default or given loader config."""
    return ExpressionLoader(config).load(path, dataset_id)


def load_platform_table(
    path: PathLike,
    platform_id: Optional[str] = None,
    config: Optional[LoaderConfig] = None,
) -> PlatformTable:
    """Load a platform annotation table with a default or given loader config."""
    return ExpressionLoader(config).load_platform_table(path, platform_id)
