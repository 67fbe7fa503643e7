"""Re-read view of an exported annotated table.

Cells stay raw text so the checks see exactly what was written.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from probe_annotator.io import read_string_table

from ..annotation.tables import GENE_SYMBOL_COLUMN, PROBE_ID_COLUMN


@dataclass
class ExportedTable:
    """An annotated export as read back from disk.

    Attributes
    ----------
    dataset_id : str
        Dataset identifier
    frame : pd.DataFrame
        String-typed table
    path : Path, optional
        Source file
    summary_row : Dict, optional
        Matching row of the summary table, raw text values
    na_tokens : Sequence[str]
        Cell texts counted as missing
    """

    dataset_id: str
    frame: pd.DataFrame
    path: Optional[Path] = None
    summary_row: Optional[Dict[str, Any]] = None
    na_tokens: Sequence[str] = ("",)
    _parsed: Optional[Dict[str, np.ndarray]] = field(default=None, init=False, repr=False)

    @classmethod
    def read(
        cls,
        path: Path,
        dataset_id: str,
        sep: str = "\t",
        na_tokens: Sequence[str] = ("",),
        summary_row: Optional[Dict[str, Any]] = None,
    ) -> "ExportedTable":
        """Read an export; raises on unreadable files."""
        frame, _ = read_string_table(path, sep=sep, comment_prefixes=())
        if not isinstance(frame.index, pd.RangeIndex):
            frame = frame.reset_index()
        return cls(
            dataset_id=dataset_id,
            frame=frame,
            path=Path(path),
            summary_row=summary_row,
            na_tokens=tuple(na_tokens),
        )

    @property
    def columns(self) -> List[str]:
        return [str(c) for c in self.frame.columns]

    @property
    def n_rows(self) -> int:
        return len(self.frame)

    @property
    def has_probe_column(self) -> bool:
        return PROBE_ID_COLUMN in self.columns

    @property
    def has_symbol_column(self) -> bool:
        return GENE_SYMBOL_COLUMN in self.columns

    @property
    def sample_columns(self) -> List[str]:
        return [c for c in self.columns if c not in (PROBE_ID_COLUMN, GENE_SYMBOL_COLUMN)]

    @property
    def probe_ids(self) -> pd.Series:
        return self.frame[PROBE_ID_COLUMN].astype(str).str.strip()

    @property
    def gene_symbols(self) -> pd.Series:
        return self.frame[GENE_SYMBOL_COLUMN].astype(str).str.strip()

    def parse_values(self) -> Dict[str, np.ndarray]:
        """Parse sample cells.

        Returns
        -------
        Dict[str, np.ndarray]
            ``values`` (float, NaN where not a number), ``missing`` and
            ``invalid`` (bool masks, rows x samples). Fields absent from a
            short row are invalid, not missing.
        """
        if self._parsed is None:
            n_rows, n_cols = self.n_rows, len(self.sample_columns)
            values = np.full((n_rows, n_cols), np.nan)
            missing = np.zeros((n_rows, n_cols), dtype=bool)
            invalid = np.zeros((n_rows, n_cols), dtype=bool)
            tokens = set(self.na_tokens)
            for j, col in enumerate(self.sample_columns):
                absent = self.frame[col].isna().to_numpy()
                raw = self.frame[col].astype(str).str.strip()
                is_missing = raw.isin(tokens).to_numpy() & ~absent
                numeric = pd.to_numeric(raw.where(~is_missing), errors="coerce").to_numpy(dtype=float)
                values[:, j] = numeric
                missing[:, j] = is_missing
                invalid[:, j] = (np.isnan(numeric) & ~is_missing) | np.isinf(numeric) | absent
            self._parsed = {"values": values, "missing": missing, "invalid": invalid}
        return self._parsed
