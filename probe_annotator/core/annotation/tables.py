"""Data model for the annotation stage.

Defines the tables that flow through resolution, loading and joining:

- PlatformTable: raw platform annotation table
- ProbeGeneMap: immutable probe -> gene symbol lookup for one platform
- ExpressionMatrix: probe x sample numeric matrix for one dataset
- AnnotatedMatrix: expression rows that carry a gene symbol
"""

from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional

import pandas as pd

PROBE_ID_COLUMN = "Probe_ID"
GENE_SYMBOL_COLUMN = "Gene_Symbol"


@dataclass
class PlatformTable:
    """Raw annotation table for one platform.

    Attributes
    ----------
    platform_id : str
        Platform identifier
    frame : pd.DataFrame
        String-typed table, columns in file order
    source : Path, optional
        File the table was read from
    """

    platform_id: str
    frame: pd.DataFrame
    source: Optional[Path] = None

    @property
    def columns(self) -> List[str]:
        return [str(c) for c in self.frame.columns]

    @property
    def n_rows(self) -> int:
        return len(self.frame)


@dataclass(frozen=True)
class ProbeGeneMap:
    """Canonical probe -> gene symbol mapping for one platform.

    The mapping is read-only and may be shared across every dataset that
    uses the platform. An empty symbol marks an unannotated probe.

    Attributes
    ----------
    platform_id : str
        Platform identifier
    mapping : Mapping[str, str]
        Read-only probe ID -> trimmed gene symbol
    probe_column : str
        Name of the resolved probe-ID column
    symbol_column : str
        Name of the resolved gene-symbol column
    probe_column_index : int
        Position of the probe-ID column in the platform table
    symbol_column_index : int
        Position of the gene-symbol column in the platform table
    n_duplicate_probes : int
        Platform rows overwritten by a later row with the same probe ID
    """

    platform_id: str
    mapping: Mapping[str, str]
    probe_column: str = ""
    symbol_column: str = ""
    probe_column_index: int = 0
    symbol_column_index: int = 0
    n_duplicate_probes: int = 0

    def __post_init__(self):
        if not isinstance(self.mapping, MappingProxyType):
            object.__setattr__(self, "mapping", MappingProxyType(dict(self.mapping)))

    def __contains__(self, probe_id: object) -> bool:
        return probe_id in self.mapping

    def __getitem__(self, probe_id: str) -> str:
        return self.mapping[probe_id]

    def __len__(self) -> int:
        return len(self.mapping)

    def __iter__(self) -> Iterator[str]:
        return iter(self.mapping)

    def get(self, probe_id: str, default: Optional[str] = None) -> Optional[str]:
        return self.mapping.get(probe_id, default)

    @property
    def n_annotated(self) -> int:
        """Number of probes with a non-empty symbol."""
        return sum(1 for symbol in self.mapping.values() if symbol)

    @property
    def n_unannotated(self) -> int:
        return len(self.mapping) - self.n_annotated

    def to_frame(self) -> pd.DataFrame:
        """Return the mapping as a two-column DataFrame."""
        return pd.DataFrame(
            {
                PROBE_ID_COLUMN: list(self.mapping.keys()),
                GENE_SYMBOL_COLUMN: list(self.mapping.values()),
            }
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert metadata to dictionary for reporting."""
        return {
            "platform_id": self.platform_id,
            "probe_column": self.probe_column,
            "symbol_column": self.symbol_column,
            "n_probes": len(self),
            "n_annotated": self.n_annotated,
            "n_duplicate_probes": self.n_duplicate_probes,
        }


@dataclass
class ExpressionMatrix:
    """Probe x sample expression values for one dataset.

    ``values`` is indexed by probe ID (index name ``Probe_ID``) with sample
    columns in file order. The index may hold duplicate probe IDs; every
    row is kept. Missing cells are NaN.

    Attributes
    ----------
    dataset_id : str
        Dataset identifier
    values : pd.DataFrame
        Float matrix indexed by probe ID
    source : Path, optional
        File the matrix was read from
    """

    dataset_id: str
    values: pd.DataFrame
    source: Optional[Path] = None

    @property
    def n_probes(self) -> int:
        return len(self.values)

    @property
    def n_samples(self) -> int:
        return self.values.shape[1]

    @property
    def probe_ids(self) -> List[str]:
        return [str(p) for p in self.values.index]

    @property
    def sample_ids(self) -> List[str]:
        return [str(c) for c in self.values.columns]

    @property
    def n_missing(self) -> int:
        """Number of missing (NaN) cells."""
        return int(self.values.isna().to_numpy().sum())

    def duplicated_probes(self) -> List[str]:
        """Probe IDs that occur on more than one row, in first-seen order."""
        index = self.values.index
        return list(dict.fromkeys(index[index.duplicated(keep=False)]))


@dataclass
class AnnotatedMatrix:
    """Expression rows joined to gene symbols.

    ``frame`` columns are ``Probe_ID``, ``Gene_Symbol`` followed by the
    samples in their original order. Rows keep the input order and every
    ``Gene_Symbol`` is non-empty.

    Attributes
    ----------
    dataset_id : str
        Dataset identifier
    platform_id : str
        Platform whose map was applied
    frame : pd.DataFrame
        Annotated rows
    n_input_probes : int
        Rows of the source expression matrix
    n_unmapped : int
        Rows dropped because the probe is absent from the map
    n_empty_symbol : int
        Rows dropped because the mapped symbol is empty
    """

    dataset_id: str
    platform_id: str
    frame: pd.DataFrame
    n_input_probes: int = 0
    n_unmapped: int = 0
    n_empty_symbol: int = 0

    @property
    def n_probes(self) -> int:
        return len(self.frame)

    @property
    def n_removed(self) -> int:
        return self.n_unmapped + self.n_empty_symbol

    @property
    def sample_ids(self) -> List[str]:
        return [c for c in self.frame.columns if c not in (PROBE_ID_COLUMN, GENE_SYMBOL_COLUMN)]

    @property
    def n_samples(self) -> int:
        return len(self.sample_ids)

    @property
    def gene_symbols(self) -> pd.Series:
        return self.frame[GENE_SYMBOL_COLUMN]

    @property
    def unique_genes(self) -> int:
        return int(self.frame[GENE_SYMBOL_COLUMN].nunique())

    def to_dict(self) -> Dict[str, Any]:
        """Convert counts to dictionary for reporting."""
        return {
            "dataset_id": self.dataset_id,
            "platform_id": self.platform_id,
            "n_input_probes": self.n_input_probes,
            "n_annotated": self.n_probes,
            "n_unmapped": self.n_unmapped,
            "n_empty_symbol": self.n_empty_symbol,
        }
