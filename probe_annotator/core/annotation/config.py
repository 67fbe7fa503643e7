"""Configuration classes for the annotation stage.

All parameters are configurable via YAML so new platform layouts can be
handled without code changes.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

DEFAULT_NA_TOKENS = ["NA", "N/A", "NaN", "nan", "NULL", "null", "None"]


@dataclass
class ResolverConfig:
    """Configuration for platform column resolution.

    Attributes
    ----------
    probe_id_aliases : List[str]
        Probe-ID column names, in priority order. The first column is used
        when none matches.
    gene_symbol_aliases : List[str]
        Gene-symbol column names, in priority order
    na_tokens : List[str]
        Cell values treated as a blank symbol
    use_platform_registry : bool
        Whether pinned columns from the platform registry take precedence
    """

    probe_id_aliases: List[str] = field(
        default_factory=lambda: ["ID", "ID_REF", "Probe_ID", "PROBE_ID", "ProbeID", "probe_id"]
    )
    gene_symbol_aliases: List[str] = field(
        default_factory=lambda: ["Gene Symbol", "Symbol", "Gene_Symbol", "GENE_SYMBOL"]
    )
    na_tokens: List[str] = field(default_factory=lambda: list(DEFAULT_NA_TOKENS))
    use_platform_registry: bool = True


@dataclass
class LoaderConfig:
    """Configuration for reading platform and expression tables.

    Attributes
    ----------
    sep : str
        Field separator of input files
    comment_prefixes : List[str]
        Leading lines with these prefixes are skipped
    row_name_column : str, optional
        Expression column holding probe IDs (default: first column)
    na_tokens : List[str]
        Expression cells treated as missing values
    allow_missing : bool
        If False, missing expression cells are a parse error
    """

    sep: str = "\t"
    comment_prefixes: List[str] = field(default_factory=lambda: ["#", "!"])
    row_name_column: Optional[str] = None
    na_tokens: List[str] = field(default_factory=lambda: [""] + list(DEFAULT_NA_TOKENS))
    allow_missing: bool = True


@dataclass
class OutputConfig:
    """Configuration for annotation exports.

    Attributes
    ----------
    sep : str
        Field separator for exported tables ("\\t" or ",")
    annotated_suffix : str
        Suffix appended to the dataset ID for annotated tables
    float_format : str, optional
        Format string for expression values (default: full precision)
    """

    sep: str = "\t"
    annotated_suffix: str = "_annotated"
    float_format: Optional[str] = None


@dataclass
class AnnotationConfig:
    """Master configuration for the annotation stage.

    Attributes
    ----------
    resolver : ResolverConfig
        Column resolution settings
    loader : LoaderConfig
        Input parsing settings
    output : OutputConfig
        Export settings
    n_jobs : int
        Datasets processed concurrently (1 = sequential)
    low_retention_warning : float
        Retention rate (percent) below which a warning is logged
    keep_matrices : bool
        Keep annotated matrices in memory after export
    """

    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    loader: LoaderConfig = field(default_factory=LoaderConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    n_jobs: int = 1
    low_retention_warning: float = 50.0
    keep_matrices: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnnotationConfig":
        """Create AnnotationConfig from dictionary."""
        data = data or {}
        return cls(
            resolver=ResolverConfig(**data.get("resolver", {})),
            loader=LoaderConfig(**data.get("loader", {})),
            output=OutputConfig(**data.get("output", {})),
            n_jobs=int(data.get("n_jobs", 1)),
            low_retention_warning=float(data.get("low_retention_warning", 50.0)),
            keep_matrices=bool(data.get("keep_matrices", True)),
        )

    @classmethod
    def from_yaml(cls, path: Path) -> "AnnotationConfig":
        """Load configuration from YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        # Handle nested annotation section
        if "annotation" in data:
            data = data["annotation"]

        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "resolver": {
                "probe_id_aliases": list(self.resolver.probe_id_aliases),
                "gene_symbol_aliases": list(self.resolver.gene_symbol_aliases),
                "na_tokens": list(self.resolver.na_tokens),
                "use_platform_registry": self.resolver.use_platform_registry,
            },
            "loader": {
                "sep": self.loader.sep,
                "comment_prefixes": list(self.loader.comment_prefixes),
                "row_name_column": self.loader.row_name_column,
                "na_tokens": list(self.loader.na_tokens),
                "allow_missing": self.loader.allow_missing,
            },
            "output": {
                "sep": self.output.sep,
                "annotated_suffix": self.output.annotated_suffix,
                "float_format": self.output.float_format,
            },
            "n_jobs": self.n_jobs,
            "low_retention_warning": self.low_retention_warning,
            "keep_matrices": self.keep_matrices,
        }
