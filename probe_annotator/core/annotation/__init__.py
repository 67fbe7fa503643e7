"""Annotation module: probe -> gene symbol joining for expression matrices.

Resolves each platform annotation table into a probe -> gene map, filters
every dataset's expression matrix to annotated probes and reports retention
statistics per dataset, per platform and overall.

Example Usage
-------------
Full run:

    >>> from probe_annotator.core.annotation import AnnotationEngine
    >>> engine = AnnotationEngine()
    >>> result = engine.run(
    ...     datasets={"GSE2034": Path("data/GSE2034.txt")},
    ...     platforms={"GPL96": Path("platforms/GPL96.annot")},
    ...     assignment={"GSE2034": "GPL96"},
    ...     output_dir=Path("out/annotation/"),
    ... )
    >>> print(f"{result.n_succeeded} annotated, {result.n_failed} skipped")

Individual steps:

    >>> from probe_annotator.core.annotation import (
    ...     PlatformResolver, ExpressionLoader, join_annotation, summarize_dataset,
    ... )
    >>> loader = ExpressionLoader()
    >>> probe_map = PlatformResolver().resolve(loader.load_platform_table("GPL96.annot", "GPL96"))
    >>> matrix = loader.load("GSE2034.txt")
    >>> annotated = join_annotation(matrix, probe_map)
    >>> row = summarize_dataset("GSE2034", "GPL96", matrix, annotated)
"""

# Configuration
from .config import (
    AnnotationConfig,
    ResolverConfig,
    LoaderConfig,
    OutputConfig,
    DEFAULT_NA_TOKENS,
)

# Data model
from .tables import (
    PROBE_ID_COLUMN,
    GENE_SYMBOL_COLUMN,
    PlatformTable,
    ProbeGeneMap,
    ExpressionMatrix,
    AnnotatedMatrix,
)

# Steps
from .resolver import PlatformResolver, ResolvedColumns, match_column, normalize_column_name
from .loader import (
    ExpressionLoader,
    dataset_id_from_path,
    load_expression_matrix,
    load_platform_table,
)
from .joiner import join_annotation, lookup_symbols
from .statistics import (
    SUMMARY_COLUMNS,
    OVERALL_COLUMNS,
    PLATFORM_COLUMNS,
    AnnotationSummaryRow,
    retention_rate,
    summarize_dataset,
    build_summary_table,
    compute_overall_statistics,
    compute_platform_statistics,
)

# Engine
from .engine import (
    FAILURE_COLUMNS,
    AnnotationEngine,
    AnnotationRunResult,
    DatasetResult,
    DatasetFailure,
)

# Export
from .export import (
    annotated_matrix_path,
    export_annotated_matrix,
    export_summary_tables,
    export_provenance,
    export_all,
)

__all__ = [
    # Config
    "AnnotationConfig",
    "ResolverConfig",
    "LoaderConfig",
    "OutputConfig",
    "DEFAULT_NA_TOKENS",
    # Data model
    "PROBE_ID_COLUMN",
    "GENE_SYMBOL_COLUMN",
    "PlatformTable",
    "ProbeGeneMap",
    "ExpressionMatrix",
    "AnnotatedMatrix",
    # Steps
    "PlatformResolver",
    "ResolvedColumns",
    "match_column",
    "normalize_column_name",
    "ExpressionLoader",
    "dataset_id_from_path",
    "load_expression_matrix",
    "load_platform_table",
    "join_annotation",
    "lookup_symbols",
    "SUMMARY_COLUMNS",
    "OVERALL_COLUMNS",
    "PLATFORM_COLUMNS",
    "AnnotationSummaryRow",
    "retention_rate",
    "summarize_dataset",
    "build_summary_table",
    "compute_overall_statistics",
    "compute_platform_statistics",
    # Engine
    "FAILURE_COLUMNS",
    "AnnotationEngine",
    "AnnotationRunResult",
    "DatasetResult",
    "DatasetFailure",
    # Export
    "annotated_matrix_path",
    "export_annotated_matrix",
    "export_summary_tables",
    "export_provenance",
    "export_all",
]
