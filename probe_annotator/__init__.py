"""probe-annotator: probe-to-gene annotation for microarray expression data.

This package provides tools for:
- Resolving heterogeneous platform annotation tables into probe->gene maps
- Loading tab-delimited expression matrices with strict numeric parsing
- Filtering expression matrices to annotated probes
- Per-dataset, per-platform and global retention statistics
- Independent verification of exported annotated tables

Example usage:
    >>> from probe_annotator.core.annotation import AnnotationEngine
    >>>
    >>> engine = AnnotationEngine()
    >>> result = engine.run(
    ...     datasets={"GSE2034": "data/GSE2034.txt"},
    ...     platforms={"GPL96": "data/GPL96.annot"},
    ...     assignment={"GSE2034": "GPL96"},
    ...     output_dir="out/",
    ... )
    >>> result.summary_table()
"""

__version__ = "0.1.0"
