"""Retention statistics for annotated datasets.

This module computes one summary row per dataset and reduces the ordered
collection of rows into global and per-platform statistics. Reductions are
sums and means, so the order of rows does not change the values.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Sequence

import pandas as pd

from ..errors import DivisionByZeroError
from .tables import AnnotatedMatrix, ExpressionMatrix

SUMMARY_COLUMNS = [
    "Dataset",
    "Platform",
    "Total_Probes",
    "Annotated_Probes",
    "Removed_Probes",
    "Retention_Rate",
    "Unique_Genes",
    "Samples",
]

OVERALL_COLUMNS = [
    "Datasets",
    "Platforms",
    "Samples",
    "Total_Probes",
    "Annotated_Probes",
    "Removed_Probes",
    "Mean_Retention_Rate",
    "Pooled_Retention_Rate",
    "Mean_Unique_Genes",
]

PLATFORM_COLUMNS = [
    "Platform",
    "Datasets",
    "Samples",
    "Total_Probes",
    "Annotated_Probes",
    "Removed_Probes",
    "Mean_Retention_Rate",
    "Min_Retention_Rate",
    "Max_Retention_Rate",
    "Pooled_Retention_Rate",
]


@dataclass(frozen=True)
class AnnotationSummaryRow:
    """Retention statistics for one dataset.

    Attributes
    ----------
    dataset : str
        Dataset identifier
    platform : str
        Platform identifier
    total_probes : int
        Rows in the expression matrix
    annotated_probes : int
        Rows kept by the join
    removed_probes : int
        Rows dropped by the join
    retention_rate : float
        annotated / total * 100, rounded to 2 decimals
    unique_genes : int
        Distinct gene symbols among kept rows
    samples : int
        Sample columns in the expression matrix
    """

    dataset: str
    platform: str
    total_probes: int
    annotated_probes: int
    removed_probes: int
    retention_rate: float
    unique_genes: int
    samples: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary keyed by summary column names."""
        return {
            "Dataset": self.dataset,
            "Platform": self.platform,
            "Total_Probes": self.total_probes,
            "Annotated_Probes": self.annotated_probes,
            "Removed_Probes": self.removed_probes,
            "Retention_Rate": self.retention_rate,
            "Unique_Genes": self.unique_genes,
            "Samples": self.samples,
        }


def retention_rate(annotated: int, total: int) -> float:
    """Percentage of probes retained, rounded to 2 decimals.

    Raises
    ------
    DivisionByZeroError
        If total is zero
    """
    if total == 0:
        raise DivisionByZeroError("Retention rate is undefined for a matrix with no probes")
    return round(annotated / total * 100, 2)


def summarize_dataset(
    dataset_id: str,
    platform_id: str,
    matrix: ExpressionMatrix,
    annotated: AnnotatedMatrix,
) -> AnnotationSummaryRow:
    """Compute the summary row for one dataset.

    Parameters
    ----------
    dataset_id : str
        Dataset identifier
    platform_id : str
        Platform identifier
    matrix : ExpressionMatrix
        Expression matrix before the join
    annotated : AnnotatedMatrix
        Join result for ``matrix``

    Returns
    -------
    AnnotationSummaryRow
        Per-dataset statistics

    Raises
    ------
    DivisionByZeroError
        If the matrix has no probes
    ValueError
        If the annotated matrix does not come from ``matrix``
    """
    total = matrix.n_probes
    kept = annotated.n_probes
    removed = total - kept
    if removed != annotated.n_removed or annotated.n_input_probes != total:
        raise ValueError(
            f"Dataset {dataset_id}: annotated matrix does not partition the "
            f"expression matrix ({kept} kept + {annotated.n_removed} removed != {total})"
        )

    return AnnotationSummaryRow(
        dataset=dataset_id,
        platform=platform_id,
        total_probes=total,
        annotated_probes=kept,
        removed_probes=removed,
        retention_rate=retention_rate(kept, total),
        unique_genes=annotated.unique_genes,
        samples=matrix.n_samples,
    )


def build_summary_table(rows: Iterable[AnnotationSummaryRow]) -> pd.DataFrame:
    """Collect summary rows into a table with ``SUMMARY_COLUMNS``."""
    records = [row.to_dict() for row in rows]
    return pd.DataFrame(records, columns=SUMMARY_COLUMNS)


def _pooled_rate(annotated: int, total: int) -> float:
    return round(annotated / total * 100, 2) if total else 0.0


def compute_overall_statistics(rows: Sequence[AnnotationSummaryRow]) -> pd.DataFrame:
    """Reduce all summary rows into one row of global statistics.

    Parameters
    ----------
    rows : Sequence[AnnotationSummaryRow]
        Per-dataset summary rows

    Returns
    -------
    pd.DataFrame
        One row with ``OVERALL_COLUMNS``; empty when no rows are given
    """
    rows = list(rows)
    if not rows:
        return pd.DataFrame(columns=OVERALL_COLUMNS)

    total = sum(r.total_probes for r in rows)
    kept = sum(r.annotated_probes for r in rows)
    record = {
        "Datasets": len(rows),
        "Platforms": len({r.platform for r in rows}),
        "Samples": sum(r.samples for r in rows),
        "Total_Probes": total,
        "Annotated_Probes": kept,
        "Removed_Probes": sum(r.removed_probes for r in rows),
        "Mean_Retention_Rate": round(sum(r.retention_rate for r in rows) / len(rows), 2),
        "Pooled_Retention_Rate": _pooled_rate(kept, total),
        "Mean_Unique_Genes": round(sum(r.unique_genes for r in rows) / len(rows), 2),
    }
    return pd.DataFrame([record], columns=OVERALL_COLUMNS)


def compute_platform_statistics(rows: Sequence[AnnotationSummaryRow]) -> pd.DataFrame:
    """Reduce summary rows into one row per platform.

    Platforms appear in first-seen order.

    Parameters
    ----------
    rows : Sequence[AnnotationSummaryRow]
        Per-dataset summary rows

    Returns
    -------
    pd.DataFrame
        One row per platform with ``PLATFORM_COLUMNS``
    """
    table = build_summary_table(rows)
    if table.empty:
        return pd.DataFrame(columns=PLATFORM_COLUMNS)

    grouped = table.groupby("Platform", sort=False)
    stats = grouped.agg(
        Datasets=("Dataset", "count"),
        Samples=("Samples", "sum"),
        Total_Probes=("Total_Probes", "sum"),
        Annotated_Probes=("Annotated_Probes", "sum"),
        Removed_Probes=("Removed_Probes", "sum"),
        Mean_Retention_Rate=("Retention_Rate", "mean"),
        Min_Retention_Rate=("Retention_Rate", "min"),
        Max_Retention_Rate=("Retention_Rate", "max"),
    ).reset_index()

    stats["Mean_Retention_Rate"] = stats["Mean_Retention_Rate"].round(2)
    stats["Pooled_Retention_Rate"] = [
        _pooled_rate(int(a), int(t))
        for a, t in zip(stats["Annotated_Probes"], stats["Total_Probes"])
    ]
    return stats[PLATFORM_COLUMNS]

