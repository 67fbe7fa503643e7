"""Export functions for the annotation stage.

Provides:
- export_annotated_matrix: Per-dataset annotated table
- export_summary_tables: Summary, overall, per-platform and failure tables
- export_provenance: Audit trail
- export_all: Everything above for a finished run
"""

import json
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Optional

from probe_annotator.io import table_extension, write_dataframe

from .config import AnnotationConfig, OutputConfig
from .tables import AnnotatedMatrix

if TYPE_CHECKING:
    from .engine import AnnotationRunResult

SUMMARY_FILES = {
    "summary": "annotation_summary",
    "overall": "overall_statistics",
    "platforms": "platform_statistics",
    "failures": "failures",
}


def annotated_matrix_path(
    dataset_id: str,
    output_dir: Path,
    config: Optional[OutputConfig] = None,
) -> Path:
    """Path of a dataset's annotated table inside output_dir."""
    config = config or OutputConfig()
    ext = table_extension(config.sep)
    return Path(output_dir) / f"{dataset_id}{config.annotated_suffix}.{ext}"


def export_annotated_matrix(
    annotated: AnnotatedMatrix,
    output_dir: Path,
    config: Optional[OutputConfig] = None,
) -> Path:
    """Export one annotated matrix.

    Parameters
    ----------
    annotated : AnnotatedMatrix
        Join result
    output_dir : Path
        Output directory
    config : OutputConfig, optional
        Separator, suffix and float format

    Returns
    -------
    Path
        Path to created file
    """
    config = config or OutputConfig()
    output_path = annotated_matrix_path(annotated.dataset_id, output_dir, config)
    return write_dataframe(
        annotated.frame,
        output_path,
        sep=config.sep,
        float_format=config.float_format,
    )


def export_summary_tables(
    result: "AnnotationRunResult",
    output_dir: Path,
    config: Optional[OutputConfig] = None,
) -> Dict[str, Path]:
    """Export the cross-dataset tables of a run.

    Parameters
    ----------
    result : AnnotationRunResult
        Annotation run result
    output_dir : Path
        Output directory
    config : OutputConfig, optional
        Separator

    Returns
    -------
    Dict[str, Path]
        Map of table type to file path
    """
    config = config or OutputConfig()
    output_dir = Path(output_dir)
    ext = table_extension(config.sep)

    tables = {
        "summary": result.summary_table(),
        "overall": result.overall_statistics(),
        "platforms": result.platform_statistics(),
        "failures": result.failure_table(),
    }

    outputs = {}
    for key, df in tables.items():
        outputs[key] = write_dataframe(df, output_dir / f"{SUMMARY_FILES[key]}.{ext}", sep=config.sep)
    return outputs


def export_provenance(
    result: "AnnotationRunResult",
    output_path: Path,
    config: Optional[AnnotationConfig] = None,
    config_path: Optional[Path] = None,
) -> Path:
    """Export provenance information for audit trail.

    Parameters
    ----------
    result : AnnotationRunResult
        Annotation run result
    output_path : Path
        Output file path
    config : AnnotationConfig, optional
        Configuration used for the run
    config_path : Path, optional
        Config file used

    Returns
    -------
    Path
        Path to created file
    """
    from probe_annotator import __version__

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    provenance = {
        "export_timestamp": datetime.now().isoformat(),
        "version": __version__,
        "config_path": str(config_path) if config_path else None,
        "config": config.to_dict() if config is not None else None,
        "n_datasets": result.n_succeeded + result.n_failed,
        "n_succeeded": result.n_succeeded,
        "n_failed": result.n_failed,
        "execution_time_seconds": round(result.execution_time_seconds, 2),
        "platforms": {pid: m.to_dict() for pid, m in result.platform_maps.items()},
        "platform_errors": dict(result.platform_errors),
        "datasets": {
            r.dataset_id: {
                "platform": r.platform_id,
                "export_path": str(r.export_path) if r.export_path else None,
            }
            for r in result.results
        },
        "failures": [f.to_dict() for f in result.failures],
    }

    with open(output_path, "w") as f:
        json.dump(provenance, f, indent=2, default=str)

    return output_path


def export_all(
    result: "AnnotationRunResult",
    output_dir: Path,
    config: Optional[AnnotationConfig] = None,
    config_path: Optional[Path] = None,
) -> Dict[str, Path]:
    """Export all annotation outputs.

    Annotated matrices still held in memory and not yet written are exported
    first, then the cross-dataset tables and provenance.

    Parameters
    ----------
    result : AnnotationRunResult
        Annotation run result
    output_dir : Path
        Output directory
    config : AnnotationConfig, optional
        Configuration used for the run
    config_path : Path, optional
        Config file used

    Returns
    -------
    Dict[str, Path]
        Map of output type to file path
    """
    config = config or AnnotationConfig()
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    outputs = {}
    for dataset in result.results:
        if dataset.export_path is None and dataset.annotated is not None:
            dataset.export_path = export_annotated_matrix(dataset.annotated, output_dir, config.output)
        if dataset.export_path is not None:
            outputs[f"annotated:{dataset.dataset_id}"] = dataset.export_path

    outputs.update(export_summary_tables(result, output_dir, config.output))
    outputs["provenance"] = export_provenance(
        result, output_dir / "provenance.json", config, config_path
    )
    return outputs
