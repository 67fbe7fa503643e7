"""AnnotationEngine - orchestrator for the probe annotation stage.

Resolves every platform once, then runs Load -> Join -> Summarize (-> Export)
for each dataset. A dataset that fails is recorded as a DatasetFailure and
the run continues with the next one.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
import logging
import time

import pandas as pd
from joblib import Parallel, delayed

from probe_annotator.io import ensure_output_dir

from ..errors import MissingAssignmentError, ProbeAnnotationError
from .config import AnnotationConfig
from .export import export_annotated_matrix, export_provenance, export_summary_tables
from .joiner import join_annotation
from .loader import ExpressionLoader
from .resolver import PlatformResolver
from .statistics import (
    AnnotationSummaryRow,
    build_summary_table,
    compute_overall_statistics,
    compute_platform_statistics,
    summarize_dataset,
)
from .tables import AnnotatedMatrix, ProbeGeneMap

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

FAILURE_COLUMNS = ["Dataset", "Platform", "Stage", "Error_Type", "Message"]

# Per-dataset errors that are recorded instead of raised
RECOVERABLE_ERRORS = (ProbeAnnotationError, OSError)


@dataclass
class DatasetResult:
    """Outcome of a successfully annotated dataset.

    Attributes
    ----------
    dataset_id : str
        Dataset identifier
    platform_id : str
        Assigned platform
    summary : AnnotationSummaryRow
        Retention statistics
    annotated : AnnotatedMatrix, optional
        Annotated matrix (None when matrices are not kept)
    export_path : Path, optional
        Exported annotated table
    """

    dataset_id: str
    platform_id: str
    summary: AnnotationSummaryRow
    annotated: Optional[AnnotatedMatrix] = None
    export_path: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = self.summary.to_dict()
        data["Export_Path"] = str(self.export_path) if self.export_path else None
        return data


@dataclass
class DatasetFailure:
    """A dataset that was skipped.

    Attributes
    ----------
    dataset_id : str
        Dataset identifier
    platform_id : str, optional
        Assigned platform, if any
    stage : str
        One of assignment, platform, load, join, summarize, export
    error_type : str
        Exception class name
    message : str
        Error message
    """

    dataset_id: str
    platform_id: Optional[str]
    stage: str
    error_type: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary keyed by failure column names."""
        return {
            "Dataset": self.dataset_id,
            "Platform": self.platform_id or "",
            "Stage": self.stage,
            "Error_Type": self.error_type,
            "Message": self.message,
        }


@dataclass
class AnnotationRunResult:
    """Result of an annotation run.

    Results and failures keep the configured dataset order.

    Attributes
    ----------
    results : List[DatasetResult]
        Successfully annotated datasets
    failures : List[DatasetFailure]
        Skipped datasets
    platform_maps : Dict[str, ProbeGeneMap]
        Resolved probe -> gene maps by platform
    platform_errors : Dict[str, str]
        Platforms that could not be resolved, with the error
    output_paths : Dict[str, Path]
        Exported cross-dataset files
    execution_time_seconds : float
        Wall time of the run
    """

    results: List[DatasetResult] = field(default_factory=list)
    failures: List[DatasetFailure] = field(default_factory=list)
    platform_maps: Dict[str, ProbeGeneMap] = field(default_factory=dict)
    platform_errors: Dict[str, str] = field(default_factory=dict)
    output_paths: Dict[str, Path] = field(default_factory=dict)
    execution_time_seconds: float = 0.0

    @property
    def n_succeeded(self) -> int:
        return len(self.results)

    @property
    def n_failed(self) -> int:
        return len(self.failures)

    @property
    def summary_rows(self) -> List[AnnotationSummaryRow]:
        return [r.summary for r in self.results]

    def get_result(self, dataset_id: str) -> Optional[DatasetResult]:
        """Get the result for a dataset, if it succeeded."""
        for result in self.results:
            if result.dataset_id == dataset_id:
                return result
        return None

    def summary_table(self) -> pd.DataFrame:
        return build_summary_table(self.summary_rows)

    def overall_statistics(self) -> pd.DataFrame:
        return compute_overall_statistics(self.summary_rows)

    def platform_statistics(self) -> pd.DataFrame:
        return compute_platform_statistics(self.summary_rows)

    def failure_table(self) -> pd.DataFrame:
        return pd.DataFrame([f.to_dict() for f in self.failures], columns=FAILURE_COLUMNS)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "n_succeeded": self.n_succeeded,
            "n_failed": self.n_failed,
            "execution_time_seconds": round(self.execution_time_seconds, 2),
            "platforms": {pid: m.to_dict() for pid, m in self.platform_maps.items()},
            "platform_errors": dict(self.platform_errors),
            "datasets": [r.to_dict() for r in self.results],
            "failures": [f.to_dict() for f in self.failures],
            "output_paths": {k: str(v) for k, v in self.output_paths.items()},
        }


def _describe(error: BaseException) -> str:
    return f"{type(error).__name__}: {error}"


class AnnotationEngine:
    """Engine for annotating expression matrices with gene symbols.

    Parameters
    ----------
    config : AnnotationConfig, optional
        Annotation configuration
    logger : logging.Logger, optional
        Logger for progress messages (default: module logger)

    Example
    -------
    >>> from probe_annotator.core.annotation import AnnotationEngine
    >>> engine = AnnotationEngine()
    >>> result = engine.run(
    ...     datasets={"GSE2034": "data/GSE2034.txt"},
    ...     platforms={"GPL96": "platforms/GPL96.annot"},
    ...     assignment={"GSE2034": "GPL96"},
    ...     output_dir="output/",
    ... )
    >>> result.summary_table()
    """

    def __init__(
        self,
        config: Optional[AnnotationConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config or AnnotationConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.resolver = PlatformResolver(self.config.resolver)
        self.loader = ExpressionLoader(self.config.loader)

    def resolve_platforms(
        self,
        platforms: Mapping[str, PathLike],
    ) -> Tuple[Dict[str, ProbeGeneMap], Dict[str, BaseException]]:
        """Load and resolve each platform annotation table once.

        Parameters
        ----------
        platforms : Mapping[str, PathLike]
            Platform ID -> annotation file

        Returns
        -------
        Tuple[Dict[str, ProbeGeneMap], Dict[str, BaseException]]
            (resolved maps, errors of platforms that could not be resolved)
        """
        maps: Dict[str, ProbeGeneMap] = {}
        errors: Dict[str, BaseException] = {}
        for platform_id, path in platforms.items():
            try:
                table = self.loader.load_platform_table(path, platform_id)
                maps[platform_id] = self.resolver.resolve(table)
            except RECOVERABLE_ERRORS as e:
                errors[platform_id] = e
                self.logger.error(f"Platform {platform_id} unusable: {_describe(e)}")
        return maps, errors

    def process_dataset(
        self,
        dataset_id: str,
        path: PathLike,
        platform_id: str,
        probe_map: ProbeGeneMap,
        output_dir: Optional[Path] = None,
    ) -> Union[DatasetResult, DatasetFailure]:
        """Load, join, summarize and (optionally) export one dataset.

        Parameters
        ----------
        dataset_id : str
            Dataset identifier
        path : PathLike
            Expression matrix file
        platform_id : str
            Assigned platform
        probe_map : ProbeGeneMap
            Resolved map of the platform (not modified)
        output_dir : Path, optional
            Directory for the annotated table; nothing is written when None

        Returns
        -------
        DatasetResult or DatasetFailure
            Failure records the stage that raised
        """
        stage = "load"
        try:
            matrix = self.loader.load(path, dataset_id)

            stage = "join"
            annotated = join_annotation(matrix, probe_map)

            stage = "summarize"
            summary = summarize_dataset(dataset_id, platform_id, matrix, annotated)

            export_path = None
            if output_dir is not None:
                stage = "export"
                export_path = export_annotated_matrix(annotated, output_dir, self.config.output)
        except RECOVERABLE_ERRORS as e:
            self.logger.error(f"Dataset {dataset_id} skipped at {stage}: {_describe(e)}")
            return DatasetFailure(
                dataset_id=dataset_id,
                platform_id=platform_id,
                stage=stage,
                error_type=type(e).__name__,
                message=str(e),
            )

        if summary.retention_rate < self.config.low_retention_warning:
            self.logger.warning(
                f"Dataset {dataset_id}: retention {summary.retention_rate:.2f}% on "
                f"{platform_id} is below {self.config.low_retention_warning:.1f}%; "
                f"check the platform assignment"
            )

        self.logger.info(
            f"Dataset {dataset_id} ({platform_id}): {summary.annotated_probes}/"
            f"{summary.total_probes} probes kept ({summary.retention_rate:.2f}%), "
            f"{summary.unique_genes} genes, {summary.samples} samples"
        )
        return DatasetResult(
            dataset_id=dataset_id,
            platform_id=platform_id,
            summary=summary,
            annotated=annotated if self.config.keep_matrices else None,
            export_path=export_path,
        )

    def _check_assignment(
        self,
        dataset_id: str,
        assignment: Mapping[str, str],
        platforms: Mapping[str, PathLike],
        platform_errors: Mapping[str, BaseException],
    ) -> Optional[DatasetFailure]:
        """Return a failure if the dataset cannot be run on its platform."""
        platform_id = assignment.get(dataset_id)
        error: Optional[BaseException] = None
        stage = "assignment"

        if platform_id is None:
            error = MissingAssignmentError(
                f"Dataset {dataset_id} has no platform assignment", dataset_id=dataset_id
            )
        elif platform_id not in platforms:
            error = MissingAssignmentError(
                f"Dataset {dataset_id} is assigned to unknown platform {platform_id}",
                dataset_id=dataset_id,
            )
        elif platform_id in platform_errors:
            error = platform_errors[platform_id]
            stage = "platform"

        if error is None:
            return None

        self.logger.error(f"Dataset {dataset_id} skipped at {stage}: {_describe(error)}")
        return DatasetFailure(
            dataset_id=dataset_id,
            platform_id=platform_id,
            stage=stage,
            error_type=type(error).__name__,
            message=str(error),
        )

    def run(
        self,
        datasets: Mapping[str, PathLike],
        platforms: Mapping[str, PathLike],
        assignment: Mapping[str, str],
        output_dir: Optional[PathLike] = None,
    ) -> AnnotationRunResult:
        """Annotate every dataset with its assigned platform.

        Parameters
        ----------
        datasets : Mapping[str, PathLike]
            Dataset ID -> expression matrix file, in processing order
        platforms : Mapping[str, PathLike]
            Platform ID -> annotation file
        assignment : Mapping[str, str]
            Dataset ID -> platform ID
        output_dir : PathLike, optional
            Directory for exports; nothing is written when None

        Returns
        -------
        AnnotationRunResult
            Ordered results and failures
        """
        start_time = time.time()
        out_dir = ensure_output_dir(output_dir) if output_dir is not None else None

        extra = sorted(set(assignment) - set(datasets))
        if extra:
            self.logger.debug(f"Ignoring assignments for unknown datasets: {extra}")

        maps, platform_errors = self.resolve_platforms(platforms)
        result = AnnotationRunResult(
            platform_maps=maps,
            platform_errors={pid: _describe(e) for pid, e in platform_errors.items()},
        )

        outcomes: List[Optional[Union[DatasetResult, DatasetFailure]]] = []
        tasks = []
        for position, (dataset_id, path) in enumerate(datasets.items()):
            failure = self._check_assignment(dataset_id, assignment, platforms, platform_errors)
            outcomes.append(failure)
            if failure is None:
                platform_id = assignment[dataset_id]
                tasks.append((position, dataset_id, path, platform_id, maps[platform_id]))

        self.logger.info(
            f"Annotating {len(tasks)} of {len(outcomes)} datasets on {len(maps)} platforms"
        )

        if self.config.n_jobs > 1 and len(tasks) > 1:
            processed = Parallel(n_jobs=self.config.n_jobs, backend="threading")(
                delayed(self.process_dataset)(dataset_id, path, platform_id, probe_map, out_dir)
                for _, dataset_id, path, platform_id, probe_map in tasks
            )
        else:
            processed = [
                self.process_dataset(dataset_id, path, platform_id, probe_map, out_dir)
                for _, dataset_id, path, platform_id, probe_map in tasks
            ]

        for (position, *_), outcome in zip(tasks, processed):
            outcomes[position] = outcome

        for outcome in outcomes:
            if isinstance(outcome, DatasetFailure):
                result.failures.append(outcome)
            else:
                result.results.append(outcome)

        # Cross-dataset tables only after every per-dataset export
        if out_dir is not None:
            result.output_paths.update(export_summary_tables(result, out_dir, self.config.output))

        result.execution_time_seconds = time.time() - start_time
        if out_dir is not None:
            result.output_paths["provenance"] = export_provenance(
                result, out_dir / "provenance.json", self.config
            )

        self.logger.info(
            f"Annotation complete: {result.n_succeeded} succeeded, {result.n_failed} failed "
            f"in {result.execution_time_seconds:.2f}s"
        )
        return result
