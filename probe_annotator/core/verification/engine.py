"""VerificationChecker - independent checks over exported annotated tables.

Re-reads exports from disk, so it catches serialization problems as well as
annotation problems. Never modifies the exports and never raises on a
failed check: every outcome lands in the QualityReport.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import json
import logging
import time

import pandas as pd

from probe_annotator.io import read_string_table, table_extension

from .checks import CheckRegistry, CheckResult
from .config import VerificationConfig
from .table import ExportedTable

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

REPORT_COLUMNS = ["Dataset", "Check", "Status", "Message", "Counts"]

# Parse errors reported as a failed READABLE check
READ_ERRORS = (OSError, pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError)


@dataclass
class DatasetQualityReport:
    """Check results for one exported table.

    Attributes
    ----------
    dataset_id : str
        Dataset identifier
    path : Path, optional
        Export that was checked
    checks : List[CheckResult]
        Results in execution order
    checks_skipped : List[str]
        Checks not applicable to this export
    """

    dataset_id: str
    path: Optional[Path] = None
    checks: List[CheckResult] = field(default_factory=list)
    checks_skipped: List[str] = field(default_factory=list)

    @property
    def n_failed(self) -> int:
        return sum(1 for c in self.checks if c.status == "fail")

    @property
    def n_warnings(self) -> int:
        return sum(1 for c in self.checks if c.status == "warn")

    @property
    def passed(self) -> bool:
        return self.n_failed == 0

    def get_check(self, check_id: str) -> Optional[CheckResult]:
        """Get the result of a check, if it ran."""
        for check in self.checks:
            if check.check_id == check_id:
                return check
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "dataset_id": self.dataset_id,
            "path": str(self.path) if self.path else None,
            "passed": self.passed,
            "n_failed": self.n_failed,
            "n_warnings": self.n_warnings,
            "checks": [c.to_dict() for c in self.checks],
            "checks_skipped": list(self.checks_skipped),
        }


@dataclass
class QualityReport:
    """Check results for a set of exported tables.

    Attributes
    ----------
    datasets : List[DatasetQualityReport]
        Per-dataset reports, sorted by file name
    summary_path : Path, optional
        Summary table used for consistency checks
    execution_time_seconds : float
        Execution time
    """

    datasets: List[DatasetQualityReport] = field(default_factory=list)
    summary_path: Optional[Path] = None
    execution_time_seconds: float = 0.0

    @property
    def n_datasets(self) -> int:
        return len(self.datasets)

    @property
    def n_failed_checks(self) -> int:
        return sum(d.n_failed for d in self.datasets)

    @property
    def n_warnings(self) -> int:
        return sum(d.n_warnings for d in self.datasets)

    @property
    def datasets_with_failures(self) -> List[str]:
        return [d.dataset_id for d in self.datasets if not d.passed]

    @property
    def passed(self) -> bool:
        return self.n_failed_checks == 0

    def get_report(self, dataset_id: str) -> Optional[DatasetQualityReport]:
        """Get the report of a dataset."""
        for report in self.datasets:
            if report.dataset_id == dataset_id:
                return report
        return None

    def to_frame(self) -> pd.DataFrame:
        """One row per (dataset, check) with counts as JSON text."""
        rows = [
            {
                "Dataset": report.dataset_id,
                "Check": check.check_id,
                "Status": check.status,
                "Message": check.message,
                "Counts": json.dumps(check.counts, sort_keys=True, default=str),
            }
            for report in self.datasets
            for check in report.checks
        ]
        return pd.DataFrame(rows, columns=REPORT_COLUMNS)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "n_datasets": self.n_datasets,
            "n_failed_checks": self.n_failed_checks,
            "n_warnings": self.n_warnings,
            "datasets_with_failures": self.datasets_with_failures,
            "summary_path": str(self.summary_path) if self.summary_path else None,
            "execution_time_seconds": round(self.execution_time_seconds, 2),
            "datasets": [d.to_dict() for d in self.datasets],
        }


class VerificationChecker:
    """Checker for exported annotated tables.

    Parameters
    ----------
    config : VerificationConfig, optional
        Verification configuration

    Example
    -------
    >>> checker = VerificationChecker(VerificationConfig(max_value=16.0))
    >>> report = checker.check_directory("out/annotation/")
    >>> report.datasets_with_failures
    []
    """

    def __init__(self, config: Optional[VerificationConfig] = None):
        self.config = config or VerificationConfig()
        self.checks = CheckRegistry.instantiate_all(self.config, self.config.skip_checks)

    @property
    def export_suffix(self) -> str:
        return f"{self.config.annotated_suffix}.{table_extension(self.config.sep)}"

    def dataset_id_for(self, path: PathLike) -> str:
        """Dataset ID of an export file name."""
        name = Path(path).name
        if name.endswith(self.export_suffix):
            return name[: -len(self.export_suffix)]
        return Path(name).stem

    def find_exports(self, directory: PathLike) -> List[Path]:
        """Annotated exports in a directory, sorted by name."""
        return sorted(Path(directory).glob(f"*{self.export_suffix}"))

    def load_summary(self, directory: PathLike) -> Optional[pd.DataFrame]:
        """Read the summary table of a directory, if present and readable."""
        path = Path(directory) / f"{self.config.summary_name}.{table_extension(self.config.sep)}"
        if not path.exists():
            return None
        try:
            summary, _ = read_string_table(path, sep=self.config.sep, comment_prefixes=())
        except READ_ERRORS as e:
            logger.warning(f"Cannot read summary table {path}: {e}")
            return None
        if "Dataset" not in summary.columns:
            logger.warning(f"Summary table {path} has no Dataset column")
            return None
        return summary

    def check_file(
        self,
        path: PathLike,
        dataset_id: Optional[str] = None,
        summary_row: Optional[Dict[str, Any]] = None,
    ) -> DatasetQualityReport:
        """Run every enabled check on one exported table.

        Parameters
        ----------
        path : PathLike
            Exported annotated table
        dataset_id : str, optional
            Dataset identifier (default: derived from the file name)
        summary_row : Dict, optional
            Row of the summary table for this dataset

        Returns
        -------
        DatasetQualityReport
            Check results; an unreadable file yields a failed READABLE check
        """
        path = Path(path)
        dataset_id = dataset_id or self.dataset_id_for(path)
        report = DatasetQualityReport(dataset_id=dataset_id, path=path)

        try:
            table = ExportedTable.read(
                path,
                dataset_id,
                sep=self.config.sep,
                na_tokens=self.config.na_tokens,
                summary_row=summary_row,
            )
        except READ_ERRORS as e:
            logger.error(f"Dataset {dataset_id}: cannot read {path}: {e}")
            report.checks.append(
                CheckResult(
                    check_id="READABLE",
                    status="fail",
                    details={"error_type": type(e).__name__},
                    message=str(e),
                )
            )
            return report

        report.checks.append(
            CheckResult(
                check_id="READABLE",
                status="pass",
                counts={"n_rows": table.n_rows, "n_columns": len(table.columns)},
                message=f"Read {table.n_rows} rows",
            )
        )

        for check in self.checks:
            if not check.is_applicable(table):
                report.checks_skipped.append(check.check_id)
                continue
            result = check.check(table)
            report.checks.append(result)
            if result.status == "fail":
                logger.warning(f"Dataset {dataset_id}: {check.check_id} failed: {result.message}")
            elif result.status == "warn":
                logger.info(f"Dataset {dataset_id}: {check.check_id}: {result.message}")

        return report

    def check_directory(self, directory: PathLike) -> QualityReport:
        """Check every annotated export in a directory.

        Exports are cross-checked against the summary table when one is
        present.

        Parameters
        ----------
        directory : PathLike
            Directory with annotation exports

        Returns
        -------
        QualityReport
            Per-dataset reports, sorted by file name
        """
        start_time = time.time()
        directory = Path(directory)
        if not directory.is_dir():
            raise NotADirectoryError(f"Not a directory: {directory}")

        summary = self.load_summary(directory)
        summary_rows: Dict[str, Dict[str, Any]] = {}
        if summary is not None:
            for record in summary.to_dict(orient="records"):
                summary_rows[str(record["Dataset"])] = record

        report = QualityReport(
            summary_path=(
                directory / f"{self.config.summary_name}.{table_extension(self.config.sep)}"
                if summary is not None else None
            ),
        )

        exports = self.find_exports(directory)
        if not exports:
            logger.warning(f"No *{self.export_suffix} files in {directory}")

        for path in exports:
            dataset_id = self.dataset_id_for(path)
            report.datasets.append(
                self.check_file(path, dataset_id, summary_rows.get(dataset_id))
            )

        report.execution_time_seconds = time.time() - start_time
        logger.info(
            f"Verification complete: {report.n_datasets} exports, "
            f"{report.n_failed_checks} failed checks, {report.n_warnings} warnings "
            f"in {report.execution_time_seconds:.2f}s"
        )
        return report
