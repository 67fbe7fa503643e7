"""Verification module: independent checks over annotation exports.

Re-reads annotated tables from disk and reports structural problems
(schema, missing values, duplicate probes, summary disagreement) and
distribution signals (value range, multi-probe genes, top genes).

Example Usage
-------------
    >>> from probe_annotator.core.verification import VerificationChecker, export_all
    >>> checker = VerificationChecker()
    >>> report = checker.check_directory(Path("out/annotation/"))
    >>> print(f"{report.n_failed_checks} failed checks")
    >>> export_all(report, Path("out/verification/"))
"""

from .config import VerificationConfig
from .table import ExportedTable
from .checks import BaseCheck, CheckResult, CheckRegistry
from .engine import (
    REPORT_COLUMNS,
    VerificationChecker,
    DatasetQualityReport,
    QualityReport,
)
from .export import export_json, export_table, export_markdown, export_all

__all__ = [
    "VerificationConfig",
    "ExportedTable",
    "BaseCheck",
    "CheckResult",
    "CheckRegistry",
    "REPORT_COLUMNS",
    "VerificationChecker",
    "DatasetQualityReport",
    "QualityReport",
    "export_json",
    "export_table",
    "export_markdown",
    "export_all",
]
