"""Export functions for the Verification module.

Provides:
- export_json: Full structured report
- export_table: Flattened (dataset, check) table
- export_markdown: Human-readable report
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Dict, List

from probe_annotator.io import table_extension, write_dataframe

from .engine import DatasetQualityReport, QualityReport

_STATUS_ICON = {"pass": "ok", "fail": "FAIL", "warn": "warn", "info": "info"}


def export_json(report: QualityReport, output_path: Path) -> Path:
    """Export quality report to JSON file.

    Parameters
    ----------
    report : QualityReport
        Verification result
    output_path : Path
        Output file path

    Returns
    -------
    Path
        Path to created file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    data = report.to_dict()
    data["export_timestamp"] = datetime.now().isoformat()

    with open(output_path, "w") as f:
        json.dump(data, f, indent=2, default=str)

    return output_path


def export_table(report: QualityReport, output_path: Path, sep: str = "\t") -> Path:
    """Export one row per (dataset, check)."""
    return write_dataframe(report.to_frame(), output_path, sep=sep)


def _format_dataset(dataset: DatasetQualityReport) -> List[str]:
    lines = [
        f"### {dataset.dataset_id}",
        "",
        "| Check | Status | Message |",
        "|-------|--------|---------|",
    ]
    for check in dataset.checks:
        message = check.message.replace("|", "\\|")
        lines.append(f"| {check.check_id} | {_STATUS_ICON[check.status]} | {message} |")
    lines.append("")

    distribution = dataset.get_check("GENE_DISTRIBUTION")
    if distribution is not None and distribution.details.get("top_genes"):
        top = ", ".join(
            f"{g['gene']} ({g['n_probes']})" for g in distribution.details["top_genes"]
        )
        lines.extend([f"Top genes: {top}", ""])

    if dataset.checks_skipped:
        lines.extend([f"Skipped: {', '.join(dataset.checks_skipped)}", ""])
    return lines


def export_markdown(report: QualityReport, output_path: Path) -> Path:
    """Export quality report to Markdown.

    Parameters
    ----------
    report : QualityReport
        Verification result
    output_path : Path
        Output file path

    Returns
    -------
    Path
        Path to created file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    lines = [
        "# Annotation Quality Report",
        "",
        f"**Generated**: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Execution Time**: {report.execution_time_seconds:.2f}s",
        "",
        "## Summary",
        "",
        "| Metric | Value |",
        "|--------|-------|",
        f"| Exports checked | {report.n_datasets} |",
        f"| Failed checks | {report.n_failed_checks} |",
        f"| Warnings | {report.n_warnings} |",
        f"| Summary table | {'yes' if report.summary_path else 'no'} |",
        "",
    ]

    if report.datasets_with_failures:
        lines.extend([
            "Datasets with failures: " + ", ".join(report.datasets_with_failures),
            "",
        ])

    lines.extend(["## Datasets", ""])
    if report.datasets:
        for dataset in report.datasets:
            lines.extend(_format_dataset(dataset))
    else:
        lines.extend(["No annotated exports found.", ""])

    with open(output_path, "w") as f:
        f.write("\n".join(lines))

    return output_path


def export_all(report: QualityReport, output_dir: Path, sep: str = "\t") -> Dict[str, Path]:
    """Export all verification outputs.

    Returns
    -------
    Dict[str, Path]
        Map of output type to file path
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    ext = table_extension(sep)

    return {
        "json": export_json(report, output_dir / "quality_report.json"),
        "table": export_table(report, output_dir / f"quality_report.{ext}", sep=sep),
        "markdown": export_markdown(report, output_dir / "quality_report.md"),
    }
