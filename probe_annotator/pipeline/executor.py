"""Run executor: annotation followed by verification."""

import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from probe_annotator.config import load_platform_configs
from probe_annotator.core.annotation import AnnotationEngine, AnnotationRunResult
from probe_annotator.core.annotation import export_provenance
from probe_annotator.core.verification import QualityReport, VerificationChecker
from probe_annotator.core.verification import export_all as export_verification
from probe_annotator.io import RunLog, config_block

from .config import RunConfig
from .logger import PipelineLogger

STAGES: List[Tuple[str, str]] = [
    ("annotate", "Probe annotation"),
    ("verify", "Export verification"),
]


class PipelineExecutor:
    """Executes an annotation run with logging and a JSON-lines run log.

    Stage ``annotate`` runs the AnnotationEngine and writes its exports to
    ``<output_dir>/annotation``; stage ``verify`` re-reads those exports and
    writes the quality report to ``<output_dir>/verification``.

    Parameters
    ----------
    config : RunConfig
        Parsed run configuration
    logger : PipelineLogger
        Initialized PipelineLogger instance

    Attributes
    ----------
    annotation_result : AnnotationRunResult, optional
        Result of the annotate stage
    quality_report : QualityReport, optional
        Result of the verify stage
    run_log : RunLog
        JSON-lines file with one record per stage

    Example
    -------
    >>> config = RunConfig("run.yaml")
    >>> config.load()
    >>> config.parse()
    >>> logger = PipelineLogger("out/logs/")
    >>> logger.setup()
    >>> exit_code = PipelineExecutor(config, logger).run()
    """

    def __init__(self, config: RunConfig, logger: PipelineLogger):
        self.config = config
        self.logger = logger
        self.annotation_result: Optional[AnnotationRunResult] = None
        self.quality_report: Optional[QualityReport] = None
        self.run_log = RunLog(self.config.output_dir / "run_log.jsonl")

    @property
    def annotation_dir(self) -> Path:
        return self.config.output_dir / "annotation"

    @property
    def verification_dir(self) -> Path:
        return self.config.output_dir / "verification"

    def run_annotation(self) -> Dict[str, Any]:
        """Run the annotation stage and export its outputs."""
        if self.config.platform_registry is not None:
            added = load_platform_configs(self.config.platform_registry)
            self.logger.log_info(f"Registered {len(added)} platforms from {self.config.platform_registry}")

        engine = AnnotationEngine(self.config.annotation, logger=self.logger.logger)
        result = engine.run(
            datasets=self.config.datasets,
            platforms=self.config.platforms,
            assignment=self.config.assignments,
            output_dir=self.annotation_dir,
        )
        # Record the config file used alongside the run
        result.output_paths["provenance"] = export_provenance(
            result,
            self.annotation_dir / "provenance.json",
            self.config.annotation,
            self.config.config_path,
        )
        self.annotation_result = result

        if result.failures:
            self.logger.log_warning(f"{result.n_failed} datasets skipped:")
            for failure in result.failures:
                self.logger.log_dataset_failure(
                    failure.dataset_id, failure.stage, f"{failure.error_type}: {failure.message}"
                )

        return {
            "n_succeeded": result.n_succeeded,
            "n_failed": result.n_failed,
            "failed_datasets": [f.dataset_id for f in result.failures],
            "platform_errors": dict(result.platform_errors),
        }

    def run_verification(self) -> Dict[str, Any]:
        """Run the verification stage on the annotation exports."""
        checker = VerificationChecker(self.config.verification)
        report = checker.check_directory(self.annotation_dir)
        export_verification(report, self.verification_dir, sep=self.config.verification.sep)
        self.quality_report = report

        if report.n_datasets == 0:
            self.logger.log_warning(
                f"No '*{self.config.verification.annotated_suffix}' exports found in {self.annotation_dir}"
            )
        if report.datasets_with_failures:
            self.logger.log_warning(
                f"Checks failed for: {', '.join(report.datasets_with_failures)}"
            )

        return {
            "n_exports": report.n_datasets,
            "n_failed_checks": report.n_failed_checks,
            "n_warnings": report.n_warnings,
            "datasets_with_failures": report.datasets_with_failures,
        }

    def execute_stage(self, stage_id: str, stage_name: str, func: Callable[[], Dict[str, Any]]) -> int:
        """Execute one stage.

        Returns
        -------
        int
            Exit code (0 = success, 1 = the stage raised)
        """
        self.logger.log_stage_start(stage_id, stage_name)
        start_time = time.time()
        try:
            details = func()
        except Exception as e:
            duration = time.time() - start_time
            self.logger.log_stage_error(stage_id, f"{type(e).__name__}: {e}")
            self.run_log.append(stage_id, "error", duration, error=f"{type(e).__name__}: {e}")
            return 1

        duration = time.time() - start_time
        self.logger.log_stage_complete(stage_id, duration)
        self.run_log.append(stage_id, "success", duration, **details)
        return 0

    def run(self, dry_run: bool = False, verify: bool = True) -> int:
        """Execute the run.

        Parameters
        ----------
        dry_run : bool
            If True, validate and show the plan without running
        verify : bool
            Run the verification stage after annotation

        Returns
        -------
        int
            0 when at least one dataset was annotated and no stage raised,
            1 otherwise
        """
        stages = [s for s in STAGES if verify or s[0] != "verify"]
        self.logger.log_info(f"Run plan: {' -> '.join(s[0] for s in stages)}")
        self.logger.log_info(config_block(self.config.to_dict()))

        problems = self.config.validate()
        for problem in problems:
            self.logger.log_warning(problem)

        if dry_run:
            self.logger.log_info(
                f"DRY RUN - {len(self.config.datasets)} datasets on "
                f"{len(self.config.platforms)} platforms, {len(problems)} problems"
            )
            return 0 if not problems else 1

        self.config.output_dir.mkdir(parents=True, exist_ok=True)
        funcs = {"annotate": self.run_annotation, "verify": self.run_verification}

        for stage_id, stage_name in stages:
            exit_code = self.execute_stage(stage_id, stage_name, funcs[stage_id])
            if exit_code != 0:
                self.logger.log_error(f"Run failed at stage {stage_id}")
                return exit_code

            if stage_id == "annotate" and self.annotation_result.n_succeeded == 0:
                self.logger.log_error("No dataset was annotated")
                return 1

        self.logger.log_info(f"Run completed; outputs in {self.config.output_dir}")
        return 0
