"""Command-line interface for probe-annotator.

Provides CLI commands for annotation runs, verification and platform
inspection.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from probe_annotator import __version__


def setup_logging(verbose: bool = False, debug: bool = False) -> logging.Logger:
    """Setup logging for CLI commands."""
    level = logging.DEBUG if debug else (logging.INFO if verbose else logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    return logging.getLogger("probe_annotator")


@click.group()
@click.version_option(version=__version__, prog_name="probe-annotator")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, debug: bool) -> None:
    """probe-annotator: map microarray probes to gene symbols.

    Resolves platform annotation tables, filters expression matrices to
    annotated probes and reports retention statistics.

    Examples:

        # Annotate every dataset of a run file, then verify the exports
        probe-annotator run --config run.yaml

        # Verify an existing annotation output directory
        probe-annotator verify --input out/annotation/ --max-value 16

        # Show which columns a platform table resolves to
        probe-annotator resolve GPL96.annot --platform GPL96
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug
    ctx.obj["logger"] = setup_logging(verbose, debug)


@cli.command()
@click.option("--config", "-c", required=True, type=click.Path(exists=True),
              help="Run configuration file (YAML)")
@click.option("--dry-run", is_flag=True, help="Validate and show the plan without running")
@click.option("--no-verify", is_flag=True, help="Skip the verification stage")
@click.option("--log-dir", type=click.Path(), default=None,
              help="Log directory (default: <output_dir>/logs)")
@click.pass_context
def run(
    ctx: click.Context,
    config: str,
    dry_run: bool,
    no_verify: bool,
    log_dir: Optional[str],
) -> None:
    """Annotate all datasets of a run file and verify the exports."""
    logger = ctx.obj["logger"]
    verbose = ctx.obj["verbose"] or ctx.obj["debug"]

    from probe_annotator.pipeline import PipelineExecutor, PipelineLogger, RunConfig

    logger.info(f"Loading run config: {config}")
    run_config = RunConfig(config)
    try:
        run_config.load()
        run_config.parse()
    except (KeyError, ValueError) as e:
        click.echo(f"Error: invalid run config: {e}", err=True)
        sys.exit(2)

    click.echo(
        f"Run: {len(run_config.datasets)} datasets, {len(run_config.platforms)} platforms "
        f"-> {run_config.output_dir}"
    )

    pipeline_logger = PipelineLogger(
        log_dir or str(run_config.output_dir / "logs"),
        log_level="DEBUG" if verbose else "INFO",
    )
    pipeline_logger.setup()
    try:
        executor = PipelineExecutor(run_config, pipeline_logger)
        exit_code = executor.run(dry_run=dry_run, verify=not no_verify)
    finally:
        pipeline_logger.close()

    if dry_run:
        problems = run_config.validate()
        for problem in problems:
            click.echo(f"  - {problem}", err=True)
        click.echo("Dry run: configuration is valid" if exit_code == 0 else "Dry run: problems found")
    elif executor.annotation_result is not None:
        result = executor.annotation_result
        click.echo(f"Annotated {result.n_succeeded} datasets, skipped {result.n_failed}")
        for failure in result.failures:
            click.echo(f"  - {failure.dataset_id} [{failure.stage}] {failure.error_type}: {failure.message}")
        if executor.quality_report is not None:
            report = executor.quality_report
            click.echo(
                f"Verification: {report.n_failed_checks} failed checks, {report.n_warnings} warnings"
            )

    if exit_code != 0:
        click.echo(f"Run failed with exit code {exit_code}", err=True)
        sys.exit(exit_code)


@cli.command()
@click.option("--input", "-i", "input_dir", required=True,
              type=click.Path(exists=True, file_okay=False),
              help="Directory with annotated exports")
@click.option("--out", "-o", "output_dir", type=click.Path(), default=None,
              help="Report directory (default: input directory)")
@click.option("--config", "-c", type=click.Path(exists=True), default=None,
              help="Verification configuration file (YAML)")
@click.option("--min-value", type=float, default=None, help="Lower bound of plausible values")
@click.option("--max-value", type=float, default=None, help="Upper bound of plausible values")
@click.option("--top-n", type=int, default=None, help="Genes listed by the distribution check")
@click.option("--sep", type=click.Choice(["tab", "comma"]), default=None,
              help="Separator of the exports")
@click.pass_context
def verify(
    ctx: click.Context,
    input_dir: str,
    output_dir: Optional[str],
    config: Optional[str],
    min_value: Optional[float],
    max_value: Optional[float],
    top_n: Optional[int],
    sep: Optional[str],
) -> None:
    """Check exported annotated tables and write a quality report."""
    logger = ctx.obj["logger"]

    from probe_annotator.core.verification import (
        VerificationChecker,
        VerificationConfig,
        export_all,
    )

    settings = VerificationConfig.from_yaml(Path(config)).to_dict() if config else {}
    overrides = {
        "min_value": min_value,
        "max_value": max_value,
        "top_n": top_n,
        "sep": {"tab": "\t", "comma": ","}.get(sep),
    }
    settings.update({k: v for k, v in overrides.items() if v is not None})
    try:
        cfg = VerificationConfig.from_dict(settings)
    except ValueError as e:
        raise click.BadParameter(str(e))

    logger.info(f"Verifying exports in {input_dir}")
    report = VerificationChecker(cfg).check_directory(Path(input_dir))
    outputs = export_all(report, Path(output_dir or input_dir), sep=cfg.sep)

    click.echo(f"Checked {report.n_datasets} exports")
    click.echo(f"Failed checks: {report.n_failed_checks}, warnings: {report.n_warnings}")
    for dataset_id in report.datasets_with_failures:
        failed = [c.check_id for c in report.get_report(dataset_id).checks if c.failed]
        click.echo(f"  - {dataset_id}: {', '.join(failed)}")
    click.echo(f"Report saved to: {outputs['markdown']}")

    if report.n_failed_checks:
        sys.exit(1)


@cli.command()
@click.argument("platform_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--platform", "-p", "platform_id", default=None,
              help="Platform ID (default: derived from the file name)")
@click.option("--out", "-o", "output_path", type=click.Path(), default=None,
              help="Write the probe -> gene map to this file")
@click.pass_context
def resolve(
    ctx: click.Context,
    platform_file: str,
    platform_id: Optional[str],
    output_path: Optional[str],
) -> None:
    """Resolve the probe and gene-symbol columns of a platform table."""
    from probe_annotator.core import ProbeAnnotationError
    from probe_annotator.core.annotation import ExpressionLoader, PlatformResolver
    from probe_annotator.io import write_dataframe

    loader = ExpressionLoader()
    try:
        table = loader.load_platform_table(platform_file, platform_id)
        probe_map = PlatformResolver().resolve(table)
    except ProbeAnnotationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Platform: {probe_map.platform_id}")
    click.echo(f"Probe column: {probe_map.probe_column} (#{probe_map.probe_column_index})")
    click.echo(f"Symbol column: {probe_map.symbol_column} (#{probe_map.symbol_column_index})")
    click.echo(f"Probes: {len(probe_map)} ({probe_map.n_annotated} annotated, "
               f"{probe_map.n_unannotated} without symbol)")
    click.echo(f"Duplicate probe rows: {probe_map.n_duplicate_probes}")

    if output_path:
        write_dataframe(probe_map.to_frame(), Path(output_path))
        click.echo(f"Map saved to: {output_path}")


@cli.command()
@click.option("--registry", "-r", type=click.Path(exists=True), default=None,
              help="Extra platform registry file (YAML)")
def platforms(registry: Optional[str]) -> None:
    """List known platforms and their column overrides."""
    from probe_annotator.config import (
        get_platform_config,
        list_available_platforms,
        list_platform_aliases,
        load_platform_configs,
    )

    if registry:
        load_platform_configs(Path(registry))

    aliases = list_platform_aliases()
    for platform_id in list_available_platforms():
        config = get_platform_config(platform_id)
        names = sorted(a for a, target in aliases.items() if target == platform_id and a != platform_id)
        click.echo(f"{platform_id}: {config.title} ({config.vendor})")
        if names:
            click.echo(f"    aliases: {', '.join(names)}")
        if config.has_pinned_columns:
            click.echo(f"    columns: {config.probe_column or '-'} -> {config.symbol_column or '-'}")


def main() -> None:
    """Main entry point for CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
