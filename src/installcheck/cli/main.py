"""installcheck CLI - run the installed test suite."""

from pathlib import Path
from typing import Any

import click

from installcheck.config.constants import EXIT_ABORTED, EXIT_OK, SKIP_SENTINEL
from installcheck.config.loader import load_config
from installcheck.core.errors import ConfigError, HarnessAbort
from installcheck.core.logging import configure_logging, get_logger, set_run_id
from installcheck.core.progress import print_summary, status
from installcheck.harness.context import RunContext
from installcheck.harness.phases import run_campaign


def _suite_overrides(
    output_dir: Path | None, source_dir: str | None, test_dir: Path | None
) -> dict[str, Any]:
    suite: dict[str, Any] = {}
    if output_dir is not None:
        suite["output_dir"] = output_dir
    if test_dir is not None:
        suite["test_dir"] = test_dir
    if source_dir is not None:
        suite["source_dir"] = None if source_dir == SKIP_SENTINEL else Path(source_dir)
    return suite


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version="0.1.0", prog_name="installcheck")
@click.option("--test-pynest", is_flag=True, help="Also run the PyNEST tests (phase 7).")
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for installcheck.log and TEST-*.xml reports (default: ./reports).",
)
@click.option(
    "--source-dir",
    metavar="PATH|SKIP",
    default=None,
    help="Source tree with the PyNEST tests, or SKIP to use the installed module's tests.",
)
@click.option(
    "--test-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Root of the installed test suite (default: ./testsuite).",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="YAML configuration file (default: ./installcheck.yaml if present).",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(
    test_pynest: bool,
    output_dir: Path | None,
    source_dir: str | None,
    test_dir: Path | None,
    config_path: Path | None,
    verbose: bool,
) -> None:
    """Run the installed test suite and write JUnit reports.

    Exit status: 0 when every test passed, 1 when some tests failed,
    2 when the run was aborted by an unexpected exit code or a test
    program that could not be started.
    """
    overrides: dict[str, Any] = {}
    suite = _suite_overrides(output_dir, source_dir, test_dir)
    if suite:
        overrides["suite"] = suite
    if verbose:
        overrides["logging"] = {"level": "DEBUG"}

    try:
        config = load_config(config_path, **overrides)
    except ConfigError as e:
        status(f"Configuration error: {e.message}", style="error")
        raise SystemExit(EXIT_ABORTED) from e

    configure_logging(config=config.logging)
    run_id = set_run_id()
    log = get_logger("cli")

    ctx = RunContext.create(config)
    log.info(
        "run_started",
        run_id=run_id,
        test_dir=str(ctx.test_dir),
        output_dir=str(ctx.output_dir),
        tmp_dir=str(ctx.tmp_dir),
    )
    status(f"Test suite: {ctx.test_dir}", style="none")
    status(f"Reports:    {ctx.output_dir}", style="none")

    exit_code = EXIT_ABORTED
    try:
        run_campaign(ctx, test_pynest=test_pynest)
        exit_code = ctx.totals.exit_code
    except HarnessAbort as e:
        status(f"Run aborted: {e.message}", style="error")
        log.error("run_aborted", **e.to_dict())
    finally:
        print_summary(ctx.totals)
        if exit_code != EXIT_OK:
            status(f"Run log and reports kept in {ctx.output_dir}", style="warning")
            status(f"Temporary files kept in {ctx.tmp_dir}", style="warning")
        ctx.finish(keep_tmp=exit_code != EXIT_OK)
        log.info("run_finished", exit_code=exit_code)

    raise SystemExit(exit_code)


if __name__ == "__main__":
    cli()
