"""CLI entry point for nestspec."""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import click

from nestspec import __version__, bootstrap
from nestspec.config import REPORT_FORMATS, RunConfig, resolve_config
from nestspec.core.errors import NestspecError
from nestspec.core.runner import list_cases, run_suites
from nestspec.discovery import collect_suites
from nestspec.reporting import FlatReporter, JsonReporter, Reporter, TreeReporter, render_listing

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


class CliState:
    """Holds global CLI state."""

    def __init__(self, verbose: bool) -> None:
        self.verbose = verbose


def _print_version(_: click.Context, __: click.Parameter, value: bool) -> None:
    if not value or click.get_current_context().resilient_parsing:
        return
    click.echo(f"nestspec {__version__}")
    raise click.exceptions.Exit()


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option("--verbose", is_flag=True, help="Enable debug logging output.")
@click.option(
    "--version",
    is_flag=True,
    callback=_print_version,
    expose_value=False,
    is_eager=True,
    help="Show the nestspec version and exit.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Top level CLI group for nestspec."""

    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)
    bootstrap()
    ctx.obj = CliState(verbose=verbose)


@cli.command()
@click.argument("targets", nargs=-1, required=True)
@click.option("--name", "-n", "names", multiple=True, help="Run cases whose full name contains this text (repeatable).")
@click.option("--exact", is_flag=True, help="Names must equal the full path or the case name.")
@click.option("--label-filter", type=str, help="Label expression, e.g. 'fast+!flaky,smoke'.")
@click.option("--fail-on-focus", is_flag=True, help="Exit non-zero when any focus marker is present.")
@click.option("--include-pending", is_flag=True, help="Run pending cases instead of reporting them.")
@click.option("--list", "list_only", is_flag=True, help="List matched cases without running.")
@click.option(
    "--report",
    "report_format",
    type=click.Choice(REPORT_FORMATS),
    help="Report format (tree by default).",
)
@click.option("--report-path", type=str, help="Write a JSON report to this path.")
@click.option("--no-color", is_flag=True, help="Disable ANSI colors in terminal output.")
@click.option("--jobs", "-j", type=int, help="Number of suites to run in parallel.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file with run options.",
)
@click.pass_obj
def run(
    state: CliState,
    targets: Tuple[str, ...],
    names: Tuple[str, ...],
    exact: bool,
    label_filter: Optional[str],
    fail_on_focus: bool,
    include_pending: bool,
    list_only: bool,
    report_format: Optional[str],
    report_path: Optional[str],
    no_color: bool,
    jobs: Optional[int],
    config_path: Optional[str],
) -> None:
    """Run the suites defined in SPEC_FILES, optionally filtered by NAMES.

    Arguments naming existing files are spec files; the rest are name filters.
    """

    spec_files, positional_names = _split_targets(targets)
    if not spec_files:
        raise click.UsageError("At least one spec file is required")
    all_names = tuple(names) + positional_names
    try:
        config = resolve_config(
            config_path,
            names=all_names or None,
            exact_names=exact or None,
            label_filter=label_filter,
            fail_on_focus=fail_on_focus or None,
            include_pending=include_pending or None,
            list_only=list_only or None,
            report=report_format,
            report_path=report_path,
            color=False if no_color else None,
            jobs=jobs,
        )
        suites = collect_suites(spec_files)
        if config.list_only:
            render_listing(list_cases(suites, config))
            raise click.exceptions.Exit(0)
        summary = run_suites(suites, config, reporters=_build_reporters(config))
    except (NestspecError, ValueError, OSError, ImportError, SyntaxError) as exc:
        raise click.ClickException(str(exc)) from exc
    raise click.exceptions.Exit(summary.exit_code)


def _build_reporters(config: RunConfig) -> List[Reporter]:
    if config.report == "json":
        return [JsonReporter(config.report_path)]
    reporters: List[Reporter] = []
    if config.report == "flat":
        reporters.append(FlatReporter(use_color=config.color))
    else:
        reporters.append(TreeReporter(use_color=config.color))
    if config.report_path:
        reporters.append(JsonReporter(config.report_path))
    return reporters


def _split_targets(targets: Sequence[str]) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    files: List[str] = []
    names: List[str] = []
    for target in targets:
        if Path(target).is_file():
            files.append(target)
        else:
            names.append(target)
    return tuple(files), tuple(names)


def main(argv: Optional[list[str]] = None) -> int:
    """Program entry point for console_scripts shim."""

    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=argv, prog_name="nestspec", standalone_mode=True)
    except click.ClickException as err:  # pragma: no cover - click handles display
        err.show()
        return err.exit_code
    except SystemExit as exc:  # click may raise exit code
        return int(exc.code or 0)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
