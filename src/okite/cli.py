"""Okite CLI entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from okite import __version__

if TYPE_CHECKING:
    from okite.config import OkiteConfig


def _setup_logging(*, verbose: bool, quiet: bool) -> None:
    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@click.group()
@click.version_option(version=__version__, prog_name="okite")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """Okite - rule document integrity checks."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    _setup_logging(verbose=verbose, quiet=quiet)


def _load(
    project: Path | None, config_file: Path | None, root: Path | None
) -> tuple[OkiteConfig, Path]:
    """Resolve config and documentation root; exit 2 on configuration errors."""
    from okite.config import ConfigError, load_config

    project_root = project or Path.cwd()
    try:
        config = load_config(project_root, config_path=config_file)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)
    docs_root = root or project_root / config.docs_dir
    return config, docs_root


_PROJECT_OPTION = click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
_ROOT_OPTION = click.option(
    "--root",
    type=click.Path(path_type=Path),
    default=None,
    help="Documentation root (default: docs_dir from config.yml, or 'docs/').",
)
_CONFIG_OPTION = click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: <project>/.okite/config.yml).",
)


@main.command()
@_PROJECT_OPTION
@_ROOT_OPTION
@_CONFIG_OPTION
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "text", "json", "porcelain"]),
    default=None,
    help="Output format (default: rich if TTY, text if piped).",
)
def check(
    *,
    project: Path | None,
    root: Path | None,
    config_file: Path | None,
    fmt: str | None,
) -> None:
    """Validate every document under the documentation root.

    Exit codes: 0 = no errors (warnings allowed), 1 = errors found,
    2 = configuration error or missing documentation root.
    """
    from okite.report import format_json, format_porcelain, format_text, render_report
    from okite.walker import CorpusRootError, validate_corpus

    config, docs_root = _load(project, config_file, root)

    try:
        report = validate_corpus(docs_root, config)
    except CorpusRootError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if fmt is None:
        fmt = "rich" if sys.stdout.isatty() else "text"

    if fmt == "rich":
        from rich.console import Console

        render_report(report, Console(), root=docs_root.resolve())
    elif fmt == "json":
        click.echo(format_json(report))
    elif fmt == "porcelain":
        output = format_porcelain(report)
        if output:
            click.echo(output)
    else:
        click.echo(format_text(report, root=docs_root.resolve()))

    sys.exit(report.exit_code)


@main.command("check-file")
@click.argument("path", type=click.Path(path_type=Path))
@_PROJECT_OPTION
@_ROOT_OPTION
@_CONFIG_OPTION
def check_file(
    path: Path, *, project: Path | None, root: Path | None, config_file: Path | None
) -> None:
    """Validate a single document (links resolve against the whole corpus)."""
    from okite.report import format_text
    from okite.walker import CorpusRootError, validate_file

    config, docs_root = _load(project, config_file, root)
    if not path.is_file():
        click.echo(f"Error: file not found: {path}", err=True)
        sys.exit(2)

    try:
        report = validate_file(path, docs_root, config)
    except CorpusRootError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    click.echo(format_text(report, root=docs_root.resolve()))
    sys.exit(report.exit_code)


@main.command("generate-id")
@click.argument("prefix")
@click.option("--count", "-n", default=1, type=click.IntRange(min=1), help="How many ids.")
def generate_id(prefix: str, *, count: int) -> None:
    """Generate rule ids of the form PREFIX-<ulid> (monotonic within a batch)."""
    from okite.rule_id import generate

    try:
        for _ in range(count):
            click.echo(str(generate(prefix)))
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


@main.command("parse-id")
@click.argument("text")
def parse_id(text: str) -> None:
    """Show the parts of a rule id, or exit 1 if it is not one."""
    from okite.rule_id import parse

    rule_id = parse(text)
    if rule_id is None:
        click.echo(f"Error: not a valid rule id: {text}", err=True)
        sys.exit(1)

    click.echo(f"prefix:    {rule_id.prefix}")
    click.echo(f"suffix:    {rule_id.suffix}")
    click.echo(f"canonical: {rule_id.canonical}")
    click.echo(f"created:   {rule_id.created_at.isoformat()}")
    if not rule_id.is_canonical:
        click.echo("warning: prefix is not lowercase", err=True)
