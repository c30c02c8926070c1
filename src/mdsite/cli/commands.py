"""CLI command implementations"""

from pathlib import Path
from typing import Annotated, Optional

import typer

from mdsite.config import Settings, load_config
from mdsite.core.export import export_collection
from mdsite.core.pipeline import BuildReport, BuildResult, build_collection
from mdsite.errors import BuildFailedError, ConfigurationError
from mdsite.logger import configure_logging


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling, then configure logging."""
    try:
        settings = load_config(overrides=overrides)
    except ConfigurationError as e:
        _fail(str(e))
    configure_logging(settings.log_level)
    return settings


def _build(path: Optional[str], settings: Settings) -> BuildResult:
    """Run the pipeline on path (or settings.source_dir), failing cleanly on a bad path or config."""
    try:
        return build_collection(Path(path or settings.source_dir), settings)
    except (FileNotFoundError, ConfigurationError) as e:
        _fail(str(e))


def _echo_report(report: BuildReport, documents: int) -> None:
    """Print every issue to stderr and a summary line to stdout."""
    for issue in report.issues:
        typer.echo(f"  {issue.severity}: {issue.source or '-'}: {issue.kind}: {issue.message}", err=True)
    typer.echo(
        f"Build {'failed' if report.failed else 'complete'} - "
        f"{documents} document(s), "
        f"{len(report.errors)} error(s), "
        f"{len(report.warnings)} warning(s)"
    )


def _check(report: BuildReport, strict: bool) -> None:
    try:
        report.raise_for_errors(strict=strict)
    except BuildFailedError as e:
        _fail(e.message)


def build_cmd(
    path: Annotated[Optional[str], typer.Argument(help="File or directory to build (default: source_dir)")] = None,
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    workers: Annotated[Optional[int], typer.Option("--workers", help="Threads for parse/normalize")] = None,
    depth: Annotated[Optional[int], typer.Option("--max-reference-depth", help="Max series hops per reference")] = None,
    drafts: Annotated[Optional[bool], typer.Option("--drafts/--no-drafts", help="Include unpublished documents")] = None,
    strict: Annotated[bool, typer.Option("--strict", help="Fail on any error, not only fatal ones")] = False,
    ):
    """Run the full pipeline and write JSON artifacts: parse -> normalize -> assemble -> resolve -> export."""
    settings = _settings(overrides={
        "output_dir": out, "workers": workers,
        "max_reference_depth": depth, "include_drafts": drafts,
    })
    result = _build(path, settings)
    _echo_report(result.report, len(result.collection))
    _check(result.report, strict)

    output_dir = Path(settings.output_dir)
    try:
        exported = export_collection(result.collection, result.report, output_dir, settings.parser_config)
    except OSError as e:
        _fail("Export failed", e)
    for slug, json_path in exported:
        typer.echo(f"  {slug} -> {json_path}")
    typer.echo(f"Exported {len(exported)} document(s) to {output_dir}/")


def check_cmd(
    path: Annotated[Optional[str], typer.Argument(help="File or directory to validate (default: source_dir)")] = None,
    strict: Annotated[bool, typer.Option("--strict", help="Fail on any error, not only fatal ones")] = False,
    ):
    """Validate content and report every problem at once without writing output."""
    settings = _settings()
    result = _build(path, settings)
    _echo_report(result.report, len(result.collection))
    _check(result.report, strict)


def list_cmd(
    path: Annotated[Optional[str], typer.Argument(help="File or directory to list (default: source_dir)")] = None,
    layout: Annotated[Optional[str], typer.Option("--layout", help="Only documents of this layout (post or page)")] = None,
    ):
    """List documents in collection order (newest first)."""
    settings = _settings()
    result = _build(path, settings)
    try:
        docs = result.collection.by_layout(layout) if layout else result.collection.documents
    except ValueError:
        _fail(f"Unknown layout: {layout}")
    if not docs:
        typer.echo("No documents found.")
        raise typer.Exit(1)
    for doc in docs:
        typer.echo(f"{doc.date.date().isoformat()}  {doc.slug}  {doc.title}")
