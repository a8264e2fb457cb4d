from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import typer
import yaml

from .config import MdcheckConfig, load_config
from .errors import ConfigError
from .models import Document
from .pipeline import fix_corpus, lint_corpus
from .registry import default_registry
from .reporting import format_conflict, render_json, render_text, report_lines

app = typer.Typer(help="Markdown linter with automatic fixes.", no_args_is_help=True)


class OutputFormat(str, Enum):
    TEXT = "text"
    JSON = "json"


@app.command()
def lint(
    paths: List[Path] = typer.Argument(
        ..., exists=True, readable=True, help="Markdown files or directories."
    ),
    config: Optional[Path] = typer.Option(None, "--config", "-c"),
    output_format: OutputFormat = typer.Option(
        OutputFormat.TEXT, "--format", "-f", help="Report format."
    ),
    enable: Optional[List[str]] = typer.Option(
        None, "--enable", help="Enable a rule or tag (repeatable)."
    ),
    disable: Optional[List[str]] = typer.Option(
        None, "--disable", help="Disable a rule or tag (repeatable)."
    ),
    parallel_checks: Optional[int] = typer.Option(
        None, "--parallel-checks", min=1, help="Worker threads per document."
    ),
    parallel_files: Optional[int] = typer.Option(
        None, "--parallel-files", min=1, help="Documents processed at once."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Report rule violations; exits with status 1 when any are found."""
    _configure_logging(verbose)
    cfg = _load_config(config)
    _apply_overrides(cfg, enable, disable, parallel_checks, parallel_files)
    documents, _, unreadable = _load_documents(paths, cfg.extensions)
    reports = lint_corpus(documents, default_registry(), cfg)
    _echo_unreadable(unreadable)

    if output_format is OutputFormat.JSON:
        typer.echo(render_json(reports))
    else:
        text = render_text(reports)
        if text:
            typer.echo(text)
    if unreadable or any(not report.ok for report in reports.values()):
        raise typer.Exit(code=1)


@app.command()
def fix(
    paths: List[Path] = typer.Argument(
        ..., exists=True, readable=True, help="Markdown files or directories."
    ),
    config: Optional[Path] = typer.Option(None, "--config", "-c"),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Report what would change without writing files."
    ),
    best_effort: Optional[bool] = typer.Option(
        None,
        "--best-effort/--strict",
        help="Apply non-conflicting edits instead of refusing conflicting files.",
    ),
    passes: Optional[int] = typer.Option(
        None, "--passes", min=1, help="Maximum lint/fix passes per document."
    ),
    enable: Optional[List[str]] = typer.Option(None, "--enable"),
    disable: Optional[List[str]] = typer.Option(None, "--disable"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Apply automatic fixes in place and report what remains."""
    _configure_logging(verbose)
    cfg = _load_config(config)
    _apply_overrides(cfg, enable, disable, None, None)
    if best_effort is not None:
        cfg.best_effort = best_effort
    if passes is not None:
        cfg.fix_passes = passes
    documents, mapping, unreadable = _load_documents(paths, cfg.extensions)
    outcomes, failed = fix_corpus(documents, default_registry(), cfg)
    _echo_unreadable(unreadable)

    for source_id in sorted(outcomes):
        outcome = outcomes[source_id]
        if outcome.changed and not dry_run:
            mapping[source_id].write_bytes(outcome.document.text.encode("utf-8"))
        suffix = " (dry run)" if dry_run else ""
        typer.echo(
            f"{source_id}: applied {len(outcome.applied)} fix(es) "
            f"in {outcome.passes} pass(es){suffix}"
        )
        for conflict in outcome.conflicts:
            typer.echo(format_conflict(source_id, conflict), err=True)
        for line in report_lines(outcome.report):
            typer.echo(line)

    for source_id in sorted(failed):
        typer.echo(f"{source_id}: not fixed, edits conflict", err=True)
        for conflict in failed[source_id].conflicts:
            typer.echo(format_conflict(source_id, conflict), err=True)
    check_failed = any(outcome.report.failures for outcome in outcomes.values())
    if failed or unreadable or check_failed:
        raise typer.Exit(code=1)


@app.command("rules")
def list_rules() -> None:
    """List the registered rules with their aliases and tags."""
    registry = default_registry()
    for check in registry:
        state = "enabled" if registry.enabled_by_default(check) else "disabled"
        typer.echo(
            f"{'/'.join(check.names):<40} {state:<9} {', '.join(check.tags)}"
        )


@app.command("print-config")
def print_config() -> None:
    """Print the default configuration as YAML."""
    cfg = MdcheckConfig()
    typer.echo(yaml.safe_dump(cfg.to_dict(), sort_keys=False))


def main() -> None:
    app()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_config(path: Path | None) -> MdcheckConfig:
    try:
        return load_config(path)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc


def _apply_overrides(
    config: MdcheckConfig,
    enable: Sequence[str] | None,
    disable: Sequence[str] | None,
    parallel_checks: int | None,
    parallel_files: int | None,
) -> None:
    """Apply CLI overrides to config fields when provided."""
    for name in enable or ():
        if not isinstance(config.rules.get(name), dict):
            config.rules[name] = True
    for name in disable or ():
        config.rules[name] = False
    if parallel_checks is not None:
        config.parallel_checks = parallel_checks
    if parallel_files is not None:
        config.parallel_files = parallel_files


def _load_documents(
    paths: Sequence[Path], extensions: Sequence[str]
) -> Tuple[List[Document], Dict[str, Path], Dict[str, str]]:
    """Expand input paths into documents, a source_id -> path mapping and the
    files that could not be decoded, keyed by source_id."""
    suffixes = {ext.lower() for ext in extensions}
    files: List[Path] = []
    for path in paths:
        if path.is_file():
            files.append(path)
            continue
        files.extend(
            sorted(
                p for p in path.rglob("*") if p.is_file() and p.suffix.lower() in suffixes
            )
        )
    documents: List[Document] = []
    mapping: Dict[str, Path] = {}
    unreadable: Dict[str, str] = {}
    for file in files:
        source_id = str(file)
        if source_id in mapping or source_id in unreadable:
            continue
        # Bytes keep "\r\n" line endings intact.
        try:
            text = file.read_bytes().decode("utf-8")
        except UnicodeDecodeError as exc:
            unreadable[source_id] = f"not valid UTF-8 at byte {exc.start}"
            continue
        documents.append(Document(source_id, text))
        mapping[source_id] = file
    return documents, mapping, unreadable


def _echo_unreadable(unreadable: Dict[str, str]) -> None:
    for source_id in sorted(unreadable):
        typer.echo(f"{source_id}: skipped, {unreadable[source_id]}", err=True)


if __name__ == "__main__":
    main()
