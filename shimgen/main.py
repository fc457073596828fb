"""
shimgen — CLI entrypoint.

Usage:
    shimgen game/scripts.py godot/Scripts/Generated
    shimgen game/ godot/Scripts/Generated game/ --dry-run
    python -m shimgen.main --help
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from shimgen import __version__
from shimgen.core.observability.logging_config import resolve_level, setup_from_env

ENV_REGENERATE = "SHIMGEN_REGENERATE_SCRIPTS"

_PREFIX = "[shimgen]"


@click.command()
@click.version_option(version=__version__, prog_name="shimgen")
@click.argument("module_path", type=click.Path(path_type=Path))
@click.argument("output_dir", type=click.Path(path_type=Path))
@click.argument("source_root", type=click.Path(path_type=Path), required=False)
@click.option("--dry-run", "-n", is_flag=True, help="Report the plan without touching files.")
@click.option(
    "--search-path",
    "search_paths",
    multiple=True,
    type=click.Path(path_type=Path),
    help="Fallback directory for the module's imports (repeatable).",
)
@click.option("--namespace", default=None, help="C# namespace of generated classes.")
@click.option(
    "--regenerate",
    default=None,
    help=f"Force rewrite: 'all' or class names (overrides ${ENV_REGENERATE}).",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to shimgen.yml (default: auto-detect).",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
def cli(
    module_path: Path,
    output_dir: Path,
    source_root: Path | None,
    dry_run: bool,
    search_paths: tuple[Path, ...],
    namespace: str | None,
    regenerate: str | None,
    config_path: Path | None,
    as_json: bool,
    verbose: bool,
    quiet: bool,
    debug: bool,
) -> None:
    """Generate Godot C# shims for the script classes in MODULE_PATH.

    Shims are written under OUTPUT_DIR. With SOURCE_ROOT, outputs mirror
    the source tree, record provenance, and follow moved or deleted
    sources.
    """
    # ── Logging setup (once, at process start) ──────────────────
    setup_from_env(resolve_level(debug=debug, verbose=verbose, quiet=quiet))

    from shimgen.core.config.loader import ConfigError, load_config
    from shimgen.core.services.emitter import DEFAULT_NAMESPACE
    from shimgen.core.services.lifecycle import RegenerateScope
    from shimgen.core.use_cases.generate import run_generate

    try:
        config = load_config(config_path)
    except ConfigError as e:
        _fail(str(e), as_json)
        return

    # Read once; passed down explicitly from here on
    scope_value = regenerate if regenerate is not None else os.environ.get(ENV_REGENERATE)
    if scope_value is None:
        scope_value = config.regenerate

    result = run_generate(
        module_path,
        output_dir,
        source_root if source_root is not None else config.source_root,
        dry_run=dry_run,
        regenerate=RegenerateScope.parse(scope_value),
        search_paths=[*search_paths, *config.search_paths],
        namespace=namespace or config.namespace or DEFAULT_NAMESPACE,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"{_PREFIX} Error: {result.error}", fg="red", err=True)
        for err in result.errors:
            click.echo(f"   • {err}", err=True)
        sys.exit(1)

    for warn in result.warnings:
        click.secho(f"{_PREFIX} Warning: {warn}", fg="yellow", err=True)

    report = result.report
    assert report is not None  # guaranteed after error check above

    if not dry_run:
        for path in report.writes:
            click.echo(f"{_PREFIX} Wrote {path}")

    for failure in report.failures:
        click.secho(
            f"{_PREFIX} Failed to {failure.operation} {failure.path}: {failure.error}",
            fg="red",
            err=True,
        )

    if not quiet:
        click.echo(f"{_PREFIX} Summary: Moves={len(report.moves)}, Deletes={len(report.deletes)}.")
        if dry_run:
            click.echo(f"{_PREFIX} Dry-run: Writes={len(report.writes)}, Skipped={len(report.skips)}.")
            for move in report.moves:
                click.echo(f"{_PREFIX} plan MOVE {move.source} -> {move.target}")
            for path in report.deletes:
                click.echo(f"{_PREFIX} plan DELETE {path}")
            for path in report.writes:
                click.echo(f"{_PREFIX} plan WRITE {path}")

    click.echo(
        f"{_PREFIX} Completed. Scanned={result.scanned}, "
        f"Annotated={result.annotated}, Written={result.written}."
    )
    sys.exit(result.exit_code)


def _fail(message: str, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps({"ok": False, "error": message}, indent=2))
    else:
        click.secho(f"{_PREFIX} Error: {message}", fg="red", err=True)
    sys.exit(1)


if __name__ == "__main__":
    cli()
