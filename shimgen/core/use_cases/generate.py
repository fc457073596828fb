"""
Generate use case — scan a module and bring its shims up to date.

    load module → build specs → locate sources → emit → apply → prune

Expected failures never raise out of here: they land in
``GenerateResult.error`` (fatal, nothing was written) or in the
report's per-artifact failures (the rest of the run went ahead).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from shimgen import __version__
from shimgen.core.models.report import RunReport
from shimgen.core.services.emitter import DEFAULT_NAMESPACE, emit
from shimgen.core.services.lifecycle import OutputDirError, OutputManager, RegenerateScope
from shimgen.core.services.module_loader import ModuleLoadError, load_module
from shimgen.core.services.source_locator import SourceLocator
from shimgen.core.services.spec_builder import (
    DuplicateClassNameError,
    SpecValidationError,
    build_specs,
)

logger = logging.getLogger(__name__)


@dataclass
class GenerateResult:
    """Outcome of one generation run."""

    dry_run: bool = False
    scanned: int = 0
    annotated: int = 0
    report: RunReport | None = None
    error: str | None = None
    errors: list[str] = field(default_factory=list)     # validation details
    warnings: list[str] = field(default_factory=list)   # partial load failures

    @property
    def written(self) -> int:
        return self.report.written if self.report else 0

    @property
    def exit_code(self) -> int:
        if self.error:
            return 1
        if self.report and self.report.failed:
            return 1
        return 0

    def to_dict(self) -> dict:
        return {
            "ok": self.exit_code == 0,
            "dry_run": self.dry_run,
            "scanned": self.scanned,
            "annotated": self.annotated,
            "written": self.written,
            "error": self.error,
            "errors": self.errors,
            "warnings": self.warnings,
            "report": self.report.to_dict() if self.report else None,
        }


def run_generate(
    module_path: Path,
    out_dir: Path,
    source_root: Path | None = None,
    *,
    dry_run: bool = False,
    regenerate: RegenerateScope | None = None,
    search_paths: tuple[Path, ...] | list[Path] = (),
    namespace: str = DEFAULT_NAMESPACE,
    generator_version: str = __version__,
) -> GenerateResult:
    """Generate shims for every script class in ``module_path``.

    Args:
        module_path: Python module file or package directory to scan.
        out_dir: Root of the generated tree.
        source_root: Script source tree; enables provenance headers,
            mirrored placement, relocation and orphan pruning.
        dry_run: Plan only; the filesystem is not touched.
        regenerate: Shims to rewrite unconditionally.
        search_paths: Fallback directories for the module's imports.
        namespace: C# namespace of generated classes.
        generator_version: Version recorded in headers.

    Returns:
        GenerateResult; check ``exit_code``.
    """
    result = GenerateResult(dry_run=dry_run)

    if source_root is not None and not Path(source_root).is_dir():
        result.error = f"Source root is not a directory: {source_root}"
        return result

    try:
        manager = OutputManager(
            out_dir,
            source_root,
            generator_version=generator_version,
            regenerate=regenerate,
            dry_run=dry_run,
        )
    except OutputDirError as e:
        result.error = str(e)
        return result
    result.report = manager.report

    if regenerate is not None and not regenerate.is_empty:
        logger.info("Forcing regeneration for: %s", regenerate.describe())

    try:
        with load_module(Path(module_path), search_paths) as loaded:
            result.warnings.extend(loaded.load_errors)
            types = list(loaded.types())
            result.scanned = len(types)

            # Validate everything before the first write
            specs = build_specs(types)
            result.annotated = len(specs)

            locator = SourceLocator(source_root) if source_root is not None else None
            for spec in specs:
                source = locator.locate(spec.impl_type) if locator else None
                content = emit(spec, source, version=generator_version, namespace=namespace)
                manager.process(spec, content, source)

            manager.prune_orphans(spec.impl_fqn for spec in specs)
    except ModuleLoadError as e:
        result.error = str(e)
    except SpecValidationError as e:
        result.error = f"Invalid script definitions ({len(e.errors)})"
        result.errors = list(e.errors)
    except DuplicateClassNameError as e:
        result.error = str(e)

    if result.error:
        logger.error("%s", result.error)
    else:
        logger.info(
            "Scanned=%d Annotated=%d Written=%d Failed=%d",
            result.scanned, result.annotated, result.written, manager.report.failed,
        )
    return result
