"""
Output lifecycle — decide write / skip / move / delete for every shim.

The output tree carries no state besides the header of each generated
file. From that header alone, repeated runs work out:

    skip       output identical, or same source hash and not older version
    write      output absent, changed, stale generator version, or forced
    move       same script found under another directory (source moved)
    delete     duplicate of the same script (class renamed), or orphan
               whose source file or type no longer exists

Only files whose header marker proves they are generator outputs are
ever moved or deleted. Hand-written files in the output tree are safe.

Filesystem errors on one artifact are recorded on the ``RunReport`` and
the run continues; only an unusable output directory is fatal.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from shimgen.core.models.header import GeneratedHeader, is_older_version
from shimgen.core.models.report import PlannedMove, RunReport
from shimgen.core.models.spec import ScriptSpec
from shimgen.core.services.source_locator import SourceInfo

logger = logging.getLogger(__name__)

REGENERATE_ALL = "all"


class OutputDirError(Exception):
    """Raised when the output directory cannot be created or used."""


@dataclass(frozen=True)
class RegenerateScope:
    """Which shims to rewrite unconditionally.

    Forcing bypasses the skip checks only; relocation, consolidation and
    orphan pruning still apply.
    """

    everything: bool = False
    class_names: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def parse(cls, value: str | None) -> RegenerateScope:
        """``"all"`` or a comma/space-separated list of class names."""
        if not value:
            return cls()
        tokens = [t for t in re.split(r"[,\s]+", value.strip()) if t]
        if any(t.lower() == REGENERATE_ALL for t in tokens):
            return cls(everything=True)
        return cls(class_names=frozenset(t.lower() for t in tokens))

    @property
    def is_empty(self) -> bool:
        return not self.everything and not self.class_names

    def matches(self, class_name: str) -> bool:
        return self.everything or class_name.lower() in self.class_names

    def describe(self) -> str:
        if self.everything:
            return REGENERATE_ALL
        return ",".join(sorted(self.class_names))


def _normalize_rel(path: str) -> str:
    path = path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path.lower()


def _same_file(a: Path, b: Path) -> bool:
    return os.path.normcase(os.path.abspath(a)) == os.path.normcase(os.path.abspath(b))


def _read_text(path: Path) -> str:
    """Exact file text; line endings are not translated."""
    return path.read_bytes().decode("utf-8", errors="replace")


def atomic_write(path: Path, content: str) -> None:
    """Replace ``path`` with ``content`` (UTF-8, no BOM, LF) atomically.

    Writes to a temp file in the same directory, then ``os.replace``.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".shimgen_", suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        os.replace(tmp, path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise


class OutputManager:
    """Applies generated shims to an output tree across repeated runs.

    Args:
        out_dir: Root of the generated tree. Created if missing.
        source_root: Script source tree. Enables mirrored placement,
            relocation, consolidation and orphan pruning.
        generator_version: Version written into headers; a newer version
            forces a rewrite of outputs produced by an older one.
        regenerate: Shims to rewrite unconditionally.
        dry_run: Record the plan without touching the filesystem.
        extension: File extension of generated outputs.

    Raises:
        OutputDirError: the output directory cannot be created.
    """

    def __init__(
        self,
        out_dir: Path,
        source_root: Path | None = None,
        *,
        generator_version: str,
        regenerate: RegenerateScope | None = None,
        dry_run: bool = False,
        extension: str = ".cs",
    ):
        self.out_dir = Path(out_dir)
        self.source_root = Path(source_root) if source_root is not None else None
        self.generator_version = generator_version
        self.regenerate = regenerate or RegenerateScope()
        self.dry_run = dry_run
        self.extension = extension
        self.report = RunReport(dry_run=dry_run)
        self._removed: set[str] = set()

        if self.out_dir.exists() and not self.out_dir.is_dir():
            raise OutputDirError(f"Output path is not a directory: {self.out_dir}")
        if not dry_run:
            try:
                self.out_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise OutputDirError(f"Cannot create output directory {self.out_dir}: {e}") from e

    # ── Placement ───────────────────────────────────────────────

    def target_path(self, spec: ScriptSpec, source: SourceInfo | None = None) -> Path:
        """Output path: mirrors the source's directory, flat without one."""
        directory = self.out_dir
        if source is not None:
            rel_dir = Path(source.relative_path).parent
            if str(rel_dir) not in ("", "."):
                directory = directory / rel_dir
        return directory / f"{spec.class_name}{self.extension}"

    def _outputs(self) -> Iterator[tuple[Path, GeneratedHeader]]:
        """Every generator output under ``out_dir`` with its parsed header."""
        if not self.out_dir.is_dir():
            return
        for path in sorted(self.out_dir.rglob(f"*{self.extension}")):
            if str(path) in self._removed or not path.is_file():
                continue
            try:
                header = GeneratedHeader.parse(_read_text(path))
            except OSError as e:
                logger.debug("Cannot read %s: %s", path, e)
                continue
            if header is not None:
                yield path, header

    # ── Decisions ───────────────────────────────────────────────

    def decide(self, spec: ScriptSpec, content: str, path: Path) -> bool:
        """Whether ``content`` must be written to ``path``.

        A file whose source hash matches and whose generator version is
        not older is kept even if its body differs: that is a manual
        edit, and it survives until the source or the generator changes.
        """
        if self.regenerate.matches(spec.class_name):
            return True
        if not path.is_file():
            return True
        try:
            existing = _read_text(path)
        except OSError as e:
            logger.debug("Cannot read %s (%s), rewriting", path, e)
            return True
        if existing == content:
            return False

        old = GeneratedHeader.parse(existing)
        new = GeneratedHeader.parse(content)
        if old is None or new is None:
            return True
        if old.source_hash and old.source_hash == new.source_hash:
            if not is_older_version(old.version, self.generator_version):
                return False
        return True

    def _find_relocated(self, spec: ScriptSpec, content: str, target: Path) -> Path | None:
        """A previous output of this script at another location."""
        new = GeneratedHeader.parse(content)
        new_hash = new.source_hash if new else None
        if not self.out_dir.is_dir():
            return None
        for path in sorted(self.out_dir.rglob(f"{spec.class_name}{self.extension}")):
            if _same_file(path, target) or str(path) in self._removed:
                continue
            try:
                header = GeneratedHeader.parse(_read_text(path))
            except OSError:
                continue
            if header is None:
                continue
            if new_hash and header.source_hash == new_hash:
                return path
            if header.source_type == spec.impl_fqn:
                return path
        return None

    # ── Operations ──────────────────────────────────────────────

    def process(self, spec: ScriptSpec, content: str, source: SourceInfo | None = None) -> Path:
        """Bring the output for ``spec`` up to date.

        Returns:
            The target path (whether or not it was written).
        """
        target = self.target_path(spec, source)
        relocated = None
        if self.source_root is not None:
            relocated = self._find_relocated(spec, content, target)

        if not self._write(spec, content, target):
            return target  # leave every old artifact in place

        if source is not None:
            self._consolidate(spec, source, target)

        if relocated is not None and str(relocated) not in self._removed:
            if self._delete(relocated):
                self.report.moves.append(PlannedMove(source=str(relocated), target=str(target)))
                logger.info("Relocated %s -> %s", relocated, target)
        return target

    def _write(self, spec: ScriptSpec, content: str, target: Path) -> bool:
        """Write or skip ``target``. False only when the write failed."""
        try:
            should_write = self.decide(spec, content, target)
        except OSError as e:
            self.report.record_failure(str(target), "write", e)
            logger.error("Cannot inspect %s: %s", target, e)
            return False

        if not should_write:
            self.report.skips.append(str(target))
            logger.debug("Up to date: %s", target)
            return True

        if not self.dry_run:
            try:
                atomic_write(target, content)
            except OSError as e:
                self.report.record_failure(str(target), "write", e)
                logger.error("Failed to write %s: %s", target, e)
                return False
            logger.info("Wrote %s", target)
        self.report.writes.append(str(target))
        return True

    def _consolidate(self, spec: ScriptSpec, source: SourceInfo, keep: Path) -> None:
        """Delete other outputs of the same script from the same source.

        Outputs of other types declared in the same source file are not
        touched; if those types are gone, ``prune_orphans`` removes them.
        """
        wanted = _normalize_rel(source.relative_path)
        for path, header in list(self._outputs()):
            if _same_file(path, keep) or not header.source_file:
                continue
            if _normalize_rel(header.source_file) != wanted:
                continue
            if header.source_type and header.source_type != spec.impl_fqn:
                continue
            if self._delete(path):
                self.report.deletes.append(str(path))
                logger.info("Removed duplicate output %s", path)

    def prune_orphans(self, live_fqns: Iterable[str]) -> list[str]:
        """Delete outputs whose source file or type no longer exists.

        Requires a source root; without one nothing is pruned.

        Returns:
            Paths removed (or planned for removal in dry-run).
        """
        if self.source_root is None:
            return []
        live = set(live_fqns)
        pruned: list[str] = []
        for path, header in list(self._outputs()):
            orphan = False
            if header.source_file:
                source = self.source_root / header.source_file.replace("\\", "/")
                orphan = not source.is_file()
            if not orphan and header.source_type and header.source_type not in live:
                orphan = True
            if orphan and self._delete(path):
                self.report.deletes.append(str(path))
                pruned.append(str(path))
                logger.info("Pruned orphan %s", path)
        return pruned

    def _delete(self, path: Path) -> bool:
        """Delete one generator output. False when deletion failed."""
        if not self.dry_run:
            try:
                path.unlink()
            except OSError as e:
                self.report.record_failure(str(path), "delete", e)
                logger.error("Failed to delete %s: %s", path, e)
                return False
        self._removed.add(str(path))
        return True
