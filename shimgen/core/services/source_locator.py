"""
Source locator — find the source file that most likely defines a class.

This is a heuristic, not symbol resolution. Each ``*.py`` file under the
source root is scored:

    +2  file stem equals the last component of the class's module
    +5  a ``class <Name>`` declaration at the start of a line
    +1  the ``godot_script`` marker token appears

The best-scoring file wins if it reaches ``MIN_SCORE``. Ties go to the
first file in sorted path order. The weights are tunable, not precise.
"""

from __future__ import annotations

import hashlib
import logging
import re
from pathlib import Path

from pydantic import BaseModel

logger = logging.getLogger(__name__)

SCORE_MODULE_MATCH = 2
SCORE_CLASS_DECLARATION = 5
SCORE_MARKER_TOKEN = 1
MIN_SCORE = 3

MARKER_TOKEN = "godot_script"
SOURCE_GLOB = "*.py"

_SKIP_DIRS = frozenset({"__pycache__", "node_modules", "venv"})


class SourceInfo(BaseModel):
    """Where a class was found, relative to the source root."""

    relative_path: str             # always "/"-separated
    content_hash: str              # lowercase hex SHA-256 of the file bytes


def compute_file_hash(path: Path) -> str:
    """SHA-256 of the file's bytes, lowercase hex."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


def score_source(content: str, stem: str, type_name: str, module_name: str) -> int:
    """Score one file's likelihood of defining ``type_name``."""
    score = 0
    if module_name and stem == module_name.rsplit(".", 1)[-1]:
        score += SCORE_MODULE_MATCH
    pattern = rf"^\s*class\s+{re.escape(type_name)}\b"
    if re.search(pattern, content, re.MULTILINE):
        score += SCORE_CLASS_DECLARATION
    if MARKER_TOKEN in content:
        score += SCORE_MARKER_TOKEN
    return score


class SourceLocator:
    """Locates classes in one source tree.

    File contents are read once per locator, so build one per run.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self._contents: dict[Path, str] | None = None

    def _files(self) -> dict[Path, str]:
        if self._contents is None:
            self._contents = {}
            for path in sorted(self.root.rglob(SOURCE_GLOB)):
                rel_parts = path.relative_to(self.root).parts
                if any(p in _SKIP_DIRS or p.startswith(".") for p in rel_parts[:-1]):
                    continue
                try:
                    self._contents[path] = path.read_text(encoding="utf-8", errors="replace")
                except OSError as e:
                    logger.debug("Skipping unreadable source %s: %s", path, e)
            logger.debug("Indexed %d source files under %s", len(self._contents), self.root)
        return self._contents

    def find(self, impl_type: type) -> Path | None:
        """Path of the best-matching source file, or None."""
        best: Path | None = None
        best_score = -1
        for path, content in self._files().items():
            score = score_source(content, path.stem, impl_type.__name__, impl_type.__module__)
            if score > best_score:
                best, best_score = path, score
        if best is None or best_score < MIN_SCORE:
            return None
        return best

    def locate(self, impl_type: type) -> SourceInfo | None:
        """Relative path and content hash of the class's source, or None."""
        path = self.find(impl_type)
        if path is None:
            logger.debug("No source found for %s.%s", impl_type.__module__, impl_type.__qualname__)
            return None
        try:
            content_hash = compute_file_hash(path)
        except OSError as e:
            logger.warning("Cannot hash %s: %s", path, e)
            return None
        return SourceInfo(
            relative_path=path.relative_to(self.root).as_posix(),
            content_hash=content_hash,
        )


def locate(root: Path, impl_type: type) -> SourceInfo | None:
    """One-shot lookup of ``impl_type``'s source under ``root``."""
    return SourceLocator(root).locate(impl_type)
