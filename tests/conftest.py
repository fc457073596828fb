"""
Shared test fixtures and configuration.
"""

import textwrap
import uuid
from pathlib import Path
from typing import Callable

import pytest


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Return a temporary script source tree."""
    src = tmp_path / "scripts"
    src.mkdir()
    return src


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    """Return a (not yet created) output directory."""
    return tmp_path / "Generated"


@pytest.fixture
def module_name() -> str:
    """A module name no other test uses, so sys.modules never clashes."""
    return f"scripts_{uuid.uuid4().hex[:10]}"


@pytest.fixture
def write_script(source_dir: Path) -> Callable[..., Path]:
    """Write a dedented Python module under the source tree."""

    def _write(name: str, body: str, subdir: str = "") -> Path:
        directory = source_dir / subdir if subdir else source_dir
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{name}.py"
        path.write_text(textwrap.dedent(body), encoding="utf-8")
        return path

    return _write
