"""
Tests for the CLI — arguments, output and exit codes.
"""

import json
import textwrap
from pathlib import Path

import pytest
from click.testing import CliRunner

from shimgen.main import ENV_REGENERATE, cli

SCRIPT = """
    from shimgen.annotations import godot_script


    @godot_script(class_name="Door")
    class DoorImpl:
        open: bool = False

        def ready(self) -> None:
            pass
"""


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch, module_name) -> Path:
    """A project dir with one script module; cwd is set to it."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(ENV_REGENERATE, raising=False)
    src = tmp_path / "scripts"
    src.mkdir()
    (src / f"{module_name}.py").write_text(textwrap.dedent(SCRIPT))
    return tmp_path


def _invoke(*args: str):
    return CliRunner().invoke(cli, list(args))


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        result = _invoke("--help")
        assert result.exit_code == 0
        assert "Generate Godot C# shims" in result.output

    def test_version(self):
        result = _invoke("--version")
        assert result.exit_code == 0
        assert "0.3.0" in result.output

    def test_missing_arguments(self):
        result = _invoke()
        assert result.exit_code == 2
        assert "MODULE_PATH" in result.output

    def test_missing_output_dir(self, workspace: Path, module_name):
        result = _invoke(f"scripts/{module_name}.py")
        assert result.exit_code == 2


class TestGenerateCommand:
    """Tests for a generation run through the CLI."""

    def test_writes_and_summarises(self, workspace: Path, module_name):
        result = _invoke(f"scripts/{module_name}.py", "out", "scripts")
        assert result.exit_code == 0, result.output
        assert f"[shimgen] Wrote {Path('out') / 'Door.cs'}" in result.output
        assert "[shimgen] Summary: Moves=0, Deletes=0." in result.output
        assert "[shimgen] Completed. Scanned=1, Annotated=1, Written=1." in result.output
        assert (workspace / "out" / "Door.cs").is_file()

    def test_second_run_writes_nothing(self, workspace: Path, module_name):
        _invoke(f"scripts/{module_name}.py", "out", "scripts")
        result = _invoke(f"scripts/{module_name}.py", "out", "scripts")
        assert result.exit_code == 0
        assert "Wrote" not in result.output
        assert "Written=0." in result.output

    def test_dry_run_plan(self, workspace: Path, module_name):
        result = _invoke(f"scripts/{module_name}.py", "out", "scripts", "--dry-run")
        assert result.exit_code == 0
        assert "[shimgen] Dry-run: Writes=1, Skipped=0." in result.output
        assert f"[shimgen] plan WRITE {Path('out') / 'Door.cs'}" in result.output
        assert "Written=0." in result.output
        assert not (workspace / "out").exists()

    def test_env_regenerate(self, workspace: Path, module_name, monkeypatch):
        _invoke(f"scripts/{module_name}.py", "out")
        monkeypatch.setenv(ENV_REGENERATE, "all")
        result = _invoke(f"scripts/{module_name}.py", "out")
        assert "Written=1." in result.output

    def test_option_overrides_env(self, workspace: Path, module_name, monkeypatch):
        _invoke(f"scripts/{module_name}.py", "out")
        monkeypatch.setenv(ENV_REGENERATE, "all")
        result = _invoke(f"scripts/{module_name}.py", "out", "--regenerate", "SomethingElse")
        assert "Written=0." in result.output

    def test_namespace_option(self, workspace: Path, module_name):
        _invoke(f"scripts/{module_name}.py", "out", "--namespace", "Game.Doors")
        assert "namespace Game.Doors;" in (workspace / "out" / "Door.cs").read_text()

    def test_json_output(self, workspace: Path, module_name):
        result = _invoke(f"scripts/{module_name}.py", "out", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["ok"] is True
        assert data["annotated"] == 1
        assert data["written"] == 1


class TestCLIErrors:
    """Tests for failing runs."""

    def test_load_failure_exit_code(self, workspace: Path):
        bad = workspace / "scripts" / "bad_module_cli.py"
        bad.write_text("raise RuntimeError('cannot import me')\n")
        result = _invoke(str(bad), "out")
        assert result.exit_code == 1
        assert "[shimgen] Error:" in result.output
        assert "cannot import me" in result.output

    def test_validation_errors_listed(self, workspace: Path, module_name):
        (workspace / "scripts" / f"{module_name}.py").write_text(textwrap.dedent("""
            from typing import Annotated
            from shimgen.annotations import OptionalNodePath, godot_script
            from shimgen.godot import Node2D

            @godot_script()
            class Broken:
                child: Annotated[Node2D, OptionalNodePath("Child")]
        """))
        result = _invoke(f"scripts/{module_name}.py", "out")
        assert result.exit_code == 1
        assert "Broken.child" in result.output


class TestCLIConfig:
    """Tests for shimgen.yml handling."""

    def test_config_namespace_used(self, workspace: Path, module_name):
        (workspace / "shimgen.yml").write_text("namespace: From.Config\n")
        result = _invoke(f"scripts/{module_name}.py", "out")
        assert result.exit_code == 0
        assert "namespace From.Config;" in (workspace / "out" / "Door.cs").read_text()

    def test_option_beats_config(self, workspace: Path, module_name):
        (workspace / "shimgen.yml").write_text("namespace: From.Config\n")
        _invoke(f"scripts/{module_name}.py", "out", "--namespace", "From.Flag")
        assert "namespace From.Flag;" in (workspace / "out" / "Door.cs").read_text()

    def test_invalid_config(self, workspace: Path, module_name):
        (workspace / "shimgen.yml").write_text("namespace: [not, a, string]\n")
        result = _invoke(f"scripts/{module_name}.py", "out")
        assert result.exit_code == 1
        assert "configuration" in result.output

    def test_explicit_missing_config(self, workspace: Path, module_name):
        result = _invoke(f"scripts/{module_name}.py", "out", "--config", "nope.yml")
        assert result.exit_code == 1
        assert "Config file not found" in result.output
