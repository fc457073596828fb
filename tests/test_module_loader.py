"""
Tests for the module loader — sandboxed import and cleanup.
"""

import sys
import textwrap
import types
from pathlib import Path

import pytest

from shimgen.core.services.module_loader import ModuleLoadError, load_module


class TestLoadFile:
    """Tests for loading a single module file."""

    def test_types_in_definition_order(self, write_script, module_name):
        path = write_script(module_name, """
            from shimgen.godot import Node2D

            class Zeta:
                class Inner:
                    pass

            class Alpha:
                pass
        """)
        with load_module(path) as loaded:
            names = [cls.__qualname__ for cls in loaded.types()]
        assert names == ["Zeta", "Zeta.Inner", "Alpha"]

    def test_released_after_exit(self, write_script, module_name):
        path = write_script(module_name, "class A:\n    pass\n")
        path_before = list(sys.path)
        with load_module(path) as loaded:
            assert module_name in sys.modules
            assert loaded.name == module_name
        assert module_name not in sys.modules
        assert sys.path == path_before

    def test_caller_module_restored(self, write_script, module_name, monkeypatch):
        original = types.ModuleType(module_name)
        monkeypatch.setitem(sys.modules, module_name, original)
        path = write_script(module_name, "class Fresh:\n    pass\n")
        with load_module(path) as loaded:
            assert loaded.module is not original
            assert [c.__name__ for c in loaded.types()] == ["Fresh"]
        assert sys.modules[module_name] is original

    def test_repeated_loads_see_changes(self, write_script, module_name):
        path = write_script(module_name, "class First:\n    pass\n")
        with load_module(path) as loaded:
            assert [c.__name__ for c in loaded.types()] == ["First"]
        write_script(module_name, "class Second:\n    pass\n")
        with load_module(path) as loaded:
            assert [c.__name__ for c in loaded.types()] == ["Second"]

    def test_top_level_error_is_fatal(self, write_script, module_name):
        path = write_script(module_name, "raise RuntimeError('boom')\n")
        with pytest.raises(ModuleLoadError, match="boom"):
            with load_module(path):
                pass
        assert module_name not in sys.modules

    def test_missing_path(self, tmp_path: Path):
        with pytest.raises(ModuleLoadError, match="not found"):
            with load_module(tmp_path / "nope.py"):
                pass

    def test_not_a_python_file(self, tmp_path: Path):
        path = tmp_path / "data.txt"
        path.write_text("hello")
        with pytest.raises(ModuleLoadError):
            with load_module(path):
                pass

    def test_search_paths_resolve_dependencies(self, tmp_path: Path, write_script, module_name):
        lib = tmp_path / "lib"
        lib.mkdir()
        helper = f"{module_name}_helper"
        (lib / f"{helper}.py").write_text("VALUE = 42\n")
        path = write_script(module_name, f"""
            from {helper} import VALUE

            class Uses:
                value = VALUE
        """)
        with load_module(path, [lib]) as loaded:
            (cls,) = list(loaded.types())
            assert cls.value == 42
        assert helper not in sys.modules
        assert str(lib.resolve()) not in sys.path


class TestLoadPackage:
    """Tests for loading a package directory."""

    def _make_package(self, root: Path, name: str) -> Path:
        pkg = root / name
        (pkg / "sub").mkdir(parents=True)
        (pkg / "__init__.py").write_text("")
        (pkg / "alpha.py").write_text("class AlphaImpl:\n    pass\n")
        (pkg / "broken.py").write_text("import does_not_exist_anywhere\n")
        (pkg / "sub" / "__init__.py").write_text("")
        (pkg / "sub" / "beta.py").write_text(textwrap.dedent("""\
            class BetaImpl:
                pass
        """))
        return pkg

    def test_submodules_loaded(self, source_dir: Path, module_name):
        pkg = self._make_package(source_dir, module_name)
        with load_module(pkg) as loaded:
            names = [c.__name__ for c in loaded.types()]
        assert names == ["AlphaImpl", "BetaImpl"]

    def test_partial_failure_recorded(self, source_dir: Path, module_name):
        pkg = self._make_package(source_dir, module_name)
        with load_module(pkg) as loaded:
            assert len(loaded.load_errors) == 1
            assert f"{module_name}.broken" in loaded.load_errors[0]

    def test_all_submodules_released(self, source_dir: Path, module_name):
        pkg = self._make_package(source_dir, module_name)
        with load_module(pkg):
            assert f"{module_name}.sub.beta" in sys.modules
        assert not [m for m in sys.modules if m.startswith(module_name)]

    def test_cached_submodules_shadowed_and_restored(self, source_dir: Path, module_name, monkeypatch):
        pkg = self._make_package(source_dir, module_name)
        cached_pkg = types.ModuleType(module_name)
        cached_alpha = types.ModuleType(f"{module_name}.alpha")
        monkeypatch.setitem(sys.modules, module_name, cached_pkg)
        monkeypatch.setitem(sys.modules, f"{module_name}.alpha", cached_alpha)

        with load_module(pkg) as loaded:
            assert cached_alpha not in loaded.submodules
            names = [c.__name__ for c in loaded.types()]
        assert names == ["AlphaImpl", "BetaImpl"]
        assert sys.modules[module_name] is cached_pkg
        assert sys.modules[f"{module_name}.alpha"] is cached_alpha
        assert f"{module_name}.sub.beta" not in sys.modules

    def test_directory_without_init(self, tmp_path: Path):
        (tmp_path / "loose").mkdir()
        with pytest.raises(ModuleLoadError, match="__init__"):
            with load_module(tmp_path / "loose"):
                pass
