"""
Module loader — import a script module in a disposable sandbox.

The generator may run many times in one process (editor plugins, test
suites). Each load therefore records what it added to ``sys.modules``
and ``sys.path`` and removes it again on exit, whether the scan
succeeded or not, so nothing accumulates between runs.

    with load_module(Path("game/player.py")) as loaded:
        for cls in loaded.types():
            ...
"""

from __future__ import annotations

import gc
import importlib
import importlib.util
import inspect
import logging
import pkgutil
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType

logger = logging.getLogger(__name__)


class ModuleLoadError(Exception):
    """Raised when the target module or a hard dependency cannot be loaded."""


@dataclass
class LoadedModule:
    """A loaded module plus every submodule that imported cleanly."""

    path: Path
    module: ModuleType
    submodules: list[ModuleType] = field(default_factory=list)
    load_errors: list[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.module.__name__

    def types(self) -> Iterator[type]:
        """Classes defined in the loaded module(s), in definition order."""
        seen: set[int] = set()
        for mod in [self.module, *self.submodules]:
            for value in list(vars(mod).values()):
                if not inspect.isclass(value) or id(value) in seen:
                    continue
                if value.__module__ != mod.__name__:
                    continue  # imported from elsewhere
                seen.add(id(value))
                yield value
                yield from _nested_classes(value, seen)


def _nested_classes(cls: type, seen: set[int]) -> Iterator[type]:
    for value in list(vars(cls).values()):
        if inspect.isclass(value) and id(value) not in seen and value.__qualname__.startswith(cls.__qualname__ + "."):
            seen.add(id(value))
            yield value
            yield from _nested_classes(value, seen)


def _module_name(path: Path) -> str:
    return path.name if path.is_dir() else path.stem


@contextmanager
def load_module(path: Path, search_paths: tuple[Path, ...] | list[Path] = ()) -> Iterator[LoadedModule]:
    """Load ``path`` (a ``.py`` file or package directory) in isolation.

    Args:
        path: Module file or package directory.
        search_paths: Fallback directories consulted only after the
            interpreter's own path when a dependency does not resolve.

    Raises:
        ModuleLoadError: the path is not a module or its top level fails.
    """
    path = Path(path).resolve()
    if path.is_dir():
        entry = path / "__init__.py"
        if not entry.is_file():
            raise ModuleLoadError(f"Not a package (no __init__.py): {path}")
    elif path.is_file() and path.suffix == ".py":
        entry = path
    else:
        raise ModuleLoadError(f"Module not found: {path}")

    name = _module_name(path)
    saved_path = list(sys.path)
    saved_modules = dict(sys.modules)

    sys.path.insert(0, str(path.parent))
    for extra in [*search_paths, Path.cwd()]:
        extra_str = str(Path(extra).resolve())
        if extra_str not in sys.path:
            sys.path.append(extra_str)

    try:
        loaded = _import(name, entry, path)
        yield loaded
    finally:
        _release(saved_modules, saved_path)


def _import(name: str, entry: Path, path: Path) -> LoadedModule:
    # Modules of the same name (and their submodules) are shadowed for this load.
    shadowed = [m for m in sys.modules if m == name or m.startswith(name + ".")]
    for mod_name in shadowed:
        del sys.modules[mod_name]
    if shadowed:
        logger.debug("Shadowing %d already-imported modules under %s", len(shadowed), name)

    is_package = entry.name == "__init__.py"
    spec = importlib.util.spec_from_file_location(
        name,
        entry,
        submodule_search_locations=[str(path)] if is_package else None,
    )
    if spec is None or spec.loader is None:
        raise ModuleLoadError(f"Cannot create an import spec for {entry}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise ModuleLoadError(f"Failed to load {entry}: {type(e).__name__}: {e}") from e
    logger.info("Loaded module %s from %s", name, entry)

    loaded = LoadedModule(path=path, module=module)
    if is_package:
        _import_submodules(loaded)
    return loaded


def _import_submodules(loaded: LoadedModule) -> None:
    """Import every submodule; failures are recorded, not raised."""

    def on_error(mod_name: str) -> None:
        exc = sys.exc_info()[1]
        message = f"{mod_name}: {type(exc).__name__}: {exc}" if exc else mod_name
        logger.warning("Cannot load %s", message)
        loaded.load_errors.append(message)

    found = sorted(
        pkgutil.walk_packages(loaded.module.__path__, prefix=loaded.name + ".", onerror=on_error),
        key=lambda info: info.name,
    )
    for info in found:
        try:
            loaded.submodules.append(importlib.import_module(info.name))
        except Exception as e:
            message = f"{info.name}: {type(e).__name__}: {e}"
            logger.warning("Cannot load %s", message)
            loaded.load_errors.append(message)


def _release(saved_modules: dict[str, ModuleType], saved_path: list[str]) -> None:
    added = [name for name in sys.modules if name not in saved_modules]
    for name in added:
        sys.modules.pop(name, None)
    for name, module in saved_modules.items():
        if sys.modules.get(name) is not module:
            sys.modules[name] = module
    sys.path[:] = saved_path
    importlib.invalidate_caches()
    gc.collect()
    logger.debug("Released %d sandboxed modules", len(added))
