"""
Script annotations — the markers script classes use to request a shim.

These are pure data: the generator reads them, nothing here has
behavior beyond attaching the data to the class or member.

    from typing import Annotated, Optional

    from shimgen.annotations import NodePath, Preload, ExportRange, auto_connect, godot_script
    from shimgen.godot import Node2D, Texture2D

    @godot_script(class_name="Player", base_type_name="Godot.Node2D")
    class PlayerImpl:
        speed: Annotated[float, ExportRange(0, 10, 0.5)] = 1.0
        sprite: Annotated[Node2D, NodePath("Sprite")]
        icon: Annotated[Optional[Texture2D], Preload("res://icon.svg")] = None

        def ready(self) -> None: ...

        @auto_connect("Button", "pressed")
        def on_pressed(self) -> None: ...
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, TypeVar

T = TypeVar("T")

MARKER_ATTR = "__godot_script__"
AUTO_CONNECT_ATTR = "__godot_auto_connect__"

DEFAULT_BASE_TYPE = "Godot.Node"


# ── Script marker ───────────────────────────────────────────────


@dataclass(frozen=True)
class GodotScript:
    """Marker data attached to a script class by :func:`godot_script`."""

    class_name: str | None = None
    base_type_name: str = DEFAULT_BASE_TYPE
    tool: bool = False
    icon: str | None = None


def godot_script(
    class_name: str | None = None,
    base_type_name: str = DEFAULT_BASE_TYPE,
    tool: bool = False,
    icon: str | None = None,
) -> Callable[[type[T]], type[T]]:
    """Mark a class as a script that needs a generated Godot shim."""
    marker = GodotScript(
        class_name=class_name,
        base_type_name=base_type_name,
        tool=tool,
        icon=icon,
    )

    def decorate(cls: type[T]) -> type[T]:
        setattr(cls, MARKER_ATTR, marker)
        return cls

    return decorate


class IGdScript:
    """Mixin for script classes that want the shim's node instance.

    The shim assigns itself to ``node`` in ``_Ready`` before forwarding.
    """

    node: Any = None


# ── Wiring ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class NodePath:
    """Wire a member to ``GetNodeOrNull`` in ``_Ready``.

    ``path`` defaults to the member's own name.
    """

    path: str | None = None
    required: bool = True


@dataclass(frozen=True)
class OptionalNodePath:
    """Wire an ``Optional[...]`` member to a node that may be absent."""

    path: str | None = None


@dataclass(frozen=True)
class Preload:
    """Load a resource into the member in ``_Ready``.

    ``required=None`` follows the member type: plain types are required,
    ``Optional[...]`` types are not.
    """

    path: str
    required: bool | None = None


@dataclass(frozen=True)
class AutoConnect:
    path: str
    signal: str


def auto_connect(path: str, signal: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Connect the decorated method to ``signal`` of the node at ``path``.

    Stackable: one method may handle several signals.
    """

    def decorate(func: Callable[..., Any]) -> Callable[..., Any]:
        existing = list(getattr(func, AUTO_CONNECT_ATTR, ()))
        # decorators apply bottom-up; keep source order
        existing.insert(0, AutoConnect(path=path, signal=signal))
        setattr(func, AUTO_CONNECT_ATTR, tuple(existing))
        return func

    return decorate


# ── Export hints ────────────────────────────────────────────────


@dataclass(frozen=True)
class ExportRange:
    min: float
    max: float
    step: float = 0
    or_slider: bool = False


@dataclass(frozen=True)
class ExportFile:
    filter: str | None = None


@dataclass(frozen=True)
class ExportDir:
    pass


@dataclass(frozen=True)
class ExportResourceType:
    type_name: str


@dataclass(frozen=True)
class ExportMultiline:
    pass


@dataclass(frozen=True)
class ExportColorNoAlpha:
    pass


@dataclass(frozen=True)
class ExportEnumList:
    values: str


@dataclass(frozen=True)
class ExportLayerMask2DRender:
    pass


# ── Inspector decorations ───────────────────────────────────────


@dataclass(frozen=True)
class ExportCategory:
    name: str


@dataclass(frozen=True)
class ExportSubgroup:
    name: str
    prefix: str | None = None


@dataclass(frozen=True)
class ExportTooltip:
    text: str
