"""
Lifecycle hooks — the structural contract between script classes and shims.

A script class opts into a hook by defining a public instance method
with the listed name and parameter types. The shim then overrides the
Godot virtual and forwards the call. This table is the whole contract.

A parameter matches when it is unannotated or annotated with one of
``accepts`` (or a subclass of it). An annotated return type must
likewise match ``result_accepts``; unannotated returns always match.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from shimgen import godot
from shimgen.core.data import known_godot


@dataclass(frozen=True)
class HookParam:
    name: str                      # C# parameter name in the override
    cs_type: str
    accepts: tuple[Any, ...]


@dataclass(frozen=True)
class LifecycleHook:
    method: str                    # method on the script class
    override: str                  # Godot virtual on the shim
    params: tuple[HookParam, ...] = ()
    returns: str = "void"
    result_accepts: tuple[Any, ...] = (type(None),)

    @property
    def arity(self) -> int:
        return len(self.params)


_DELTA = HookParam("delta", "double", (float,))
_EVENT = HookParam("@event", known_godot.INPUT_EVENT, (godot.InputEvent,))
_AT_POSITION = HookParam("atPosition", known_godot.VECTOR2, (godot.Vector2,))
_DATA = HookParam("data", known_godot.VARIANT, (godot.Variant, Any))

READY = LifecycleHook("ready", "_Ready")

LIFECYCLE_HOOKS: tuple[LifecycleHook, ...] = (
    READY,
    LifecycleHook("process", "_Process", (_DELTA,)),
    LifecycleHook("physics_process", "_PhysicsProcess", (_DELTA,)),
    LifecycleHook("input", "_Input", (_EVENT,)),
    LifecycleHook("unhandled_input", "_UnhandledInput", (_EVENT,)),
    LifecycleHook("notification", "_Notification", (HookParam("what", "long", (int, godot.Int64)),)),
    LifecycleHook("enter_tree", "_EnterTree"),
    LifecycleHook("exit_tree", "_ExitTree"),
    # Control-only callbacks
    LifecycleHook("gui_input", "_GuiInput", (_EVENT,)),
    LifecycleHook("shortcut_input", "_ShortcutInput", (_EVENT,)),
    LifecycleHook("draw", "_Draw"),
    LifecycleHook(
        "can_drop_data", "_CanDropData", (_AT_POSITION, _DATA), returns="bool", result_accepts=(bool,)
    ),
    LifecycleHook("drop_data", "_DropData", (_AT_POSITION, _DATA)),
    LifecycleHook(
        "get_drag_data", "_GetDragData", (_AT_POSITION,),
        returns=known_godot.VARIANT, result_accepts=_DATA.accepts,
    ),
    LifecycleHook("get_tooltip", "_GetTooltip", (_AT_POSITION,), returns="string", result_accepts=(str,)),
    LifecycleHook(
        "get_minimum_size", "_GetMinimumSize", returns=known_godot.VECTOR2, result_accepts=(godot.Vector2,)
    ),
)

# Methods named ``signal_<name>`` declare a signal called <Name>.
SIGNAL_PREFIX = "signal_"
