"""
Godot vocabulary — placeholder types for annotating script classes.

Script classes are plain Python and never touch the engine. They use
these names in annotations so the generator can map members onto the
Godot .NET surface:

    from shimgen.godot import Node2D, InputEvent, Vector2

    class Player:
        velocity: Vector2
        def input(self, event: InputEvent) -> None: ...

Every class here carries its fully-qualified C# name in ``__godot_name__``.
"""

from __future__ import annotations

from typing import NewType

# C# scalar types that have no distinct Python builtin
Single = NewType("Single", float)   # System.Single (float in C#)
Int64 = NewType("Int64", int)       # System.Int64 (long in C#)


class GodotType:
    """Base for every placeholder type. Subclasses are named after the engine type."""

    __godot_name__ = "Godot.Variant"

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if "__godot_name__" not in cls.__dict__:
            cls.__godot_name__ = f"Godot.{cls.__name__}"


class Variant(GodotType):
    pass


# ── Value types ─────────────────────────────────────────────────


class Vector2(GodotType):
    pass


class Vector3(GodotType):
    pass


class Color(GodotType):
    pass


class Basis(GodotType):
    pass


class Rect2(GodotType):
    pass


class Transform2D(GodotType):
    pass


class Transform3D(GodotType):
    pass


class NodePath(GodotType):
    pass


class StringName(GodotType):
    pass


class RID(GodotType):
    pass


# ── Objects ─────────────────────────────────────────────────────


class GodotObject(GodotType):
    __godot_name__ = "Godot.GodotObject"


class InputEvent(GodotObject):
    pass


class Resource(GodotObject):
    pass


class Texture2D(Resource):
    pass


class PackedScene(Resource):
    pass


class AudioStream(Resource):
    pass


class Node(GodotObject):
    pass


class Node3D(Node):
    pass


class CanvasItem(Node):
    pass


class Node2D(CanvasItem):
    pass


class Control(CanvasItem):
    pass


class Button(Control):
    pass


class Label(Control):
    pass


class Sprite2D(Node2D):
    pass


class Timer(Node):
    pass


class AnimationPlayer(Node):
    pass
