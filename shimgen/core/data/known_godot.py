"""
Well-known Godot identifiers.

Pure data. Centralized so the builder and emitter never carry
magic strings for engine type names.
"""

from __future__ import annotations

NODE = "Godot.Node"
VARIANT = "Godot.Variant"
INPUT_EVENT = "Godot.InputEvent"
VECTOR2 = "Godot.Vector2"
VECTOR3 = "Godot.Vector3"
COLOR = "Godot.Color"
BASIS = "Godot.Basis"
RECT2 = "Godot.Rect2"
TRANSFORM2D = "Godot.Transform2D"
TRANSFORM3D = "Godot.Transform3D"
NODE_PATH = "Godot.NodePath"
STRING_NAME = "Godot.StringName"
RID = "Godot.RID"
RESOURCE = "Godot.Resource"
TEXTURE2D = "Godot.Texture2D"
PACKED_SCENE = "Godot.PackedScene"

# Engine types that may be exported as-is (value types and resources).
EXPORTABLE_TYPES: frozenset[str] = frozenset({
    VECTOR2,
    VECTOR3,
    COLOR,
    BASIS,
    RECT2,
    TRANSFORM2D,
    TRANSFORM3D,
    NODE_PATH,
    STRING_NAME,
    RID,
    RESOURCE,
    TEXTURE2D,
    PACKED_SCENE,
})

# Namespace of the runtime helpers the generated code relies on (Option<T>).
RUNTIME_NAMESPACE = "ShimGen.Runtime"
