"""
Type names — map Python annotations onto C# type names.

Also decides export eligibility: which member types the Godot
inspector can edit. The predicate is closed (anything not listed is
rejected) and recursive over ``list[...]`` element types.
"""

from __future__ import annotations

import enum
import types
import typing
from typing import Annotated, Any, Union

from shimgen import godot
from shimgen.core.data import known_godot

_SCALARS: dict[Any, str] = {
    bool: "System.Boolean",
    int: "System.Int32",
    float: "System.Double",
    str: "System.String",
    godot.Single: "System.Single",
    godot.Int64: "System.Int64",
}

_CS_KEYWORDS = frozenset({
    "abstract", "as", "base", "bool", "break", "byte", "case", "catch", "char",
    "checked", "class", "const", "continue", "decimal", "default", "delegate",
    "do", "double", "else", "enum", "event", "explicit", "extern", "false",
    "finally", "fixed", "float", "for", "foreach", "goto", "if", "implicit",
    "in", "int", "interface", "internal", "is", "lock", "long", "namespace",
    "new", "null", "object", "operator", "out", "override", "params",
    "private", "protected", "public", "readonly", "ref", "return", "sbyte",
    "sealed", "short", "sizeof", "stackalloc", "static", "string", "struct",
    "switch", "this", "throw", "true", "try", "typeof", "uint", "ulong",
    "unchecked", "unsafe", "ushort", "using", "virtual", "void", "volatile",
    "while",
})


def unwrap_annotated(tp: Any) -> tuple[Any, tuple[Any, ...]]:
    """Split ``Annotated[T, *meta]`` into ``(T, meta)``."""
    if typing.get_origin(tp) is Annotated:
        base, *meta = typing.get_args(tp)
        return base, tuple(meta)
    return tp, ()


def unwrap_optional(tp: Any) -> tuple[Any, bool]:
    """Split ``Optional[T]`` / ``T | None`` into ``(T, True)``.

    Unions of more than one non-None type are returned unchanged.
    """
    origin = typing.get_origin(tp)
    if origin is Union or origin is types.UnionType:
        args = [a for a in typing.get_args(tp) if a is not type(None)]
        if len(args) == 1 and len(typing.get_args(tp)) == 2:
            return args[0], True
    return tp, False


def is_enum(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, enum.Enum)


def is_flag_enum(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, enum.Flag)


def enum_member_names(tp: type[enum.Enum]) -> list[str]:
    """Member names in declaration order, aliases included."""
    return list(tp.__members__)


def godot_name(tp: Any) -> str | None:
    """C# name of a Godot placeholder type, or None."""
    if isinstance(tp, type) and issubclass(tp, godot.GodotType):
        return tp.__godot_name__
    return None


def is_godot_node(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, godot.Node)


def display_name(tp: Any) -> str | None:
    """C# type name for an annotation, or None if it has no mapping."""
    tp, _ = unwrap_annotated(tp)
    if tp is Any:
        return known_godot.VARIANT
    scalar = _SCALARS.get(tp)
    if scalar is not None:
        return scalar
    gd = godot_name(tp)
    if gd is not None:
        return gd
    if is_enum(tp):
        return f"{tp.__module__}.{tp.__qualname__}"
    if typing.get_origin(tp) is list:
        args = typing.get_args(tp)
        if len(args) == 1:
            elem = display_name(args[0])
            if elem is not None:
                return elem + "[]"
    return None


def is_exportable(tp: Any) -> bool:
    """Whether a member of this type can be exported to the inspector."""
    tp, _ = unwrap_annotated(tp)
    if tp in _SCALARS:
        return True
    if is_enum(tp):
        return True
    gd = godot_name(tp)
    if gd is not None:
        return gd in known_godot.EXPORTABLE_TYPES or issubclass(tp, godot.Resource)
    if typing.get_origin(tp) is list:
        args = typing.get_args(tp)
        return len(args) == 1 and is_exportable(args[0])
    return False


def pascal_case(name: str) -> str:
    """``max_speed`` → ``MaxSpeed``; already-cased names keep their casing."""
    return "".join(part[:1].upper() + part[1:] for part in name.split("_") if part)


def cs_identifier(name: str) -> str:
    """Escape a C# keyword with ``@`` so it can be used as an identifier."""
    return f"@{name}" if name in _CS_KEYWORDS else name


def cs_string(value: str) -> str:
    """Render a C# regular string literal."""
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'
