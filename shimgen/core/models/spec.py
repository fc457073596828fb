"""
ScriptSpec — the structural description of one marked script class.

Built once per scan by the spec builder, rendered once by the emitter,
then discarded. Frozen: nothing downstream may mutate it.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class ExportHint(_Frozen):
    """A ``PropertyHint`` plus its optional hint string."""

    kind: str                      # Range, Flags, File, Dir, Enum, …
    hint_string: str | None = None


class ExportMember(_Frozen):
    """A property surfaced in the Godot inspector."""

    name: str                      # attribute on the script class
    property_name: str             # PascalCase property on the shim
    type_name: str                 # C# type
    hint: ExportHint | None = None
    category: str | None = None
    subgroup: str | None = None
    subgroup_prefix: str | None = None
    tooltip: str | None = None


class SignalParam(_Frozen):
    name: str
    type_name: str


class SignalSpec(_Frozen):
    name: str                      # PascalCase signal name
    method_name: str               # signal_<name> on the script class
    params: tuple[SignalParam, ...] = ()


class WiringMember(_Frozen):
    """A member filled in ``_Ready`` from a node lookup or a resource load."""

    kind: Literal["node", "preload"]
    name: str
    type_name: str                 # C# type of the target (inner type for options)
    path: str                      # node path or resource path
    required: bool = True
    is_option: bool = False


class AutoConnectSpec(_Frozen):
    path: str
    signal: str
    handler: str
    param_types: tuple[str, ...] = ()


class ScriptSpec(_Frozen):
    """Everything the emitter needs to render one shim."""

    impl_type: Any                 # the reflected class, referenced not copied
    class_name: str
    base_type_name: str = "Godot.Node"

    exports: tuple[ExportMember, ...] = ()
    hooks: frozenset[str] = Field(default_factory=frozenset)
    signals: tuple[SignalSpec, ...] = ()
    node_paths: tuple[WiringMember, ...] = ()
    preloads: tuple[WiringMember, ...] = ()
    auto_connects: tuple[AutoConnectSpec, ...] = ()

    tool: bool = False
    icon: str | None = None
    receives_node: bool = False    # subclasses IGdScript

    @property
    def impl_fqn(self) -> str:
        """Fully-qualified name of the implementation class."""
        return f"{self.impl_type.__module__}.{self.impl_type.__qualname__}"

    def has_hook(self, method: str) -> bool:
        return method in self.hooks

    @property
    def has_ready(self) -> bool:
        return "ready" in self.hooks

    @property
    def needs_ready(self) -> bool:
        """Whether the shim must override ``_Ready`` at all."""
        return bool(
            self.has_ready
            or self.receives_node
            or self.node_paths
            or self.preloads
            or self.auto_connects
        )
