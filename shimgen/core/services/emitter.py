"""
Emitter — render a ScriptSpec into the text of a Godot C# shim.

Output is deterministic: the same spec and provenance always produce
byte-identical text (LF line endings, trailing newline). The lifecycle
manager's skip logic depends on that.
"""

from __future__ import annotations

from shimgen.core.data import known_godot
from shimgen.core.data.hooks import LIFECYCLE_HOOKS, READY, LifecycleHook
from shimgen.core.models.header import GeneratedHeader
from shimgen.core.models.spec import (
    AutoConnectSpec,
    ExportMember,
    ScriptSpec,
    SignalSpec,
    WiringMember,
)
from shimgen.core.services.source_locator import SourceInfo
from shimgen.core.services.type_names import cs_identifier, cs_string

DEFAULT_NAMESPACE = "Generated"

_INDENT = "    "


def build_header(spec: ScriptSpec, provenance: SourceInfo | None, version: str) -> GeneratedHeader:
    return GeneratedHeader(
        version=version,
        source_type=spec.impl_fqn,
        source_file=provenance.relative_path if provenance else None,
        source_hash=provenance.content_hash if provenance else None,
    )


def emit(
    spec: ScriptSpec,
    provenance: SourceInfo | None = None,
    *,
    version: str,
    namespace: str = DEFAULT_NAMESPACE,
) -> str:
    """Render the shim for ``spec``.

    Args:
        spec: The script to shim.
        provenance: Source file info recorded in the header, if resolved.
        version: Generator version recorded in the header.
        namespace: C# namespace of the generated class.

    Returns:
        Full file text, header included.
    """
    impl = spec.impl_fqn
    out: list[str] = [
        "",
        "using Godot;",
        f"using {known_godot.RUNTIME_NAMESPACE};",
        f"namespace {namespace};",
        "",
    ]
    if spec.tool:
        out.append("[Tool]")
    out.append("[GlobalClass]")
    if spec.icon:
        out.append(f"[Icon({cs_string(spec.icon)})]")
    out.append(f"public partial class {spec.class_name} : {spec.base_type_name}")
    out.append("{")
    out.append(f"{_INDENT}private readonly {impl} _impl = new {impl}();")

    for member in spec.exports:
        out.extend(_export_lines(member))

    if spec.needs_ready:
        out.extend(_ready_lines(spec))

    for hook in LIFECYCLE_HOOKS:
        if hook is READY or not spec.has_hook(hook.method):
            continue
        out.append(_INDENT + _forward_line(hook))

    for signal in spec.signals:
        out.extend(_signal_lines(signal))

    out.append("}")

    header = build_header(spec, provenance, version).render()
    return header + "\n".join(out) + "\n"


# ── Members ─────────────────────────────────────────────────────


def _export_lines(member: ExportMember) -> list[str]:
    lines = []
    if member.category:
        lines.append(f"{_INDENT}[ExportCategory({cs_string(member.category)})]")
    if member.subgroup:
        prefix = f", Prefix={cs_string(member.subgroup_prefix)}" if member.subgroup_prefix else ""
        lines.append(f"{_INDENT}[ExportSubgroup({cs_string(member.subgroup)}{prefix})]")
    if member.tooltip:
        lines.append(f"{_INDENT}[ExportTooltip({cs_string(member.tooltip)})]")

    if member.hint is None:
        attr = "[Export]"
    elif member.hint.hint_string is None:
        attr = f"[Export(PropertyHint.{member.hint.kind})]"
    else:
        attr = f"[Export(PropertyHint.{member.hint.kind}, {cs_string(member.hint.hint_string)})]"

    target = f"_impl.{cs_identifier(member.name)}"
    lines.append(
        f"{_INDENT}{attr} public {member.type_name} {member.property_name} "
        f"{{ get => {target}; set => {target} = value; }}"
    )
    return lines


def _forward_line(hook: LifecycleHook) -> str:
    params = ", ".join(f"{p.cs_type} {p.name}" for p in hook.params)
    args = ", ".join(p.name for p in hook.params)
    return f"public override {hook.returns} {hook.override}({params}) => _impl.{hook.method}({args});"


def _signal_lines(signal: SignalSpec) -> list[str]:
    types = ", ".join(p.type_name for p in signal.params)
    action = f"System.Action<{types}>" if signal.params else "System.Action"
    params = ", ".join(f"{p.type_name} {cs_identifier(p.name)}" for p in signal.params)
    args = ", ".join(cs_identifier(p.name) for p in signal.params)
    return [
        f"{_INDENT}[Signal] public event {action} {signal.name};",
        f"{_INDENT}public void Emit{signal.name}({params}) => {signal.name}?.Invoke({args});",
    ]


# ── _Ready ──────────────────────────────────────────────────────


def _ready_lines(spec: ScriptSpec) -> list[str]:
    body: list[str] = []
    for member in spec.node_paths:
        body.extend(_node_path_lines(spec, member))
    for member in spec.preloads:
        body.extend(_preload_lines(spec, member))
    if spec.receives_node:
        body.append(f"if (_impl is IGdScript<{spec.base_type_name}> gd)")
        body.append(f"{_INDENT}gd.Node = this;")
    for index, connect in enumerate(spec.auto_connects):
        body.extend(_connect_lines(index, connect))
    if spec.has_ready:
        body.append("_impl.ready();")

    lines = [f"{_INDENT}public override void _Ready()", f"{_INDENT}{{"]
    lines.extend(f"{_INDENT * 2}{line}" for line in body)
    lines.append(f"{_INDENT}}}")
    return lines


def _assign(spec: ScriptSpec, member: WiringMember, local: str, missing: str) -> list[str]:
    """Null check and assignment shared by node paths and preloads."""
    target = f"_impl.{cs_identifier(member.name)}"
    if member.is_option:
        option = f"Option<{member.type_name}>"
        return [
            f"{target} = {local} == null ? {option}.None : {option}.Some({local});",
        ]
    message = cs_string(f"[shimgen][{spec.class_name}] {missing} for member '{member.name}'")
    return [
        f"if ({local} == null)",
        f"{_INDENT}throw new System.InvalidOperationException({message});",
        f"{target} = {local};",
    ]


def _node_path_lines(spec: ScriptSpec, member: WiringMember) -> list[str]:
    local = f"__n_{member.name}"
    lookup = f"var {local} = GetNodeOrNull<{member.type_name}>(new NodePath({cs_string(member.path)}));"
    return [lookup, *_assign(spec, member, local, f"Missing required node '{member.path}'")]


def _preload_lines(spec: ScriptSpec, member: WiringMember) -> list[str]:
    local = f"__p_{member.name}"
    load = f"var {local} = GD.Load<{member.type_name}>({cs_string(member.path)});"
    return [load, *_assign(spec, member, local, f"Missing preload resource '{member.path}'")]


def _connect_lines(index: int, connect: AutoConnectSpec) -> list[str]:
    if connect.param_types:
        callback = f"Callable.From<{', '.join(connect.param_types)}>(_impl.{connect.handler})"
    else:
        callback = f"Callable.From(_impl.{connect.handler})"
    local = f"__c{index}"
    return [
        f"var {local} = GetNode<{known_godot.NODE}>(new NodePath({cs_string(connect.path)}));",
        f"{local}.Connect({cs_string(connect.signal)}, {callback});",
    ]
