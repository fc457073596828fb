"""
Spec builder — reflect a marked script class into a ScriptSpec.

Every rule here reads only the class's public surface:

    - exports     → public annotated attributes / settable properties
                    whose type passes ``type_names.is_exportable``
    - hooks       → methods matching the ``data.hooks`` table
    - signals     → ``signal_<name>`` methods returning None
    - wiring      → ``NodePath`` / ``OptionalNodePath`` / ``Preload`` metadata
    - connections → ``@auto_connect`` on public methods

Missing features simply leave a flag false or a collection empty.
The one hard failure is a wiring member whose optionality marker
contradicts its declared type.
"""

from __future__ import annotations

import inspect
import logging
import typing
from typing import Any, ClassVar, Iterable

from shimgen import annotations as ann
from shimgen.core.data import known_godot
from shimgen.core.data.hooks import LIFECYCLE_HOOKS, SIGNAL_PREFIX, LifecycleHook
from shimgen.core.models.spec import (
    AutoConnectSpec,
    ExportHint,
    ExportMember,
    ScriptSpec,
    SignalParam,
    SignalSpec,
    WiringMember,
)
from shimgen.core.services import type_names as tn

logger = logging.getLogger(__name__)

_EMPTY = inspect.Parameter.empty
_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


class SpecValidationError(ValueError):
    """Raised when one or more script classes break a wiring contract."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class DuplicateClassNameError(ValueError):
    """Raised when two script classes resolve to the same shim class name."""


def get_marker(cls: type) -> ann.GodotScript | None:
    """The script marker declared directly on ``cls`` (never inherited)."""
    marker = cls.__dict__.get(ann.MARKER_ATTR)
    return marker if isinstance(marker, ann.GodotScript) else None


def build_spec(cls: type) -> ScriptSpec | None:
    """Build the spec for ``cls``, or None if it is not a marked script.

    Raises:
        SpecValidationError: a wiring member contradicts its type's optionality.
    """
    marker = get_marker(cls)
    if marker is None:
        return None

    fqn = f"{cls.__module__}.{cls.__qualname__}"
    hints = _member_hints(cls)
    methods = _public_methods(cls)

    errors: list[str] = []
    node_paths, preloads = _wiring_members(fqn, hints, errors)
    if errors:
        raise SpecValidationError(errors)

    wired = {m.name for m in node_paths} | {m.name for m in preloads}
    spec = ScriptSpec(
        impl_type=cls,
        class_name=(marker.class_name or "").strip() or cls.__name__,
        base_type_name=(marker.base_type_name or "").strip() or ann.DEFAULT_BASE_TYPE,
        exports=tuple(_exports(cls, hints, wired)),
        hooks=frozenset(
            hook.method for hook in LIFECYCLE_HOOKS
            if hook.method in methods and _matches_hook(methods[hook.method], hook)
        ),
        signals=tuple(_signals(methods)),
        node_paths=tuple(node_paths),
        preloads=tuple(preloads),
        auto_connects=tuple(_auto_connects(methods)),
        tool=marker.tool,
        icon=marker.icon or None,
        receives_node=issubclass(cls, ann.IGdScript),
    )
    logger.debug(
        "Built spec %s → %s (%d exports, %d hooks, %d signals)",
        fqn, spec.class_name, len(spec.exports), len(spec.hooks), len(spec.signals),
    )
    return spec


def build_specs(types: Iterable[type]) -> list[ScriptSpec]:
    """Build specs for every marked class in ``types``.

    Validation errors are collected across all classes and raised
    together, so one run reports every broken contract.

    Raises:
        SpecValidationError: any class failed validation.
        DuplicateClassNameError: two classes map to the same shim name.
    """
    specs: list[ScriptSpec] = []
    errors: list[str] = []
    for cls in types:
        try:
            spec = build_spec(cls)
        except SpecValidationError as e:
            errors.extend(e.errors)
            continue
        if spec is not None:
            specs.append(spec)

    if errors:
        raise SpecValidationError(errors)

    owners: dict[str, str] = {}
    for spec in specs:
        key = spec.class_name.lower()
        if key in owners and owners[key] != spec.impl_fqn:
            raise DuplicateClassNameError(
                f"Class name '{spec.class_name}' is declared by both "
                f"{owners[key]} and {spec.impl_fqn}"
            )
        owners[key] = spec.impl_fqn
    return specs


# ── Reflection helpers ──────────────────────────────────────────


def _member_hints(cls: type) -> dict[str, Any]:
    """Resolved annotations for ``cls`` and its bases, bases first."""
    try:
        return typing.get_type_hints(cls, include_extras=True)
    except Exception as e:
        logger.warning(
            "Cannot resolve all annotations of %s (%s) — resolving per class", cls.__qualname__, e
        )

    hints: dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        try:
            hints.update(inspect.get_annotations(klass, eval_str=True))
        except Exception as e:
            logger.warning("Skipping annotations of %s: %s", klass.__qualname__, e)
    return hints


def _public_methods(cls: type) -> dict[str, Any]:
    """Public instance functions, in definition order (bases first)."""
    methods: dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for name, value in klass.__dict__.items():
            if name.startswith("_"):
                continue
            if inspect.isfunction(value):
                methods[name] = value
            else:
                # shadowed by a non-function (static/class method, attribute)
                methods.pop(name, None)
    return methods


def _signature(func: Any) -> tuple[list[inspect.Parameter], dict[str, Any]] | None:
    """Positional parameters after ``self`` plus resolved hints.

    None when the function takes ``*args``/``**kwargs`` or keyword-only
    parameters, which no hook or signal can forward.
    """
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return None
    params = list(sig.parameters.values())[1:]
    if any(p.kind not in _POSITIONAL for p in params):
        return None
    try:
        hints = typing.get_type_hints(func)
    except Exception:
        hints = {}
    return params, hints


def _is_type_match(annotation: Any, accepts: tuple[Any, ...]) -> bool:
    for expected in accepts:
        if annotation is expected:
            return True
        try:
            if isinstance(annotation, type) and isinstance(expected, type) and issubclass(annotation, expected):
                return True
        except TypeError:
            continue
    return False


def _matches_hook(func: Any, hook: LifecycleHook) -> bool:
    parsed = _signature(func)
    if parsed is None:
        return False
    params, hints = parsed
    if len(params) != hook.arity:
        return False
    for param, expected in zip(params, hook.params):
        annotation = hints.get(param.name, _EMPTY)
        if annotation is _EMPTY:
            continue
        if not _is_type_match(annotation, expected.accepts):
            return False
    ret = hints.get("return", _EMPTY)
    if ret is not _EMPTY and not _is_type_match(ret, hook.result_accepts):
        return False
    return True


def _param_type_names(params: list[inspect.Parameter], hints: dict[str, Any]) -> list[str]:
    """C# types for forwarded parameters; unannotated or unmapped → Variant."""
    names = []
    for p in params:
        mapped = tn.display_name(hints[p.name]) if p.name in hints else None
        names.append(mapped or known_godot.VARIANT)
    return names


# ── Extraction rules ────────────────────────────────────────────


def _exports(cls: type, hints: dict[str, Any], wired: set[str]) -> Iterable[ExportMember]:
    seen: set[str] = set()

    for name, hint in hints.items():
        if name.startswith("_") or name in wired:
            continue
        if typing.get_origin(hint) is ClassVar or hint is ClassVar:
            continue
        if isinstance(inspect.getattr_static(cls, name, None), property):
            continue  # handled below
        member = _export_member(name, hint)
        if member is not None:
            seen.add(name)
            yield member

    for klass in reversed(cls.__mro__):
        for name, value in klass.__dict__.items():
            if name.startswith("_") or name in seen or not isinstance(value, property):
                continue
            if inspect.getattr_static(cls, name, None) is not value:
                continue  # overridden further down the MRO
            if value.fget is None or value.fset is None:
                continue
            try:
                ret = typing.get_type_hints(value.fget, include_extras=True).get("return")
            except Exception:
                ret = None
            if ret is None:
                continue
            member = _export_member(name, ret)
            if member is not None:
                seen.add(name)
                yield member


def _export_member(name: str, hint: Any) -> ExportMember | None:
    base, meta = tn.unwrap_annotated(hint)
    if not tn.is_exportable(base):
        return None
    type_name = tn.display_name(base)
    if type_name is None:
        return None

    hint_spec: ExportHint | None = None
    if tn.is_flag_enum(base):
        hint_spec = ExportHint(kind="Flags", hint_string=",".join(tn.enum_member_names(base)))

    fields: dict[str, Any] = {}
    for item in meta:
        explicit = _explicit_hint(item)
        if explicit is not None:
            hint_spec = explicit
        elif isinstance(item, ann.ExportCategory):
            fields["category"] = item.name
        elif isinstance(item, ann.ExportSubgroup):
            fields["subgroup"] = item.name
            fields["subgroup_prefix"] = item.prefix
        elif isinstance(item, ann.ExportTooltip):
            fields["tooltip"] = item.text

    return ExportMember(
        name=name,
        property_name=tn.pascal_case(name),
        type_name=type_name,
        hint=hint_spec,
        **fields,
    )


def _explicit_hint(item: Any) -> ExportHint | None:
    if isinstance(item, ann.ExportRange):
        parts = [_fmt_number(item.min), _fmt_number(item.max), _fmt_number(item.step)]
        if item.or_slider:
            parts.append("1")
        return ExportHint(kind="Range", hint_string=",".join(parts))
    if isinstance(item, ann.ExportFile):
        return ExportHint(kind="File", hint_string=item.filter or None)
    if isinstance(item, ann.ExportDir):
        return ExportHint(kind="Dir")
    if isinstance(item, ann.ExportResourceType):
        return ExportHint(kind="ResourceType", hint_string=item.type_name)
    if isinstance(item, ann.ExportMultiline):
        return ExportHint(kind="MultilineText")
    if isinstance(item, ann.ExportColorNoAlpha):
        return ExportHint(kind="ColorNoAlpha")
    if isinstance(item, ann.ExportEnumList):
        return ExportHint(kind="Enum", hint_string=item.values)
    if isinstance(item, ann.ExportLayerMask2DRender):
        return ExportHint(kind="Layers2DRender")
    return None


def _fmt_number(value: float) -> str:
    """Invariant, shortest form: 10.0 → "10", 0.5 → "0.5"."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _wiring_members(
    fqn: str,
    hints: dict[str, Any],
    errors: list[str],
) -> tuple[list[WiringMember], list[WiringMember]]:
    node_paths: list[WiringMember] = []
    preloads: list[WiringMember] = []

    for name, hint in hints.items():
        if name.startswith("_"):
            continue
        base, meta = tn.unwrap_annotated(hint)
        inner, is_option = tn.unwrap_optional(base)
        for item in meta:
            if isinstance(item, (ann.NodePath, ann.OptionalNodePath)):
                explicit_optional = isinstance(item, ann.OptionalNodePath) or not item.required
                if is_option and not explicit_optional:
                    errors.append(
                        f"{fqn}.{name}: [NodePath] member is Optional[...]; "
                        "use OptionalNodePath or a non-optional type"
                    )
                    continue
                if not is_option and explicit_optional:
                    errors.append(
                        f"{fqn}.{name}: optional node path requires an Optional[...] member type"
                    )
                    continue
                if not tn.is_godot_node(inner):
                    errors.append(f"{fqn}.{name}: node path target must be a Godot Node type")
                    continue
                node_paths.append(WiringMember(
                    kind="node",
                    name=name,
                    type_name=tn.godot_name(inner) or "",
                    path=item.path or name,
                    required=not is_option,
                    is_option=is_option,
                ))
            elif isinstance(item, ann.Preload):
                if item.required is True and is_option:
                    errors.append(
                        f"{fqn}.{name}: Preload(required=True) cannot target an Optional[...] member"
                    )
                    continue
                if item.required is False and not is_option:
                    errors.append(
                        f"{fqn}.{name}: Preload(required=False) requires an Optional[...] member type"
                    )
                    continue
                target = tn.godot_name(inner)
                if target is None:
                    errors.append(f"{fqn}.{name}: preload target must be a Godot type")
                    continue
                if not item.path:
                    errors.append(f"{fqn}.{name}: Preload needs a resource path")
                    continue
                preloads.append(WiringMember(
                    kind="preload",
                    name=name,
                    type_name=target,
                    path=item.path,
                    required=not is_option,
                    is_option=is_option,
                ))
    return node_paths, preloads


def _signals(methods: dict[str, Any]) -> Iterable[SignalSpec]:
    for method_name, func in methods.items():
        if not method_name.startswith(SIGNAL_PREFIX):
            continue
        suffix = method_name[len(SIGNAL_PREFIX):]
        if not suffix:
            continue
        parsed = _signature(func)
        if parsed is None:
            continue
        params, hints = parsed
        ret = hints.get("return", _EMPTY)
        if ret is not _EMPTY and ret is not type(None):
            continue
        type_names = _param_type_names(params, hints)
        yield SignalSpec(
            name=tn.pascal_case(suffix),
            method_name=method_name,
            params=tuple(
                SignalParam(name=p.name, type_name=t) for p, t in zip(params, type_names)
            ),
        )


def _auto_connects(methods: dict[str, Any]) -> Iterable[AutoConnectSpec]:
    for method_name, func in methods.items():
        requests = getattr(func, ann.AUTO_CONNECT_ATTR, ())
        if not requests:
            continue
        parsed = _signature(func)
        if parsed is None:
            logger.warning("Skipping auto-connect on %s: unsupported signature", method_name)
            continue
        params, hints = parsed
        param_types = tuple(_param_type_names(params, hints))
        for request in requests:
            yield AutoConnectSpec(
                path=request.path,
                signal=request.signal,
                handler=method_name,
                param_types=param_types,
            )
