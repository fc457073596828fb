"""
Tests for the emitter — rendering ScriptSpecs into C# shims.
"""

from typing import Annotated, Any, Optional

from shimgen.annotations import (
    ExportCategory,
    ExportDir,
    ExportRange,
    ExportTooltip,
    IGdScript,
    NodePath,
    OptionalNodePath,
    Preload,
    auto_connect,
    godot_script,
)
from shimgen.core.models.header import GeneratedHeader
from shimgen.core.services.emitter import emit
from shimgen.core.services.source_locator import SourceInfo
from shimgen.core.services.spec_builder import build_spec
from shimgen.godot import AudioStream, Button, InputEvent, Label, Node2D, Texture2D, Vector2


@godot_script()
class Simple:
    pass


@godot_script(class_name="Player", base_type_name="Godot.Node2D")
class PlayerImpl:
    speed: Annotated[float, ExportRange(0, 10, 0.5)] = 1.0
    name: str = ""
    folder: Annotated[str, ExportDir()] = ""
    health: Annotated[int, ExportCategory("Stats"), ExportTooltip('Say "hi"')] = 100

    def process(self, delta: float):
        pass

    def input(self, event: InputEvent):
        pass

    def signal_died(self):
        pass

    def signal_health_changed(self, old: int, new: int):
        pass


@godot_script(base_type_name="Godot.Control", tool=True, icon="res://icons/panel.svg")
class PanelImpl:
    def can_drop_data(self, at_position: Vector2, data: Any) -> bool:
        return False

    def get_tooltip(self, at_position: Vector2) -> str:
        return ""


@godot_script(base_type_name="Godot.Node2D")
class WiredImpl(IGdScript):
    body: Annotated[Node2D, NodePath("Body")]
    hud: Annotated[Optional[Label], OptionalNodePath("UI/Hud")] = None
    icon: Annotated[Texture2D, Preload("res://icon.svg")]
    music: Annotated[Optional[AudioStream], Preload("res://music.ogg")] = None

    def ready(self):
        pass

    @auto_connect("StartButton", "pressed")
    def on_start(self):
        pass

    @auto_connect("Area", "body_entered")
    def on_body(self, body: Node2D):
        pass


@godot_script()
class WiredNoReady:
    button: Annotated[Button, NodePath("Button")]


@godot_script(class_name="Mover", base_type_name="Godot.Node2D")
class NodeAwareMover(IGdScript):
    def process(self, delta: float):
        pass


def _lines(cls, **kwargs) -> list[str]:
    return emit(build_spec(cls), version="1.0.0", **kwargs).split("\n")


class TestLayout:
    """Tests for the overall file layout."""

    def test_minimal_shim(self):
        spec = build_spec(Simple)
        text = emit(spec, version="1.0.0")
        fqn = spec.impl_fqn
        assert text.startswith("// <auto-generated>\n")
        assert text.endswith("}\n")
        assert "\r" not in text
        body = text.split("// </auto-generated>\n", 1)[1]
        assert body.split("\n") == [
            "",
            "using Godot;",
            "using ShimGen.Runtime;",
            "namespace Generated;",
            "",
            "[GlobalClass]",
            "public partial class Simple : Godot.Node",
            "{",
            f"    private readonly {fqn} _impl = new {fqn}();",
            "}",
            "",
        ]

    def test_deterministic(self):
        spec = build_spec(PlayerImpl)
        assert emit(spec, version="1.0.0") == emit(spec, version="1.0.0")

    def test_namespace(self):
        assert "namespace Game.Shims;" in _lines(Simple, namespace="Game.Shims")

    def test_tool_and_icon(self):
        lines = _lines(PanelImpl)
        start = lines.index("[Tool]")
        assert lines[start:start + 4] == [
            "[Tool]",
            "[GlobalClass]",
            '[Icon("res://icons/panel.svg")]',
            "public partial class PanelImpl : Godot.Control",
        ]

    def test_header_without_provenance(self):
        spec = build_spec(Simple)
        header = GeneratedHeader.parse(emit(spec, version="2.1.0"))
        assert header == GeneratedHeader(version="2.1.0", source_type=spec.impl_fqn)

    def test_header_with_provenance(self):
        spec = build_spec(Simple)
        source = SourceInfo(relative_path="game/simple.py", content_hash="c0ffee")
        header = GeneratedHeader.parse(emit(spec, source, version="2.1.0"))
        assert header.source_file == "game/simple.py"
        assert header.source_hash == "c0ffee"


class TestMembers:
    """Tests for exports, hooks and signals."""

    def test_exports(self):
        lines = _lines(PlayerImpl)
        assert (
            '    [Export(PropertyHint.Range, "0,10,0.5")] public System.Double Speed '
            "{ get => _impl.speed; set => _impl.speed = value; }"
        ) in lines
        assert (
            "    [Export] public System.String Name "
            "{ get => _impl.name; set => _impl.name = value; }"
        ) in lines
        assert any(line.startswith("    [Export(PropertyHint.Dir)] public System.String Folder") for line in lines)

    def test_decorations_precede_export(self):
        lines = _lines(PlayerImpl)
        start = lines.index('    [ExportCategory("Stats")]')
        assert lines[start + 1] == '    [ExportTooltip("Say \\"hi\\"")]'
        assert lines[start + 2].startswith("    [Export] public System.Int32 Health")

    def test_hook_forwarding(self):
        lines = _lines(PlayerImpl)
        assert "    public override void _Process(double delta) => _impl.process(delta);" in lines
        assert "    public override void _Input(Godot.InputEvent @event) => _impl.input(@event);" in lines
        assert not any("_Ready" in line for line in lines)

    def test_hooks_with_return_values(self):
        lines = _lines(PanelImpl)
        assert (
            "    public override bool _CanDropData(Godot.Vector2 atPosition, Godot.Variant data) "
            "=> _impl.can_drop_data(atPosition, data);"
        ) in lines
        assert (
            "    public override string _GetTooltip(Godot.Vector2 atPosition) => _impl.get_tooltip(atPosition);"
        ) in lines

    def test_signals(self):
        lines = _lines(PlayerImpl)
        assert "    [Signal] public event System.Action Died;" in lines
        assert "    public void EmitDied() => Died?.Invoke();" in lines
        assert "    [Signal] public event System.Action<System.Int32, System.Int32> HealthChanged;" in lines
        assert (
            "    public void EmitHealthChanged(System.Int32 old, System.Int32 @new) "
            "=> HealthChanged?.Invoke(old, @new);"
        ) in lines


class TestReady:
    """Tests for the generated _Ready wiring."""

    def _ready_body(self, cls) -> list[str]:
        lines = _lines(cls)
        start = lines.index("    public override void _Ready()")
        end = lines.index("    }", start)
        return [line.strip() for line in lines[start + 2:end]]

    def test_wiring_order(self):
        body = self._ready_body(WiredImpl)
        assert body == [
            'var __n_body = GetNodeOrNull<Godot.Node2D>(new NodePath("Body"));',
            "if (__n_body == null)",
            "throw new System.InvalidOperationException("
            "\"[shimgen][WiredImpl] Missing required node 'Body' for member 'body'\");",
            "_impl.body = __n_body;",
            'var __n_hud = GetNodeOrNull<Godot.Label>(new NodePath("UI/Hud"));',
            "_impl.hud = __n_hud == null ? Option<Godot.Label>.None : Option<Godot.Label>.Some(__n_hud);",
            'var __p_icon = GD.Load<Godot.Texture2D>("res://icon.svg");',
            "if (__p_icon == null)",
            "throw new System.InvalidOperationException("
            "\"[shimgen][WiredImpl] Missing preload resource 'res://icon.svg' for member 'icon'\");",
            "_impl.icon = __p_icon;",
            'var __p_music = GD.Load<Godot.AudioStream>("res://music.ogg");',
            "_impl.music = __p_music == null ? Option<Godot.AudioStream>.None "
            ": Option<Godot.AudioStream>.Some(__p_music);",
            "if (_impl is IGdScript<Godot.Node2D> gd)",
            "gd.Node = this;",
            'var __c0 = GetNode<Godot.Node>(new NodePath("StartButton"));',
            '__c0.Connect("pressed", Callable.From(_impl.on_start));',
            'var __c1 = GetNode<Godot.Node>(new NodePath("Area"));',
            '__c1.Connect("body_entered", Callable.From<Godot.Node2D>(_impl.on_body));',
            "_impl.ready();",
        ]

    def test_ready_emitted_for_wiring_alone(self):
        body = self._ready_body(WiredNoReady)
        assert "_impl.ready();" not in body
        assert body[0] == 'var __n_button = GetNodeOrNull<Godot.Button>(new NodePath("Button"));'
        assert "gd.Node = this;" not in body

    def test_node_injected_without_ready_hook(self):
        body = self._ready_body(NodeAwareMover)
        assert body == [
            "if (_impl is IGdScript<Godot.Node2D> gd)",
            "gd.Node = this;",
        ]
        assert "    public override void _Process(double delta) => _impl.process(delta);" in _lines(NodeAwareMover)

    def test_no_ready_for_plain_hooks(self):
        assert "    public override void _Ready()" not in _lines(PlayerImpl)
