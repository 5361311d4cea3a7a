import json
from pathlib import Path
from typer.testing import CliRunner
from dagsketch.cli import app

runner = CliRunner()

VALID = {
    "nodes": [
        {"id": "a", "data": {"label": "A"}, "position": {"x": 5, "y": 5}},
        {"id": "b", "data": {"label": "B"}},
        {"id": "c", "data": {"label": "C"}},
    ],
    "edges": [
        {"id": "a-b", "source": "a", "target": "b"},
        {"id": "a-c", "source": "a", "target": "c"},
    ],
}

def _write(tmp_path: Path, data, name="dag.json") -> Path:
    path = tmp_path / name
    path.write_text(json.dumps(data))
    return path

def test_validate_ok(tmp_path: Path):
    result = runner.invoke(app, ["validate", str(_write(tmp_path, VALID))])
    assert result.exit_code == 0, result.output
    assert "Valid" in result.output

def test_validate_cycle_exits_nonzero(tmp_path: Path):
    data = {**VALID, "edges": VALID["edges"] + [
        {"id": "b-c", "source": "b", "target": "c"},
        {"id": "c-a", "source": "c", "target": "a"},
    ]}
    result = runner.invoke(app, ["validate", str(_write(tmp_path, data))])
    assert result.exit_code == 1
    assert "Invalid" in result.output

def test_layout_prints_positions(tmp_path: Path):
    result = runner.invoke(app, ["layout", str(_write(tmp_path, VALID))])
    assert result.exit_code == 0, result.output
    out = json.loads(result.output)
    xs = {n["id"]: n["position"]["x"] for n in out["nodes"]}
    assert xs["a"] < xs["b"] == xs["c"]

def test_layout_with_config(tmp_path: Path):
    cfg = tmp_path / "layout.yaml"
    cfg.write_text("node_width: 100\nrank_sep: 20\n")
    result = runner.invoke(app, ["layout", str(_write(tmp_path, VALID)), "--config", str(cfg)])
    assert result.exit_code == 0, result.output
    out = json.loads(result.output)
    assert out["nodes"][1]["position"]["x"] == 120

def test_explain(tmp_path: Path):
    result = runner.invoke(app, ["explain", str(_write(tmp_path, VALID))])
    assert result.exit_code == 0
    assert "Rank 0:" in result.output and "└─▶ b" in result.output

def test_preview_roundtrips_snapshot(tmp_path: Path):
    result = runner.invoke(app, ["preview", str(_write(tmp_path, VALID))])
    assert result.exit_code == 0
    assert json.loads(result.output)["edges"][0]["id"] == "a-b"

def test_unloadable_file(tmp_path: Path):
    bad = _write(tmp_path, {"nodes": [{"data": {}}]})
    result = runner.invoke(app, ["validate", str(bad)])
    assert result.exit_code == 1
    assert "Could not load" in result.output
    result = runner.invoke(app, ["validate", str(tmp_path / "missing.json")])
    assert result.exit_code == 1

EDITOR_SNAPSHOT = {
    "nodes": [
        {"id": "a", "type": "input", "width": 172, "selected": False,
         "positionAbsolute": {"x": 3, "y": 4}, "data": {"label": "A", "color": "red"}},
        {"id": "b", "data": {"label": "B"}},
    ],
    "edges": [
        {"id": "a-b", "source": "a", "target": "b",
         "markerEnd": {"type": "arrowclosed"}, "animated": True},
    ],
    "viewport": {"x": 0, "y": 0, "zoom": 1},
}

def test_layout_keeps_editor_fields(tmp_path: Path):
    result = runner.invoke(app, ["layout", str(_write(tmp_path, EDITOR_SNAPSHOT))])
    assert result.exit_code == 0, result.output
    out = json.loads(result.output)
    edge = out["edges"][0]
    assert edge["markerEnd"] == {"type": "arrowclosed"}
    assert edge["animated"] is True
    node = out["nodes"][0]
    assert node["type"] == "input" and node["width"] == 172 and node["selected"] is False
    assert node["positionAbsolute"] == {"x": 3, "y": 4}
    assert node["data"] == {"label": "A", "color": "red"}
    assert out["viewport"] == {"x": 0, "y": 0, "zoom": 1}

def test_preview_keeps_editor_fields(tmp_path: Path):
    result = runner.invoke(app, ["preview", str(_write(tmp_path, EDITOR_SNAPSHOT))])
    assert result.exit_code == 0, result.output
    out = json.loads(result.output)
    assert out["edges"][0]["markerEnd"] == {"type": "arrowclosed"}
    assert out["nodes"][0]["type"] == "input"
