"""Tests for the brickyard command-line tool."""

import json

from brick_session.cli import main
from brick_session.scene_io import load_scene


def _write_scene(tmp_path, bricks, name="Yard"):
    path = tmp_path / "scene.json"
    path.write_text(json.dumps({"name": name, "bricks": bricks}))
    return str(path)


def _brick(type_id, x, y, z, rotation=0):
    return {
        "id": f"{type_id}-{x}-{y}-{z}",
        "typeId": type_id,
        "position": {"x": x, "y": y, "z": z},
        "rotation": rotation,
        "color": "#cc0000",
    }


VALID = [_brick("brick_2x4", 0, 0, 0), _brick("brick_1x1", 0, 3, 0)]
FLOATING = _brick("brick_1x1", 9, 6, 9)


class TestValidate:
    def test_clean_scene(self, tmp_path, capsys):
        path = _write_scene(tmp_path, VALID)
        assert main(["validate", path]) == 0
        out = capsys.readouterr().out
        assert "Imported scene 'Yard' with 2 bricks" in out
        assert "dropped" not in out

    def test_reports_drops(self, tmp_path, capsys):
        path = _write_scene(tmp_path, VALID + [FLOATING])
        assert main(["validate", path]) == 0
        assert "dropped 1" in capsys.readouterr().out
        assert main(["validate", "--strict", path]) == 1

    def test_writes_normalized_scene(self, tmp_path):
        path = _write_scene(tmp_path, [FLOATING] + VALID)
        out = str(tmp_path / "clean.json")
        assert main(["validate", path, "-o", out]) == 0
        scene = load_scene(out)
        assert [b["id"] for b in scene["bricks"]] == [b["id"] for b in VALID]

    def test_baseplate_size(self, tmp_path, capsys):
        path = _write_scene(tmp_path, [_brick("brick_2x4", 10, 0, 0)])
        assert main(["--baseplate-size", "8", "validate", path]) == 0
        assert "dropped 1" in capsys.readouterr().out

    def test_invalid_scene_file(self, tmp_path, capsys):
        path = tmp_path / "broken.json"
        path.write_text(json.dumps({"bricks": []}))
        assert main(["validate", str(path)]) == 1
        assert "Invalid scene format" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        assert main(["validate", str(tmp_path / "nope.json")]) == 1
        assert "error:" in capsys.readouterr().err


class TestOtherCommands:
    def test_summary(self, tmp_path, capsys):
        path = _write_scene(tmp_path, VALID)
        assert main(["summary", path]) == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary["brickCount"] == 2
        assert summary["dimensions"] == {"x": 2, "y": 6, "z": 4}

    def test_catalog_text(self, capsys):
        assert main(["catalog"]) == 0
        out = capsys.readouterr().out
        assert "corner (2)" in out
        assert "brick_2x4" in out

    def test_catalog_json(self, capsys):
        assert main(["catalog", "--json"]) == 0
        grouped = json.loads(capsys.readouterr().out)
        assert grouped["slope"][0]["typeId"] == "slope_2x2"

    def test_custom_catalog(self, tmp_path, capsys):
        catalog = tmp_path / "tiny.json"
        catalog.write_text(
            json.dumps(
                {
                    "types": [
                        {
                            "id": "block",
                            "category": "generic",
                            "studsX": 1,
                            "studsZ": 1,
                            "heightUnits": 1,
                        }
                    ]
                }
            )
        )
        assert main(["--catalog", str(catalog), "catalog", "--json"]) == 0
        assert list(json.loads(capsys.readouterr().out)) == ["generic"]

    def test_render(self, tmp_path):
        path = _write_scene(tmp_path, VALID)
        out = str(tmp_path / "plan.png")
        assert main(["render", path, out]) == 0
        assert len(load_scene(out)["bricks"]) == 2

    def test_no_command(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out
