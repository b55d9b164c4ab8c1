from __future__ import annotations

import json
from pathlib import Path

import pytest

from productreel import cli


def test_storyboard_mode_writes_render_plan(tmp_path: Path, raw_storyboard: dict, capsys) -> None:
    storyboard_path = tmp_path / "storyboard.json"
    storyboard_path.write_text(json.dumps(raw_storyboard), encoding="utf-8")
    tempo_path = tmp_path / "tempo.json"
    tempo_path.write_text(json.dumps({"bpm": 60, "beatTimesMs": [0, 1000]}), encoding="utf-8")

    code = cli.main(
        [
            "--storyboard",
            str(storyboard_path),
            "--tempo",
            str(tempo_path),
            "--output-dir",
            str(tmp_path / "out"),
        ]
    )

    assert code == 0
    plan = json.loads((tmp_path / "out" / "render_plan.json").read_text(encoding="utf-8"))
    assert plan["timeline"]["transitionFrames"] == 15
    assert plan["beatFrames"] == [0, 30]
    assert "Wrote render plan" in capsys.readouterr().out


def test_storyboard_mode_rejects_invalid_storyboard(tmp_path: Path, raw_storyboard: dict) -> None:
    raw_storyboard["scenes"] = []
    storyboard_path = tmp_path / "storyboard.json"
    storyboard_path.write_text(json.dumps(raw_storyboard), encoding="utf-8")

    assert cli.main(["--storyboard", str(storyboard_path), "--output-dir", str(tmp_path)]) == 1


def test_url_or_storyboard_is_required() -> None:
    with pytest.raises(SystemExit):
        cli.main([])


def test_mood_choices_are_validated() -> None:
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["https://acme.test", "--mood", "polka"])
