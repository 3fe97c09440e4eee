"""测试 surtitle segment 命令"""
import json
import sys

import pytest

from surtitle import cli


def _run_cli(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["surtitle", *argv])
    with pytest.raises(SystemExit) as exc_info:
        cli.main()
    return exc_info.value.code


def test_segment_fallback_only_writes_json(monkeypatch, tmp_path):
    monkeypatch.delenv("SURTITLE_SOFTEN_PUNCTUATION", raising=False)
    script = tmp_path / "play.txt"
    script.write_text("王子：我回來了。\n（燈光漸暗）\n", encoding="utf-8")
    output = tmp_path / "out" / "lines.json"

    assert _run_cli(monkeypatch, "segment", str(script), "--fallback-only", "--output", str(output)) == 0
    lines = json.loads(output.read_text(encoding="utf-8"))
    assert lines == [
        {"text": "王子：我回來了", "type": "dialogue"},
        {"text": "（燈光漸暗）", "type": "direction"},
    ]


def test_segment_missing_file_fails(monkeypatch, tmp_path):
    assert _run_cli(monkeypatch, "segment", str(tmp_path / "missing.txt"), "--fallback-only") == 1


def test_no_command_prints_help(monkeypatch):
    assert _run_cli(monkeypatch) == 1
