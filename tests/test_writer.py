import json
import logging
import subprocess
from pathlib import Path
from types import SimpleNamespace

from goidlc import writer
from goidlc.options import RenderOptions
from goidlc.render_map import Fragment
from goidlc.writer import render_visitor, write_render_map

REPO_ROOT = Path(__file__).resolve().parents[1]
PUMP = json.loads((REPO_ROOT / "tests" / "idls" / "pump.json").read_text(encoding="utf-8"))

def test_write_render_map_skips_absent_entries(tmp_path: Path):
    n = write_render_map({"a.go": Fragment("package a\n"), "b.go": None, "sub/c.go": Fragment("package c\n")}, tmp_path)
    assert n == 2
    assert (tmp_path / "a.go").read_text(encoding="utf-8") == "package a\n"
    assert (tmp_path / "sub" / "c.go").exists()
    assert not (tmp_path / "b.go").exists()

def test_fragment_without_overwrite_keeps_existing_file(tmp_path: Path):
    (tmp_path / "hooked.go").write_text("// mine\n", encoding="utf-8")
    write_render_map({"hooked.go": Fragment("// generated\n", overwrite=False)}, tmp_path)
    assert (tmp_path / "hooked.go").read_text(encoding="utf-8") == "// mine\n"

def test_render_visitor_replaces_the_folder(tmp_path: Path):
    out = tmp_path / "pump"
    out.mkdir()
    (out / "stale.go").write_text("package pump\n", encoding="utf-8")
    n = render_visitor(PUMP, out, RenderOptions(format_code=False))
    assert n == 6
    assert not (out / "stale.go").exists()
    assert (out / "instruction_buy.go").exists()

def test_render_visitor_can_keep_the_folder(tmp_path: Path):
    (tmp_path / "stale.go").write_text("package pump\n", encoding="utf-8")
    render_visitor(PUMP, tmp_path, RenderOptions(format_code=False, delete_folder_before_rendering=False))
    assert (tmp_path / "stale.go").exists()

def test_missing_gofmt_is_a_warning(tmp_path: Path, monkeypatch, caplog):
    def missing(*args, **kwargs):
        raise FileNotFoundError("gofmt")
    monkeypatch.setattr(subprocess, "run", missing)
    with caplog.at_level(logging.WARNING, logger="goidlc.writer"):
        render_visitor(PUMP, tmp_path / "out")
    assert "Could not find gofmt, skipping formatting." in caplog.text
    assert (tmp_path / "out" / "errors.go").exists()

def test_gofmt_output_is_logged(monkeypatch, caplog):
    calls = []
    def fake_run(cmd, **kwargs):
        calls.append(cmd)
        return SimpleNamespace(stdout="reformatted", stderr="syntax error")
    monkeypatch.setattr(subprocess, "run", fake_run)
    with caplog.at_level(logging.WARNING, logger="goidlc.writer"):
        writer.run_formatter("gofmt", "-w", "out")
    assert calls == [["gofmt", "-w", "out"]]
    levels = {(r.levelname, r.getMessage()) for r in caplog.records}
    assert ("WARNING", "(gofmt) reformatted") in levels
    assert ("ERROR", "(gofmt) syntax error") in levels
