from __future__ import annotations
from pathlib import Path
import json
import os
import subprocess
import sys

import jsonschema
import pytest

from goidlc.cli import main
from goidlc.schema import load_root, validate_root

REPO_ROOT = Path(__file__).resolve().parents[1]
PUMP = REPO_ROOT / "tests" / "idls" / "pump.json"

def run_goidlc(args):
    cmd = [sys.executable, "-m", "goidlc"] + args
    env = {**os.environ, "PYTHONPATH": str(REPO_ROOT / "src")}
    return subprocess.run(cmd, cwd=REPO_ROOT, env=env, capture_output=True, text=True)

def test_cli_module_ok(tmp_path: Path):
    out = tmp_path / "pump"
    p = run_goidlc([str(PUMP), "--out", str(out), "--no-format"])
    assert p.returncode == 0, p.stderr
    assert "OK. files=6" in p.stdout
    assert (out / "account_bonding_curve.go").exists()

def test_cli_dependency_flag(tmp_path: Path):
    out = tmp_path / "pump"
    rc = main([str(PUMP), "--out", str(out), "--no-format", "--dependency", "generatedTypes=github.com/acme/pump/types"])
    assert rc == 0
    assert "types.TradeDirection" in (out / "instruction_buy.go").read_text(encoding="utf-8")

def test_cli_generation_error(tmp_path: Path, capsys):
    idl = json.loads(PUMP.read_text(encoding="utf-8"))
    idl["program"]["definedTypes"][1]["type"]["fields"][0]["type"]["endian"] = "be"
    src = tmp_path / "be.json"
    src.write_text(json.dumps(idl), encoding="utf-8")
    rc = main([str(src), "--out", str(tmp_path / "out"), "--no-format"])
    assert rc == 2
    err = capsys.readouterr().err
    assert err.startswith("ERROR: [GO-TYPE-0101]")
    assert not (tmp_path / "out").exists()

def test_cli_rejects_bad_root(tmp_path: Path, capsys):
    src = tmp_path / "bad.json"
    src.write_text(json.dumps({"kind": "programNode", "name": "x"}), encoding="utf-8")
    rc = main([str(src), "--out", str(tmp_path / "out")])
    assert rc == 2
    assert "ERROR:" in capsys.readouterr().err

def test_cli_bad_config(tmp_path: Path, capsys):
    cfg = tmp_path / "cfg.json"
    cfg.write_text(json.dumps({"colour": "blue"}), encoding="utf-8")
    rc = main([str(PUMP), "--out", str(tmp_path / "out"), "--config", str(cfg)])
    assert rc == 2
    assert "Unknown option" in capsys.readouterr().err

def test_fixture_matches_root_schema():
    root = load_root(PUMP)
    assert root["program"]["name"] == "pump"

def test_schema_requires_program_public_key():
    with pytest.raises(jsonschema.ValidationError):
        validate_root({"kind": "rootNode", "program": {"kind": "programNode", "name": "x"}})
