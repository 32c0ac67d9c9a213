from __future__ import annotations

import importlib.util
import json
from pathlib import Path

import pytest

from common.stage_tokens import TRACE_SCHEMA_ID, TRACE_STAGE_ID_ORDER

TOOLS = Path(__file__).resolve().parents[1] / "tools"


def _load(rel: str):
    path = TOOLS / rel
    spec = importlib.util.spec_from_file_location(path.stem, path)
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return mod


def test_interface_parity():
    mod = _load("generate/check_interface_parity.py")
    assert mod.check() == []
    assert mod.main() == 0


def test_run_and_render_trace(tmp_path, capsys):
    prog = tmp_path / "prog.s"
    prog.write_text("addi r1, r0, 5\nadd r2, r1, r1\n", encoding="utf-8")
    inputs = tmp_path / "inputs.jsonl"
    inputs.write_text('{"analog_entropy": "0x10"}\n\n{"quantum_lock": 1}\n', encoding="utf-8")
    trace = tmp_path / "out" / "trace.jsonl"

    run = _load("trace/run_hazardcore.py")
    rc = run.main(["--program", str(prog), "--cycles", "6", "--inputs", str(inputs), "--output", str(trace)])
    assert rc == 0
    rows = [json.loads(ln) for ln in trace.read_text(encoding="utf-8").splitlines()]
    assert len(rows) == 6
    assert all(r["schema"] == TRACE_SCHEMA_ID for r in rows)
    assert list(rows[0]["stages"]) == TRACE_STAGE_ID_ORDER
    assert rows[0]["asm"] == "addi r1, r0, 5"
    assert rows[1]["stages"]["ID"]["word"] == 0x3105
    assert rows[1]["stages"]["CTL"]["next"] == "LOCK"
    assert rows[2]["stages"]["CTL"]["directive"] == "LOCK"
    assert rows[1]["stages"]["CTL"]["logged_entropy"] == 0x10

    text = tmp_path / "trace.txt"
    render = _load("trace/cycle_jsonl_to_text.py")
    assert render.main(["--input", str(trace), "--output", str(text)]) == 0
    body = text.read_text(encoding="utf-8")
    assert "# rows=6" in body
    assert "asm=addi r1, r0, 5" in body
    assert "ID pc=0 addi r1, r0, 5" in body
    assert "text_trace:" in capsys.readouterr().out


def test_run_hex_program(tmp_path):
    prog = tmp_path / "prog.hex"
    prog.write_text("3103  # addi r1, r0, 3\n\n0000\n", encoding="utf-8")
    trace = tmp_path / "trace.jsonl"
    run = _load("trace/run_hazardcore.py")
    assert run.main(["--program", str(prog), "--cycles", "2", "--output", str(trace)]) == 0
    first = json.loads(trace.read_text(encoding="utf-8").splitlines()[0])
    assert first["insn"] == 0x3103


def test_run_reports_errors(tmp_path):
    run = _load("trace/run_hazardcore.py")
    with pytest.raises(SystemExit, match="missing program"):
        run.main(["--program", str(tmp_path / "nope.s"), "--output", str(tmp_path / "t.jsonl")])
    prog = tmp_path / "bad.s"
    prog.write_text("mul r1, r2, r3\n", encoding="utf-8")
    with pytest.raises(SystemExit, match="error: line 1"):
        run.main(["--program", str(prog), "--output", str(tmp_path / "t.jsonl")])
    prog.write_text("nop\n", encoding="utf-8")
    inputs = tmp_path / "in.jsonl"
    inputs.write_text('{"warp_drive": 1}\n', encoding="utf-8")
    with pytest.raises(SystemExit, match="unknown input"):
        run.main(["--program", str(prog), "--inputs", str(inputs), "--output", str(tmp_path / "t.jsonl")])


def test_render_missing_input(tmp_path):
    render = _load("trace/cycle_jsonl_to_text.py")
    with pytest.raises(SystemExit, match="missing input trace"):
        render.main(["--input", str(tmp_path / "none.jsonl"), "--output", str(tmp_path / "o.txt")])
