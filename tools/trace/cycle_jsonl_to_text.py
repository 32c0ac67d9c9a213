#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[2]
SRC_ROOT = ROOT / "src"

sys.path.insert(0, str(SRC_ROOT))
from common.decode16 import disasm16  # noqa: E402
from common.stage_tokens import TRACE_SCHEMA_ID, TRACE_STAGE_ID_ORDER, TRACE_STAGE_ORDER_CSV  # noqa: E402


def _to_int(v: Any, default: int = 0) -> int:
    if isinstance(v, int):
        return v
    if isinstance(v, str):
        try:
            return int(v, 0)
        except ValueError:
            return default
    return default


def _fmt_hex(v: int, width: int = 0) -> str:
    if width <= 0:
        return f"0x{v:x}"
    return f"0x{v:0{width}x}"


def _stage_cell(sid: str, st: dict[str, Any]) -> str:
    if sid == "IF":
        return f"IF pc={_to_int(st.get('pc'))}"
    if sid in ("ID", "EX", "MEM", "WB"):
        if not _to_int(st.get("valid", 0)):
            return f"{sid} -"
        pc = _to_int(st.get("pc"))
        if sid == "ID":
            return f"{sid} pc={pc} {disasm16(_to_int(st.get('word')))}"
        if sid == "EX":
            return f"{sid} pc={pc} {disasm16(_to_int(st.get('insn')))} op1={_to_int(st.get('op1'))} op2={_to_int(st.get('op2'))}"
        if sid == "MEM":
            return f"{sid} pc={pc} res={_to_int(st.get('alu_result'))}"
        if _to_int(st.get("reg_write", 0)):
            return f"{sid} pc={pc} r{_to_int(st.get('rd'))}={_to_int(st.get('value'))}"
        return f"{sid} pc={pc}"
    if sid == "CTL":
        return f"CTL {st.get('directive', '?')}->{st.get('next', '?')}({st.get('rule', '')}) score={_to_int(st.get('score'))}"
    if sid == "TRG":
        fire = " FIRE" if _to_int(st.get("fire_en", 0)) else ""
        return f"TRG {st.get('state', '?')}->{st.get('next', '?')}{fire}"
    return f"{sid} ?"


def _trace_line(row: dict[str, Any]) -> str:
    cyc = _to_int(row.get("cycle", -1))
    pc = _to_int(row.get("pc", 0))
    insn = _to_int(row.get("insn", 0)) & 0xFFFF
    asm = str(row.get("asm", "")) or disasm16(insn)
    stages = row.get("stages", {})
    parts = [
        f"cyc={cyc:06d}",
        f"pc={pc:2d}",
        f"insn={_fmt_hex(insn, 4)}",
        f"asm={asm}",
    ]
    for sid in TRACE_STAGE_ID_ORDER:
        parts.append(_stage_cell(sid, stages.get(sid, {})))
    if _to_int(row.get("mispredict", 0)):
        parts.append("mispredict")
    return " | ".join(parts)


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Convert a HazardCore cycle trace JSONL to readable text.")
    ap.add_argument("--input", required=True, help="Input cycle trace JSONL")
    ap.add_argument("--output", required=True, help="Output text trace path")
    args = ap.parse_args(argv)

    in_path = Path(args.input)
    out_path = Path(args.output)
    if not in_path.is_file():
        raise SystemExit(f"error: missing input trace: {in_path}")

    out_path.parent.mkdir(parents=True, exist_ok=True)
    rows = 0
    mismatched = 0
    with in_path.open("r", encoding="utf-8", errors="ignore") as fin, out_path.open(
        "w", encoding="utf-8"
    ) as fout:
        fout.write("# HazardCore cycle trace\n")
        fout.write(f"# input_jsonl: {in_path}\n")
        fout.write(f"# schema: {TRACE_SCHEMA_ID}\n")
        fout.write(f"# stages: {TRACE_STAGE_ORDER_CSV}\n")
        fout.write("\n")
        for line in fin:
            line = line.strip()
            if not line:
                continue
            try:
                row = json.loads(line)
            except json.JSONDecodeError:
                continue
            if row.get("schema") != TRACE_SCHEMA_ID:
                mismatched += 1
            fout.write(_trace_line(row))
            fout.write("\n")
            rows += 1
        fout.write(f"\n# rows={rows}\n")
    if mismatched:
        print(f"warning: {mismatched} row(s) carry a different trace schema", file=sys.stderr)
    print(f"text_trace: {out_path} rows={rows}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
