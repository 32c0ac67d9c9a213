#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import fields
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[2]
SRC_ROOT = ROOT / "src"

sys.path.insert(0, str(SRC_ROOT))
from common.asm16 import assemble  # noqa: E402
from top.params import CoreParams, load_params  # noqa: E402
from top.state import CoreInputs  # noqa: E402
from top.top import HazardCoreTop  # noqa: E402
from top.trace import trace_row  # noqa: E402

INPUT_FIELDS = {f.name for f in fields(CoreInputs)}


def _to_int(v: Any, default: int = 0) -> int:
    if isinstance(v, bool):
        return int(v)
    if isinstance(v, int):
        return v
    if isinstance(v, str):
        try:
            return int(v, 0)
        except ValueError:
            return default
    return default


def _load_program(path: Path) -> list[int]:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".hex", ".memh"):
        words: list[int] = []
        for ln, line in enumerate(text.splitlines(), start=1):
            tok = line.split("#", 1)[0].strip()
            if not tok:
                continue
            try:
                words.append(int(tok, 16))
            except ValueError:
                raise ValueError(f"{path}:{ln}: bad hex word {tok!r}") from None
        return words
    return assemble(text)


def _load_inputs(path: Path) -> list[CoreInputs]:
    rows: list[CoreInputs] = []
    for ln, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            raw = json.loads(line)
        except json.JSONDecodeError as e:
            raise ValueError(f"{path}:{ln}: invalid JSON: {e}") from None
        unknown = sorted(set(raw) - INPUT_FIELDS)
        if unknown:
            raise ValueError(f"{path}:{ln}: unknown input(s): {', '.join(unknown)}")
        rows.append(CoreInputs(**{k: _to_int(v) for k, v in raw.items()}))
    return rows


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Run a HazardCore program and write a JSONL cycle trace.")
    ap.add_argument("--program", required=True, help="Assembly source, or .hex/.memh word image")
    ap.add_argument("--cycles", type=int, default=32, help="Cycles to simulate")
    ap.add_argument("--inputs", default="", help="Optional JSONL, one CoreInputs override object per cycle")
    ap.add_argument("--params", default="", help="Optional JSON file of core parameters")
    ap.add_argument("--output", required=True, help="Output cycle trace JSONL")
    ap.add_argument("--log-level", default="WARNING", help="Python logging level")
    args = ap.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    prog_path = Path(args.program)
    if not prog_path.is_file():
        raise SystemExit(f"error: missing program: {prog_path}")
    if args.cycles < 0:
        raise SystemExit("error: --cycles must be >= 0")
    try:
        params = load_params(args.params) if args.params else CoreParams()
        program = _load_program(prog_path)
        inputs = _load_inputs(Path(args.inputs)) if args.inputs else []
        core = HazardCoreTop(program, params)
    except ValueError as e:
        raise SystemExit(f"error: {e}") from None

    out_path = Path(args.output)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    rows = 0
    with out_path.open("w", encoding="utf-8") as fout:
        for cyc in range(args.cycles):
            before = core.state
            out = core.step(inputs[cyc] if cyc < len(inputs) else None)
            fout.write(json.dumps(trace_row(out, before)))
            fout.write("\n")
            rows += 1
    print(f"cycle_trace: {out_path} rows={rows}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
