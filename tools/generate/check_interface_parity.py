#!/usr/bin/env python3
from __future__ import annotations

import sys
from dataclasses import fields
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
SRC_ROOT = ROOT / "src"

sys.path.insert(0, str(SRC_ROOT))
from common.interfaces import INTERFACE_SPEC  # noqa: E402
from common.stage_tokens import INTERFACE_PREFIXES, STAGE_TOKENS  # noqa: E402
from common.types import (  # noqa: E402
    DecodeToExecute,
    ExecuteToMemory,
    FetchToDecode,
    MemoryToWriteback,
)

STAGE_TYPES = {
    "if_to_id_stage": FetchToDecode,
    "id_to_ex_stage": DecodeToExecute,
    "ex_to_mem_stage": ExecuteToMemory,
    "mem_to_wb_stage": MemoryToWriteback,
}


def check() -> list[str]:
    errors: list[str] = []
    missing = sorted(set(INTERFACE_PREFIXES) - set(INTERFACE_SPEC))
    extra = sorted(set(INTERFACE_SPEC) - set(INTERFACE_PREFIXES))
    for name in missing:
        errors.append(f"{name}: listed as an interface prefix but has no field table")
    for name in extra:
        errors.append(f"{name}: has a field table but is not a known interface prefix")

    for name, spec in sorted(INTERFACE_SPEC.items()):
        producer, _, rest = name.partition("_to_")
        consumer = rest[: -len("_stage")] if rest.endswith("_stage") else rest
        for tok in (producer, consumer):
            if tok not in STAGE_TOKENS:
                errors.append(f"{name}: stage token {tok!r} is not in STAGE_TOKENS")
        cls = STAGE_TYPES.get(name)
        if cls is None:
            errors.append(f"{name}: no stage register type")
            continue
        declared = [f.name for f in spec]
        actual = [f.name for f in fields(cls)]
        if declared != actual:
            errors.append(f"{name}: fields {declared} != {cls.__name__} fields {actual}")
        for f in spec:
            if f.width <= 0:
                errors.append(f"{name}.{f.name}: width must be positive, got {f.width}")
    return errors


def main() -> int:
    errors = check()
    if errors:
        print("interface parity check failed:", file=sys.stderr)
        for e in errors:
            print(f"  {e}", file=sys.stderr)
        return 1
    print(f"interface parity check passed: {len(INTERFACE_SPEC)} interfaces")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
