from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class InterfaceField:
    name: str
    width: int


InterfaceSpec = Dict[str, Tuple[InterfaceField, ...]]


INTERFACE_SPEC: InterfaceSpec = {
    "if_to_id_stage": (
        InterfaceField("valid", 1),
        InterfaceField("pc", 4),
        InterfaceField("word", 16),
        InterfaceField("pred_taken", 1),
        InterfaceField("pred_target", 4),
    ),
    "id_to_ex_stage": (
        InterfaceField("valid", 1),
        InterfaceField("pc", 4),
        # Carried as the decoded Instruction; traced as its raw word.
        InterfaceField("insn", 16),
        InterfaceField("op1", 4),
        InterfaceField("op2", 4),
        InterfaceField("pred_taken", 1),
        InterfaceField("pred_target", 4),
    ),
    "ex_to_mem_stage": (
        InterfaceField("valid", 1),
        InterfaceField("pc", 4),
        InterfaceField("rd", 3),
        InterfaceField("reg_write", 1),
        InterfaceField("mem_read", 1),
        InterfaceField("mem_write", 1),
        InterfaceField("alu_result", 4),
        InterfaceField("store_data", 4),
    ),
    "mem_to_wb_stage": (
        InterfaceField("valid", 1),
        InterfaceField("pc", 4),
        InterfaceField("rd", 3),
        InterfaceField("reg_write", 1),
        InterfaceField("value", 4),
    ),
}


def interface_fields(name: str) -> Tuple[InterfaceField, ...]:
    if name not in INTERFACE_SPEC:
        raise KeyError(f"unknown interface: {name}")
    return INTERFACE_SPEC[name]


def pack_interface(name: str, payload: object) -> dict[str, int]:
    """Flatten a stage register into {field: value} masked to the interface widths."""
    out: dict[str, int] = {}
    for f in interface_fields(name):
        v = getattr(payload, f.name)
        if hasattr(v, "word"):
            v = v.word
        out[f.name] = int(v) & ((1 << f.width) - 1)
    return out
