from __future__ import annotations

from dataclasses import asdict
from typing import Any

from common.decode16 import disasm16
from common.interfaces import pack_interface
from common.stage_tokens import TRACE_SCHEMA_ID, TRACE_STAGE_ID_ORDER

from .state import CoreOutputs, CycleState


def trace_row(out: CoreOutputs, state: CycleState) -> dict[str, Any]:
    """JSON-ready row for one cycle.

    ``state`` is the snapshot the cycle started from, so the stage columns show
    what each stage worked on while ``out`` was produced.
    """
    stages: dict[str, dict[str, Any]] = {
        "IF": {"pc": out.pc, "insn": out.insn, "redirect": int(out.redirect), "load_use": int(out.load_use)},
        "ID": pack_interface("if_to_id_stage", state.if_id),
        "EX": pack_interface("id_to_ex_stage", state.id_ex),
        "MEM": pack_interface("ex_to_mem_stage", state.ex_mem),
        "WB": pack_interface("mem_to_wb_stage", state.mem_wb),
        "CTL": {
            "directive": out.directive.name,
            "next": out.next_directive.name,
            "rule": out.ctrl_rule,
            "hazard": int(out.hazard),
            "score": out.score,
            "severity": out.severity.name,
            "entropy_class": out.entropy_class.name,
            "shock": int(out.shock),
            "logged_entropy": out.logged_entropy,
            "logged_category": out.logged_category,
        },
        "TRG": {
            "state": out.auth_state.name,
            "next": out.next_auth_state.name,
            "rule": out.trig_rule,
            "fire_en": int(out.fire_en),
        },
    }
    metrics = {k: int(v) for k, v in asdict(out.metrics).items()}
    return {
        "schema": TRACE_SCHEMA_ID,
        "cycle": out.cycle,
        "pc": out.pc,
        "insn": out.insn,
        "asm": disasm16(out.insn),
        "mispredict": int(out.mispredict),
        "metrics": metrics,
        "stages": {sid: stages[sid] for sid in TRACE_STAGE_ID_ORDER},
    }
