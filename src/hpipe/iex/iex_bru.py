from __future__ import annotations

from dataclasses import dataclass

from common.isa import PC_MASK
from common.types import DecodeToExecute


@dataclass(frozen=True)
class BruResult:
    valid: bool = False
    pc: int = 0
    is_branch: bool = False
    is_jump: bool = False
    taken: bool = False
    target: int = 0
    fallthrough: int = 0
    mispredict: bool = False


NO_BRANCH = BruResult()


def resolve_branch(id_ex: DecodeToExecute, zero_e1: bool) -> BruResult:
    meta = id_ex.insn.meta
    if not id_ex.valid or not (meta.is_branch or meta.is_jump):
        return NO_BRANCH

    target_e1 = (id_ex.pc + id_ex.insn.imm) & PC_MASK
    # Equality-test semantics: BEQ subtracts its comparands, taken on zero.
    taken_e1 = meta.is_jump or (meta.is_branch and zero_e1)

    dir_miss_e1 = id_ex.pred_taken != taken_e1
    tgt_miss_e1 = taken_e1 and id_ex.pred_taken and (id_ex.pred_target != target_e1)

    return BruResult(
        valid=True,
        pc=id_ex.pc,
        is_branch=meta.is_branch,
        is_jump=meta.is_jump,
        taken=taken_e1,
        target=target_e1,
        fallthrough=(id_ex.pc + 1) & PC_MASK,
        mispredict=dir_miss_e1 or tgt_miss_e1,
    )
