from __future__ import annotations

from dataclasses import dataclass

from common.isa import PC_MASK
from common.types import FetchToDecode
from mem.word_mem import WordMem

from hpipe.iex.iex_bru import BruResult
from hpipe.frontend.bpu import BpuPrediction, BranchTargetTable


@dataclass(frozen=True)
class NextPc:
    pc: int
    redirect: bool


def fetch_stage(pc_if: int, imem: WordMem, bpu: BranchTargetTable) -> FetchToDecode:
    pred_if = bpu.lookup(pc_if)
    return FetchToDecode(
        valid=True,
        pc=pc_if & PC_MASK,
        word=imem.read(pc_if),
        pred_taken=pred_if.taken,
        pred_target=pred_if.target,
    )


def select_next_pc(pc_if: int, pred_if: BpuPrediction, bru_ex: BruResult) -> NextPc:
    # Lowest priority first; each later line overrides. Older, resolved control
    # transfers in EX win over the predictor's view of the fetch PC.
    next_pc = (pc_if + 1) & PC_MASK
    next_pc = pred_if.target if pred_if.taken else next_pc

    redirect = bru_ex.valid and bru_ex.mispredict
    branch_next = bru_ex.target if bru_ex.taken else bru_ex.fallthrough
    next_pc = branch_next if (redirect and bru_ex.is_branch) else next_pc
    next_pc = bru_ex.target if (redirect and bru_ex.is_jump) else next_pc
    return NextPc(pc=next_pc & PC_MASK, redirect=redirect)
