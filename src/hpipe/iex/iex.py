from __future__ import annotations

from dataclasses import dataclass

from common.types import DecodeToExecute, ExecuteToMemory

from .iex_alu import AluResult, alu4
from .iex_bru import BruResult, resolve_branch


@dataclass(frozen=True)
class ExecuteOut:
    ex_mem: ExecuteToMemory
    alu: AluResult
    bru: BruResult


def execute_stage(id_ex: DecodeToExecute) -> ExecuteOut:
    meta = id_ex.insn.meta
    src_b_e1 = id_ex.insn.imm if meta.use_imm else id_ex.op2
    alu_e1 = alu4(id_ex.op1, src_b_e1, meta.alu_op)
    bru_e1 = resolve_branch(id_ex, alu_e1.zero)

    if not id_ex.valid:
        return ExecuteOut(ex_mem=ExecuteToMemory(), alu=alu_e1, bru=bru_e1)

    ex_mem = ExecuteToMemory(
        valid=True,
        pc=id_ex.pc,
        rd=id_ex.insn.rd,
        reg_write=meta.reg_write,
        mem_read=meta.mem_read,
        mem_write=meta.mem_write,
        alu_result=alu_e1.result,
        store_data=id_ex.op2,
    )
    return ExecuteOut(ex_mem=ex_mem, alu=alu_e1, bru=bru_e1)
