from __future__ import annotations

from dataclasses import dataclass

from .isa import DEFAULT_META, SRC2_RD, SRC2_RS2, OpcodeMeta


@dataclass(frozen=True)
class Instruction:
    word: int = 0
    op: int = 0
    rd: int = 0
    rs1: int = 0
    rs2: int = 0
    imm: int = 0
    meta: OpcodeMeta = DEFAULT_META

    @property
    def src1(self) -> int | None:
        return self.rs1 if self.meta.use_rs1 else None

    @property
    def src2(self) -> int | None:
        if self.meta.src2_sel == SRC2_RS2:
            return self.rs2
        if self.meta.src2_sel == SRC2_RD:
            return self.rd
        return None


NOP_INSN = Instruction()


# Stage registers. A default-constructed register is a bubble.
@dataclass(frozen=True)
class FetchToDecode:
    valid: bool = False
    pc: int = 0
    word: int = 0
    pred_taken: bool = False
    pred_target: int = 0


@dataclass(frozen=True)
class DecodeToExecute:
    valid: bool = False
    pc: int = 0
    insn: Instruction = NOP_INSN
    op1: int = 0
    op2: int = 0
    pred_taken: bool = False
    pred_target: int = 0


@dataclass(frozen=True)
class ExecuteToMemory:
    valid: bool = False
    pc: int = 0
    rd: int = 0
    reg_write: bool = False
    mem_read: bool = False
    mem_write: bool = False
    alu_result: int = 0
    store_data: int = 0


@dataclass(frozen=True)
class MemoryToWriteback:
    valid: bool = False
    pc: int = 0
    rd: int = 0
    reg_write: bool = False
    value: int = 0


@dataclass(frozen=True)
class HazardMetrics:
    entropy_score: int = 0
    chaos_score: int = 0
    anomaly_flag: bool = False
    branch_miss_rate: int = 0
    cache_miss_rate: int = 0
    exec_pressure: int = 0
