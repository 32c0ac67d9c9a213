from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from common.isa import REG_ZERO
from common.types import ExecuteToMemory, MemoryToWriteback
from mem.mem2r1w import RegFile2R1W, RegWrite


@dataclass(frozen=True)
class Bypass:
    valid: bool = False
    rd: int = 0
    value: int = 0
    # A load still in EX names its destination before its data exists.
    ready: bool = True


@dataclass(frozen=True)
class OperandRead:
    value: int
    pending: bool = False


def bypass_from_ex(ex_mem_next: ExecuteToMemory) -> Bypass:
    return Bypass(
        valid=ex_mem_next.valid and ex_mem_next.reg_write,
        rd=ex_mem_next.rd,
        value=ex_mem_next.alu_result,
        ready=not ex_mem_next.mem_read,
    )


def bypass_from_mem(mem_wb_next: MemoryToWriteback) -> Bypass:
    return Bypass(
        valid=mem_wb_next.valid and mem_wb_next.reg_write,
        rd=mem_wb_next.rd,
        value=mem_wb_next.value,
    )


def resolve_operand(
    idx: Optional[int],
    bypasses: Sequence[Bypass],
    rf: RegFile2R1W,
    wb: Optional[RegWrite],
) -> OperandRead:
    """Youngest producer first, then the register file (write-first on the WB port)."""
    if idx is None or idx == REG_ZERO:
        return OperandRead(0)
    for b in bypasses:
        if b.valid and b.rd == idx:
            if not b.ready:
                return OperandRead(0, pending=True)
            return OperandRead(b.value)
    return OperandRead(rf.read(idx, wb))
