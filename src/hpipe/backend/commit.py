from __future__ import annotations

from typing import Optional

from common.isa import REG_ZERO
from common.types import MemoryToWriteback
from mem.mem2r1w import RegWrite


def writeback_stage(mem_wb: MemoryToWriteback) -> Optional[RegWrite]:
    if not (mem_wb.valid and mem_wb.reg_write) or mem_wb.rd == REG_ZERO:
        return None
    return RegWrite(rd=mem_wb.rd, data=mem_wb.value)
