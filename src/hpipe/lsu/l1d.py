from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from common.types import ExecuteToMemory, MemoryToWriteback
from mem.word_mem import MemWrite, WordMem


@dataclass(frozen=True)
class MemoryOut:
    mem_wb: MemoryToWriteback
    dmem_write: Optional[MemWrite]
    access: bool
    addr: int


def memory_stage(ex_mem: ExecuteToMemory, dmem: WordMem) -> MemoryOut:
    if not ex_mem.valid:
        return MemoryOut(mem_wb=MemoryToWriteback(), dmem_write=None, access=False, addr=0)

    addr_mem = ex_mem.alu_result
    # Registered read: the loaded word lands in the MEM->WB register.
    value_mem = dmem.read(addr_mem) if ex_mem.mem_read else ex_mem.alu_result
    write_mem = MemWrite(addr=addr_mem, data=ex_mem.store_data) if ex_mem.mem_write else None

    return MemoryOut(
        mem_wb=MemoryToWriteback(
            valid=True,
            pc=ex_mem.pc,
            rd=ex_mem.rd,
            reg_write=ex_mem.reg_write,
            value=value_mem,
        ),
        dmem_write=write_mem,
        access=ex_mem.mem_read or ex_mem.mem_write,
        addr=addr_mem,
    )
