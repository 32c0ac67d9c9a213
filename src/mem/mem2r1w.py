from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from common.isa import NUM_REGS, REG_ZERO, XMASK


@dataclass(frozen=True)
class RegWrite:
    rd: int
    data: int


@dataclass(frozen=True)
class RegFile2R1W:
    """8 x 4-bit register file: two combinational read ports, one synchronous write port.

    r0 is hard-wired to zero: it always reads 0 and writes to it are dropped.
    """

    regs: Tuple[int, ...] = (0,) * NUM_REGS

    def __post_init__(self) -> None:
        if len(self.regs) != NUM_REGS:
            raise ValueError(f"register file needs {NUM_REGS} entries, got {len(self.regs)}")

    def read(self, idx: int, wb: Optional[RegWrite] = None) -> int:
        idx &= NUM_REGS - 1
        if idx == REG_ZERO:
            return 0
        # Write-first: a write committing in the same cycle is visible to readers.
        if wb is not None and wb.rd == idx:
            return wb.data & XMASK
        return self.regs[idx]

    def write(self, w: Optional[RegWrite]) -> "RegFile2R1W":
        if w is None or (w.rd & (NUM_REGS - 1)) == REG_ZERO:
            return self
        regs = list(self.regs)
        regs[w.rd & (NUM_REGS - 1)] = w.data & XMASK
        return RegFile2R1W(tuple(regs))
