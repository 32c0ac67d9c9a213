from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from common.isa import BPU_ENTRIES, PC_MASK


@dataclass(frozen=True)
class BpuEntry:
    taken: bool = False
    target: int = 0


@dataclass(frozen=True)
class BpuPrediction:
    taken: bool
    target: int


@dataclass(frozen=True)
class BpuUpdate:
    pc: int
    taken: bool
    target: int


@dataclass(frozen=True)
class BranchTargetTable:
    """Direct-mapped taken-bit/target table indexed by the full 4-bit PC."""

    entries: Tuple[BpuEntry, ...] = (BpuEntry(),) * BPU_ENTRIES

    def lookup(self, pc: int) -> BpuPrediction:
        e = self.entries[pc & PC_MASK]
        return BpuPrediction(taken=e.taken, target=e.target & PC_MASK)

    def update(self, upd: BpuUpdate | None) -> "BranchTargetTable":
        if upd is None:
            return self
        entries = list(self.entries)
        entries[upd.pc & PC_MASK] = BpuEntry(taken=bool(upd.taken), target=upd.target & PC_MASK)
        return BranchTargetTable(tuple(entries))
