from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from common.decode16 import decode16
from common.isa import CAT_OTHER
from common.types import DecodeToExecute, FetchToDecode
from mem.mem2r1w import RegFile2R1W, RegWrite

from .forward import Bypass, resolve_operand


@dataclass(frozen=True)
class DecodeOut:
    id_ex: DecodeToExecute
    load_use: bool
    category: int


def decode_stage(
    if_id: FetchToDecode,
    rf: RegFile2R1W,
    wb: Optional[RegWrite],
    bypasses: Sequence[Bypass],
) -> DecodeOut:
    if not if_id.valid:
        return DecodeOut(id_ex=DecodeToExecute(), load_use=False, category=CAT_OTHER)

    insn_id = decode16(if_id.word)
    src1_id = resolve_operand(insn_id.src1, bypasses, rf, wb)
    src2_id = resolve_operand(insn_id.src2, bypasses, rf, wb)

    id_ex = DecodeToExecute(
        valid=True,
        pc=if_id.pc,
        insn=insn_id,
        op1=src1_id.value,
        op2=src2_id.value,
        pred_taken=if_id.pred_taken,
        pred_target=if_id.pred_target,
    )
    return DecodeOut(
        id_ex=id_ex,
        load_use=src1_id.pending or src2_id.pending,
        category=insn_id.meta.category,
    )
