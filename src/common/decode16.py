from __future__ import annotations

from .isa import INSN_MASK, opcode_meta
from .types import Instruction
from .util import field


def decode16(insn: int) -> Instruction:
    word = insn & INSN_MASK
    op = field(word, 15, 12)
    return Instruction(
        word=word,
        op=op,
        rd=field(word, 10, 8),
        rs1=field(word, 6, 4),
        rs2=field(word, 2, 0),
        imm=field(word, 3, 0),
        meta=opcode_meta(op),
    )


def disasm16(insn: int) -> str:
    d = decode16(insn)
    meta = d.meta
    if d.word == 0:
        return "nop"
    if meta.mnemonic == "nop":
        return f".word 0x{d.word:04x}"
    if meta.is_jump:
        return f"jmp {d.imm}"
    if meta.is_branch:
        return f"beq r{d.rs1}, r{d.rd}, {d.imm}"
    if meta.mem_write:
        return f"sw r{d.rd}, {d.imm}(r{d.rs1})"
    if meta.mem_read:
        return f"lw r{d.rd}, {d.imm}(r{d.rs1})"
    if meta.use_imm:
        return f"{meta.mnemonic} r{d.rd}, r{d.rs1}, {d.imm}"
    return f"{meta.mnemonic} r{d.rd}, r{d.rs1}, r{d.rs2}"
