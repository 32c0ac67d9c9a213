from __future__ import annotations

from dataclasses import dataclass

XLEN = 4
PC_BITS = 4
INSN_BITS = 16
REG_BITS = 3
NUM_REGS = 1 << REG_BITS
IMEM_DEPTH = 1 << PC_BITS
DMEM_DEPTH = 1 << XLEN
BPU_ENTRIES = 1 << PC_BITS

XMASK = (1 << XLEN) - 1
PC_MASK = (1 << PC_BITS) - 1
INSN_MASK = (1 << INSN_BITS) - 1

REG_ZERO = 0

# Major opcodes, insn[15:12].
OP_NOP = 0x0
OP_ADD = 0x1
OP_SUB = 0x2
OP_ADDI = 0x3
OP_LW = 0x4
OP_SW = 0x5
OP_BEQ = 0x6
OP_JMP = 0x7

# ALU operation codes.
ALU_ADD = 0
ALU_SUB = 1
ALU_AND = 2
ALU_OR = 3
ALU_XOR = 4
ALU_SLT = 5

# Source-2 register field selectors.
SRC2_NONE = 0
SRC2_RS2 = 1
SRC2_RD = 2

# Instruction categories seen by the pipeline control FSM.
CAT_ALU = 0
CAT_LOAD_STORE = 1
CAT_BRANCH = 2
CAT_OTHER = 3


@dataclass(frozen=True)
class OpcodeMeta:
    mnemonic: str
    op: int
    alu_op: int = ALU_ADD
    reg_write: bool = False
    mem_read: bool = False
    mem_write: bool = False
    is_branch: bool = False
    is_jump: bool = False
    use_imm: bool = False
    use_rs1: bool = False
    src2_sel: int = SRC2_NONE
    category: int = CAT_OTHER


OPCODE_META_BY_OP: dict[int, OpcodeMeta] = {
    OP_ADD: OpcodeMeta("add", OP_ADD, ALU_ADD, use_rs1=True, reg_write=True, src2_sel=SRC2_RS2, category=CAT_ALU),
    OP_SUB: OpcodeMeta("sub", OP_SUB, ALU_SUB, use_rs1=True, reg_write=True, src2_sel=SRC2_RS2, category=CAT_ALU),
    OP_ADDI: OpcodeMeta("addi", OP_ADDI, ALU_ADD, use_rs1=True, reg_write=True, use_imm=True, category=CAT_ALU),
    OP_LW: OpcodeMeta("lw", OP_LW, ALU_ADD, use_rs1=True, reg_write=True, mem_read=True, use_imm=True, category=CAT_LOAD_STORE),
    OP_SW: OpcodeMeta("sw", OP_SW, ALU_ADD, use_rs1=True, mem_write=True, use_imm=True, src2_sel=SRC2_RD, category=CAT_LOAD_STORE),
    OP_BEQ: OpcodeMeta("beq", OP_BEQ, ALU_SUB, use_rs1=True, is_branch=True, src2_sel=SRC2_RD, category=CAT_BRANCH),
    OP_JMP: OpcodeMeta("jmp", OP_JMP, ALU_ADD, is_jump=True, use_imm=True, category=CAT_BRANCH),
}

# Undefined major opcodes decode as this no-op row.
DEFAULT_META = OpcodeMeta("nop", OP_NOP)


def opcode_meta(op: int) -> OpcodeMeta:
    return OPCODE_META_BY_OP.get(op & 0xF, DEFAULT_META)


def is_defined_op(op: int) -> bool:
    return (op & 0xF) in OPCODE_META_BY_OP
