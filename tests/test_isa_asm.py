from __future__ import annotations

import pytest

from common.asm16 import add, assemble, beq, jmp, lw, sw
from common.decode16 import decode16, disasm16
from common.isa import CAT_BRANCH, CAT_LOAD_STORE, DEFAULT_META, OP_ADD, is_defined_op, opcode_meta


def test_field_split():
    d = decode16(0xFFFF)
    assert (d.op, d.rd, d.rs1, d.rs2, d.imm) == (0xF, 7, 7, 7, 0xF)
    assert d.meta is DEFAULT_META


def test_undefined_opcodes_use_default_row():
    for op in [0x0] + list(range(0x8, 0x10)):
        assert opcode_meta(op) is DEFAULT_META
        assert not is_defined_op(op)
    assert opcode_meta(OP_ADD).reg_write


def test_source_registers():
    assert decode16(add(2, 1, 3)).src1 == 1
    assert decode16(add(2, 1, 3)).src2 == 3
    # Store data and branch comparand come from the rd field.
    assert decode16(sw(5, 2, 1)).src2 == 5
    assert decode16(beq(1, 4, 2)).src2 == 4
    assert decode16(jmp(3)).src1 is None
    assert decode16(0).src1 is None and decode16(0).src2 is None


def test_categories():
    assert decode16(lw(1, 0, 3)).meta.category == CAT_LOAD_STORE
    assert decode16(jmp(1)).meta.category == CAT_BRANCH


def test_assemble_encodings():
    src = """
        addi r1, r0, 3
        add  r2, r1, r1   # comment
        sw   r1, 2(r0)
        lw   r2, 2(r0)    ; other comment
        beq  r0, r0, 5
        jmp  3
        nop
        .word 0x8000
    """
    assert assemble(src) == [0x3103, 0x1211, 0x5102, 0x4202, 0x6005, 0x7003, 0x0000, 0x8000]


def test_assemble_negative_immediate():
    assert assemble("addi r1, r0, -1") == [0x310F]


def test_assemble_labels_are_pc_relative():
    words = assemble(
        """
        start: addi r1, r0, 1
        loop:  beq r1, r2, start
               jmp loop
        """
    )
    assert disasm16(words[1]) == "beq r1, r2, 15"
    assert disasm16(words[2]) == "jmp 15"


@pytest.mark.parametrize(
    "src",
    [
        "mul r1, r2, r3",
        "addi r8, r0, 1",
        "addi r1, r0, 16",
        "add r1, r2",
        "a: nop\na: nop",
        "lw r1, r0",
        ".word 0x10000",
        "\n".join(["nop"] * 17),
    ],
)
def test_assemble_rejects(src):
    with pytest.raises(ValueError):
        assemble(src)


def test_disasm():
    assert disasm16(0) == "nop"
    assert disasm16(0x8000) == ".word 0x8000"
    assert disasm16(0x0001) == ".word 0x0001"
    assert disasm16(0x1211) == "add r2, r1, r1"
    assert disasm16(0x3103) == "addi r1, r0, 3"
    assert disasm16(0x5102) == "sw r1, 2(r0)"
    assert disasm16(0x4202) == "lw r2, 2(r0)"
