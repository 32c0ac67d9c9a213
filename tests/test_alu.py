from __future__ import annotations

from common.isa import ALU_ADD, ALU_AND, ALU_OR, ALU_SLT, ALU_SUB, ALU_XOR
from hpipe.iex.iex_alu import alu4


def test_add_wraps_and_sets_carry():
    r = alu4(9, 9, ALU_ADD)
    assert r.result == 2
    assert r.carry
    assert not r.zero


def test_add_signed_overflow():
    # 7 + 1 = -8 in 4-bit two's complement.
    r = alu4(7, 1, ALU_ADD)
    assert r.result == 8
    assert r.overflow
    assert r.negative


def test_sub_zero_flag_and_borrow():
    r = alu4(5, 5, ALU_SUB)
    assert r.result == 0 and r.zero and r.carry
    r = alu4(2, 3, ALU_SUB)
    assert r.result == 0xF and not r.carry and r.negative


def test_logic_ops():
    assert alu4(0b1100, 0b1010, ALU_AND).result == 0b1000
    assert alu4(0b1100, 0b1010, ALU_OR).result == 0b1110
    assert alu4(0b1100, 0b1010, ALU_XOR).result == 0b0110


def test_slt_is_signed():
    assert alu4(0xF, 1, ALU_SLT).result == 1
    assert alu4(1, 0xF, ALU_SLT).result == 0


def test_operands_masked_to_width():
    assert alu4(0x13, 0x21, ALU_ADD).result == 4


def test_unknown_op_yields_zero():
    r = alu4(3, 4, 7)
    assert r.result == 0 and r.zero
