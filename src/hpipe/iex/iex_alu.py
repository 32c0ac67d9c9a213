from __future__ import annotations

from dataclasses import dataclass

from common.isa import ALU_ADD, ALU_AND, ALU_OR, ALU_SLT, ALU_SUB, ALU_XOR, XLEN, XMASK
from common.util import to_signed

_SIGN = 1 << (XLEN - 1)


@dataclass(frozen=True)
class AluResult:
    result: int
    zero: bool
    negative: bool
    carry: bool
    overflow: bool


def alu4(a: int, b: int, op: int) -> AluResult:
    a &= XMASK
    b &= XMASK
    carry_e1 = False
    overflow_e1 = False

    if op == ALU_ADD:
        s = a + b
        result_e1 = s & XMASK
        carry_e1 = bool(s >> XLEN)
        overflow_e1 = bool((a ^ result_e1) & (b ^ result_e1) & _SIGN)
    elif op == ALU_SUB:
        result_e1 = (a - b) & XMASK
        # Carry is "no borrow", as in a + ~b + 1.
        carry_e1 = a >= b
        overflow_e1 = bool((a ^ b) & (a ^ result_e1) & _SIGN)
    elif op == ALU_AND:
        result_e1 = a & b
    elif op == ALU_OR:
        result_e1 = a | b
    elif op == ALU_XOR:
        result_e1 = a ^ b
    elif op == ALU_SLT:
        result_e1 = int(to_signed(a, XLEN) < to_signed(b, XLEN))
    else:
        result_e1 = 0

    return AluResult(
        result=result_e1,
        zero=result_e1 == 0,
        negative=bool(result_e1 & _SIGN),
        carry=carry_e1,
        overflow=overflow_e1,
    )
