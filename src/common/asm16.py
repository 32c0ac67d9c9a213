from __future__ import annotations

import re
from typing import Iterable

from .isa import (
    IMEM_DEPTH,
    INSN_MASK,
    NUM_REGS,
    OP_ADD,
    OP_ADDI,
    OP_BEQ,
    OP_JMP,
    OP_LW,
    OP_SUB,
    OP_SW,
    PC_MASK,
)

_REG_RE = re.compile(r"^[rR]([0-9]+)$")
_MEM_RE = re.compile(r"^(?P<imm>[^()]+)\((?P<base>[^()]+)\)$")
_LABEL_RE = re.compile(r"^[A-Za-z_.][A-Za-z0-9_.]*$")


def encode(op: int, *, rd: int = 0, rs1: int = 0, rs2: int = 0, imm: int = 0) -> int:
    low = (imm & 0xF) | (rs2 & 0x7)
    return ((op & 0xF) << 12 | (rd & 0x7) << 8 | (rs1 & 0x7) << 4 | low) & INSN_MASK


def nop() -> int:
    return 0


def add(rd: int, rs1: int, rs2: int) -> int:
    return encode(OP_ADD, rd=rd, rs1=rs1, rs2=rs2)


def sub(rd: int, rs1: int, rs2: int) -> int:
    return encode(OP_SUB, rd=rd, rs1=rs1, rs2=rs2)


def addi(rd: int, rs1: int, imm: int) -> int:
    return encode(OP_ADDI, rd=rd, rs1=rs1, imm=imm)


def lw(rd: int, rs1: int, imm: int) -> int:
    return encode(OP_LW, rd=rd, rs1=rs1, imm=imm)


def sw(rd: int, rs1: int, imm: int) -> int:
    """Store r[rd] to dmem[r[rs1] + imm]."""
    return encode(OP_SW, rd=rd, rs1=rs1, imm=imm)


def beq(rs1: int, rd: int, imm: int) -> int:
    """Branch to pc + imm when r[rs1] == r[rd]."""
    return encode(OP_BEQ, rd=rd, rs1=rs1, imm=imm)


def jmp(imm: int) -> int:
    return encode(OP_JMP, imm=imm)


def _parse_reg(tok: str, ln: int) -> int:
    m = _REG_RE.match(tok.strip())
    if not m:
        raise ValueError(f"line {ln}: expected register, got {tok!r}")
    idx = int(m.group(1))
    if idx >= NUM_REGS:
        raise ValueError(f"line {ln}: register r{idx} out of range")
    return idx


def _parse_imm(tok: str, ln: int) -> int:
    try:
        v = int(tok.strip(), 0)
    except ValueError:
        raise ValueError(f"line {ln}: bad immediate {tok!r}") from None
    if v < -8 or v > 15:
        raise ValueError(f"line {ln}: immediate {v} does not fit in 4 bits")
    return v & 0xF


def _strip(line: str) -> str:
    for marker in ("#", ";"):
        pos = line.find(marker)
        if pos >= 0:
            line = line[:pos]
    return line.strip()


def assemble(source: str | Iterable[str]) -> list[int]:
    lines = source.splitlines() if isinstance(source, str) else list(source)

    # Pass 1: label addresses.
    labels: dict[str, int] = {}
    body: list[tuple[int, int, str]] = []
    pc = 0
    for ln, raw in enumerate(lines, start=1):
        text = _strip(raw)
        while ":" in text:
            name, text = text.split(":", 1)
            name = name.strip()
            if not _LABEL_RE.match(name):
                raise ValueError(f"line {ln}: bad label {name!r}")
            if name in labels:
                raise ValueError(f"line {ln}: duplicate label {name!r}")
            labels[name] = pc
            text = text.strip()
        if not text:
            continue
        body.append((ln, pc, text))
        pc += 1

    if pc > IMEM_DEPTH:
        raise ValueError(f"program has {pc} words, instruction memory holds {IMEM_DEPTH}")

    def target(tok: str, ln: int, at: int) -> int:
        tok = tok.strip()
        if tok in labels:
            return (labels[tok] - at) & PC_MASK
        return _parse_imm(tok, ln)

    # Pass 2: encode.
    words: list[int] = []
    for ln, at, text in body:
        parts = text.split(None, 1)
        mnem = parts[0].lower()
        args = [a.strip() for a in parts[1].split(",")] if len(parts) > 1 else []

        def want(n: int) -> None:
            if len(args) != n:
                raise ValueError(f"line {ln}: {mnem} takes {n} operand(s), got {len(args)}")

        if mnem == "nop":
            want(0)
            words.append(nop())
        elif mnem == ".word":
            want(1)
            try:
                v = int(args[0], 0)
            except ValueError:
                raise ValueError(f"line {ln}: bad .word value {args[0]!r}") from None
            if v < 0 or v > INSN_MASK:
                raise ValueError(f"line {ln}: .word value {v:#x} wider than 16 bits")
            words.append(v)
        elif mnem in ("add", "sub"):
            want(3)
            fn = add if mnem == "add" else sub
            words.append(fn(_parse_reg(args[0], ln), _parse_reg(args[1], ln), _parse_reg(args[2], ln)))
        elif mnem == "addi":
            want(3)
            words.append(addi(_parse_reg(args[0], ln), _parse_reg(args[1], ln), _parse_imm(args[2], ln)))
        elif mnem in ("lw", "sw"):
            want(2)
            m = _MEM_RE.match(args[1].replace(" ", ""))
            if not m:
                raise ValueError(f"line {ln}: expected imm(rN), got {args[1]!r}")
            fn = lw if mnem == "lw" else sw
            words.append(fn(_parse_reg(args[0], ln), _parse_reg(m.group("base"), ln), _parse_imm(m.group("imm"), ln)))
        elif mnem == "beq":
            want(3)
            words.append(beq(_parse_reg(args[0], ln), _parse_reg(args[1], ln), target(args[2], ln, at)))
        elif mnem == "jmp":
            want(1)
            words.append(jmp(target(args[0], ln, at)))
        else:
            raise ValueError(f"line {ln}: unknown mnemonic {mnem!r}")
    return words
