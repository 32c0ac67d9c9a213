from __future__ import annotations


def mask(width: int) -> int:
    return (1 << width) - 1


def trunc(value: int, width: int) -> int:
    return int(value) & mask(width)


def to_signed(value: int, width: int) -> int:
    value = trunc(value, width)
    if value & (1 << (width - 1)):
        return value - (1 << width)
    return value


def popcount(value: int) -> int:
    return bin(value & ((1 << 64) - 1)).count("1")


def clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))


def field(word: int, hi: int, lo: int) -> int:
    """Extract word[hi:lo] (inclusive, Verilog order)."""
    return (word >> lo) & mask(hi - lo + 1)
