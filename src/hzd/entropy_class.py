from __future__ import annotations

from enum import IntEnum

ENTROPY_MID_DEFAULT = 0x80
ENTROPY_CRITICAL_DEFAULT = 0xE0


class EntropyClass(IntEnum):
    LOW = 0
    MID = 1
    CRITICAL = 2


def classify_entropy(
    sample: int,
    *,
    mid: int = ENTROPY_MID_DEFAULT,
    critical: int = ENTROPY_CRITICAL_DEFAULT,
) -> EntropyClass:
    sample &= 0xFF
    if sample >= critical:
        return EntropyClass.CRITICAL
    if sample >= mid:
        return EntropyClass.MID
    return EntropyClass.LOW
