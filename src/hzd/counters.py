from __future__ import annotations

from dataclasses import dataclass, replace

from common.util import clamp


def sat_add(value: int, delta: int, maximum: int) -> int:
    return clamp(value + delta, 0, maximum)


@dataclass(frozen=True)
class SatCounter:
    """Counter clamped to [0, maximum]; it never wraps."""

    value: int = 0
    maximum: int = 0xFF

    def __post_init__(self) -> None:
        if self.maximum <= 0:
            raise ValueError("counter maximum must be positive")
        if not 0 <= self.value <= self.maximum:
            raise ValueError(f"counter value {self.value} outside [0, {self.maximum}]")

    def inc(self, step: int = 1) -> "SatCounter":
        return replace(self, value=sat_add(self.value, step, self.maximum))

    def dec(self, step: int = 1) -> "SatCounter":
        return replace(self, value=sat_add(self.value, -step, self.maximum))

    def clear(self) -> "SatCounter":
        return replace(self, value=0)
