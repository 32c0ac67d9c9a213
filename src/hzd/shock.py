"""Abrupt-change (shock) detectors over the raw analog entropy sample.

The detector is a pluggable strategy. Every strategy is an immutable state
object with ``observe(sample) -> bool`` and ``advance(sample) -> strategy``,
and never asserts on two consecutive cycles.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Callable, Dict, Tuple


class ShockStrategy(ABC):
    name = "base"

    @abstractmethod
    def advance(self, sample: int) -> "ShockStrategy": ...

    @property
    @abstractmethod
    def fired(self) -> bool: ...

    def observe(self, sample: int) -> bool:
        return self.advance(sample).fired


@dataclass(frozen=True)
class MovingAverageShock(ShockStrategy):
    """Fires when a sample deviates from the mean of the last ``window`` samples."""

    window: int = 8
    deviation: int = 64
    history: Tuple[int, ...] = ()
    last_fired: bool = False

    name = "moving_average"

    def __post_init__(self) -> None:
        if self.window < 1:
            raise ValueError("shock window must be >= 1")
        if self.deviation < 0:
            raise ValueError("shock deviation must be >= 0")

    @property
    def fired(self) -> bool:
        return self.last_fired

    def advance(self, sample: int) -> "MovingAverageShock":
        sample &= 0xFF
        full = len(self.history) >= self.window
        abrupt = False
        if full:
            mean = sum(self.history) // len(self.history)
            abrupt = abs(sample - mean) > self.deviation
        history = (self.history + (sample,))[-self.window :]
        return replace(self, history=history, last_fired=abrupt and not self.last_fired)


@dataclass(frozen=True)
class DeltaShock(ShockStrategy):
    """Fires when consecutive samples differ by more than ``step``."""

    step: int = 96
    prev: int = 0
    primed: bool = False
    last_fired: bool = False

    name = "delta"

    def __post_init__(self) -> None:
        if self.step < 0:
            raise ValueError("shock step must be >= 0")

    @property
    def fired(self) -> bool:
        return self.last_fired

    def advance(self, sample: int) -> "DeltaShock":
        sample &= 0xFF
        abrupt = self.primed and abs(sample - self.prev) > self.step
        return replace(self, prev=sample, primed=True, last_fired=abrupt and not self.last_fired)


SHOCK_STRATEGIES: Dict[str, Callable[..., ShockStrategy]] = {
    MovingAverageShock.name: MovingAverageShock,
    DeltaShock.name: DeltaShock,
}


def make_shock_detector(name: str, *, window: int = 8, deviation: int = 64, step: int = 96) -> ShockStrategy:
    if name == MovingAverageShock.name:
        return MovingAverageShock(window=window, deviation=deviation)
    if name == DeltaShock.name:
        return DeltaShock(step=step)
    raise ValueError(f"unknown shock strategy {name!r}; expected one of {sorted(SHOCK_STRATEGIES)}")
