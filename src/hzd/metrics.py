"""Per-cycle risk metric producers.

Each producer is an immutable state object. ``observe(event)`` returns the
metric as seen in the current cycle (including ``event``); ``advance(event)``
returns the producer state to commit at the cycle boundary. Neither mutates.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Optional

from common.isa import PC_MASK, is_defined_op
from common.types import HazardMetrics
from common.util import clamp, popcount

from .counters import SatCounter

ENTROPY_MAX = 0xFF
CHAOS_MAX = 0xFFFF


@dataclass(frozen=True)
class PipeActivity:
    """What the datapath did this cycle, as seen by the metric producers."""

    pc: int = 0
    fetch_word: Optional[int] = None
    executed: bool = False
    mem_access: bool = False
    mem_addr: int = 0
    resolved_ok: bool = False
    mispredict_flag: bool = False


class MetricProducer(ABC):
    @property
    @abstractmethod
    def value(self) -> Any: ...

    @abstractmethod
    def advance(self, ev: PipeActivity) -> "MetricProducer": ...

    def observe(self, ev: PipeActivity) -> Any:
        return self.advance(ev).value


@dataclass(frozen=True)
class EntropyScorer(MetricProducer):
    """Leaky integrator of bit flips between consecutive fetched words."""

    score: int = 0
    prev_word: int = 0

    @property
    def value(self) -> int:
        return self.score

    def advance(self, ev: PipeActivity) -> "EntropyScorer":
        leaked = self.score - (self.score >> 3)
        if ev.fetch_word is None:
            return replace(self, score=leaked)
        flips = popcount(ev.fetch_word ^ self.prev_word)
        return EntropyScorer(score=clamp(leaked + flips, 0, ENTROPY_MAX), prev_word=ev.fetch_word)


@dataclass(frozen=True)
class ChaosScorer(MetricProducer):
    """Leaky integrator of irregular (non-sequential) fetch PC steps."""

    score: int = 0
    prev_pc: int = 0

    @property
    def value(self) -> int:
        return self.score

    def advance(self, ev: PipeActivity) -> "ChaosScorer":
        step = (ev.pc - self.prev_pc) & PC_MASK
        kick = (step * step) << 4 if step not in (0, 1) else 0
        score = clamp(self.score - (self.score >> 4) + kick, 0, CHAOS_MAX)
        return ChaosScorer(score=score, prev_pc=ev.pc & PC_MASK)


@dataclass(frozen=True)
class PatternDetector(MetricProducer):
    """Flags a run of fetched words whose opcode is outside the table."""

    run: int = 0
    run_length: int = 4

    @property
    def value(self) -> bool:
        return self.run >= self.run_length

    def advance(self, ev: PipeActivity) -> "PatternDetector":
        if ev.fetch_word is None:
            return self
        word = ev.fetch_word
        if word != 0 and not is_defined_op(word >> 12):
            return replace(self, run=min(self.run + 1, self.run_length))
        return replace(self, run=0)

    def clear(self) -> "PatternDetector":
        return replace(self, run=0)


@dataclass(frozen=True)
class BranchMissTracker(MetricProducer):
    counter: SatCounter = field(default_factory=SatCounter)

    @property
    def value(self) -> int:
        return self.counter.value

    def advance(self, ev: PipeActivity) -> "BranchMissTracker":
        if ev.mispredict_flag:
            return BranchMissTracker(self.counter.inc())
        if ev.resolved_ok:
            return BranchMissTracker(self.counter.dec())
        return self


@dataclass(frozen=True)
class PressureTracker(MetricProducer):
    counter: SatCounter = field(default_factory=SatCounter)

    @property
    def value(self) -> int:
        return self.counter.value

    def advance(self, ev: PipeActivity) -> "PressureTracker":
        return PressureTracker(self.counter.inc() if ev.executed else self.counter.dec())

    def clear(self) -> "PressureTracker":
        return PressureTracker(self.counter.clear())


@dataclass(frozen=True)
class CacheMissTracker(MetricProducer):
    """Locality proxy: an access to a different address than the last one counts as a miss."""

    counter: SatCounter = field(default_factory=SatCounter)
    last_addr: int = 0
    seen: bool = False

    @property
    def value(self) -> int:
        return self.counter.value

    def advance(self, ev: PipeActivity) -> "CacheMissTracker":
        if not ev.mem_access:
            return replace(self, counter=self.counter.dec())
        miss = not self.seen or ev.mem_addr != self.last_addr
        counter = self.counter.inc() if miss else self.counter.dec()
        return CacheMissTracker(counter=counter, last_addr=ev.mem_addr, seen=True)

    def clear(self) -> "CacheMissTracker":
        return CacheMissTracker()


@dataclass(frozen=True)
class MetricBank:
    entropy: EntropyScorer = field(default_factory=EntropyScorer)
    chaos: ChaosScorer = field(default_factory=ChaosScorer)
    pattern: PatternDetector = field(default_factory=PatternDetector)
    branch_miss: BranchMissTracker = field(default_factory=BranchMissTracker)
    cache_miss: CacheMissTracker = field(default_factory=CacheMissTracker)
    pressure: PressureTracker = field(default_factory=PressureTracker)

    def observe(self, ev: PipeActivity) -> HazardMetrics:
        return HazardMetrics(
            entropy_score=self.entropy.observe(ev),
            chaos_score=self.chaos.observe(ev),
            anomaly_flag=self.pattern.observe(ev),
            branch_miss_rate=self.branch_miss.observe(ev),
            cache_miss_rate=self.cache_miss.observe(ev),
            exec_pressure=self.pressure.observe(ev),
        )

    def advance(self, ev: PipeActivity, *, flushed: bool = False) -> "MetricBank":
        nxt = MetricBank(
            entropy=self.entropy.advance(ev),
            chaos=self.chaos.advance(ev),
            pattern=self.pattern.advance(ev),
            branch_miss=self.branch_miss.advance(ev),
            cache_miss=self.cache_miss.advance(ev),
            pressure=self.pressure.advance(ev),
        )
        if flushed:
            # Flush/Lock discard the in-flight work these producers describe.
            nxt = replace(
                nxt,
                pattern=nxt.pattern.clear(),
                cache_miss=nxt.cache_miss.clear(),
                pressure=nxt.pressure.clear(),
            )
        return nxt
