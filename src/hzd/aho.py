"""Weighted hazard aggregator.

Five metrics (entropy, chaos, branch-miss, cache-miss, pressure) are weighted
by a row picked from the risk posture and compared against a stall and a flush
threshold. The anomaly flag bypasses the score and always requests a flush.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Tuple

from common.types import HazardMetrics

SCORE_BITS = 21
SCORE_MASK = (1 << SCORE_BITS) - 1


class RiskPosture(IntEnum):
    NORMAL = 0
    MONITOR = 1
    HIGH = 2
    CRITICAL = 3


class Severity(IntEnum):
    NONE = 0
    MEDIUM = 1
    HIGH = 2
    CRITICAL = 3


# (entropy, chaos, branch_miss, cache_miss, exec_pressure)
Weights = Tuple[int, int, int, int, int]

WEIGHT_TABLE: Dict[RiskPosture, Weights] = {
    RiskPosture.NORMAL: (1, 1, 2, 1, 1),
    RiskPosture.MONITOR: (2, 1, 4, 2, 2),
    RiskPosture.HIGH: (4, 2, 8, 4, 4),
    RiskPosture.CRITICAL: (8, 4, 15, 8, 8),
}
DEFAULT_WEIGHTS: Weights = WEIGHT_TABLE[RiskPosture.NORMAL]


@dataclass(frozen=True)
class AhoResult:
    score: int
    stall_req: bool
    flush_req: bool
    severity: Severity


@dataclass(frozen=True)
class GateResult:
    stall_req: bool = False
    flush_req: bool = False


def weights_for(posture: int) -> Weights:
    try:
        return WEIGHT_TABLE[RiskPosture(posture)]
    except ValueError:
        return DEFAULT_WEIGHTS


def weighted_score(metrics: HazardMetrics, weights: Weights) -> int:
    w_ent, w_chaos, w_bm, w_cm, w_pr = weights
    score = (
        (metrics.entropy_score & 0xFF) * w_ent
        + (metrics.chaos_score & 0xFFFF) * w_chaos
        + (metrics.branch_miss_rate & 0xFF) * w_bm
        + (metrics.cache_miss_rate & 0xFF) * w_cm
        + (metrics.exec_pressure & 0xFF) * w_pr
    )
    return score & SCORE_MASK


def aggregate(
    metrics: HazardMetrics,
    posture: int,
    *,
    stall_threshold: int,
    flush_threshold: int,
) -> AhoResult:
    # flush_threshold >= stall_threshold is the caller's contract; not checked.
    score = weighted_score(metrics, weights_for(posture))
    if metrics.anomaly_flag:
        return AhoResult(score, stall_req=False, flush_req=True, severity=Severity.CRITICAL)
    if score > (flush_threshold & SCORE_MASK):
        return AhoResult(score, stall_req=False, flush_req=True, severity=Severity.HIGH)
    if score > (stall_threshold & SCORE_MASK):
        return AhoResult(score, stall_req=True, flush_req=False, severity=Severity.MEDIUM)
    return AhoResult(score, stall_req=False, flush_req=False, severity=Severity.NONE)


def entropy_gate(wide_sample: int, *, stall_threshold: int, flush_threshold: int, enabled: bool = True) -> GateResult:
    """Secondary stall/flush source on the 16-bit external entropy sample."""
    if not enabled:
        return GateResult()
    wide_sample &= 0xFFFF
    if wide_sample > flush_threshold:
        return GateResult(flush_req=True)
    if wide_sample > stall_threshold:
        return GateResult(stall_req=True)
    return GateResult()
