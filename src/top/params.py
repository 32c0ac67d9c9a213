from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Tuple

from common.isa import DMEM_DEPTH, XMASK
from hzd.aho import SCORE_MASK
from hzd.entropy_class import ENTROPY_CRITICAL_DEFAULT, ENTROPY_MID_DEFAULT
from hzd.shock import SHOCK_STRATEGIES
from hzd.trig_auth import FIRE_THRESHOLD_DEFAULT


@dataclass(frozen=True)
class CoreParams:
    # Aggregator thresholds (21-bit); flush >= stall is not enforced.
    stall_threshold: int = 0x8000
    flush_threshold: int = 0x20000
    # Entropy classifier buckets.
    entropy_mid: int = ENTROPY_MID_DEFAULT
    entropy_critical: int = ENTROPY_CRITICAL_DEFAULT
    # Secondary 16-bit entropy gate.
    gate_enable: bool = True
    gate_stall: int = 0xC000
    gate_flush: int = 0xF000
    # Override authentication; False models the always-authenticated variant.
    require_override_auth: bool = True
    # Metric producers.
    anomaly_run: int = 4
    shock_strategy: str = "moving_average"
    shock_window: int = 8
    shock_deviation: int = 64
    shock_step: int = 96
    # Trigger authorizer.
    fire_threshold: int = FIRE_THRESHOLD_DEFAULT
    # Initial data memory image (reset value).
    dmem_init: Tuple[int, ...] = ()

    def __post_init__(self) -> None:
        for name in ("stall_threshold", "flush_threshold"):
            v = getattr(self, name)
            if not 0 <= v <= SCORE_MASK:
                raise ValueError(f"{name} must be in [0, {SCORE_MASK:#x}], got {v}")
        for name in ("entropy_mid", "entropy_critical", "fire_threshold", "shock_deviation", "shock_step"):
            v = getattr(self, name)
            if not 0 <= v <= 0xFF:
                raise ValueError(f"{name} must be in [0, 255], got {v}")
        if self.entropy_mid > self.entropy_critical:
            raise ValueError("entropy_mid must not exceed entropy_critical")
        for name in ("gate_stall", "gate_flush"):
            v = getattr(self, name)
            if not 0 <= v <= 0xFFFF:
                raise ValueError(f"{name} must be in [0, 65535], got {v}")
        if self.anomaly_run < 1:
            raise ValueError("anomaly_run must be >= 1")
        if self.shock_window < 1:
            raise ValueError("shock_window must be >= 1")
        if self.shock_strategy not in SHOCK_STRATEGIES:
            raise ValueError(
                f"shock_strategy must be one of {sorted(SHOCK_STRATEGIES)}, got {self.shock_strategy!r}"
            )
        if len(self.dmem_init) > DMEM_DEPTH:
            raise ValueError(f"dmem_init has {len(self.dmem_init)} words, data memory holds {DMEM_DEPTH}")
        for i, w in enumerate(self.dmem_init):
            if not 0 <= w <= XMASK:
                raise ValueError(f"dmem_init[{i}] = {w} does not fit in 4 bits")

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "CoreParams":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ValueError(f"unknown parameter(s): {', '.join(unknown)}")
        kwargs = dict(raw)
        if "dmem_init" in kwargs:
            kwargs["dmem_init"] = tuple(int(v) for v in kwargs["dmem_init"])
        return cls(**kwargs)

    def to_mapping(self) -> dict[str, Any]:
        out = asdict(self)
        out["dmem_init"] = list(self.dmem_init)
        return out


def load_params(path: str | Path) -> CoreParams:
    p = Path(path)
    if not p.is_file():
        raise ValueError(f"missing params file: {p}")
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"{p}: invalid JSON: {e}") from None
    if not isinstance(raw, dict):
        raise ValueError(f"{p}: expected a JSON object")
    return CoreParams.from_mapping(raw)
