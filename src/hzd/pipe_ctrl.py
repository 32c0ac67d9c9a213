"""Pipeline control FSM: picks Normal / Stall / Flush / Lock once per cycle.

Global override rules are checked first in a fixed order, then the rules of
the current state. First match wins. Stall and Flush latch until every hazard
input is clear; Lock latches until every lock-forcing input is clear.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from common.isa import CAT_BRANCH, CAT_LOAD_STORE, CAT_OTHER

from .entropy_class import EntropyClass
from .rules import Decision, Rule, first_match


class PipeState(IntEnum):
    NORMAL = 0
    STALL = 1
    FLUSH = 2
    LOCK = 3


class MlAction(IntEnum):
    OK = 0
    STALL = 1
    FLUSH = 2
    LOCK = 3


class MissionProfile(IntEnum):
    NORMAL = 0
    HIGH_THREAT = 1
    DIAGNOSTIC = 2
    RESERVED = 3


@dataclass(frozen=True)
class CtrlInputs:
    quantum_lock: bool = False
    analog_lock: bool = False
    analog_flush: bool = False
    auth_valid: bool = True
    shock: bool = False
    flush_req: bool = False
    hazard: bool = False
    ml_action: int = MlAction.OK
    entropy_class: EntropyClass = EntropyClass.LOW
    raw_entropy: int = 0
    dyn_threshold: int = 0xFF
    mission_profile: int = MissionProfile.NORMAL
    category: int = CAT_OTHER


@dataclass(frozen=True)
class CtrlState:
    state: PipeState = PipeState.NORMAL
    logged_entropy: int = 0
    logged_category: int = CAT_OTHER


def _ml(i: CtrlInputs) -> MlAction:
    return MlAction(i.ml_action & 0x3)


def _high_threat(i: CtrlInputs) -> bool:
    # Diagnostic and Reserved profiles behave as Normal.
    return (i.mission_profile & 0x3) == MissionProfile.HIGH_THREAT


def _over_threshold(i: CtrlInputs) -> bool:
    return (i.raw_entropy & 0xFF) > (i.dyn_threshold & 0xFF)


def _all_clear(i: CtrlInputs) -> bool:
    return (
        _ml(i) == MlAction.OK
        and not i.hazard
        and i.entropy_class == EntropyClass.LOW
        and not _over_threshold(i)
    )


def _lock_clear(i: CtrlInputs) -> bool:
    return (
        not i.quantum_lock
        and not (i.analog_lock and i.auth_valid)
        and not i.shock
        and _ml(i) != MlAction.LOCK
        and not i.hazard
        and i.entropy_class != EntropyClass.CRITICAL
        and not _over_threshold(i)
    )


def _threat(normal: PipeState, high: PipeState):
    return lambda s, i: high if _high_threat(i) else normal


OVERRIDE_RULES: list[Rule[PipeState]] = [
    Rule("quantum_lock", lambda s, i: i.quantum_lock, PipeState.LOCK),
    Rule("analog_lock", lambda s, i: i.analog_lock and i.auth_valid, PipeState.LOCK),
    # Overrides never step down out of Lock; Lock leaves only through its all-clear rule.
    Rule(
        "analog_flush",
        lambda s, i: s != PipeState.LOCK and i.analog_flush and i.auth_valid,
        PipeState.FLUSH,
    ),
    # Shock while already degraded confirms a critical event.
    Rule(
        "shock",
        lambda s, i: i.shock,
        lambda s, i: PipeState.FLUSH if s == PipeState.NORMAL else PipeState.LOCK,
    ),
    # Aggregator or secondary-gate flush band.
    Rule("flush_request", lambda s, i: s != PipeState.LOCK and i.flush_req, PipeState.FLUSH),
]

NORMAL_RULES: list[Rule[PipeState]] = [
    Rule("ml_stall", lambda s, i: _ml(i) == MlAction.STALL, PipeState.STALL),
    Rule("ml_flush", lambda s, i: _ml(i) == MlAction.FLUSH, PipeState.FLUSH),
    Rule("ml_lock", lambda s, i: _ml(i) == MlAction.LOCK, PipeState.LOCK),
    Rule("hazard", lambda s, i: i.hazard, PipeState.STALL),
    Rule(
        "entropy_critical",
        lambda s, i: i.entropy_class == EntropyClass.CRITICAL,
        _threat(PipeState.FLUSH, PipeState.LOCK),
    ),
    Rule("entropy_over_threshold", lambda s, i: _over_threshold(i), _threat(PipeState.STALL, PipeState.FLUSH)),
    Rule(
        "entropy_mid_branch",
        lambda s, i: i.entropy_class == EntropyClass.MID and i.category == CAT_BRANCH,
        PipeState.STALL,
    ),
    Rule(
        "entropy_mid_load_store",
        lambda s, i: i.entropy_class == EntropyClass.MID and i.category == CAT_LOAD_STORE,
        _threat(PipeState.STALL, PipeState.FLUSH),
    ),
]

STALL_RULES: list[Rule[PipeState]] = [
    Rule("ml_flush", lambda s, i: _ml(i) == MlAction.FLUSH, PipeState.FLUSH),
    Rule("ml_lock", lambda s, i: _ml(i) == MlAction.LOCK, PipeState.LOCK),
    Rule("all_clear", lambda s, i: _all_clear(i), PipeState.NORMAL),
]

FLUSH_RULES: list[Rule[PipeState]] = [
    Rule("ml_lock", lambda s, i: _ml(i) == MlAction.LOCK, PipeState.LOCK),
    Rule("all_clear", lambda s, i: _all_clear(i), PipeState.NORMAL),
    Rule("ml_stall", lambda s, i: _ml(i) == MlAction.STALL, PipeState.STALL),
]

LOCK_RULES: list[Rule[PipeState]] = [
    Rule("lock_clear", lambda s, i: _lock_clear(i), PipeState.NORMAL),
]

STATE_RULES: dict[PipeState, list[Rule[PipeState]]] = {
    PipeState.NORMAL: NORMAL_RULES,
    PipeState.STALL: STALL_RULES,
    PipeState.FLUSH: FLUSH_RULES,
    PipeState.LOCK: LOCK_RULES,
}


def next_pipe_state(state: PipeState, inp: CtrlInputs) -> Decision[PipeState]:
    state = PipeState(state)
    hit = first_match(OVERRIDE_RULES, state, inp, default=Decision(rule="", state=state))
    if hit.rule:
        return hit
    return first_match(STATE_RULES[state], state, inp, default=Decision(rule="hold", state=state))


def ctrl_step(ctrl: CtrlState, inp: CtrlInputs) -> tuple[CtrlState, Decision[PipeState]]:
    decision = next_pipe_state(ctrl.state, inp)
    nxt = CtrlState(
        state=decision.state,
        logged_entropy=inp.raw_entropy & 0xFF,
        logged_category=inp.category,
    )
    return nxt, decision


def directive_flags(state: PipeState) -> tuple[bool, bool, bool]:
    """(stall, flush, lock) as seen by the datapath; Lock implies both stall and flush."""
    return (
        state in (PipeState.STALL, PipeState.LOCK),
        state in (PipeState.FLUSH, PipeState.LOCK),
        state == PipeState.LOCK,
    )
