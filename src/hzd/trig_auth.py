"""Trigger authorizer: gates a single-cycle fire-enable pulse behind risk checks."""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from .rules import Decision, Rule, first_match

FIRE_THRESHOLD_DEFAULT = 0xC0


class AuthState(IntEnum):
    IDLE = 0
    CHECK = 1
    READY = 2
    LOCKED = 3
    ABORT = 4


@dataclass(frozen=True)
class TrigInputs:
    entropy: int = 0
    spike: bool = False
    ml_risk: bool = False
    manual_lock: bool = False
    fire_threshold: int = FIRE_THRESHOLD_DEFAULT


@dataclass(frozen=True)
class TrigState:
    state: AuthState = AuthState.IDLE
    fire_en: bool = False


def _abort(i: TrigInputs) -> bool:
    return i.spike or i.ml_risk or (i.entropy & 0xFF) >= i.fire_threshold


OVERRIDE_RULES: list[Rule[AuthState]] = [
    Rule("manual_lock", lambda s, i: i.manual_lock, AuthState.LOCKED),
    Rule("abort", lambda s, i: _abort(i), AuthState.ABORT),
]

# Per-state defaults once no override fires. LOCKED/ABORT fall back to IDLE,
# so they release one cycle after their forcing input clears.
STATE_RULES: dict[AuthState, list[Rule[AuthState]]] = {
    AuthState.IDLE: [Rule("arm", lambda s, i: True, AuthState.CHECK)],
    AuthState.CHECK: [
        Rule("checked", lambda s, i: not _abort(i), AuthState.READY),
        Rule("check_failed", lambda s, i: True, AuthState.IDLE),
    ],
    AuthState.READY: [Rule("fired", lambda s, i: True, AuthState.IDLE)],
    AuthState.LOCKED: [Rule("release", lambda s, i: True, AuthState.IDLE)],
    AuthState.ABORT: [Rule("release", lambda s, i: True, AuthState.IDLE)],
}


def next_auth_state(state: AuthState, inp: TrigInputs) -> Decision[AuthState]:
    hit = first_match(OVERRIDE_RULES, state, inp, default=Decision(rule="", state=state))
    if hit.rule:
        return hit
    # Undefined encodings fall back to IDLE.
    return first_match(STATE_RULES.get(state, []), state, inp, default=Decision(rule="idle", state=AuthState.IDLE))


def trig_step(trig: TrigState, inp: TrigInputs) -> tuple[TrigState, Decision[AuthState]]:
    decision = next_auth_state(trig.state, inp)
    # Edge, not level: only an entry into READY from another state fires.
    fire = decision.state == AuthState.READY and trig.state != AuthState.READY
    return TrigState(state=decision.state, fire_en=fire), decision
