from __future__ import annotations

import pytest

from common.isa import CAT_ALU, CAT_BRANCH, CAT_LOAD_STORE
from hzd.entropy_class import EntropyClass
from hzd.pipe_ctrl import (
    OVERRIDE_RULES,
    CtrlInputs,
    CtrlState,
    MissionProfile,
    MlAction,
    PipeState,
    ctrl_step,
    directive_flags,
    next_pipe_state,
)
from hzd.rules import rule_names

N, S, F, L = PipeState.NORMAL, PipeState.STALL, PipeState.FLUSH, PipeState.LOCK
HT = MissionProfile.HIGH_THREAT


def nxt(state, **kw):
    return next_pipe_state(state, CtrlInputs(**kw))


def test_override_order():
    assert rule_names(OVERRIDE_RULES) == [
        "quantum_lock",
        "analog_lock",
        "analog_flush",
        "shock",
        "flush_request",
    ]


def test_quantum_lock_wins_and_persists():
    d = nxt(N, quantum_lock=True, analog_flush=True, shock=True)
    assert (d.rule, d.state) == ("quantum_lock", L)
    for _ in range(3):
        d = nxt(d.state, quantum_lock=True)
        assert d.state == L


def test_lock_exits_on_first_all_clear_cycle():
    d = nxt(L)
    assert (d.rule, d.state) == ("lock_clear", N)


@pytest.mark.parametrize(
    "kw",
    [
        dict(hazard=True),
        dict(ml_action=MlAction.LOCK),
        dict(entropy_class=EntropyClass.CRITICAL),
        dict(raw_entropy=0x90, dyn_threshold=0x80),
    ],
)
def test_lock_holds_while_a_lock_input_is_present(kw):
    d = nxt(L, **kw)
    assert (d.rule, d.state) == ("hold", L)


def test_lock_ignores_flush_overrides():
    d = nxt(L, flush_req=True, hazard=True)
    assert d.state == L


def test_analog_overrides_need_authentication():
    assert nxt(N, analog_lock=True).state == L
    assert nxt(N, analog_lock=True, auth_valid=False).state == N
    assert nxt(N, analog_flush=True).state == F
    assert nxt(N, analog_flush=True, auth_valid=False).state == N


def test_aggregator_flush_needs_no_authentication():
    d = nxt(N, flush_req=True, auth_valid=False)
    assert (d.rule, d.state) == ("flush_request", F)


def test_shock_escalation():
    assert nxt(N, shock=True).state == F
    assert nxt(S, shock=True).state == L
    assert nxt(F, shock=True).state == L
    assert nxt(L, shock=True).state == L


@pytest.mark.parametrize("state", [S, F])
def test_shock_outranks_flush_request_when_degraded(state):
    d = nxt(state, shock=True, flush_req=True, hazard=True)
    assert (d.rule, d.state) == ("shock", L)


def test_flush_request_from_normal_and_stall():
    assert nxt(N, flush_req=True, hazard=True).state == F
    assert nxt(S, flush_req=True, hazard=True).state == F
    d = nxt(N, shock=True, flush_req=True)
    assert (d.rule, d.state) == ("shock", F)


def test_normal_ml_actions():
    assert nxt(N, ml_action=MlAction.STALL).state == S
    assert nxt(N, ml_action=MlAction.FLUSH).state == F
    assert nxt(N, ml_action=MlAction.LOCK).state == L


def test_normal_hazard_stalls():
    d = nxt(N, hazard=True)
    assert (d.rule, d.state) == ("hazard", S)


def test_entropy_rules_under_mission_profiles():
    crit = dict(entropy_class=EntropyClass.CRITICAL)
    assert nxt(N, **crit).state == F
    assert nxt(N, mission_profile=HT, **crit).state == L

    over = dict(raw_entropy=0x81, dyn_threshold=0x80)
    assert nxt(N, **over).state == S
    assert nxt(N, mission_profile=HT, **over).state == F
    assert nxt(N, raw_entropy=0x80, dyn_threshold=0x80).state == N

    mid = dict(entropy_class=EntropyClass.MID)
    assert nxt(N, category=CAT_BRANCH, **mid).state == S
    assert nxt(N, category=CAT_BRANCH, mission_profile=HT, **mid).state == S
    assert nxt(N, category=CAT_LOAD_STORE, **mid).state == S
    assert nxt(N, category=CAT_LOAD_STORE, mission_profile=HT, **mid).state == F
    assert nxt(N, category=CAT_ALU, **mid).state == N


@pytest.mark.parametrize("profile", [MissionProfile.DIAGNOSTIC, MissionProfile.RESERVED])
def test_other_profiles_behave_as_normal(profile):
    d = nxt(N, entropy_class=EntropyClass.CRITICAL, mission_profile=profile)
    assert d.state == F


def test_stall_rules():
    assert nxt(S).state == N
    assert nxt(S, hazard=True).state == S
    assert nxt(S, entropy_class=EntropyClass.MID).state == S
    assert nxt(S, ml_action=MlAction.FLUSH).state == F
    assert nxt(S, ml_action=MlAction.LOCK).state == L


def test_flush_rules():
    assert nxt(F).state == N
    assert nxt(F, ml_action=MlAction.STALL).state == S
    assert nxt(F, ml_action=MlAction.LOCK).state == L
    d = nxt(F, hazard=True)
    assert (d.rule, d.state) == ("hold", F)


@pytest.mark.parametrize("state", [S, F])
def test_raw_entropy_over_threshold_keeps_state_latched(state):
    d = nxt(state, raw_entropy=0x90, dyn_threshold=0x80)
    assert (d.rule, d.state) == ("hold", state)
    d = nxt(state, raw_entropy=0x80, dyn_threshold=0x80)
    assert (d.rule, d.state) == ("all_clear", N)


def test_ctrl_step_registers_entropy_and_category():
    ctrl, d = ctrl_step(CtrlState(), CtrlInputs(raw_entropy=0x1AB, category=CAT_BRANCH))
    assert ctrl.state == d.state == N
    assert ctrl.logged_entropy == 0xAB
    assert ctrl.logged_category == CAT_BRANCH


def test_directive_flags():
    assert directive_flags(N) == (False, False, False)
    assert directive_flags(S) == (True, False, False)
    assert directive_flags(F) == (False, True, False)
    assert directive_flags(L) == (True, True, True)
