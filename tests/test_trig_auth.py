from __future__ import annotations

from hzd.trig_auth import AuthState, TrigInputs, TrigState, next_auth_state, trig_step

CLEAN = TrigInputs()


def run(trig, inputs):
    seen = []
    for inp in inputs:
        trig, _ = trig_step(trig, inp)
        seen.append(trig)
    return seen


def test_single_pulse_on_ready_entry():
    seen = run(TrigState(), [CLEAN] * 3)
    assert [t.state for t in seen] == [AuthState.CHECK, AuthState.READY, AuthState.IDLE]
    assert [t.fire_en for t in seen] == [False, True, False]


def test_manual_lock_from_ready():
    d = next_auth_state(AuthState.READY, TrigInputs(manual_lock=True))
    assert (d.rule, d.state) == ("manual_lock", AuthState.LOCKED)
    t, _ = trig_step(TrigState(AuthState.READY), TrigInputs(manual_lock=True))
    assert not t.fire_en


def test_locked_releases_one_cycle_after_input_clears():
    seen = run(TrigState(), [TrigInputs(manual_lock=True)] * 2 + [CLEAN, CLEAN])
    assert [t.state for t in seen] == [AuthState.LOCKED, AuthState.LOCKED, AuthState.IDLE, AuthState.CHECK]


def test_abort_conditions():
    for inp in (
        TrigInputs(spike=True),
        TrigInputs(ml_risk=True),
        TrigInputs(entropy=0xC0),
    ):
        d = next_auth_state(AuthState.CHECK, inp)
        assert (d.rule, d.state) == ("abort", AuthState.ABORT)
    assert next_auth_state(AuthState.CHECK, TrigInputs(entropy=0xBF)).state == AuthState.READY


def test_fire_threshold_is_configurable():
    inp = TrigInputs(entropy=0x40, fire_threshold=0x40)
    assert next_auth_state(AuthState.IDLE, inp).state == AuthState.ABORT


def test_manual_lock_beats_abort():
    d = next_auth_state(AuthState.IDLE, TrigInputs(manual_lock=True, spike=True))
    assert d.state == AuthState.LOCKED


def test_abort_releases_to_idle():
    d = next_auth_state(AuthState.ABORT, CLEAN)
    assert (d.rule, d.state) == ("release", AuthState.IDLE)


def test_undefined_state_falls_back_to_idle():
    d = next_auth_state(7, CLEAN)
    assert (d.rule, d.state) == ("idle", AuthState.IDLE)
