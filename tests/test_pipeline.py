from __future__ import annotations

from common.asm16 import addi
from hazardcore_top import build
from hpipe.frontend.bpu import BpuEntry
from hzd.aho import SCORE_MASK


def quiet(program, **params):
    """A core whose hazard plane never intervenes, so only the datapath is visible."""
    return build(
        program,
        stall_threshold=SCORE_MASK,
        flush_threshold=SCORE_MASK,
        gate_enable=False,
        **params,
    )


def test_back_to_back_forwarding_without_stall():
    core = quiet("addi r1, r0, 5\nadd r2, r1, r1")
    outs = core.run(3)
    assert [o.pc for o in outs] == [0, 1, 2]
    assert core.state.id_ex.op1 == 5
    assert core.state.id_ex.op2 == 5
    assert core.state.pc == 3
    outs += core.run(5)
    assert not any(o.load_use for o in outs)
    assert core.regs[1] == 5
    assert core.regs[2] == 10


def test_forwarding_from_memory_stage():
    core = quiet("addi r1, r0, 3\nnop\nadd r2, r1, r1")
    core.run(8)
    assert core.regs[2] == 6


def test_register_zero_stays_zero():
    core = quiet("addi r0, r0, 7\nadd r1, r0, r0\naddi r2, r0, 1")
    core.run(8)
    assert core.regs[0] == 0
    assert core.regs[1] == 0
    assert core.regs[2] == 1


def test_load_use_interlock_holds_fetch_one_cycle():
    core = quiet("lw r1, 3(r0)\nadd r2, r1, r1", dmem_init=[0, 0, 0, 9])
    outs = core.run(10)
    assert [o.pc for o in outs[:5]] == [0, 1, 2, 2, 3]
    assert [o.load_use for o in outs[:4]] == [False, False, True, False]
    assert core.regs[1] == 9
    assert core.regs[2] == (9 + 9) & 0xF


def test_store_then_load():
    core = quiet("addi r1, r0, 6\nsw r1, 2(r0)\nlw r2, 2(r0)")
    core.run(10)
    assert core.dmem[2] == 6
    assert core.regs[2] == 6


def test_branch_misprediction_redirects_and_trains_predictor():
    core = quiet("beq r0, r0, 5")
    outs = core.run(3)
    assert core.state.pc == 5
    assert core.state.bpu.entries[0] == BpuEntry(taken=True, target=5)
    assert core.state.mispredict
    assert outs[2].redirect
    # Fetch and decode work behind the branch was squashed.
    assert not core.state.if_id.valid
    assert not core.state.id_ex.valid
    outs += core.run(1)
    assert outs[3].pc == 5
    assert outs[3].mispredict


def test_trained_branch_does_not_redirect_again():
    core = quiet("beq r0, r0, 5")
    outs = core.run(20)
    # Fetch wraps 15 -> 0 and meets the branch again, now predicted taken.
    assert outs[14].pc == 0
    assert outs[15].pc == 5
    assert [i for i, o in enumerate(outs) if o.redirect] == [2]


def test_not_taken_branch_falls_through():
    core = quiet("addi r1, r0, 1\nbeq r1, r0, 5\naddi r2, r0, 2")
    outs = core.run(8)
    assert not any(o.redirect for o in outs)
    assert core.regs[2] == 2
    assert core.state.bpu.entries[1] == BpuEntry(taken=False, target=6)


def test_jump_is_always_taken():
    core = quiet("jmp 3\naddi r1, r0, 1\naddi r1, r0, 2\naddi r2, r0, 3")
    outs = core.run(9)
    assert outs[3].pc == 3
    # The two squashed instructions never write back.
    assert core.regs[1] == 0
    assert core.regs[2] == 3


def test_word_image_program():
    core = quiet([addi(1, 0, 4)])
    core.run(5)
    assert core.regs[1] == 4
