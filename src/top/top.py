from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Sequence

from common.isa import IMEM_DEPTH, INSN_BITS
from common.types import DecodeToExecute, ExecuteToMemory, FetchToDecode, MemoryToWriteback
from hzd.aho import aggregate, entropy_gate
from hzd.entropy_class import classify_entropy
from hzd.metrics import PipeActivity
from hzd.pipe_ctrl import CtrlInputs, PipeState, ctrl_step, directive_flags
from hzd.trig_auth import TrigInputs, trig_step
from mem.word_mem import WordMem
from hpipe.backend.commit import writeback_stage
from hpipe.backend.decode import decode_stage
from hpipe.backend.forward import bypass_from_ex, bypass_from_mem
from hpipe.frontend.bpu import BpuPrediction, BpuUpdate
from hpipe.frontend.ifetch import fetch_stage, select_next_pc
from hpipe.iex.iex import execute_stage
from hpipe.lsu.l1d import memory_stage

from .params import CoreParams
from .state import CoreInputs, CoreOutputs, CycleState, initial_state

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CycleResult:
    state: CycleState
    out: CoreOutputs


class HazardCoreTop:
    """Five-stage core with the hazard-control plane wrapped around it.

    ``evaluate`` is pure: it reads one committed snapshot and returns the next
    one together with this cycle's outputs. ``step`` commits by swapping the
    snapshot, so every stage of a cycle sees the same pre-edge values.
    """

    def __init__(self, program: Sequence[int], params: Optional[CoreParams] = None) -> None:
        self.params = params if params is not None else CoreParams()
        self.imem = WordMem.from_image(program, width=INSN_BITS, depth=IMEM_DEPTH)
        self.initial_state = initial_state(self.params)
        self.state = self.initial_state

    # Architectural views of the committed snapshot.
    @property
    def regs(self) -> tuple[int, ...]:
        return self.state.rf.regs

    @property
    def dmem(self) -> tuple[int, ...]:
        return self.state.dmem.words

    @property
    def directive(self) -> PipeState:
        return self.state.ctrl.state

    def reset(self) -> None:
        logger.info("reset at cycle %d", self.state.cycle)
        self.state = replace(self.initial_state, cycle=self.state.cycle)

    def step(self, inputs: Optional[CoreInputs] = None) -> CoreOutputs:
        inp = (inputs if inputs is not None else CoreInputs()).masked()
        res = self.evaluate(self.state, inp)
        out = res.out
        if inp.rst:
            logger.info("reset asserted at cycle %d", out.cycle)
        if out.next_directive != out.directive:
            logger.debug(
                "cycle %d: directive %s -> %s (%s)",
                out.cycle,
                out.directive.name,
                out.next_directive.name,
                out.ctrl_rule,
            )
        if out.next_auth_state != out.auth_state:
            logger.debug(
                "cycle %d: trigger %s -> %s (%s)",
                out.cycle,
                out.auth_state.name,
                out.next_auth_state.name,
                out.trig_rule,
            )
        self.state = res.state
        return out

    def run(self, cycles: int, inputs: Optional[Iterable[CoreInputs]] = None) -> list[CoreOutputs]:
        if cycles < 0:
            raise ValueError(f"cycles must be >= 0, got {cycles}")
        it = iter(inputs) if inputs is not None else iter(())
        outs: list[CoreOutputs] = []
        for _ in range(cycles):
            outs.append(self.step(next(it, None)))
        return outs

    def evaluate(self, state: CycleState, inputs: CoreInputs) -> CycleResult:
        inp = inputs.masked()
        if inp.rst:
            # Held in reset: outputs reflect the initial state; nothing advances.
            held = replace(self.initial_state, cycle=state.cycle)
            res = self._evaluate(held, inp)
            return CycleResult(state=replace(self.initial_state, cycle=state.cycle + 1), out=res.out)
        return self._evaluate(state, inp)

    def _evaluate(self, cur: CycleState, inp: CoreInputs) -> CycleResult:
        p = self.params
        directive_top = cur.ctrl.state
        advance_top = directive_top == PipeState.NORMAL

        # --- datapath, youngest consumer last ---
        wb_write_wb = writeback_stage(cur.mem_wb)
        mem_out = memory_stage(cur.ex_mem, cur.dmem)
        ex_out = execute_stage(cur.id_ex)
        bypass_id = (bypass_from_ex(ex_out.ex_mem), bypass_from_mem(mem_out.mem_wb))
        id_out = decode_stage(cur.if_id, cur.rf, wb_write_wb, bypass_id)
        if_id_if = fetch_stage(cur.pc, self.imem, cur.bpu)
        pred_if = BpuPrediction(taken=if_id_if.pred_taken, target=if_id_if.pred_target)
        npc_if = select_next_pc(cur.pc, pred_if, ex_out.bru)

        bru_ex = ex_out.bru
        redirect = npc_if.redirect
        load_use = id_out.load_use and not redirect

        if advance_top:
            if redirect:
                pc_n, if_id_n, id_ex_n = npc_if.pc, FetchToDecode(), DecodeToExecute()
            elif load_use:
                pc_n, if_id_n, id_ex_n = cur.pc, cur.if_id, DecodeToExecute()
            else:
                pc_n, if_id_n, id_ex_n = npc_if.pc, if_id_if, id_out.id_ex
            ex_mem_n = ex_out.ex_mem
            mem_wb_n = mem_out.mem_wb
            rf_n = cur.rf.write(wb_write_wb)
            dmem_n = cur.dmem.write(mem_out.dmem_write)
            bpu_upd = BpuUpdate(pc=bru_ex.pc, taken=bru_ex.taken, target=bru_ex.target) if bru_ex.valid else None
            bpu_n = cur.bpu.update(bpu_upd)
            mispredict_n = redirect
        elif directive_top == PipeState.STALL:
            pc_n, if_id_n, id_ex_n = cur.pc, cur.if_id, cur.id_ex
            ex_mem_n, mem_wb_n = cur.ex_mem, cur.mem_wb
            rf_n, dmem_n, bpu_n = cur.rf, cur.dmem, cur.bpu
            mispredict_n = False
        else:
            # Flush restarts at 0; Lock holds the PC. Both drop everything in flight.
            pc_n = 0 if directive_top == PipeState.FLUSH else cur.pc
            if_id_n, id_ex_n = FetchToDecode(), DecodeToExecute()
            ex_mem_n, mem_wb_n = ExecuteToMemory(), MemoryToWriteback()
            rf_n, dmem_n, bpu_n = cur.rf, cur.dmem, cur.bpu
            mispredict_n = False

        fetched = advance_top and not redirect and not load_use
        act = PipeActivity(
            pc=cur.pc,
            fetch_word=if_id_if.word if fetched else None,
            executed=advance_top and cur.id_ex.valid,
            mem_access=advance_top and mem_out.access,
            mem_addr=mem_out.addr,
            resolved_ok=advance_top and bru_ex.valid and not bru_ex.mispredict,
            mispredict_flag=cur.mispredict,
        )

        # --- hazard-control plane ---
        metrics = cur.metrics.observe(act)
        ent_cls = classify_entropy(inp.analog_entropy, mid=p.entropy_mid, critical=p.entropy_critical)
        shock_int = cur.shock.observe(inp.analog_entropy)
        shock = inp.shock_detected or shock_int
        aho = aggregate(
            metrics,
            inp.risk_posture,
            stall_threshold=p.stall_threshold,
            flush_threshold=p.flush_threshold,
        )
        gate = entropy_gate(
            inp.wide_entropy,
            stall_threshold=p.gate_stall,
            flush_threshold=p.gate_flush,
            enabled=p.gate_enable,
        )
        hazard = aho.stall_req or aho.flush_req or gate.stall_req or gate.flush_req
        auth = inp.override_auth_valid or not p.require_override_auth

        ctrl_n, ctrl_dec = ctrl_step(
            cur.ctrl,
            CtrlInputs(
                quantum_lock=inp.quantum_lock,
                analog_lock=inp.analog_lock,
                analog_flush=inp.analog_flush,
                auth_valid=auth,
                shock=shock,
                flush_req=aho.flush_req or gate.flush_req,
                hazard=hazard,
                ml_action=inp.ml_action,
                entropy_class=ent_cls,
                raw_entropy=inp.analog_entropy,
                dyn_threshold=inp.dyn_threshold,
                mission_profile=inp.mission_profile,
                category=id_out.category,
            ),
        )
        trig_n, trig_dec = trig_step(
            cur.trig,
            TrigInputs(
                entropy=inp.analog_entropy,
                spike=shock,
                ml_risk=inp.ml_risk,
                manual_lock=inp.manual_lock,
                fire_threshold=p.fire_threshold,
            ),
        )

        stall, flush, lock = directive_flags(directive_top)
        out = CoreOutputs(
            cycle=cur.cycle,
            pc=cur.pc,
            insn=if_id_if.word,
            directive=directive_top,
            stall=stall,
            flush=flush,
            lock=lock,
            logged_entropy=cur.ctrl.logged_entropy,
            logged_category=cur.ctrl.logged_category,
            hazard=hazard,
            entropy_class=ent_cls,
            shock=shock,
            fire_en=cur.trig.fire_en,
            auth_state=cur.trig.state,
            metrics=metrics,
            score=aho.score,
            severity=aho.severity,
            mispredict=cur.mispredict,
            next_directive=ctrl_dec.state,
            ctrl_rule=ctrl_dec.rule,
            next_auth_state=trig_dec.state,
            trig_rule=trig_dec.rule,
            redirect=advance_top and redirect,
            load_use=advance_top and load_use,
            category=id_out.category,
        )
        nxt = CycleState(
            cycle=cur.cycle + 1,
            pc=pc_n,
            if_id=if_id_n,
            id_ex=id_ex_n,
            ex_mem=ex_mem_n,
            mem_wb=mem_wb_n,
            metrics=cur.metrics.advance(act, flushed=directive_top in (PipeState.FLUSH, PipeState.LOCK)),
            shock=cur.shock.advance(inp.analog_entropy),
            mispredict=mispredict_n,
            ctrl=ctrl_n,
            trig=trig_n,
            rf=rf_n,
            dmem=dmem_n,
            bpu=bpu_n,
        )
        return CycleResult(state=nxt, out=out)
