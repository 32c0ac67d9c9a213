from __future__ import annotations

from dataclasses import dataclass, field, replace

from common.isa import CAT_OTHER, DMEM_DEPTH, XLEN
from common.types import (
    DecodeToExecute,
    ExecuteToMemory,
    FetchToDecode,
    HazardMetrics,
    MemoryToWriteback,
)
from hzd.aho import Severity
from hzd.entropy_class import EntropyClass
from hzd.metrics import MetricBank, PatternDetector
from hzd.pipe_ctrl import CtrlState, MissionProfile, MlAction, PipeState
from hzd.shock import ShockStrategy, make_shock_detector
from hzd.trig_auth import AuthState, TrigState
from mem.mem2r1w import RegFile2R1W
from mem.word_mem import WordMem
from hpipe.frontend.bpu import BranchTargetTable

from .params import CoreParams


@dataclass(frozen=True)
class CycleState:
    """Everything the core commits at a cycle boundary. Never mutated in place."""

    shock: ShockStrategy
    dmem: WordMem
    cycle: int = 0
    pc: int = 0
    if_id: FetchToDecode = FetchToDecode()
    id_ex: DecodeToExecute = DecodeToExecute()
    ex_mem: ExecuteToMemory = ExecuteToMemory()
    mem_wb: MemoryToWriteback = MemoryToWriteback()
    metrics: MetricBank = field(default_factory=MetricBank)
    mispredict: bool = False
    ctrl: CtrlState = CtrlState()
    trig: TrigState = TrigState()
    rf: RegFile2R1W = RegFile2R1W()
    bpu: BranchTargetTable = BranchTargetTable()

    @property
    def exec_pressure(self) -> int:
        return self.metrics.pressure.value

    @property
    def cache_miss(self) -> int:
        return self.metrics.cache_miss.value

    @property
    def branch_miss(self) -> int:
        return self.metrics.branch_miss.value


def initial_state(params: CoreParams) -> CycleState:
    return CycleState(
        shock=make_shock_detector(
            params.shock_strategy,
            window=params.shock_window,
            deviation=params.shock_deviation,
            step=params.shock_step,
        ),
        dmem=WordMem.from_image(params.dmem_init, width=XLEN, depth=DMEM_DEPTH),
        metrics=MetricBank(pattern=PatternDetector(run_length=params.anomaly_run)),
    )


@dataclass(frozen=True)
class CoreInputs:
    rst: bool = False
    analog_entropy: int = 0
    wide_entropy: int = 0
    risk_posture: int = 0
    analog_lock: bool = False
    analog_flush: bool = False
    quantum_lock: bool = False
    shock_detected: bool = False
    mission_profile: int = MissionProfile.NORMAL
    override_auth_valid: bool = True
    dyn_threshold: int = 0x80
    ml_action: int = MlAction.OK
    ml_risk: bool = False
    manual_lock: bool = False

    def masked(self) -> "CoreInputs":
        return replace(
            self,
            analog_entropy=self.analog_entropy & 0xFF,
            wide_entropy=self.wide_entropy & 0xFFFF,
            risk_posture=self.risk_posture & 0x3,
            mission_profile=self.mission_profile & 0x3,
            dyn_threshold=self.dyn_threshold & 0xFF,
            ml_action=self.ml_action & 0x3,
        )


@dataclass(frozen=True)
class CoreOutputs:
    cycle: int
    pc: int
    insn: int
    directive: PipeState
    stall: bool
    flush: bool
    lock: bool
    logged_entropy: int
    logged_category: int
    hazard: bool
    entropy_class: EntropyClass
    shock: bool
    fire_en: bool
    auth_state: AuthState
    metrics: HazardMetrics
    score: int
    severity: Severity
    mispredict: bool
    next_directive: PipeState = PipeState.NORMAL
    ctrl_rule: str = ""
    next_auth_state: AuthState = AuthState.IDLE
    trig_rule: str = ""
    redirect: bool = False
    load_use: bool = False
    category: int = CAT_OTHER
