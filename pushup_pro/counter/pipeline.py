from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

from pushup_pro.counter.config import DEFAULT_THRESHOLDS, FormThresholds
from pushup_pro.counter.form import Alignment, FormReading

EXTENDED_ANGLE = 180.0  # min_elbow_angle sentinel outside a DOWN phase


class RepPhase(str, Enum):
    UP = "UP"
    DOWN = "DOWN"


class RepClass(str, Enum):
    GOOD = "good"
    SAG = "sag"
    PIKE = "pike"
    SHALLOW = "shallow"

    @property
    def is_fault(self) -> bool:
        return self is not RepClass.GOOD


@dataclass(frozen=True)
class RepFaults:
    sag: bool = False
    pike: bool = False
    shallow: bool = False

    def accumulate(self, alignment: Alignment) -> "RepFaults":
        if alignment is Alignment.SAG and not self.sag:
            return replace(self, sag=True)
        if alignment is Alignment.PIKE and not self.pike:
            return replace(self, pike=True)
        return self

    def classify(self) -> RepClass:
        # first match wins
        if self.sag:
            return RepClass.SAG
        if self.pike:
            return RepClass.PIKE
        if self.shallow:
            return RepClass.SHALLOW
        return RepClass.GOOD


NO_FAULTS = RepFaults()


@dataclass(frozen=True)
class RepState:
    phase: RepPhase = RepPhase.UP
    faults: RepFaults = NO_FAULTS
    min_elbow_angle: float = EXTENDED_ANGLE


INITIAL_STATE = RepState()


@dataclass(frozen=True)
class CompletedRep:
    classification: RepClass
    faults: RepFaults
    min_elbow_angle: float


@dataclass(frozen=True)
class Step:
    state: RepState
    coaching: Optional[str] = None
    completed: Optional[CompletedRep] = None


COACH_GO_LOWER = "Go Lower"
COACH_GOOD_DEPTH = "Good Depth!"


def advance(state: RepState, reading: FormReading, cfg: FormThresholds = DEFAULT_THRESHOLDS) -> Step:
    """Transition function for one gated frame.

    Angles between elbow_angle_down and elbow_angle_up never change the
    phase; a rep that stalls there stays open until the arm extends.
    """
    angle = reading.elbow_angle

    if state.phase is RepPhase.UP:
        if angle < cfg.elbow_angle_down:
            faults = NO_FAULTS.accumulate(reading.alignment)
            return Step(RepState(RepPhase.DOWN, faults, angle))
        return Step(state)

    if state.phase is RepPhase.DOWN:
        faults = state.faults.accumulate(reading.alignment)
        min_angle = min(state.min_elbow_angle, angle)

        coaching = None
        if not reading.alignment.is_fault:
            coaching = COACH_GO_LOWER if min_angle > cfg.good_depth else COACH_GOOD_DEPTH

        if angle > cfg.elbow_angle_up:
            if min_angle > cfg.good_depth:
                faults = replace(faults, shallow=True)
            done = CompletedRep(faults.classify(), faults, min_angle)
            return Step(INITIAL_STATE, coaching, done)

        return Step(RepState(RepPhase.DOWN, faults, min_angle), coaching)

    raise ValueError(f"unknown phase {state.phase!r}")


class PushupRepDetector:
    """
    Two-phase (UP/DOWN) push-up detector driven by elbow angle.
    Accumulates sag/pike across the DOWN phase; depth is judged once, at rep close.
    """
    def __init__(self, cfg: FormThresholds = DEFAULT_THRESHOLDS, debug_cb: Optional[Callable[[dict], None]] = None):
        self.cfg = cfg
        self._dbg = debug_cb or (lambda *_: None)
        self.state = INITIAL_STATE

    @property
    def phase(self) -> RepPhase:
        return self.state.phase

    @property
    def faults(self) -> RepFaults:
        return self.state.faults

    @property
    def min_elbow_angle(self) -> float:
        return self.state.min_elbow_angle

    def reset(self):
        self.state = INITIAL_STATE

    def step(self, reading: FormReading) -> Step:
        prev = self.state.phase
        out = advance(self.state, reading, self.cfg)
        self.state = out.state
        if out.state.phase is not prev:
            self._dbg({"type": "trace", "msg": f"state→{out.state.phase.value} ({reading.elbow_angle:.0f}°)"})
        return out
