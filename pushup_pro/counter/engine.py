from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional

from pushup_pro.common.events import RepEvent, SessionSummary
from pushup_pro.counter import form, gate
from pushup_pro.counter.config import DEFAULT_THRESHOLDS, FormThresholds
from pushup_pro.counter.form import Alignment
from pushup_pro.counter.gate import GateStatus, GATE_MESSAGES
from pushup_pro.counter.pipeline import CompletedRep, PushupRepDetector, RepClass, RepPhase
from pushup_pro.counter.pose_core import Pose, Side
from pushup_pro.counter.scoring import SessionAggregator, score_band

FINAL_FEEDBACK = {
    RepClass.SAG: "Sag Detected",
    RepClass.PIKE: "Pike Detected",
    RepClass.SHALLOW: "Too Shallow",
}


@dataclass(frozen=True)
class FrameResult:
    gate: GateStatus
    phase: RepPhase
    message: Optional[str] = None       # status line: gate prompt or alignment status
    side: Optional[Side] = None
    elbow_angle: Optional[float] = None
    body_angle: Optional[float] = None
    alignment: Optional[Alignment] = None
    rep: Optional[RepEvent] = None
    coaching: Optional[str] = None      # transient hint, display timing is the caller's

    def as_payload(self) -> dict:
        return {
            "type": "frame",
            "gate": self.gate.value,
            "phase": self.phase.value,
            "message": self.message,
            "side": self.side,
            "elbow_angle": self.elbow_angle,
            "body_angle": self.body_angle,
            "alignment": self.alignment.value if self.alignment else None,
            "rep": self.rep.as_payload() if self.rep else None,
            "coaching": self.coaching,
        }


class PushupEngine:
    """
    Frame-driven push-up analyzer. One instance per session stream; all
    state lives here and is only touched by process_frame / start_session.
    """
    def __init__(self, cfg: FormThresholds = DEFAULT_THRESHOLDS, debug_cb: Optional[Callable[[dict], None]] = None):
        self.cfg = cfg
        self._dbg = debug_cb or (lambda *_: None)
        self.detector = PushupRepDetector(cfg, debug_cb=debug_cb)
        self.aggregator = SessionAggregator()
        self.active = False

    @property
    def phase(self) -> RepPhase:
        return self.detector.phase

    def start_session(self):
        self.detector.reset()
        self.aggregator.reset()
        self.active = True
        self._dbg({"type": "trace", "msg": "engine: session started"})

    def end_session(self) -> SessionSummary:
        self.active = False
        self._dbg({"type": "trace", "msg": "engine: session ended"})
        return self.summary()

    def summary(self) -> SessionSummary:
        return SessionSummary(
            stats=self.aggregator.stats.as_dict(),
            score_history=self.aggregator.score_history,
            running_average=self.aggregator.running_average,
        )

    def process_frame(self, pose: Pose) -> FrameResult:
        if not self.active:
            return FrameResult(GateStatus.IDLE, self.phase, GATE_MESSAGES[GateStatus.IDLE])

        g = gate.check(pose, self.cfg)
        if not g.ok:
            return FrameResult(g.status, self.phase, g.message, side=g.side)

        reading = form.evaluate(g.joints, self.cfg)
        step = self.detector.step(reading)

        rep = None
        coaching = step.coaching
        if step.completed is not None:
            rep = self._finalize(step.completed)
            if rep.feedback:
                coaching = rep.feedback

        return FrameResult(
            gate=GateStatus.OK,
            phase=self.phase,
            message=reading.alignment.message,
            side=g.side,
            elbow_angle=reading.elbow_angle,
            body_angle=reading.body_angle,
            alignment=reading.alignment,
            rep=rep,
            coaching=coaching,
        )

    def _finalize(self, done: CompletedRep) -> RepEvent:
        score = self.aggregator.record(done.classification)
        stats = self.aggregator.stats
        avg = self.aggregator.running_average
        self._dbg({"type": "trace", "msg": f"rep++ #{stats.total} ({done.classification.value}, {score})"})
        return RepEvent(
            total=stats.total,
            classification=done.classification.value,
            rep_score=score,
            running_average=avg,
            score_band=score_band(avg),
            min_elbow_angle=done.min_elbow_angle,
            stats=stats.as_dict(),
            feedback=FINAL_FEEDBACK.get(done.classification),
        )
