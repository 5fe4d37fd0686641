# pushup_pro/counter/web_pipeline.py
from __future__ import annotations
from typing import Callable, Iterable, Mapping, Optional

from pushup_pro.common.events import RepEvent
from pushup_pro.counter.engine import FrameResult, PushupEngine
from pushup_pro.counter.pose_core import Pose

class WebPosePipeline:
    """
    A minimal 'pipeline' that consumes keypoints estimated in the browser (MoveNet).
    No camera, no threads. Just call push_keypoints(keypoints).
    """
    def __init__(
        self,
        engine: PushupEngine,
        on_rep: Callable[[RepEvent], None],
        on_coach: Optional[Callable[[str], None]] = None,
        debug_cb: Optional[Callable[[dict], None]] = None,
    ):
        self.engine = engine
        self.on_rep = on_rep
        self.on_coach = on_coach
        self.debug_cb = debug_cb
        self._running = True
        self._last_coach: Optional[str] = None

    # keep for API parity with PosePipeline
    def start(self):
        self._running = True

    def stop(self):
        self._running = False

    def pause(self):
        self._running = False

    def resume(self):
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    def push_keypoints(self, keypoints: Iterable[Mapping]) -> Optional[FrameResult]:
        """Feed one frame of keypoints. Returns None while paused/stopped."""
        if not self._running:
            return None
        return self.push_pose(Pose.from_keypoints(keypoints))

    def push_pose(self, pose: Pose) -> Optional[FrameResult]:
        if not self._running:
            return None
        res = self.engine.process_frame(pose)
        dispatch(res, self.on_rep, self._coach)
        # a frame without a hint (fault, gate, UP) or a finished rep re-arms the next one
        if res.rep is not None or res.coaching is None:
            self._last_coach = None
        return res

    def _coach(self, msg: str):
        # the hint repeats every DOWN frame; forward only changes
        if msg == self._last_coach:
            return
        self._last_coach = msg
        if self.on_coach:
            self.on_coach(msg)


def dispatch(res: FrameResult, on_rep: Callable[[RepEvent], None], on_coach: Callable[[str], None]):
    if res.coaching:
        on_coach(res.coaching)
    if res.rep is not None:
        on_rep(res.rep)
