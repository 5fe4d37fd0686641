from __future__ import annotations
import json
import logging
import time
import uuid
from dataclasses import asdict, dataclass
from typing import Callable, Iterable, Literal, Mapping, Optional, Union

from pushup_pro.common.events import EventType, RepEvent, SessionEvent, SessionSummary
from pushup_pro.counter.camera import PosePipeline
from pushup_pro.counter.config import FormThresholds
from pushup_pro.counter.engine import FrameResult, PushupEngine
from pushup_pro.counter.web_pipeline import WebPosePipeline
from pushup_pro.data import db

logger = logging.getLogger(__name__)

Source = Literal["web", "camera"]


class SessionNotActiveError(RuntimeError):
    pass


@dataclass
class SessionStatus:
    session_id: str
    state: str
    total: int
    running_average: Optional[float]


@dataclass
class FinalSummary:
    session_id: str
    summary: SessionSummary

    @property
    def total_reps(self) -> int:
        return self.summary.stats.get("total", 0)

    def as_payload(self) -> dict:
        return {"session_id": self.session_id, **self.summary.as_payload()}


class RepSessionManager:
    def __init__(self, cfg: Optional[FormThresholds] = None, persist: bool = True):
        self.cfg = cfg or FormThresholds.from_env()
        self.persist = persist
        self.engine = PushupEngine(self.cfg, debug_cb=self._emit_debug)
        self.active_id: Optional[str] = None
        self.active_pipeline: Optional[Union[WebPosePipeline, PosePipeline]] = None
        self.source: Optional[Source] = None
        self._event_sink: Optional[Callable[[dict], None]] = None

    def set_event_sink(self, sink: Callable[[dict], None]):
        self._event_sink = sink

    def _emit(self, payload: dict):
        if self._event_sink is None:
            return
        try:
            self._event_sink(payload)
        except Exception:
            logger.exception("event sink failed for %s", payload.get("type"))

    def _emit_debug(self, ev):
        """
        Accepts either a dict like {"type":"trace","msg": "..."} or any object;
        normalizes and forwards to the sink so it appears in the Trace panel.
        """
        payload = ev if isinstance(ev, dict) else {"type": EventType.TRACE.value, "msg": str(ev)}
        logger.debug("%s", payload.get("msg"))
        self._emit(payload)

    def _on_rep(self, rep: RepEvent):
        if self.active_id and self.persist:
            db.insert_rep(
                session_id=self.active_id,
                rep_index=rep.total,
                ts=time.time(),
                classification=rep.classification,
                score=rep.rep_score,
                min_elbow_angle=rep.min_elbow_angle,
                running_average=rep.running_average,
            )
        self._emit(rep.as_payload())

    def _on_coach(self, msg: str):
        self._emit({"type": EventType.COACH.value, "msg": msg})

    def start(self, source: Source = "web", camera_id: int = 0, show_window: bool = False):
        # stop existing session if any
        if self.active_id is not None:
            self.stop(self.active_id)

        sid = str(uuid.uuid4())
        self.active_id = sid
        self.source = source
        ts = time.time()

        if self.persist:
            db.insert_session(sid, ts, json.dumps(asdict(self.cfg)))

        self.engine.start_session()
        if source == "web":
            pipe = WebPosePipeline(self.engine, on_rep=self._on_rep, on_coach=self._on_coach, debug_cb=self._emit_debug)
        else:
            pipe = PosePipeline(
                self.engine,
                on_rep=self._on_rep,
                on_coach=self._on_coach,
                camera_id=camera_id,
                show_window=show_window,
                on_error=self._on_error,
            )
        self.active_pipeline = pipe
        pipe.start()

        logger.info("session %s started (%s)", sid, source)
        self._emit(SessionEvent(EventType.SESSION_STARTED, sid, ts).as_payload())
        return sid, "started pushups"

    def push_keypoints(self, keypoints: Iterable[Mapping]) -> Optional[FrameResult]:
        """Feed one browser frame. None while paused."""
        if not isinstance(self.active_pipeline, WebPosePipeline):
            raise SessionNotActiveError("no active web session")
        return self.active_pipeline.push_keypoints(keypoints)

    def pause(self, session_id: Optional[str] = None) -> str:
        if self.active_pipeline is not None:
            self.active_pipeline.pause()
        return self.active_id or ""

    def resume(self, session_id: Optional[str] = None) -> str:
        if self.active_pipeline is not None:
            self.active_pipeline.resume()
        return self.active_id or ""

    def stop(self, session_id: Optional[str] = None) -> FinalSummary:
        pipe = self.active_pipeline
        if pipe is not None:
            pipe.stop()
            if isinstance(pipe, PosePipeline) and pipe.is_alive():
                pipe.join(timeout=1.0)

        sid = session_id or self.active_id or ""
        summary = self.engine.end_session()
        if sid and self.persist:
            db.stop_session(sid, time.time(), summary.stats, summary.running_average)

        self._emit(SessionEvent(EventType.SESSION_STOPPED, sid, time.time(), summary.stats["total"]).as_payload())
        logger.info("session %s stopped: %s", sid, summary.stats)
        self.active_pipeline = None
        self.active_id = None
        self.source = None
        return FinalSummary(session_id=sid, summary=summary)

    def status(self, session_id: Optional[str] = None) -> SessionStatus:
        if self.active_pipeline is None:
            state = "stopped"
        else:
            state = "running" if self.active_pipeline.running else "paused"
        return SessionStatus(
            session_id=self.active_id or "",
            state=state,
            total=self.engine.aggregator.stats.total,
            running_average=self.engine.aggregator.running_average,
        )

    def _on_error(self, msg: str):
        # Called from pipeline thread on error
        logger.error("pipeline error: %s", msg)
        self._emit({"type": EventType.ERROR.value, "msg": f"pipeline error: {msg}"})
        self.active_pipeline = None
        self.stop(self.active_id)
