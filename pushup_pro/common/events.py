from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

class EventType(str, Enum):
    SESSION_STARTED = "session_started"
    SESSION_STOPPED = "session_stopped"
    REP = "rep"
    COACH = "coach"
    TRACE = "trace"
    ERROR = "error"

@dataclass
class SessionEvent:
    type: EventType
    session_id: str
    ts: float
    total: int = 0

    def as_payload(self) -> dict:
        return {"type": self.type.value, "session_id": self.session_id, "ts": self.ts, "total": self.total}

@dataclass(frozen=True)
class RepEvent:
    total: int
    classification: str       # good / sag / pike / shallow
    rep_score: int
    running_average: float
    score_band: str           # good / fair / poor
    min_elbow_angle: float
    stats: dict = field(default_factory=dict)
    feedback: Optional[str] = None  # e.g. "Sag Detected"

    def as_payload(self) -> dict:
        return {
            "type": EventType.REP.value,
            "total": self.total,
            "classification": self.classification,
            "rep_score": self.rep_score,
            "running_average": self.running_average,
            "score_band": self.score_band,
            "min_elbow_angle": self.min_elbow_angle,
            "stats": dict(self.stats),
            "feedback": self.feedback,
        }

@dataclass(frozen=True)
class SessionSummary:
    stats: dict
    score_history: Tuple[int, ...]
    running_average: Optional[float]

    def as_payload(self) -> dict:
        return {
            "stats": dict(self.stats),
            "score_history": list(self.score_history),
            "running_average": self.running_average,
        }
