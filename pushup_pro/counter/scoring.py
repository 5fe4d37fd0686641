from __future__ import annotations
from dataclasses import asdict, dataclass
from typing import List, Optional, Tuple

from pushup_pro.counter.pipeline import RepClass

MAX_REP_SCORE = 10
PENALTIES = {
    RepClass.GOOD: 0,
    RepClass.SAG: 3,
    RepClass.PIKE: 3,
    RepClass.SHALLOW: 2,
}


def rep_score(classification: RepClass) -> int:
    # only the winning classification is penalised
    return MAX_REP_SCORE - PENALTIES[classification]


def score_band(avg: float) -> str:
    if avg > 8:
        return "good"
    if avg > 5:
        return "fair"
    return "poor"


@dataclass(frozen=True)
class SessionStats:
    total: int = 0
    good: int = 0
    sag: int = 0
    pike: int = 0
    shallow: int = 0
    bad_form: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


class SessionAggregator:
    """Session-lifetime counters and score history."""

    def __init__(self):
        self.reset()

    def reset(self):
        self._counts = {c: 0 for c in RepClass}
        self._scores: List[int] = []

    def record(self, classification: RepClass) -> int:
        score = rep_score(classification)
        self._counts[classification] += 1
        self._scores.append(score)
        return score

    @property
    def stats(self) -> SessionStats:
        c = self._counts
        bad = c[RepClass.SAG] + c[RepClass.PIKE] + c[RepClass.SHALLOW]
        return SessionStats(
            total=c[RepClass.GOOD] + bad,
            good=c[RepClass.GOOD],
            sag=c[RepClass.SAG],
            pike=c[RepClass.PIKE],
            shallow=c[RepClass.SHALLOW],
            bad_form=bad,
        )

    @property
    def score_history(self) -> Tuple[int, ...]:
        return tuple(self._scores)

    @property
    def running_average(self) -> Optional[float]:
        if not self._scores:
            return None
        return sum(self._scores) / len(self._scores)
