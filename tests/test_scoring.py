from __future__ import annotations
import random

import pytest

from pushup_pro.counter.pipeline import RepClass
from pushup_pro.counter.scoring import SessionAggregator, rep_score, score_band


@pytest.mark.parametrize("cls,score", [
    (RepClass.GOOD, 10),
    (RepClass.SAG, 7),
    (RepClass.PIKE, 7),
    (RepClass.SHALLOW, 8),
])
def test_rep_score(cls, score):
    assert rep_score(cls) == score


def test_score_band_thresholds():
    assert score_band(10) == "good"
    assert score_band(8.0) == "fair"
    assert score_band(5.5) == "fair"
    assert score_band(5.0) == "poor"


def test_empty_aggregator():
    agg = SessionAggregator()
    assert agg.stats.as_dict() == dict(total=0, good=0, sag=0, pike=0, shallow=0, bad_form=0)
    assert agg.score_history == ()
    assert agg.running_average is None


def test_counters_and_invariants_hold():
    rng = random.Random(3)
    agg = SessionAggregator()
    scores = []
    for _ in range(200):
        cls = rng.choice(list(RepClass))
        scores.append(agg.record(cls))
        s = agg.stats
        assert s.total == s.good + s.bad_form
        assert s.bad_form == s.sag + s.pike + s.shallow
        assert s.total == s.good + s.sag + s.pike + s.shallow
        assert abs(agg.running_average - sum(scores) / len(scores)) <= 1e-9
    assert list(agg.score_history) == scores


def test_reset_clears_everything():
    agg = SessionAggregator()
    agg.record(RepClass.SAG)
    agg.record(RepClass.GOOD)
    assert agg.running_average == pytest.approx(8.5)
    agg.reset()
    assert agg.stats.total == 0
    assert agg.score_history == ()
