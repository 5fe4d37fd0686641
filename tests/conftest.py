from __future__ import annotations
import math

import pytest

from pushup_pro.counter.pose_core import Joint, Pose
from pushup_pro.data import db


def _polar(origin, deg, r):
    return origin[0] + r * math.cos(math.radians(deg)), origin[1] + r * math.sin(math.radians(deg))


def make_keypoints(elbow_angle=170.0, body_angle=175.0, side="left", score=0.9,
                   other_score=0.2, overrides=None, vertical=False):
    """Side-view plank in image coordinates (y grows downward)."""
    shoulder = (100.0, 100.0)
    hip = (100.0, 300.0) if vertical else (200.0, 100.0)
    elbow = (100.0, 150.0)
    # ray elbow->shoulder points to -90 deg
    wrist = _polar(elbow, -90.0 + elbow_angle, 50.0)
    # ray hip->shoulder points to 180 deg
    ankle = _polar(hip, 180.0 - body_angle, 200.0)
    knee = _polar(hip, 180.0 - body_angle, 100.0)
    coords = dict(shoulder=shoulder, elbow=elbow, wrist=wrist, hip=hip, knee=knee, ankle=ankle)

    other = "right" if side == "left" else "left"
    kps = []
    for s, sc in ((side, score), (other, other_score)):
        for j, (x, y) in coords.items():
            kps.append({"name": f"{s}_{j}", "x": x, "y": y, "score": sc})
    for name, patch in (overrides or {}).items():
        for kp in kps:
            if kp["name"] == name:
                kp.update(patch)
    return kps


@pytest.fixture
def keypoints():
    return make_keypoints


@pytest.fixture
def pose_factory():
    def build(*args, **kwargs):
        return Pose.from_keypoints(make_keypoints(*args, **kwargs))
    return build


@pytest.fixture
def joint():
    def build(name, x, y, score=1.0):
        return Joint(name, x, y, score)
    return build


@pytest.fixture
def tmp_db(tmp_path):
    db.configure(tmp_path / "pushups.db")
    yield db
    db.close()
