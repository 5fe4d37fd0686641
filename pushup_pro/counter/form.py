from __future__ import annotations
from dataclasses import dataclass
from enum import Enum

from pushup_pro.counter.config import FormThresholds
from pushup_pro.counter.pose_core import Joint, SideJoints, angle_3pt


class Alignment(str, Enum):
    GOOD = "good"
    SAG = "sag"
    PIKE = "pike"

    @property
    def message(self) -> str:
        return ALIGNMENT_MESSAGES[self]

    @property
    def is_fault(self) -> bool:
        return self is not Alignment.GOOD


ALIGNMENT_MESSAGES = {
    Alignment.GOOD: "Good Alignment",
    Alignment.SAG: "Don't sag hips!",
    Alignment.PIKE: "Lower Hips",
}


@dataclass(frozen=True)
class FormReading:
    """Instantaneous per-frame form measurements."""
    elbow_angle: float
    body_angle: float
    alignment: Alignment


def body_anchor(joints: SideJoints, cfg: FormThresholds) -> Joint:
    # ankle when visible, knee as fallback
    if joints.ankle is not None and joints.ankle.score >= cfg.min_confidence:
        return joints.ankle
    if joints.knee is not None:
        return joints.knee
    return joints.ankle


def classify_alignment(body_angle: float, cfg: FormThresholds) -> Alignment:
    if body_angle > cfg.body_alignment_max:
        return Alignment.SAG
    if body_angle < cfg.body_alignment_min:
        return Alignment.PIKE
    return Alignment.GOOD


def evaluate(joints: SideJoints, cfg: FormThresholds) -> FormReading:
    elbow_angle = angle_3pt(joints.shoulder, joints.elbow, joints.wrist)
    body_angle = angle_3pt(joints.shoulder, joints.hip, body_anchor(joints, cfg))
    return FormReading(elbow_angle, body_angle, classify_alignment(body_angle, cfg))
