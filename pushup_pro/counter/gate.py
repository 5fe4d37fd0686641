from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pushup_pro.counter.config import FormThresholds
from pushup_pro.counter.pose_core import Pose, Side, SideJoints


class GateStatus(str, Enum):
    OK = "ok"
    REPOSITION = "reposition"
    GET_INTO_POSITION = "get_into_position"
    IDLE = "idle"  # no active session


GATE_MESSAGES = {
    GateStatus.REPOSITION: "Position yourself in frame (Side View)",
    GateStatus.GET_INTO_POSITION: "Get into Pushup Position",
    GateStatus.IDLE: "Ready to Start",
}


@dataclass(frozen=True)
class GateResult:
    status: GateStatus
    side: Side
    joints: Optional[SideJoints] = None

    @property
    def ok(self) -> bool:
        return self.status is GateStatus.OK

    @property
    def message(self) -> Optional[str]:
        return GATE_MESSAGES.get(self.status)


def select_side(pose: Pose) -> Side:
    """Side whose shoulder+elbow+wrist confidences sum higher; ties go right."""
    def conf(side: str) -> float:
        return sum(pose.score(f"{side}_{j}") for j in ("shoulder", "elbow", "wrist"))

    return "left" if conf("left") > conf("right") else "right"


def check(pose: Pose, cfg: FormThresholds) -> GateResult:
    """Confidence gate, then orientation gate. Raises PoseContractError on missing joints."""
    side = select_side(pose)
    joints = SideJoints.from_pose(pose, side)

    for j in (joints.shoulder, joints.elbow, joints.wrist, joints.hip):
        if j.score < cfg.min_confidence:
            return GateResult(GateStatus.REPOSITION, side)

    dx = abs(joints.shoulder.x - joints.hip.x)
    dy = abs(joints.shoulder.y - joints.hip.y)
    if dy > dx * cfg.vertical_ratio:
        return GateResult(GateStatus.GET_INTO_POSITION, side)

    return GateResult(GateStatus.OK, side, joints)
