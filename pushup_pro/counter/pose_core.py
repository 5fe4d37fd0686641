from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Dict, Iterable, Literal, Mapping, Optional, Tuple

Side = Literal["left", "right"]


class PoseContractError(ValueError):
    """The pose source broke the joint-name contract (not a data-quality issue)."""


@dataclass(frozen=True)
class Joint:
    name: str
    x: float
    y: float
    score: float = 1.0


# Utility math

def angle_3pt(a, b, c) -> float:
    """Return angle ABC in degrees with B as vertex.

    Accepts (x, y) tuples or anything with .x/.y attributes.
    """
    ax, ay = _xy(a)
    bx, by = _xy(b)
    cx, cy = _xy(c)
    ang = math.degrees(math.atan2(cy - by, cx - bx) - math.atan2(ay - by, ax - bx))
    ang = abs(ang)
    if ang > 180:
        ang = 360 - ang
    return ang


def _xy(p) -> Tuple[float, float]:
    if hasattr(p, "x"):
        return float(p.x), float(p.y)
    return float(p[0]), float(p[1])


class Pose:
    """One frame's joints, keyed by name (e.g. ``left_elbow``)."""

    def __init__(self, joints: Iterable[Joint]):
        self._joints: Dict[str, Joint] = {j.name: j for j in joints}

    @classmethod
    def from_keypoints(cls, keypoints: Iterable[Mapping]) -> "Pose":
        """Build from MoveNet-style ``[{name, x, y, score}, ...]`` dicts."""
        joints = []
        for i, kp in enumerate(keypoints):
            if not isinstance(kp, Mapping):
                raise PoseContractError(f"keypoint #{i} is not an object")
            name = kp.get("name")
            if not name:
                raise PoseContractError(f"keypoint #{i} has no name")
            try:
                joints.append(Joint(
                    name=str(name),
                    x=float(kp["x"]),
                    y=float(kp["y"]),
                    score=float(kp.get("score", 1.0) or 0.0),
                ))
            except (KeyError, TypeError, ValueError) as e:
                raise PoseContractError(f"keypoint {name!r} is malformed: {e}") from e
        return cls(joints)

    def __contains__(self, name: str) -> bool:
        return name in self._joints

    def __len__(self) -> int:
        return len(self._joints)

    def get(self, name: str) -> Optional[Joint]:
        return self._joints.get(name)

    def score(self, name: str) -> float:
        j = self._joints.get(name)
        return j.score if j is not None else 0.0

    def require(self, *names: str) -> Tuple[Joint, ...]:
        missing = [n for n in names if n not in self._joints]
        if missing:
            raise PoseContractError(f"pose is missing required joints: {', '.join(missing)}")
        return tuple(self._joints[n] for n in names)


@dataclass(frozen=True)
class SideJoints:
    """The joints of the side chosen for analysis."""
    side: Side
    shoulder: Joint
    elbow: Joint
    wrist: Joint
    hip: Joint
    knee: Optional[Joint]
    ankle: Optional[Joint]

    @classmethod
    def from_pose(cls, pose: Pose, side: Side) -> "SideJoints":
        shoulder, elbow, wrist, hip = pose.require(
            f"{side}_shoulder", f"{side}_elbow", f"{side}_wrist", f"{side}_hip"
        )
        knee = pose.get(f"{side}_knee")
        ankle = pose.get(f"{side}_ankle")
        if knee is None and ankle is None:
            raise PoseContractError(f"pose has neither {side}_ankle nor {side}_knee")
        return cls(side, shoulder, elbow, wrist, hip, knee, ankle)
