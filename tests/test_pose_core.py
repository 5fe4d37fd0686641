from __future__ import annotations
import pytest

from pushup_pro.counter.pose_core import Joint, Pose, PoseContractError, SideJoints, angle_3pt


def test_angle_colinear_is_180():
    assert angle_3pt((0, 0), (1, 0), (2, 0)) == pytest.approx(180.0)


def test_angle_same_direction_is_0():
    assert angle_3pt((2, 0), (0, 0), (5, 0)) == pytest.approx(0.0)


def test_angle_right_angle_and_symmetry():
    a, b, c = (0, 1), (0, 0), (1, 0)
    assert angle_3pt(a, b, c) == pytest.approx(90.0)
    assert angle_3pt(c, b, a) == pytest.approx(angle_3pt(a, b, c))


def test_angle_reflects_past_180():
    # raw atan2 difference is 270 degrees here
    assert angle_3pt((0, -1), (0, 0), (-1, 0)) == pytest.approx(90.0)


@pytest.mark.parametrize("a,b,c", [
    ((3, 4), (0, 0), (-2, 7)),
    ((-5, -1), (1, 1), (4, -9)),
    ((0.1, 0.9), (0.5, 0.5), (0.9, 0.1)),
    ((1, 1), (1, 1), (1, 1)),
])
def test_angle_range_and_symmetry(a, b, c):
    ang = angle_3pt(a, b, c)
    assert 0.0 <= ang <= 180.0
    assert angle_3pt(c, b, a) == pytest.approx(ang)


def test_angle_accepts_joints(joint):
    assert angle_3pt(joint("s", 0, 1), joint("e", 0, 0), joint("w", 1, 0)) == pytest.approx(90.0)


def test_degenerate_points_do_not_raise():
    assert angle_3pt((0, 0), (0, 0), (0, 0)) == 0.0


def test_from_keypoints_round_trip_fields():
    pose = Pose.from_keypoints([{"name": "left_elbow", "x": 1, "y": "2", "score": 0.5}])
    assert "left_elbow" in pose
    j = pose.get("left_elbow")
    assert (j.x, j.y, j.score) == (1.0, 2.0, 0.5)
    assert pose.score("right_elbow") == 0.0


@pytest.mark.parametrize("entry", [1, "left_hip", None, [1, 2]])
def test_from_keypoints_rejects_non_object_entries(entry):
    with pytest.raises(PoseContractError, match="#1 is not an object"):
        Pose.from_keypoints([{"name": "left_hip", "x": 1, "y": 2}, entry])


def test_from_keypoints_rejects_nameless():
    with pytest.raises(PoseContractError):
        Pose.from_keypoints([{"x": 1, "y": 2, "score": 0.5}])


def test_from_keypoints_rejects_bad_coordinates():
    with pytest.raises(PoseContractError, match="left_hip"):
        Pose.from_keypoints([{"name": "left_hip", "x": "abc", "y": 2}])


def test_side_joints_requires_upper_body():
    pose = Pose([Joint("left_shoulder", 0, 0), Joint("left_elbow", 0, 1), Joint("left_knee", 2, 0)])
    with pytest.raises(PoseContractError, match="left_wrist, left_hip"):
        SideJoints.from_pose(pose, "left")


def test_side_joints_needs_knee_or_ankle():
    names = ("shoulder", "elbow", "wrist", "hip")
    pose = Pose([Joint(f"right_{n}", i, 0) for i, n in enumerate(names)])
    with pytest.raises(PoseContractError, match="right_ankle"):
        SideJoints.from_pose(pose, "right")


def test_side_joints_ok(pose_factory):
    sj = SideJoints.from_pose(pose_factory(), "left")
    assert sj.side == "left"
    assert sj.ankle is not None and sj.knee is not None
