from __future__ import annotations
import logging
import threading
import time
from typing import Callable, Optional, Sequence

from pushup_pro.common.events import RepEvent
from pushup_pro.counter.engine import FrameResult, PushupEngine
from pushup_pro.counter.pose_core import Joint, Pose
from pushup_pro.counter.web_pipeline import dispatch

logger = logging.getLogger(__name__)

# MediaPipe Pose landmark indices for the joints we use
MEDIAPIPE_INDEX = {
    "left_shoulder": 11, "right_shoulder": 12,
    "left_elbow": 13, "right_elbow": 14,
    "left_wrist": 15, "right_wrist": 16,
    "left_hip": 23, "right_hip": 24,
    "left_knee": 25, "right_knee": 26,
    "left_ankle": 27, "right_ankle": 28,
}


def landmarks_to_pose(landmarks: Sequence, width: int = 1, height: int = 1) -> Pose:
    """MediaPipe landmark list -> Pose. Visibility becomes the joint score.

    Coordinates are scaled to pixels so the orientation gate sees true proportions.
    """
    joints = []
    for name, idx in MEDIAPIPE_INDEX.items():
        if idx >= len(landmarks):
            continue
        lm = landmarks[idx]
        joints.append(Joint(name, lm.x * width, lm.y * height, float(getattr(lm, "visibility", 1.0))))
    return Pose(joints)


class PosePipeline(threading.Thread):
    """Local webcam + MediaPipe pose source feeding a PushupEngine."""

    def __init__(
            self,
            engine: PushupEngine,
            on_rep: Callable[[RepEvent], None],
            on_coach: Optional[Callable[[str], None]] = None,
            on_frame: Optional[Callable[[FrameResult], None]] = None,
            camera_id: int = 0,
            show_window: bool = False,
            on_error: Optional[Callable[[str], None]] = None,
    ):
        super().__init__(daemon=True)
        self.engine = engine
        self.on_rep = on_rep
        self.on_coach = on_coach or (lambda *_: None)
        self.on_frame = on_frame
        self.on_error = on_error
        self.camera_id = camera_id
        self.show_window = show_window
        self._stop_evt = threading.Event()
        self._paused = threading.Event()
        self.cap = None
        self.pose = None

    def run(self):
        # heavy deps only needed for the local camera
        try:
            import cv2
            import mediapipe as mp
        except ImportError as e:
            logger.error("camera pipeline needs opencv-python and mediapipe: %s", e)
            if self.on_error:
                self.on_error(f"camera dependencies missing: {e}")
            return

        mp_pose = mp.solutions.pose
        try:
            self.cap = cv2.VideoCapture(self.camera_id)
            if not self.cap.isOpened():
                raise RuntimeError("Webcam not available")

            self.pose = mp_pose.Pose(min_detection_confidence=0.5, min_tracking_confidence=0.5)
            logger.info("camera pipeline running on device %s", self.camera_id)

            while not self._stop_evt.is_set():
                if self._paused.is_set():
                    time.sleep(0.05)
                    continue
                ok, frame = self.cap.read()
                if not ok:
                    time.sleep(0.01)
                    continue
                image = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
                res = self.pose.process(image)
                if not res.pose_landmarks:
                    continue

                h, w = frame.shape[:2]
                result = self.engine.process_frame(landmarks_to_pose(res.pose_landmarks.landmark, w, h))
                dispatch(result, self.on_rep, self.on_coach)
                if self.on_frame:
                    self.on_frame(result)

                if self.show_window:
                    total = self.engine.aggregator.stats.total
                    cv2.putText(frame, f"Reps: {total}", (20, 40),
                                cv2.FONT_HERSHEY_SIMPLEX, 1, (0, 255, 0), 2)
                    cv2.imshow("Pushup Pro", frame)
                    # macOS: imshow requires waitKey even if we ignore keys
                    _ = cv2.waitKey(1)
        except Exception as e:
            logger.exception("camera pipeline error")
            if self.on_error:
                self.on_error(str(e))
        finally:
            if self.cap is not None:
                self.cap.release()
            if self.pose is not None:
                self.pose.close()
            if self.show_window:
                cv2.destroyAllWindows()

    @property
    def running(self) -> bool:
        return not (self._stop_evt.is_set() or self._paused.is_set())

    def stop(self):
        self._stop_evt.set()

    def pause(self):
        self._paused.set()

    def resume(self):
        self._paused.clear()
