import threading
import time

import cv2

from events import TrackerSample
from logging_config import get_logger
from tracking import landmarks_from_result

log = get_logger("hands")


class Hands:
    """
    MediaPipe hands wrapper.

    Returns:
      {"hands": [hand0, ...]} or None when no hand is in view

    Each hand dict contains:
      - "landmarks": [(u,v)*21] normalized coords (0..1)
    """

    def __init__(self, max_hands=1, det_conf=0.5, track_conf=0.5):
        import mediapipe as mp

        self.max_hands = max_hands
        self.mp_hands = mp.solutions.hands
        self.hands = self.mp_hands.Hands(
            static_image_mode=False,
            max_num_hands=max_hands,
            model_complexity=1,
            min_detection_confidence=float(det_conf),
            min_tracking_confidence=float(track_conf),
        )

    def process(self, frame_bgr):
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        res = self.hands.process(frame_rgb)

        if not res.multi_hand_landmarks:
            return None

        out = {"hands": []}
        for hand_lms in res.multi_hand_landmarks:
            pts = [(lm.x, lm.y) for lm in hand_lms.landmark]
            out["hands"].append({"landmarks": pts})
        return out

    def close(self):
        self.hands.close()


def open_camera(max_index=4, api=None):
    for i in range(max_index):
        cap = cv2.VideoCapture(i) if api is None else cv2.VideoCapture(i, api)
        if cap.isOpened():
            ok, _ = cap.read()
            if ok:
                log.info("using camera index %d", i)
                return cap
        cap.release()
    raise RuntimeError(f"No working camera found (0-{max_index - 1}).")


class CameraTracker:
    """
    Background producer: camera -> MediaPipe -> latest TrackerSample.

    Writes into `sink` (normally Simulation.offer_sample). Never blocks the
    render loop; if the camera or MediaPipe cannot start, status becomes
    "unavailable" and the caller keeps running on mouse/touch.
    """

    def __init__(self, sink, tracker_factory=Hands, camera_factory=open_camera):
        self.sink = sink
        self.tracker_factory = tracker_factory
        self.camera_factory = camera_factory

        self.status = "stopped"
        self.error = None
        self.latest = None  # last raw result, for the skeleton overlay

        self._stop = threading.Event()
        self._thread = None
        self._cap = None
        self._tracker = None
        self._lock = threading.Lock()

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        if self.running:
            return True
        # drop anything a previous run left behind before opening a new camera
        self._release()
        try:
            self._tracker = self.tracker_factory()
            self._cap = self.camera_factory()
        except Exception as e:
            # degraded, not fatal: mouse/touch keep working
            self.status = "unavailable"
            self.error = str(e)
            log.warning("hand tracking unavailable: %s", e)
            self._release()
            return False

        self._stop.clear()
        self.status = "running"
        self.error = None
        self._thread = threading.Thread(target=self._worker, daemon=True)
        self._thread.start()
        log.info("hand tracking started")
        return True

    def stop(self):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
        self._thread = None
        self._release()
        self.latest = None
        if self.status == "running":
            self.status = "stopped"
            log.info("hand tracking stopped")

    def _release(self):
        with self._lock:
            cap, self._cap = self._cap, None
            tracker, self._tracker = self._tracker, None
        if cap is not None:
            cap.release()
        if tracker is not None and callable(getattr(tracker, "close", None)):
            tracker.close()

    def _worker(self):
        cap, tracker = self._cap, self._tracker
        try:
            while not self._stop.is_set():
                ok, frame = cap.read()
                if not ok:
                    log.warning("camera read failed, stopping tracker")
                    self.status = "unavailable"
                    break
                res = tracker.process(frame)
                lms = landmarks_from_result(res)
                self.latest = lms
                self.sink(TrackerSample(landmarks=lms, t=time.monotonic()))
        except Exception as e:
            log.exception("hand tracker crashed")
            self.status = "unavailable"
            self.error = str(e)
        finally:
            self.latest = None
            self._release()
