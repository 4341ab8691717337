"""
MediaPipe Hand Tracker wrapper using the Tasks API.
Turns camera frames into one hand's landmark set per frame.
"""
from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Callable, Optional, List, Protocol, Tuple
import time
import cv2
import numpy as np
import mediapipe as mp

from .camera import CameraSource
from .config import Config, MediaPipeConfig
from .errors import NotSupported

logger = logging.getLogger(__name__)

# MediaPipe Tasks API imports
BaseOptions = mp.tasks.BaseOptions
HandLandmarker = mp.tasks.vision.HandLandmarker
HandLandmarkerOptions = mp.tasks.vision.HandLandmarkerOptions
VisionRunningMode = mp.tasks.vision.RunningMode

MODEL_URL = "https://storage.googleapis.com/mediapipe-models/hand_landmarker/hand_landmarker/float16/1/hand_landmarker.task"


@dataclass
class HandLandmarks:
    """
    Normalized hand landmarks from MediaPipe.

    Attributes:
        landmarks: List of 21 (x, y, z) tuples, normalized 0-1
        handedness: 'Left' or 'Right'
        confidence: Detection confidence 0-1
    """
    landmarks: List[Tuple[float, float, float]]
    handedness: str
    confidence: float

    # MediaPipe landmark indices for convenience
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20

    def get(self, index: int) -> Tuple[float, float, float]:
        """Get landmark by index."""
        return self.landmarks[index]

    @property
    def thumb_tip(self) -> Tuple[float, float, float]:
        return self.landmarks[self.THUMB_TIP]

    @property
    def index_tip(self) -> Tuple[float, float, float]:
        return self.landmarks[self.INDEX_TIP]


# Hand connections for drawing (same as MediaPipe's HAND_CONNECTIONS)
HAND_CONNECTIONS = [
    (0, 1), (1, 2), (2, 3), (3, 4),      # Thumb
    (0, 5), (5, 6), (6, 7), (7, 8),      # Index
    (0, 9), (9, 10), (10, 11), (11, 12), # Middle
    (0, 13), (13, 14), (14, 15), (15, 16), # Ring
    (0, 17), (17, 18), (18, 19), (19, 20), # Pinky
    (5, 9), (9, 13), (13, 17),           # Palm
]


class HandTracker:
    """
    MediaPipe hand landmark detection on already-captured frames.
    Uses the MediaPipe Tasks API (0.10+) in VIDEO mode.

    When several hands are visible only the most confident one is returned.
    """

    # Default model path relative to project root
    DEFAULT_MODEL_PATH = Path(__file__).parent.parent.parent / "models" / "hand_landmarker.task"

    def __init__(self, config: MediaPipeConfig, model_path: Optional[Path] = None):
        self._config = config
        if model_path is None and config.model_path:
            model_path = Path(config.model_path)
        self._model_path = Path(model_path) if model_path else self.DEFAULT_MODEL_PATH

        self._landmarker: Optional[HandLandmarker] = None
        self._start_perf: float = 0
        self._last_timestamp_ms: int = -1
        self._frame_count = 0

    def start(self) -> None:
        """
        Load the hand landmark model.

        Raises:
            NotSupported: model file missing or MediaPipe failed to initialize.
        """
        if self._landmarker is not None:
            return

        if not self._model_path.exists():
            raise NotSupported(
                f"Hand tracking model not found: {self._model_path}. "
                f"Download it from {MODEL_URL}"
            )

        options = HandLandmarkerOptions(
            base_options=BaseOptions(model_asset_path=str(self._model_path)),
            running_mode=VisionRunningMode.VIDEO,
            num_hands=self._config.max_num_hands,
            min_hand_detection_confidence=self._config.min_detection_confidence,
            min_hand_presence_confidence=self._config.min_presence_confidence,
            min_tracking_confidence=self._config.min_tracking_confidence,
        )
        try:
            self._landmarker = HandLandmarker.create_from_options(options)
        except (RuntimeError, ValueError) as e:
            raise NotSupported(f"Hand tracker failed to initialize: {e}") from e

        self._start_perf = time.perf_counter()
        self._last_timestamp_ms = -1
        logger.info("Hand landmarker loaded from %s", self._model_path)

    def close(self) -> None:
        if self._landmarker:
            self._landmarker.close()
            self._landmarker = None

    def process(self, frame: np.ndarray) -> Optional[HandLandmarks]:
        """
        Detect the most confident hand in a BGR frame.

        Returns None when no hand is visible or its confidence is too low,
        never the previous frame's result.
        """
        if self._landmarker is None:
            return None

        self._frame_count += 1

        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        # Optimization: Mark the image as not writeable (zero-copy)
        rgb_frame.flags.writeable = False
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb_frame)

        # VIDEO mode requires strictly increasing timestamps
        timestamp_ms = int((time.perf_counter() - self._start_perf) * 1000)
        if timestamp_ms <= self._last_timestamp_ms:
            timestamp_ms = self._last_timestamp_ms + 1
        self._last_timestamp_ms = timestamp_ms

        result = self._landmarker.detect_for_video(mp_image, timestamp_ms)
        if not result.hand_landmarks:
            return None

        best = max(
            range(len(result.hand_landmarks)),
            key=lambda i: result.handedness[i][0].score,
        )
        handedness = result.handedness[best][0]
        if handedness.score < self._config.min_hand_confidence:
            return None

        return HandLandmarks(
            landmarks=[(lm.x, lm.y, lm.z) for lm in result.hand_landmarks[best]],
            handedness=handedness.category_name,
            confidence=handedness.score,
        )

    @property
    def frame_count(self) -> int:
        return self._frame_count


def draw_landmarks(frame: np.ndarray, landmarks: Optional[HandLandmarks]) -> np.ndarray:
    """Return a copy of `frame` with the hand skeleton drawn on it."""
    frame = frame.copy()
    if landmarks is None:
        return frame

    h, w = frame.shape[:2]
    for start_idx, end_idx in HAND_CONNECTIONS:
        start = landmarks.landmarks[start_idx]
        end = landmarks.landmarks[end_idx]
        start_pos = (int(start[0] * w), int(start[1] * h))
        end_pos = (int(end[0] * w), int(end[1] * h))
        cv2.line(frame, start_pos, end_pos, (0, 200, 255), 2)
    for x, y, _ in landmarks.landmarks:
        cv2.circle(frame, (int(x * w), int(y * h)), 4, (0, 255, 0), -1)
    return frame


class LandmarkSource(Protocol):
    """Anything that yields one optional hand per call."""

    def start(self) -> bool: ...

    def next_landmarks(self) -> Optional[HandLandmarks]: ...

    def stop(self) -> None: ...


class CameraLandmarkSource:
    """
    Camera + MediaPipe tracker behind the LandmarkSource interface.

    Camera and tracker start-up failures are both reported through on_error.
    """

    def __init__(
        self,
        config: Config,
        on_error: Optional[Callable[[str], None]] = None,
        camera: Optional[CameraSource] = None,
        tracker: Optional[HandTracker] = None,
    ):
        self._on_error = on_error
        self._camera = camera or CameraSource(config.camera, on_error=on_error)
        self._tracker = tracker or HandTracker(config.mediapipe)
        self._frame: Optional[np.ndarray] = None

    def start(self) -> bool:
        if self._camera.start() is None:
            return False
        try:
            self._tracker.start()
        except NotSupported as e:
            logger.error("Tracker failed to start: %s", e)
            self._camera.release()
            if self._on_error:
                self._on_error(str(e))
            return False
        return True

    def next_landmarks(self) -> Optional[HandLandmarks]:
        frame = self._camera.read()
        if frame is None:
            return None
        self._frame = frame
        return self._tracker.process(frame)

    def stop(self) -> None:
        self._tracker.close()
        self._camera.release()
        self._frame = None

    @property
    def frame(self) -> Optional[np.ndarray]:
        """Last camera frame handed to the tracker."""
        return self._frame

    @property
    def frame_count(self) -> int:
        return self._tracker.frame_count
