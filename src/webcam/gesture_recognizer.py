"""
Gesture recognition from hand landmarks.
Reduces each frame's hand to OPEN, FIST, PINCH or NONE and debounces the result.
"""
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Tuple
import math

from .config import GestureConfig
from .hand_tracker import HandLandmarks


class Gesture(Enum):
    """Detected gesture types."""
    NONE = auto()    # No hand, low confidence or ambiguous pose
    OPEN = auto()    # All fingers extended
    FIST = auto()    # All fingers curled
    PINCH = auto()   # Thumb tip touching index tip


# (pip, tip) landmark pairs for the four long fingers
FINGERS = (
    (HandLandmarks.INDEX_PIP, HandLandmarks.INDEX_TIP),
    (HandLandmarks.MIDDLE_PIP, HandLandmarks.MIDDLE_TIP),
    (HandLandmarks.RING_PIP, HandLandmarks.RING_TIP),
    (HandLandmarks.PINKY_PIP, HandLandmarks.PINKY_TIP),
)


@dataclass(frozen=True)
class HandPose:
    """Scale-free measurements of one hand."""
    palm_size: float
    extension: Tuple[float, float, float, float]  # index, middle, ring, pinky
    pinch_ratio: float

    def extended_count(self, threshold: float) -> int:
        return sum(1 for r in self.extension if r > threshold)

    def curled_count(self, threshold: float) -> int:
        return sum(1 for r in self.extension if r < threshold)


def _distance_2d(p1: Tuple[float, float, float], p2: Tuple[float, float, float]) -> float:
    # z from MediaPipe is too noisy at couch distance, use the image plane only
    return math.hypot(p1[0] - p2[0], p1[1] - p2[1])


def measure(landmarks: HandLandmarks) -> Optional[HandPose]:
    """
    Measure finger extension and thumb-index gap.

    Extension of a finger is wrist->tip over wrist->pip: about 1.3 when the
    finger points away from the palm, well below 1 when folded into it.
    Returns None for a degenerate (collapsed) hand.
    """
    wrist = landmarks.get(HandLandmarks.WRIST)
    palm_size = _distance_2d(wrist, landmarks.get(HandLandmarks.MIDDLE_MCP))
    if palm_size < 1e-3:
        return None

    extension = []
    for pip_idx, tip_idx in FINGERS:
        to_pip = _distance_2d(wrist, landmarks.get(pip_idx))
        if to_pip < 1e-3:
            return None
        extension.append(_distance_2d(wrist, landmarks.get(tip_idx)) / to_pip)

    pinch_ratio = _distance_2d(landmarks.thumb_tip, landmarks.index_tip) / palm_size
    return HandPose(palm_size=palm_size, extension=tuple(extension), pinch_ratio=pinch_ratio)


def classify(landmarks: Optional[HandLandmarks], config: GestureConfig) -> Gesture:
    """
    Classify a single frame. Pure: the same landmarks always give the same symbol.

    Ambiguous poses (no rule or more than one rule matching) give NONE so the
    galaxy layout never changes on a doubtful read.
    """
    if landmarks is None or landmarks.confidence < config.min_confidence:
        return Gesture.NONE

    pose = measure(landmarks)
    if pose is None:
        return Gesture.NONE

    pinch_contact = pose.pinch_ratio < config.pinch_threshold
    all_extended = pose.extended_count(config.extend_ratio) == 4
    all_curled = pose.curled_count(config.curl_ratio) == 4
    others_curled = all(r < config.curl_ratio for r in pose.extension[1:])

    candidates = []
    if all_extended and not pinch_contact:
        candidates.append(Gesture.OPEN)
    if all_curled:
        candidates.append(Gesture.FIST)
    if pinch_contact and not others_curled:
        candidates.append(Gesture.PINCH)

    if len(candidates) != 1:
        return Gesture.NONE
    return candidates[0]


class GestureSmoother:
    """
    Minimum dwell filter: a symbol is accepted only after it has been seen on
    `dwell_frames` consecutive frames. Until then the previous symbol stays.
    """

    def __init__(self, dwell_frames: int):
        self._dwell = max(1, int(dwell_frames))
        self._candidate = Gesture.NONE
        self._count = 0
        self._stable = Gesture.NONE

    @property
    def stable(self) -> Gesture:
        return self._stable

    def update(self, raw: Gesture) -> Gesture:
        if raw == self._candidate:
            self._count += 1
        else:
            self._candidate = raw
            self._count = 1

        if self._count >= self._dwell and raw != self._stable:
            self._stable = raw
        return self._stable

    def reset(self) -> None:
        self._candidate = Gesture.NONE
        self._count = 0
        self._stable = Gesture.NONE


@dataclass
class GestureState:
    """Current gesture state with additional info."""
    gesture: Gesture                       # Debounced symbol
    raw_gesture: Gesture = Gesture.NONE    # This frame's classification
    changed: bool = False                  # gesture differs from the previous frame
    pinch_ratio: float = 0.0
    extended_fingers: int = 0
    curled_fingers: int = 0
    handedness: str = "Unknown"
    confidence: float = 0.0


class GestureRecognizer:
    """
    Classifies every frame and debounces the symbol stream.

    Only `gesture` of the returned state should drive the galaxy; the raw
    symbol and metrics are there for the debug overlay.
    """

    def __init__(self, config: GestureConfig):
        self._config = config
        self._smoother = GestureSmoother(config.dwell_frames)

    def update(self, landmarks: Optional[HandLandmarks]) -> GestureState:
        previous = self._smoother.stable
        raw = classify(landmarks, self._config)
        stable = self._smoother.update(raw)

        state = GestureState(gesture=stable, raw_gesture=raw, changed=stable != previous)
        if landmarks is not None:
            state.handedness = landmarks.handedness
            state.confidence = landmarks.confidence
            pose = measure(landmarks)
            if pose is not None:
                state.pinch_ratio = pose.pinch_ratio
                state.extended_fingers = pose.extended_count(self._config.extend_ratio)
                state.curled_fingers = pose.curled_count(self._config.curl_ratio)
        return state

    def reset(self) -> None:
        """Reset the debounce history."""
        self._smoother.reset()
