import os

import pytest

from webcam.config import FormationConfig, GestureConfig
from webcam.hand_tracker import HandLandmarks

# Widgets are created without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

WRIST = (0.5, 0.8, 0.0)
THUMB_BASE = [(0.44, 0.76, 0.0), (0.40, 0.71, 0.0), (0.36, 0.67, 0.0)]
THUMB_TIPS = {
    "open": (0.33, 0.62, 0.0),
    "pinch": (0.425, 0.505, 0.0),
    "tucked": (0.46, 0.64, 0.0),
}
# index, middle, ring, pinky
FINGER_X = (0.44, 0.48, 0.52, 0.56)
MCP_Y = (0.60, 0.59, 0.60, 0.62)


def _finger(x, mcp_y, state):
    mcp = (x, mcp_y, 0.0)
    if state == "extended":
        ys = (mcp_y - 0.06, mcp_y - 0.10, mcp_y - 0.14)
    elif state == "curled":
        ys = (mcp_y - 0.05, mcp_y - 0.02, mcp_y + 0.04)
    elif state == "half":
        ys = (mcp_y - 0.06, mcp_y - 0.075, mcp_y - 0.07)
    elif state == "pinch":
        # Index bent over to meet the thumb
        return [mcp, (0.43, 0.53, 0.0), (0.425, 0.51, 0.0), (0.42, 0.50, 0.0)]
    else:
        raise ValueError(state)
    return [mcp] + [(x, y, 0.0) for y in ys]


def make_hand(fingers=("extended",) * 4, thumb="open", confidence=0.95):
    """Synthetic right hand in normalized image coordinates, palm facing the camera."""
    points = [WRIST] + THUMB_BASE + [THUMB_TIPS[thumb]]
    for x, mcp_y, state in zip(FINGER_X, MCP_Y, fingers):
        points += _finger(x, mcp_y, state)
    assert len(points) == 21
    return HandLandmarks(landmarks=points, handedness="Right", confidence=confidence)


@pytest.fixture(scope="session")
def qapp():
    from PyQt5.QtWidgets import QApplication
    return QApplication.instance() or QApplication([])


@pytest.fixture
def gesture_config():
    return GestureConfig()


@pytest.fixture
def formation_config():
    return FormationConfig()


@pytest.fixture
def open_hand():
    return make_hand()


@pytest.fixture
def fist_hand():
    return make_hand(fingers=("curled",) * 4, thumb="tucked")


@pytest.fixture
def pinch_hand():
    return make_hand(fingers=("pinch", "extended", "extended", "extended"), thumb="pinch")
