"""
Perspective camera for the galaxy view.
"""
from dataclasses import dataclass
import math
from typing import Tuple

import numpy as np

TWO_PI = 2.0 * math.pi


@dataclass
class Camera:
    """Pinhole camera on the +z axis looking at the origin, orbiting around y."""
    fov: float = 55.0          # Vertical field of view, degrees
    distance: float = 30.0
    yaw: float = 0.0           # Radians
    near: float = 0.5

    def focal_length(self, height: int) -> float:
        return (height / 2.0) / math.tan(math.radians(self.fov) / 2.0)

    def orbit(self, dt: float, speed: float, hold_front: bool, rate: float = 2.5) -> None:
        """
        Spin slowly, or swing back to the nearest front-facing angle so a
        focused photo ends up straight ahead.
        """
        if hold_front:
            front = round(self.yaw / TWO_PI) * TWO_PI
            self.yaw += (front - self.yaw) * (1.0 - math.exp(-rate * dt))
        else:
            self.yaw += speed * dt


def project(
    points: np.ndarray, camera: Camera, width: int, height: int
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Project world points to screen pixels.

    Returns:
        (screen_xy (N, 2), depth (N,), visible (N,) bool). Points behind the
        near plane are flagged invisible and their coordinates are undefined.
    """
    if len(points) == 0:
        return np.zeros((0, 2)), np.zeros(0), np.zeros(0, dtype=bool)

    c, s = math.cos(camera.yaw), math.sin(camera.yaw)
    x = points[:, 0] * c + points[:, 2] * s
    z = -points[:, 0] * s + points[:, 2] * c
    y = points[:, 1]

    depth = camera.distance - z
    visible = depth > camera.near
    safe = np.where(visible, depth, 1.0)

    f = camera.focal_length(height)
    screen = np.stack([width / 2.0 + f * x / safe, height / 2.0 - f * y / safe], axis=1)
    return screen, depth, visible


def light_factor(depth: np.ndarray, camera: Camera, ambient: float, reach: float = 30.0) -> np.ndarray:
    """Brightness in [ambient, 1]: full at the origin's depth and closer, fading with distance."""
    behind = np.clip((depth - camera.distance) / reach, 0.0, 1.0)
    return 1.0 - (1.0 - ambient) * behind
