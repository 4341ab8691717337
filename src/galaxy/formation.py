"""
Formation state machine and particle interpolation.

The controller owns every photo particle's current and target transform.
Gestures pick the formation, the formation picks the targets, and step()
moves the current transforms toward the targets with exponential smoothing
scaled by elapsed time.
"""
from dataclasses import dataclass
from enum import Enum, auto
import logging
import math
from typing import Dict, Optional

import numpy as np

from webcam.config import FormationConfig
from webcam.gesture_recognizer import Gesture

from .layouts import Layout, focused_layout, gathered_layout, scattered_layout

logger = logging.getLogger(__name__)


class Formation(Enum):
    """Named target layouts."""
    SCATTERED = auto()
    GATHERED = auto()
    FOCUSED = auto()


# NONE is deliberately absent: it holds the current formation
TRANSITIONS: Dict[Gesture, Formation] = {
    Gesture.OPEN: Formation.SCATTERED,
    Gesture.FIST: Formation.GATHERED,
    Gesture.PINCH: Formation.FOCUSED,
}


@dataclass(frozen=True)
class FrameState:
    """What the renderer needs for one frame. Arrays are private copies."""
    formation: Formation
    focus_index: Optional[int]
    positions: np.ndarray
    scales: np.ndarray
    opacities: np.ndarray

    @property
    def count(self) -> int:
        return len(self.positions)


class FormationController:
    """
    Maps the debounced gesture stream onto particle transforms.

    Only the render thread may call into this object.
    """

    def __init__(self, config: FormationConfig, count: int = 0):
        self._config = config
        self._formation = Formation.SCATTERED
        self._focus_index: Optional[int] = None
        self._focus_cursor = -1

        self._positions = np.zeros((0, 3))
        self._scales = np.zeros(0)
        self._opacities = np.zeros(0)
        self._target = Layout(np.zeros((0, 3)), np.zeros(0), np.zeros(0))

        if count:
            self.resize(count)

    @property
    def formation(self) -> Formation:
        return self._formation

    @property
    def focus_index(self) -> Optional[int]:
        return self._focus_index

    @property
    def count(self) -> int:
        return len(self._positions)

    @property
    def positions(self) -> np.ndarray:
        return self._positions.copy()

    @property
    def scales(self) -> np.ndarray:
        return self._scales.copy()

    @property
    def opacities(self) -> np.ndarray:
        return self._opacities.copy()

    @property
    def targets(self) -> Layout:
        return Layout(
            self._target.positions.copy(),
            self._target.scales.copy(),
            self._target.opacities.copy(),
        )

    def apply_gesture(self, gesture: Gesture) -> bool:
        """
        Feed one debounced gesture symbol.

        Returns:
            True if the formation changed.
        """
        formation = TRANSITIONS.get(gesture)
        if formation is None:
            return False
        return self.set_formation(formation)

    def set_formation(self, formation: Formation) -> bool:
        if formation == self._formation:
            return False

        previous = self._formation
        self._formation = formation
        if formation == Formation.FOCUSED:
            self._advance_focus()
        self._recompute_targets()
        logger.info("Formation %s -> %s (%d photos)", previous.name, formation.name, self.count)
        return True

    def _advance_focus(self) -> None:
        # Each new pinch shows the next photo in pool order
        if self.count == 0:
            self._focus_index = None
            return
        self._focus_cursor = (self._focus_cursor + 1) % self.count
        self._focus_index = self._focus_cursor

    def resize(self, count: int) -> None:
        """
        Grow to `count` particles.

        Existing particles keep their current transform and only get new
        targets; new particles start at their target position, invisible,
        and fade in.
        """
        if count < self.count:
            raise ValueError(f"Photo pool is append-only: cannot shrink {self.count} -> {count}")
        if count == self.count:
            return

        old = self.count
        if self._formation == Formation.FOCUSED and self._focus_index is None:
            self._focus_cursor = 0
            self._focus_index = 0

        target = self._layout_for(count)
        self._positions = np.vstack([self._positions, target.positions[old:]])
        self._scales = np.concatenate([self._scales, target.scales[old:]])
        self._opacities = np.concatenate([self._opacities, np.zeros(count - old)])
        self._target = target
        logger.debug("Layout grew %d -> %d in %s", old, count, self._formation.name)

    def _layout_for(self, count: int) -> Layout:
        if self._formation == Formation.GATHERED:
            return gathered_layout(count, self._config)
        if self._formation == Formation.FOCUSED:
            return focused_layout(count, self._focus_index, self._config)
        return scattered_layout(count, self._config)

    def _recompute_targets(self) -> None:
        self._target = self._layout_for(self.count)

    def step(self, dt: float) -> None:
        """
        Advance all particles by `dt` seconds.

        The blend factor 1 - exp(-rate * dt) makes two half steps equal one
        full step, so the motion does not depend on the frame rate.
        """
        if dt <= 0 or self.count == 0:
            return

        alpha = 1.0 - math.exp(-self._config.smoothing_rate * dt)
        eps = self._config.convergence_epsilon

        self._positions += (self._target.positions - self._positions) * alpha
        near = np.linalg.norm(self._target.positions - self._positions, axis=1) < eps
        self._positions[near] = self._target.positions[near]

        self._scales += (self._target.scales - self._scales) * alpha
        near = np.abs(self._target.scales - self._scales) < eps
        self._scales[near] = self._target.scales[near]

        self._opacities += (self._target.opacities - self._opacities) * alpha
        near = np.abs(self._target.opacities - self._opacities) < eps
        self._opacities[near] = self._target.opacities[near]

    def is_converged(self) -> bool:
        return (
            np.array_equal(self._positions, self._target.positions)
            and np.array_equal(self._scales, self._target.scales)
            and np.array_equal(self._opacities, self._target.opacities)
        )

    def snapshot(self) -> FrameState:
        return FrameState(
            formation=self._formation,
            focus_index=self._focus_index,
            positions=self._positions.copy(),
            scales=self._scales.copy(),
            opacities=self._opacities.copy(),
        )
