"""
Target layouts for the three formations.

Every function is deterministic for a given count and config. Per-photo
random offsets come from a seeded generator read in index order, so photo i
gets the same offset no matter how many photos follow it.
"""
from dataclasses import dataclass
import math
from typing import Optional

import numpy as np

from webcam.config import FormationConfig

GOLDEN_ANGLE = math.pi * (3.0 - math.sqrt(5.0))


@dataclass
class Layout:
    positions: np.ndarray  # (N, 3)
    scales: np.ndarray     # (N,)
    opacities: np.ndarray  # (N,)

    def __len__(self) -> int:
        return len(self.positions)


def fibonacci_directions(count: int) -> np.ndarray:
    """Unit vectors spread evenly over a sphere (spherical Fibonacci lattice)."""
    if count == 0:
        return np.zeros((0, 3))
    i = np.arange(count, dtype=float)
    y = 1.0 - 2.0 * (i + 0.5) / count
    radius = np.sqrt(1.0 - y * y)
    theta = GOLDEN_ANGLE * i
    return np.stack([np.cos(theta) * radius, y, np.sin(theta) * radius], axis=1)


def _index_noise(count: int, seed: int, salt: int, dims: int) -> np.ndarray:
    # Rows are drawn sequentially, so the first k rows never depend on count
    rng = np.random.default_rng([seed, salt])
    return rng.random((count, dims))


def scattered_layout(count: int, config: FormationConfig) -> Layout:
    """Photos spread through a wide, slightly flattened spherical shell."""
    directions = fibonacci_directions(count)
    spread = _index_noise(count, config.seed, 1, 1)[:, 0]
    radii = config.scatter_inner + (config.scatter_radius - config.scatter_inner) * spread
    positions = directions * radii[:, None]
    positions[:, 1] *= 0.6
    return Layout(positions, np.ones(count), np.ones(count))


def gathered_layout(count: int, config: FormationConfig) -> Layout:
    """Photos packed into a small ball around the origin."""
    directions = fibonacci_directions(count)
    noise = _index_noise(count, config.seed, 2, 4)
    radii = config.gather_radius * np.cbrt(noise[:, 0])
    jitter = (noise[:, 1:] - 0.5) * 2.0 * config.gather_jitter
    positions = directions * radii[:, None] + jitter
    return Layout(positions, np.full(count, config.gather_scale), np.ones(count))


def focused_layout(count: int, focus_index: Optional[int], config: FormationConfig) -> Layout:
    """One photo enlarged in front of the viewer, the rest a dim backdrop."""
    backdrop = scattered_layout(count, config)
    positions = backdrop.positions * config.backdrop_spread
    scales = np.ones(count)
    opacities = np.full(count, config.dim_opacity)
    if focus_index is not None and 0 <= focus_index < count:
        positions[focus_index] = config.focus_position
        scales[focus_index] = config.focus_scale
        opacities[focus_index] = 1.0
    return Layout(positions, scales, opacities)
