"""
Grid-quantized glitch modulator.

Vertices are bucketed into grid cells; each cell flips between two
pseudo-random "states" derived from quantized time, and the offset is
smoothly interpolated between them. Output is blocky in space and
continuous in time.
"""

import numpy as np

from morphosphere.core.vecmath import fract, mix, smoothstep

_CELL_KEY = np.array([12.9898, 78.233, 45.164])
_HASH_SCALE = 43758.5453

# (axis, multiplier) chosen by the axis selector
_AXIS_MULTIPLIERS = ((0, 3.0), (1, 5.0), (2, 11.0))


def cell_hash(position, grid_size: float) -> np.ndarray:
    """Stable pseudo-random value in [0, 1) per grid cell."""
    grid_pos = np.floor(np.asarray(position, dtype=np.float64) * grid_size) / grid_size
    return fract(np.sin(grid_pos @ _CELL_KEY) * _HASH_SCALE)


def _state_offset(
    cell: np.ndarray,
    state: float,
    intensity: float,
    threshold: float,
) -> np.ndarray:
    """Single-axis offset for one discrete glitch state (zero if inactive)."""
    state_hash = fract(np.sin(state + cell * 100.0) * _HASH_SCALE)
    active = state_hash > threshold
    axis_select = fract(cell * 7.0 + state)

    offset = np.zeros(cell.shape + (3,), dtype=np.float64)
    lower = 0.0
    for (axis, multiplier), upper in zip(_AXIS_MULTIPLIERS, (0.33, 0.66, np.inf)):
        on_axis = active & (axis_select >= lower) & (axis_select < upper)
        value = (fract(cell * multiplier + state) - 0.5) * intensity
        offset[..., axis] = np.where(on_axis, value, 0.0)
        lower = upper

    return offset


def glitch_offset(
    position,
    time: float,
    grid_size: float,
    intensity: float,
    speed: float,
    randomness: float,
    enabled: bool = True,
) -> np.ndarray:
    """
    Compute per-vertex glitch offsets.

    Args:
        position: (3,) or (N, 3) rest positions.
        time: Frame time in seconds.
        grid_size: Number of grid cells per unit.
        intensity: Maximum offset span.
        speed: State change rate (states per second is 2 * speed).
        randomness: Fraction of cells that glitch in a given state (0-1).
        enabled: Master switch.

    Returns:
        Offsets with the same shape as position. Exactly zero when
        disabled, when intensity is 0 or when grid_size <= 0.
    """
    position = np.asarray(position, dtype=np.float64)
    if not enabled or intensity == 0 or grid_size <= 0:
        return np.zeros_like(position)

    cell = cell_hash(position, grid_size)

    glitch_time = time * speed * 2.0
    state0 = float(np.floor(glitch_time))
    state1 = state0 + 1.0
    transition = smoothstep(0.0, 1.0, glitch_time - state0)

    threshold = 1.0 - randomness
    current = _state_offset(cell, state0, intensity, threshold)
    upcoming = _state_offset(cell, state1, intensity, threshold)

    return mix(current, upcoming, transition)
