"""
Displacement preset library.

Each preset maps (rest position, time, frequency, amplitude, normal) to a
displaced position. Presets are pure functions over (N, 3) buffers so the
active preset can change between frames without any reset.

All presets return the rest position untouched when amplitude is zero.
"""

import math
from enum import Enum
from typing import Callable

import numpy as np

from morphosphere.core.noise import fbm_turbulence, snoise3
from morphosphere.core.vecmath import rotate_y, smoothstep


class Preset(str, Enum):
    """Named displacement presets."""

    CLASSIC = "classic"
    TWISTER = "twister"
    TRAVELING_WAVES = "traveling_waves"
    BUBBLES = "bubbles"
    WAVES = "waves"
    SPIKY = "spiky"
    TURBULENCE = "turbulence"

    @classmethod
    def resolve(cls, value) -> "Preset":
        """Map an id (enum or string) to a preset, defaulting to CLASSIC."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.CLASSIC


def _time_shift(position: np.ndarray, frequency: float, time: float) -> np.ndarray:
    """Noise lookup coordinates: scaled position with time scrolling along x."""
    p = position * frequency
    return p + np.array([time, 0.0, 0.0])


def _along_normal(position, normal, displacement, amplitude) -> np.ndarray:
    return position + normal * np.asarray(displacement * amplitude)[..., np.newaxis]


def classic(position, time, frequency, amplitude, normal) -> np.ndarray:
    n = snoise3(_time_shift(position, frequency, time))
    return _along_normal(position, normal, n, amplitude)


def twister(position, time, frequency, amplitude, normal) -> np.ndarray:
    """Twist around Y by an angle that grows with height and sways with time."""
    angle = amplitude * (position[..., 1] * frequency * 1.2 + math.sin(time) * 0.8)
    twisted = rotate_y(position, angle)
    twisted_normal = rotate_y(normal, angle)

    n = snoise3(twisted * frequency + np.array([0.0, time, 0.0]))
    return _along_normal(twisted, twisted_normal, n * 0.5, amplitude)


def traveling_waves(position, time, frequency, amplitude, normal) -> np.ndarray:
    """Sine wave travelling up the Y axis."""
    wave = np.sin(position[..., 1] * frequency * math.pi * 2.0 - time * 3.0)
    return _along_normal(position, normal, wave * 0.5, amplitude)


def bubbles(position, time, frequency, amplitude, normal) -> np.ndarray:
    """Positive-only blobs, modulated by a finer noise octave."""
    coarse = snoise3(position * frequency * 0.8 + np.array([0.0, time * 0.5, time]))
    blobs = np.maximum(coarse, 0.0)
    blobs = blobs * blobs

    fine = snoise3(position * frequency * 2.5 + np.array([time, 7.1, 3.3]))
    return _along_normal(position, normal, blobs * (0.6 + 0.4 * fine), amplitude)


def waves(position, time, frequency, amplitude, normal) -> np.ndarray:
    """Standing waves in spherical coordinates, roughened with noise."""
    radius = np.sqrt(np.sum(position * position, axis=-1))
    theta = np.arctan2(position[..., 2], position[..., 0])
    cos_phi = np.divide(
        position[..., 1], radius, out=np.zeros_like(radius), where=radius > 0
    )
    phi = np.arccos(np.clip(cos_phi, -1.0, 1.0))

    # Integer lobe counts keep the pattern seamless across the atan2 cut
    lobes_theta = max(1, round(frequency * 3))
    lobes_phi = max(1, round(frequency * 4))
    standing = np.sin(theta * lobes_theta + time) * np.cos(phi * lobes_phi - time * 0.7)

    n = snoise3(_time_shift(position, frequency, time))
    return _along_normal(position, normal, standing * 0.7 + n * 0.3, amplitude)


def spiky(position, time, frequency, amplitude, normal) -> np.ndarray:
    """Ridged noise: sharp peaks where the noise crosses zero."""
    n = snoise3(_time_shift(position, frequency * 2.0, time))
    ridge = 1.0 - np.abs(n)
    ridge = smoothstep(0.0, 1.0, ridge) ** 3
    return _along_normal(position, normal, ridge, amplitude)


def turbulence(position, time, frequency, amplitude, normal) -> np.ndarray:
    turb = fbm_turbulence(_time_shift(position, frequency, time), octaves=4)
    # Recentre so the surface both rises and sinks
    return _along_normal(position, normal, turb * 2.0 - 0.5, amplitude * 0.66)


PresetFunction = Callable[..., np.ndarray]

PRESETS: dict[Preset, PresetFunction] = {
    Preset.CLASSIC: classic,
    Preset.TWISTER: twister,
    Preset.TRAVELING_WAVES: traveling_waves,
    Preset.BUBBLES: bubbles,
    Preset.WAVES: waves,
    Preset.SPIKY: spiky,
    Preset.TURBULENCE: turbulence,
}


def apply(
    preset,
    position,
    time: float,
    frequency: float,
    amplitude: float,
    normal,
) -> np.ndarray:
    """
    Displace rest positions with a named preset.

    Args:
        preset: Preset enum or id string. Unknown ids use CLASSIC.
        position: (3,) or (N, 3) rest positions.
        time: Animation time (already scaled by animation speed).
        frequency: Spatial frequency of the pattern.
        amplitude: Displacement strength.
        normal: Surface normals matching position.

    Returns:
        Displaced positions with the same shape as position.
    """
    position = np.asarray(position, dtype=np.float64)
    normal = np.asarray(normal, dtype=np.float64)
    if amplitude == 0:
        return position.copy()

    func = PRESETS.get(Preset.resolve(preset), classic)
    return func(position, float(time), float(frequency), float(amplitude), normal)
