"""
Displacement blending.

Combines preset displacement with external-field displacement, then
adds the glitch offset on top.
"""

import numpy as np

from morphosphere.core import presets
from morphosphere.core.field import ExternalField, field_magnitude, sample_direction
from morphosphere.core.glitch import glitch_offset
from morphosphere.core.mesh import RestVertices
from morphosphere.core.vecmath import mix, safe_normalize
from morphosphere.params import SynthesisParameters


def noise_displacement(
    rest: RestVertices,
    params: SynthesisParameters,
    time: float,
) -> np.ndarray:
    """Preset displacement with animation-speed scaled time."""
    return presets.apply(
        params.preset,
        rest.positions,
        time * params.animation_speed,
        params.noise_frequency,
        params.noise_strength,
        rest.normals,
    )


def field_displacement(
    rest: RestVertices,
    params: SynthesisParameters,
    field: ExternalField | None,
) -> np.ndarray:
    """Push vertices along their normals by the field brightness."""
    direction = safe_normalize(rest.positions)
    magnitude = field_magnitude(sample_direction(direction, field))
    return rest.positions + rest.normals * np.asarray(magnitude * params.hydra_strength)[..., np.newaxis]


def blend(
    rest: RestVertices,
    params: SynthesisParameters,
    field: ExternalField | None,
    time: float,
) -> np.ndarray:
    """
    Final displaced position for each rest vertex.

    Args:
        rest: Rest vertices.
        params: Parameter snapshot for this frame.
        field: External field, or None.
        time: Frame time, shared by every vertex of the frame.

    Returns:
        (N, 3) displaced positions.
    """
    blend_factor = params.hydra_blend

    if blend_factor <= 0.0:
        blended = noise_displacement(rest, params, time)
    elif blend_factor >= 1.0:
        blended = field_displacement(rest, params, field)
    else:
        blended = mix(
            noise_displacement(rest, params, time),
            field_displacement(rest, params, field),
            blend_factor,
        )

    glitch = params.glitch
    if glitch.enabled:
        blended = blended + glitch_offset(
            rest.positions,
            time,
            glitch.frequency,
            glitch.intensity,
            glitch.speed,
            glitch.randomness,
        )

    return blended
