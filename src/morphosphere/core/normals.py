"""
Displaced-normal reconstruction.

The base mesh normals describe the undisplaced sphere. This module
estimates the normal of the displaced surface by re-running the full
blend at six axis-aligned probes around each vertex, then damps the
estimate toward the rest normal so large displacements can't flip it.
"""

import numpy as np

from morphosphere.core.blender import blend
from morphosphere.core.field import ExternalField
from morphosphere.core.mesh import RestVertices
from morphosphere.core.vecmath import mix, safe_normalize
from morphosphere.params import SynthesisParameters

# Object-space probe distance, independent of mesh density
PROBE_EPSILON = 0.05

# Weight of the reconstructed normal vs. the rest normal
NORMAL_DAMPING = 0.7

PROBE_OFFSETS = np.array([
    [PROBE_EPSILON, 0.0, 0.0],
    [-PROBE_EPSILON, 0.0, 0.0],
    [0.0, PROBE_EPSILON, 0.0],
    [0.0, -PROBE_EPSILON, 0.0],
    [0.0, 0.0, PROBE_EPSILON],
    [0.0, 0.0, -PROBE_EPSILON],
])


def reconstruct(
    rest: RestVertices,
    params: SynthesisParameters,
    field: ExternalField | None,
    time: float,
) -> np.ndarray:
    """
    Estimate unit normals of the displaced surface.

    Returns the rest normals unchanged when neither noise nor field
    displacement is active.

    Args:
        rest: Rest vertices.
        params: Parameter snapshot for this frame.
        field: External field, or None.
        time: Frame time.

    Returns:
        (N, 3) unit normals.
    """
    if params.noise_strength == 0 and params.hydra_blend == 0:
        return np.array(rest.normals)

    positions = rest.positions
    center = blend(rest, params, field, time)

    probe_sum = np.zeros_like(positions)
    for offset in PROBE_OFFSETS:
        probe_pos = positions + offset
        probe = RestVertices(probe_pos, safe_normalize(probe_pos, fallback=rest.normals))
        probe_sum += blend(probe, params, field, time)
    probe_avg = probe_sum / len(PROBE_OFFSETS)

    candidate = safe_normalize(center - (probe_avg - positions), fallback=rest.normals)
    return safe_normalize(mix(rest.normals, candidate, NORMAL_DAMPING), fallback=rest.normals)
