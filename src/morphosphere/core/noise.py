"""
3D simplex noise.

Vectorized with numpy, no per-vertex Python loops.
Follows the Ashima / Gustavson construction used by the displacement
shaders: skewed simplex lattice, four corner contributions, permutation
polynomial hashing and a (0.6 - r^2)^4 falloff kernel.
"""

import numpy as np

# Skew / unskew factors for 3D
_F3 = 1.0 / 3.0
_G3 = 1.0 / 6.0

# 1/7 ring gradient scheme: (2/7, 0.5/7 - 1, 1/7)
_NS = np.array([2.0 / 7.0, 0.5 / 7.0 - 1.0, 1.0 / 7.0])


def _mod289(x: np.ndarray) -> np.ndarray:
    return x - np.floor(x * (1.0 / 289.0)) * 289.0


def _permute(x: np.ndarray) -> np.ndarray:
    return _mod289(((x * 34.0) + 1.0) * x)


def _taylor_inv_sqrt(r: np.ndarray) -> np.ndarray:
    return 1.79284291400159 - 0.85373472095314 * r


def snoise3(p) -> np.ndarray:
    """
    Evaluate 3D simplex noise.

    Args:
        p: (3,) point or (..., 3) array of points.

    Returns:
        Noise values with shape p.shape[:-1], roughly in [-1, 1].
        A single point returns a 0-d float64 array.
    """
    v = np.asarray(p, dtype=np.float64)
    if v.shape[-1] != 3:
        raise ValueError(f"expected (..., 3) points, got shape {v.shape}")

    # First corner
    i = np.floor(v + v.sum(axis=-1, keepdims=True) * _F3)
    x0 = v - i + i.sum(axis=-1, keepdims=True) * _G3

    # Other corners: rank the components of x0
    g = (x0 >= x0[..., [1, 2, 0]]).astype(np.float64)
    l = 1.0 - g
    l_zxy = l[..., [2, 0, 1]]
    i1 = np.minimum(g, l_zxy)
    i2 = np.maximum(g, l_zxy)

    x1 = x0 - i1 + _G3
    x2 = x0 - i2 + 2.0 * _G3
    x3 = x0 - 1.0 + 3.0 * _G3

    # (..., 4, 3) corner offsets and corner-relative positions
    offsets = np.stack([np.zeros_like(i1), i1, i2, np.ones_like(i1)], axis=-2)
    corners = np.stack([x0, x1, x2, x3], axis=-2)

    # Permutations
    i = _mod289(i)
    perm = _permute(i[..., 2:3] + offsets[..., 2])
    perm = _permute(perm + i[..., 1:2] + offsets[..., 1])
    perm = _permute(perm + i[..., 0:1] + offsets[..., 0])

    # Gradients: 7x7 points over a square, mapped onto an octahedron
    j = perm - 49.0 * np.floor(perm * _NS[2] * _NS[2])
    x_ = np.floor(j * _NS[2])
    y_ = np.floor(j - 7.0 * x_)

    gx = x_ * _NS[0] + _NS[1]
    gy = y_ * _NS[0] + _NS[1]
    gz = 1.0 - np.abs(gx) - np.abs(gy)

    sh = -(gz <= 0.0).astype(np.float64)
    gx = gx + (np.floor(gx) * 2.0 + 1.0) * sh
    gy = gy + (np.floor(gy) * 2.0 + 1.0) * sh

    grads = np.stack([gx, gy, gz], axis=-1)
    grads *= _taylor_inv_sqrt((grads * grads).sum(axis=-1))[..., np.newaxis]

    # Mix final noise value
    m = np.maximum(0.6 - (corners * corners).sum(axis=-1), 0.0)
    m = m * m
    contrib = (grads * corners).sum(axis=-1)

    return 42.0 * (m * m * contrib).sum(axis=-1)


def fbm_turbulence(
    p,
    octaves: int = 4,
    lacunarity: float = 2.0,
    gain: float = 0.5,
) -> np.ndarray:
    """Sum of |snoise3| octaves, normalized to [0, 1]."""
    v = np.asarray(p, dtype=np.float64)
    total = np.zeros(v.shape[:-1], dtype=np.float64)
    amplitude = 1.0
    frequency = 1.0
    norm = 0.0

    for octave in range(octaves):
        # Offset each octave so they don't share a lattice origin
        shift = octave * 17.31
        total += np.abs(snoise3(v * frequency + shift)) * amplitude
        norm += amplitude
        amplitude *= gain
        frequency *= lacunarity

    return np.clip(total / max(norm, 1e-8), 0.0, 1.0)
