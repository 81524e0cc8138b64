"""
Small vector helpers shared by the displacement stages.

All helpers broadcast over leading axes, so a single (3,) vector and an
(N, 3) vertex buffer go through the same code.
"""

import numpy as np

EPSILON = 1e-12


def fract(x):
    """GLSL-style fractional part (always in [0, 1))."""
    return x - np.floor(x)


def mix(a, b, t):
    """
    Linear interpolation between a and b.

    Written as a*(1-t) + b*t so both endpoints are reproduced exactly.
    """
    return a * (1.0 - t) + b * t


def smoothstep(edge0: float, edge1: float, x):
    t = np.clip((x - edge0) / (edge1 - edge0), 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


def length(v) -> np.ndarray:
    return np.sqrt(np.sum(np.square(v), axis=-1))


def safe_normalize(v, fallback=None) -> np.ndarray:
    """
    Normalize vectors along the last axis.

    Zero-length (or non-finite) vectors are replaced by ``fallback``
    (broadcast to the input shape), or left as zeros when no fallback is
    given. Never produces NaN.

    Args:
        v: (3,) or (..., 3) array.
        fallback: Optional replacement vector(s) for degenerate inputs.

    Returns:
        float64 array with the same shape as v.
    """
    v = np.asarray(v, dtype=np.float64)
    n = length(v)[..., np.newaxis]
    ok = np.isfinite(n) & (n > EPSILON)

    out = np.divide(v, n, out=np.zeros_like(v), where=ok)
    if fallback is None:
        return out

    fallback = np.broadcast_to(np.asarray(fallback, dtype=np.float64), v.shape)
    return np.where(ok, out, fallback)


def rotate_y(v, angle) -> np.ndarray:
    """Rotate vectors around the Y axis by ``angle`` radians (per vector)."""
    v = np.asarray(v, dtype=np.float64)
    c = np.cos(angle)
    s = np.sin(angle)
    x = v[..., 0] * c - v[..., 2] * s
    z = v[..., 0] * s + v[..., 2] * c
    return np.stack([x, v[..., 1], z], axis=-1)
