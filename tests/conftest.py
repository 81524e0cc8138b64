"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from morphosphere.core.mesh import RestVertices

# Radius of the base sphere the app renders
SPHERE_RADIUS = 1.5


def fibonacci_sphere(n: int, radius: float = SPHERE_RADIUS) -> np.ndarray:
    """Evenly spread points on a sphere (vertex positions only)."""
    i = np.arange(n, dtype=np.float64) + 0.5
    phi = np.arccos(1.0 - 2.0 * i / n)
    theta = np.pi * (1.0 + 5.0 ** 0.5) * i
    return radius * np.stack(
        [np.cos(theta) * np.sin(phi), np.cos(phi), np.sin(theta) * np.sin(phi)],
        axis=-1,
    )


class ConstantField:
    """External field returning the same RGBA everywhere."""

    def __init__(self, rgba=(0.6, 0.3, 0.9, 1.0)):
        self.rgba = np.asarray(rgba, dtype=np.float64)
        self.calls = 0

    def sample(self, u, v):
        self.calls += 1
        u = np.asarray(u)
        return np.broadcast_to(self.rgba, u.shape + (4,)).copy()


class LongitudeField:
    """Brightness ramps with u, so displacement varies around the sphere."""

    def sample(self, u, v):
        u = np.asarray(u, dtype=np.float64)
        out = np.empty(u.shape + (4,))
        out[..., 0] = u
        out[..., 1] = u
        out[..., 2] = u
        out[..., 3] = 1.0
        return out


@pytest.fixture
def rest_vertices() -> RestVertices:
    """Small sphere mesh of 500 vertices."""
    return RestVertices.from_positions(fibonacci_sphere(500))


@pytest.fixture
def single_vertex() -> RestVertices:
    """The +Z pole of the base sphere."""
    return RestVertices([[0.0, 0.0, SPHERE_RADIUS]], [[0.0, 0.0, 1.0]])


@pytest.fixture
def dense_rest_vertices() -> RestVertices:
    """Denser sphere for chunked evaluation."""
    return RestVertices.from_positions(fibonacci_sphere(1000))


@pytest.fixture
def constant_field() -> ConstantField:
    return ConstantField()


@pytest.fixture
def longitude_field() -> LongitudeField:
    return LongitudeField()
