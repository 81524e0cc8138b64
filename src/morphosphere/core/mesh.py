"""
Vertex buffers consumed and produced by the synthesis pipeline.
"""

from dataclasses import dataclass

import numpy as np

from morphosphere.core.vecmath import safe_normalize


def _as_vec3_array(values, name: str) -> np.ndarray:
    arr = np.array(values, dtype=np.float64)
    if arr.ndim == 1:
        arr = arr[np.newaxis, :]
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"{name} must have shape (N, 3), got {arr.shape}")
    return arr


@dataclass(frozen=True)
class RestVertices:
    """
    Undisplaced sphere geometry, one row per mesh vertex.

    Built once from the base mesh and never mutated: both arrays are
    flagged read-only.
    """

    positions: np.ndarray  # (N, 3)
    normals: np.ndarray  # (N, 3)

    def __post_init__(self):
        positions = _as_vec3_array(self.positions, "positions")
        normals = _as_vec3_array(self.normals, "normals")
        if positions.shape != normals.shape:
            raise ValueError(
                f"positions {positions.shape} and normals {normals.shape} differ"
            )
        positions.setflags(write=False)
        normals.setflags(write=False)
        object.__setattr__(self, "positions", positions)
        object.__setattr__(self, "normals", normals)

    @classmethod
    def from_positions(cls, positions) -> "RestVertices":
        """Sphere-style rest vertices whose normals point away from the origin."""
        positions = _as_vec3_array(positions, "positions")
        return cls(positions, safe_normalize(positions, fallback=(0.0, 1.0, 0.0)))

    def __len__(self) -> int:
        return self.positions.shape[0]

    def __getitem__(self, index) -> "RestVertices":
        if isinstance(index, (int, np.integer)):
            index = slice(index, index + 1 if index != -1 else None)
        return RestVertices(self.positions[index], self.normals[index])


@dataclass
class DisplacedVertices:
    """Per-frame output of the engine."""

    positions: np.ndarray  # (N, 3)
    normals: np.ndarray  # (N, 3)
    distance_from_center: np.ndarray  # (N,)

    def __len__(self) -> int:
        return self.positions.shape[0]

    @classmethod
    def concatenate(cls, parts: list["DisplacedVertices"]) -> "DisplacedVertices":
        return cls(
            positions=np.concatenate([p.positions for p in parts]),
            normals=np.concatenate([p.normals for p in parts]),
            distance_from_center=np.concatenate([p.distance_from_center for p in parts]),
        )
