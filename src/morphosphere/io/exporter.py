"""
Mesh loading and frame serialization.

Reads rest vertex buffers supplied by the geometry provider and writes
evaluated frames to JSON or compressed numpy archives.
"""

import json
from pathlib import Path
from typing import Any, Union

import numpy as np

from morphosphere.core.mesh import DisplacedVertices, RestVertices
from morphosphere.params import SynthesisParameters

FRAME_SCHEMA_VERSION = "1.0"


def load_rest_vertices(path: Union[str, Path]) -> RestVertices:
    """
    Load rest vertices from disk.

    Supported layouts:
        .npz with a ``positions`` array and optional ``normals`` array
        (normals default to the normalized positions).
        .npy holding an (N, 3) positions array.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file has an unsupported layout.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Mesh file not found: {path}")

    if path.suffix == ".npy":
        return RestVertices.from_positions(np.load(path))

    if path.suffix == ".npz":
        with np.load(path) as data:
            if "positions" not in data.files:
                raise ValueError(f"{path} has no 'positions' array")
            if "normals" in data.files:
                return RestVertices(data["positions"], data["normals"])
            return RestVertices.from_positions(data["positions"])

    raise ValueError(f"Unsupported mesh format: {path.suffix} (expected .npz or .npy)")


class FrameExporter:
    """Exports evaluated frames with their parameter snapshot."""

    def __init__(self, precision: int = 4):
        """
        Initialize the exporter.

        Args:
            precision: Decimal places for floating point values in JSON.
        """
        self.precision = precision

    def _round(self, values: np.ndarray) -> list:
        return np.round(np.asarray(values, dtype=np.float64), self.precision).tolist()

    def to_dict(
        self,
        frame: DisplacedVertices,
        params: SynthesisParameters,
        time: float,
        frame_index: int = 0,
    ) -> dict[str, Any]:
        """Build the JSON-ready dictionary for one frame."""
        return {
            "metadata": {
                "schema_version": FRAME_SCHEMA_VERSION,
                "frame_index": frame_index,
                "time": round(float(time), self.precision),
                "n_vertices": len(frame),
                "parameters": params.to_dict(),
            },
            "positions": self._round(frame.positions),
            "normals": self._round(frame.normals),
            "distance_from_center": self._round(frame.distance_from_center),
        }

    def export_json(
        self,
        frame: DisplacedVertices,
        params: SynthesisParameters,
        time: float,
        output_path: Union[str, Path],
        frame_index: int = 0,
    ) -> Path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(frame, params, time, frame_index), f)

        return output_path

    def export_numpy(
        self,
        frame: DisplacedVertices,
        params: SynthesisParameters,
        time: float,
        output_path: Union[str, Path],
        frame_index: int = 0,
    ) -> Path:
        """
        Export a frame as a compressed .npz archive.

        Parameters are stored as a JSON string under ``parameters``.
        """
        output_path = Path(output_path)
        if output_path.suffix != ".npz":
            output_path = output_path.with_suffix(".npz")
        output_path.parent.mkdir(parents=True, exist_ok=True)

        np.savez_compressed(
            output_path,
            positions=frame.positions.astype(np.float32),
            normals=frame.normals.astype(np.float32),
            distance_from_center=frame.distance_from_center.astype(np.float32),
            time=np.float64(time),
            frame_index=np.int64(frame_index),
            parameters=np.array(json.dumps(params.to_dict())),
        )
        return output_path
