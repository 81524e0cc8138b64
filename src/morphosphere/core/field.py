"""
External field sampling.

Maps sphere directions onto a flat 2D source via equirectangular
projection and reads the source as RGBA. Sources are owned by the
caller (typically a live visual synthesizer); the pipeline only reads
the most recently published frame.
"""

import math
import threading
from pathlib import Path
from typing import Protocol, Union

import numpy as np
from PIL import Image
from scipy.ndimage import map_coordinates


class ExternalField(Protocol):
    """Anything the sampler can read: sample(u, v) -> (..., 4) floats."""

    def sample(self, u, v) -> np.ndarray:
        ...


def equirect_uv(direction) -> tuple[np.ndarray, np.ndarray]:
    """
    Equirectangular UV for unit directions.

    Args:
        direction: (3,) or (N, 3) unit vectors.

    Returns:
        (u, v) arrays in [0, 1]. The y component is clamped before asin,
        so poles and slightly denormalized input stay finite.
    """
    d = np.nan_to_num(np.asarray(direction, dtype=np.float64))
    u = 0.5 + np.arctan2(d[..., 2], d[..., 0]) / (2.0 * math.pi)
    v = 0.5 - np.arcsin(np.clip(d[..., 1], -1.0, 1.0)) / math.pi
    return u, v


def sample_direction(direction, field: ExternalField | None) -> np.ndarray:
    """
    Sample an external field along sphere directions.

    Returns zeros of shape (..., 4) when no field is available, so
    callers degrade to pure noise displacement.
    """
    direction = np.asarray(direction, dtype=np.float64)
    if field is None or not getattr(field, "ready", True):
        return np.zeros(direction.shape[:-1] + (4,), dtype=np.float64)

    u, v = equirect_uv(direction)
    return np.asarray(field.sample(u, v), dtype=np.float64)


def field_magnitude(sample) -> np.ndarray:
    """Average of the RGB channels of an RGBA sample."""
    sample = np.asarray(sample, dtype=np.float64)
    return sample[..., :3].mean(axis=-1)


def _to_rgba_float(image) -> np.ndarray:
    """Normalize an image array to (H, W, 4) float32 in [0, 1]."""
    arr = np.asarray(image)
    if arr.ndim == 2:
        arr = arr[:, :, np.newaxis]
    if arr.ndim != 3 or arr.shape[2] not in (1, 3, 4):
        raise ValueError(f"expected (H, W), (H, W, 3) or (H, W, 4) image, got {arr.shape}")

    if np.issubdtype(arr.dtype, np.integer):
        arr = arr.astype(np.float32) / 255.0
    else:
        arr = np.clip(arr.astype(np.float32), 0.0, 1.0)

    h, w, c = arr.shape
    if c == 1:
        arr = np.repeat(arr, 3, axis=2)
    if arr.shape[2] == 3:
        arr = np.concatenate([arr, np.ones((h, w, 1), dtype=np.float32)], axis=2)
    return arr


class TextureField:
    """
    Bilinear, repeat-wrapped RGBA texture.

    ``publish`` swaps in a new frame; readers always see one complete
    frame (possibly one frame old).
    """

    def __init__(self, image=None):
        self._lock = threading.Lock()
        self._frame: np.ndarray | None = None
        if image is not None:
            self.publish(image)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "TextureField":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Field image not found: {path}")
        with Image.open(path) as img:
            return cls(np.asarray(img.convert("RGBA")))

    @property
    def ready(self) -> bool:
        return self._frame is not None

    @property
    def shape(self) -> tuple[int, int] | None:
        frame = self._frame
        return None if frame is None else frame.shape[:2]

    def publish(self, image) -> None:
        """Replace the current frame with a new image."""
        frame = _to_rgba_float(image)
        with self._lock:
            self._frame = frame

    def sample(self, u, v) -> np.ndarray:
        frame = self._frame
        u = np.asarray(u, dtype=np.float64)
        v = np.asarray(v, dtype=np.float64)
        if frame is None:
            return np.zeros(u.shape + (4,), dtype=np.float64)

        h, w = frame.shape[:2]
        # v = 0 is the bottom row, texel centres sit at integer coordinates
        cols = u.ravel() * w - 0.5
        rows = (1.0 - v.ravel()) * h - 0.5

        out = np.empty((cols.size, 4), dtype=np.float64)
        for c in range(4):
            out[:, c] = map_coordinates(
                frame[:, :, c], [rows, cols], order=1, mode="grid-wrap"
            )
        return out.reshape(u.shape + (4,))


class OscillatorField:
    """
    Procedural sine oscillator, ``osc(frequency, sync, offset)``.

    Each colour channel is a vertical-stripe sine phase-shifted by
    ``offset``; ``time`` scrolls the stripes at ``sync`` speed.
    """

    def __init__(
        self,
        frequency: float = 10.0,
        sync: float = 0.1,
        offset: float = 1.5,
        time: float = 0.0,
    ):
        self.frequency = frequency
        self.sync = sync
        self.offset = offset
        self.time = time

    def sample(self, u, v) -> np.ndarray:
        u = np.asarray(u, dtype=np.float64)
        freq = self.frequency if self.frequency != 0 else 1e-6
        phase = u + self.time * self.sync

        out = np.empty(u.shape + (4,), dtype=np.float64)
        for c, shift in enumerate((-self.offset, 0.0, self.offset)):
            out[..., c] = np.sin((phase + shift / freq) * freq) * 0.5 + 0.5
        out[..., 3] = 1.0
        return out
