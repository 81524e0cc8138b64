"""
Audio-reactive parameter modulation.

Consumes precomputed per-band loudness magnitudes (four bands, low to
high), smooths them, and routes them onto synthesis parameters. No DSP
happens here; band extraction belongs to whatever feeds ``update``.
"""

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from morphosphere.params import SynthesisParameters

N_BANDS = 4


@dataclass
class AudioRoute:
    """Adds ``band * gain`` to one numeric parameter."""

    band: int
    target: str  # SynthesisParameters attribute, or "glitch_<name>"
    gain: float = 1.0


def default_routes() -> list[AudioRoute]:
    """Bass swells the surface, highs drive the glitch."""
    return [
        AudioRoute(band=0, target="noise_strength", gain=0.4),
        AudioRoute(band=1, target="hydra_strength", gain=0.3),
        AudioRoute(band=3, target="glitch_intensity", gain=1.5),
    ]


@dataclass
class AudioReactor:
    """
    Smoothed four-band audio state.

    Each update keeps ``retain`` of the previous value and mixes in the
    new magnitude scaled by ``input_scale``.
    """

    routes: list[AudioRoute] = field(default_factory=default_routes)
    retain: float = 0.4
    input_scale: float = 0.1

    def __post_init__(self):
        self.bands = np.zeros(N_BANDS, dtype=np.float64)

    def reset(self):
        self.bands = np.zeros(N_BANDS, dtype=np.float64)

    def update(self, magnitudes: Sequence[float]) -> np.ndarray:
        """
        Feed one analysis frame of band magnitudes.

        Shorter inputs leave the missing bands at zero; extra values are
        ignored. Non-finite values count as silence.

        Returns:
            The smoothed (4,) band array.
        """
        raw = np.zeros(N_BANDS, dtype=np.float64)
        values = np.nan_to_num(np.asarray(magnitudes, dtype=np.float64).ravel()[:N_BANDS])
        raw[:values.size] = values

        self.bands = self.bands * self.retain + raw * self.input_scale * (1.0 - self.retain)
        return self.bands.copy()

    def modulate(self, params: SynthesisParameters) -> SynthesisParameters:
        """Apply routes on top of a base snapshot (result is clamped)."""
        changes: dict[str, float] = {}
        for route in self.routes:
            if not 0 <= route.band < N_BANDS:
                continue
            current = changes.get(route.target)
            if current is None:
                current = _read_target(params, route.target)
                if current is None:
                    continue
            changes[route.target] = current + self.bands[route.band] * route.gain

        if not changes:
            return params
        return params.updated(**changes)


def _read_target(params: SynthesisParameters, target: str) -> float | None:
    if target.startswith("glitch_"):
        value = getattr(params.glitch, target[len("glitch_"):], None)
    else:
        value = getattr(params, target, None)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)
