"""Procedural sphere surface synthesis with audio and external-field reactivity."""

from morphosphere.core.field import OscillatorField, TextureField
from morphosphere.core.mesh import DisplacedVertices, RestVertices
from morphosphere.core.presets import Preset
from morphosphere.engine import SurfaceSynthesisEngine
from morphosphere.params import GlitchParameters, SurfaceEffect, SynthesisParameters

__version__ = "0.1.0"
__all__ = [
    "DisplacedVertices",
    "GlitchParameters",
    "OscillatorField",
    "Preset",
    "RestVertices",
    "SurfaceEffect",
    "SurfaceSynthesisEngine",
    "SynthesisParameters",
    "TextureField",
]
