"""
Synthesis parameters.

Immutable snapshots of the control surface. Values come from
user-adjustable controls, so everything is clamped or defaulted here
instead of raising.
"""

import dataclasses
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping
from urllib.parse import parse_qsl, urlencode

from PIL import ImageColor

from morphosphere.core.presets import Preset


class SurfaceEffect(str, Enum):
    """Surface shading effect ids handed through to the renderer."""

    DEFAULT = "default"
    FRESNEL_RIM = "fresnel_rim"
    FRESNEL_GLOW = "fresnel_glow"
    FRESNEL_ANIMATED = "fresnel_animated"
    IRIDESCENT = "iridescent"
    HOLOGRAPHIC = "holographic"
    PEARLESCENT = "pearlescent"
    CHROMATIC = "chromatic"
    AMBIENT_OCCLUSION = "ambient_occlusion"
    CAVITY = "cavity"
    CURVATURE = "curvature"
    DISPLACEMENT_PEAKS = "displacement_peaks"

    @classmethod
    def resolve(cls, value) -> "SurfaceEffect":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.DEFAULT


# (min, max) for every clamped numeric field
RANGES: dict[str, tuple[float, float]] = {
    "noise_strength": (0.0, 1.0),
    "noise_frequency": (0.1, 5.0),
    "animation_speed": (0.0, 2.0),
    "fresnel_intensity": (0.0, 10.0),
    "hydra_blend": (0.0, 1.0),
    "hydra_strength": (0.0, 1.0),
}

GLITCH_RANGES: dict[str, tuple[float, float]] = {
    "intensity": (0.0, 5.0),
    "frequency": (1.0, 50.0),
    "speed": (0.0, 5.0),
    "randomness": (0.0, 1.0),
}

DEFAULT_FRESNEL_COLOR = "#4db8ff"


def _clamp(value: Any, bounds: tuple[float, float], default: float) -> float:
    """Clamp to bounds; non-numeric or NaN values fall back to default."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(value):
        return default
    lo, hi = bounds
    return min(max(value, lo), hi)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


def parse_color(value: Any, default: str = DEFAULT_FRESNEL_COLOR) -> tuple[float, float, float]:
    """
    Parse a colour into an RGB float triple in [0, 1].

    Accepts anything Pillow understands ("#4db8ff", "red", "rgb(...)")
    or a sequence of three floats already in [0, 1].
    """
    if isinstance(value, (tuple, list)) and len(value) == 3:
        try:
            return tuple(min(max(float(c), 0.0), 1.0) for c in value)
        except (TypeError, ValueError):
            pass
    try:
        rgb = ImageColor.getrgb(str(value))
    except ValueError:
        rgb = ImageColor.getrgb(default)
    return tuple(c / 255.0 for c in rgb[:3])


def color_to_hex(rgb: tuple[float, float, float]) -> str:
    return "#" + "".join(f"{int(round(c * 255)):02x}" for c in rgb)


@dataclass(frozen=True)
class GlitchParameters:
    """Grid glitch controls."""

    enabled: bool = False
    intensity: float = 2.5
    frequency: float = 3.0  # grid cells per unit
    speed: float = 1.0
    randomness: float = 0.5

    def __post_init__(self):
        defaults = _FIELD_DEFAULTS[GlitchParameters]
        object.__setattr__(self, "enabled", _as_bool(self.enabled))
        for name, bounds in GLITCH_RANGES.items():
            object.__setattr__(self, name, _clamp(getattr(self, name), bounds, defaults[name]))


@dataclass(frozen=True)
class SynthesisParameters:
    """
    One snapshot of the synthesis controls.

    Treated as immutable per evaluation; use ``updated`` to derive a new
    snapshot. Out-of-range values are clamped, unknown enum ids fall
    back to their defaults.
    """

    preset: Preset = Preset.CLASSIC
    surface_effect: SurfaceEffect = SurfaceEffect.DEFAULT

    noise_strength: float = 0.3
    noise_frequency: float = 1.5
    animation_speed: float = 0.3

    fresnel_intensity: float = 0.8
    fresnel_color: tuple[float, float, float] = field(
        default_factory=lambda: parse_color(DEFAULT_FRESNEL_COLOR)
    )

    glitch: GlitchParameters = field(default_factory=GlitchParameters)

    # External field ("hydra") blending: 0 = pure noise, 1 = pure field
    hydra_blend: float = 0.5
    hydra_strength: float = 0.3

    def __post_init__(self):
        defaults = _FIELD_DEFAULTS[SynthesisParameters]
        object.__setattr__(self, "preset", Preset.resolve(self.preset))
        object.__setattr__(self, "surface_effect", SurfaceEffect.resolve(self.surface_effect))
        object.__setattr__(self, "fresnel_color", parse_color(self.fresnel_color))
        for name, bounds in RANGES.items():
            object.__setattr__(self, name, _clamp(getattr(self, name), bounds, defaults[name]))

        glitch = self.glitch
        if isinstance(glitch, Mapping):
            glitch = GlitchParameters(**glitch)
        elif not isinstance(glitch, GlitchParameters):
            glitch = GlitchParameters()
        object.__setattr__(self, "glitch", glitch)

    def updated(self, **changes) -> "SynthesisParameters":
        """
        Return a new snapshot with changes applied.

        Glitch fields may be given flat with a ``glitch_`` prefix
        (``glitch_intensity=1.0``).
        """
        glitch_changes = {
            key[len("glitch_"):]: changes.pop(key)
            for key in list(changes)
            if key.startswith("glitch_")
        }
        if glitch_changes:
            changes["glitch"] = dataclasses.replace(self.glitch, **glitch_changes)
        return dataclasses.replace(self, **changes)

    # --- Flat camelCase surface (query strings / JSON config) ---

    def to_dict(self) -> dict[str, Any]:
        """Flat dict keyed by the control names."""
        return {
            "preset": self.preset.value,
            "fragmentPreset": self.surface_effect.value,
            "fresnelIntensity": self.fresnel_intensity,
            "fresnelColor": color_to_hex(self.fresnel_color),
            "noiseStrength": self.noise_strength,
            "noiseFrequency": self.noise_frequency,
            "animationSpeed": self.animation_speed,
            "glitchEnabled": self.glitch.enabled,
            "glitchIntensity": self.glitch.intensity,
            "glitchFrequency": self.glitch.frequency,
            "glitchSpeed": self.glitch.speed,
            "glitchRandomness": self.glitch.randomness,
            "hydraBlend": self.hydra_blend,
            "hydraStrength": self.hydra_strength,
        }

    @classmethod
    def from_dict(
        cls,
        values: Mapping[str, Any],
        base: "SynthesisParameters | None" = None,
    ) -> "SynthesisParameters":
        """
        Build parameters from flat control names.

        Unknown keys are ignored; missing keys keep the values of ``base``
        (or the defaults).
        """
        base = base or cls()
        changes: dict[str, Any] = {}
        for key, value in values.items():
            attr = _FLAT_KEYS.get(key)
            if attr is not None:
                changes[attr] = value
        return base.updated(**changes)

    def to_query(self) -> str:
        """Encode as a URL query string."""
        flat = {
            key: ("true" if value else "false") if isinstance(value, bool) else value
            for key, value in self.to_dict().items()
        }
        return urlencode(flat)

    @classmethod
    def from_query(
        cls,
        query: str,
        base: "SynthesisParameters | None" = None,
    ) -> "SynthesisParameters":
        """
        Parse a URL query string (with or without a leading ``?``).

        ``true``/``false`` become booleans, numeric strings become floats,
        anything else is kept as a string.
        """
        values: dict[str, Any] = {}
        for key, raw in parse_qsl(query.lstrip("?"), keep_blank_values=False):
            if raw in ("true", "false"):
                values[key] = raw == "true"
            else:
                try:
                    values[key] = float(raw)
                except ValueError:
                    values[key] = raw
        return cls.from_dict(values, base=base)


_FLAT_KEYS: dict[str, str] = {
    "preset": "preset",
    "fragmentPreset": "surface_effect",
    "fresnelIntensity": "fresnel_intensity",
    "fresnelColor": "fresnel_color",
    "noiseStrength": "noise_strength",
    "noiseFrequency": "noise_frequency",
    "animationSpeed": "animation_speed",
    "glitchEnabled": "glitch_enabled",
    "glitchIntensity": "glitch_intensity",
    "glitchFrequency": "glitch_frequency",
    "glitchSpeed": "glitch_speed",
    "glitchRandomness": "glitch_randomness",
    "hydraBlend": "hydra_blend",
    "hydraStrength": "hydra_strength",
}

_FIELD_DEFAULTS: dict[type, dict[str, Any]] = {
    GlitchParameters: {
        f.name: f.default for f in dataclasses.fields(GlitchParameters)
    },
    SynthesisParameters: {
        f.name: f.default
        for f in dataclasses.fields(SynthesisParameters)
        if f.default is not dataclasses.MISSING
    },
}
