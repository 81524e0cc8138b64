"""Tests for the displacement blender."""

import numpy as np

from morphosphere.core import presets
from morphosphere.core.blender import blend, field_displacement, noise_displacement
from morphosphere.core.field import TextureField
from morphosphere.core.glitch import glitch_offset
from morphosphere.params import GlitchParameters, SynthesisParameters


class TestNoiseOnly:
    def test_zero_blend_matches_preset_exactly(self, rest_vertices, constant_field):
        params = SynthesisParameters(preset="bubbles", hydra_blend=0.0, animation_speed=0.5)
        result = blend(rest_vertices, params, constant_field, 2.0)

        expected = presets.apply(
            "bubbles",
            rest_vertices.positions,
            2.0 * 0.5,
            params.noise_frequency,
            params.noise_strength,
            rest_vertices.normals,
        )
        np.testing.assert_array_equal(result, expected)

    def test_zero_blend_skips_field(self, rest_vertices, constant_field):
        params = SynthesisParameters(hydra_blend=0.0)
        blend(rest_vertices, params, constant_field, 1.0)
        assert constant_field.calls == 0

    def test_animation_speed_scales_time(self, rest_vertices):
        slow = SynthesisParameters(animation_speed=0.25)
        fast = SynthesisParameters(animation_speed=1.0)
        np.testing.assert_array_equal(
            noise_displacement(rest_vertices, slow, 4.0),
            noise_displacement(rest_vertices, fast, 1.0),
        )

    def test_zero_speed_freezes_noise(self, rest_vertices):
        params = SynthesisParameters(animation_speed=0.0, hydra_blend=0.0)
        np.testing.assert_array_equal(
            blend(rest_vertices, params, None, 0.0),
            blend(rest_vertices, params, None, 13.0),
        )


class TestFieldOnly:
    def test_full_blend_is_field_term(self, rest_vertices, constant_field):
        params = SynthesisParameters(hydra_blend=1.0, hydra_strength=0.5)
        result = blend(rest_vertices, params, constant_field, 3.0)

        # Mean of (0.6, 0.3, 0.9) is 0.6
        expected = rest_vertices.positions + rest_vertices.normals * 0.6 * 0.5
        np.testing.assert_allclose(result, expected, atol=1e-12)

    def test_full_blend_ignores_time(self, rest_vertices, longitude_field):
        params = SynthesisParameters(hydra_blend=1.0)
        np.testing.assert_array_equal(
            blend(rest_vertices, params, longitude_field, 0.0),
            blend(rest_vertices, params, longitude_field, 9.0),
        )

    def test_missing_field_leaves_rest(self, rest_vertices):
        params = SynthesisParameters(hydra_blend=1.0, hydra_strength=1.0)
        np.testing.assert_array_equal(
            field_displacement(rest_vertices, params, None), rest_vertices.positions
        )

    def test_unready_texture_leaves_rest(self, rest_vertices):
        params = SynthesisParameters(hydra_blend=1.0, hydra_strength=1.0)
        result = blend(rest_vertices, params, TextureField(), 0.0)
        np.testing.assert_array_equal(result, rest_vertices.positions)

    def test_field_varies_around_sphere(self, rest_vertices, longitude_field):
        params = SynthesisParameters(hydra_blend=1.0, hydra_strength=1.0)
        result = field_displacement(rest_vertices, params, longitude_field)
        radial = np.linalg.norm(result, axis=1)
        assert radial.max() - radial.min() > 0.5


class TestBlend:
    def test_intermediate_blend_is_linear(self, rest_vertices, constant_field):
        params = SynthesisParameters(hydra_blend=0.25)
        result = blend(rest_vertices, params, constant_field, 1.5)

        noise = noise_displacement(rest_vertices, params, 1.5)
        field = field_displacement(rest_vertices, params, constant_field)
        np.testing.assert_allclose(result, noise * 0.75 + field * 0.25, atol=1e-12)

    def test_no_field_halves_noise_displacement(self, rest_vertices):
        params = SynthesisParameters(hydra_blend=0.5)
        result = blend(rest_vertices, params, None, 0.7)

        noise = noise_displacement(rest_vertices, params, 0.7)
        expected = rest_vertices.positions + (noise - rest_vertices.positions) * 0.5
        np.testing.assert_allclose(result, expected, atol=1e-12)

    def test_does_not_modify_rest(self, rest_vertices, constant_field):
        before = rest_vertices.positions.copy()
        blend(rest_vertices, SynthesisParameters(), constant_field, 1.0)
        np.testing.assert_array_equal(rest_vertices.positions, before)


class TestGlitch:
    def test_glitch_added_on_top(self, rest_vertices, constant_field):
        glitch = GlitchParameters(enabled=True, intensity=2.0, frequency=4.0, randomness=0.8)
        plain = SynthesisParameters(hydra_blend=0.3)
        glitched = plain.updated(glitch=glitch)

        t = 0.6
        offset = glitch_offset(rest_vertices.positions, t, 4.0, 2.0, 1.0, 0.8)
        np.testing.assert_allclose(
            blend(rest_vertices, glitched, constant_field, t),
            blend(rest_vertices, plain, constant_field, t) + offset,
            atol=1e-12,
        )

    def test_glitch_uses_raw_time(self, rest_vertices):
        glitch = GlitchParameters(enabled=True, randomness=1.0)
        params = SynthesisParameters(
            noise_strength=0.0, hydra_blend=0.0, animation_speed=0.0, glitch=glitch
        )
        result = blend(rest_vertices, params, None, 0.25)
        offset = glitch_offset(rest_vertices.positions, 0.25, 3.0, 2.5, 1.0, 1.0)
        np.testing.assert_allclose(result - rest_vertices.positions, offset, atol=1e-12)

    def test_disabled_glitch_changes_nothing(self, rest_vertices):
        params = SynthesisParameters(glitch=GlitchParameters(enabled=False, intensity=5.0))
        baseline = SynthesisParameters()
        np.testing.assert_array_equal(
            blend(rest_vertices, params, None, 1.0),
            blend(rest_vertices, baseline, None, 1.0),
        )
