"""Tests for the displacement preset library."""

import numpy as np
import pytest

from morphosphere.core import presets
from morphosphere.core.noise import snoise3
from morphosphere.core.presets import PRESETS, Preset

ALL_PRESETS = list(Preset)


class TestPresetResolution:
    def test_string_ids(self):
        assert Preset.resolve("twister") is Preset.TWISTER
        assert Preset.resolve("Traveling_Waves") is Preset.TRAVELING_WAVES

    def test_unknown_falls_back_to_classic(self):
        assert Preset.resolve("not-a-preset") is Preset.CLASSIC
        assert Preset.resolve(None) is Preset.CLASSIC

    def test_every_preset_has_a_function(self):
        assert set(PRESETS) == set(Preset)

    def test_unknown_id_matches_classic(self, rest_vertices):
        args = (rest_vertices.positions, 1.3, 1.5, 0.3, rest_vertices.normals)
        np.testing.assert_array_equal(
            presets.apply("bogus", *args), presets.apply("classic", *args)
        )


class TestClassic:
    def test_matches_formula(self, single_vertex):
        pos = single_vertex.positions
        normal = single_vertex.normals
        t, freq, amp = 0.7, 1.5, 0.3

        result = presets.apply(Preset.CLASSIC, pos, t, freq, amp, normal)

        noise_pos = np.array([pos[0, 0] * freq + t, pos[0, 1] * freq, pos[0, 2] * freq])
        expected = pos + normal * snoise3(noise_pos) * amp
        np.testing.assert_allclose(result, expected, atol=1e-12)

    def test_displacement_bounded_by_strength(self):
        """Rest (0, 0, 1.5), frequency 1.5, strength 0.3, time 0."""
        pos = np.array([0.0, 0.0, 1.5])
        normal = np.array([0.0, 0.0, 1.0])

        result = presets.apply("classic", pos, 0.0, 1.5, 0.3, normal)
        delta = result - pos

        # Purely along the normal, at most the strength
        assert delta[0] == 0.0 and delta[1] == 0.0
        assert abs(delta[2]) <= 0.3 + 1e-9

        again = presets.apply("classic", pos, 0.0, 1.5, 0.3, normal)
        np.testing.assert_array_equal(result, again)

    def test_single_vector_shape(self):
        result = presets.apply("classic", [1.5, 0, 0], 0.0, 1.0, 0.2, [1, 0, 0])
        assert result.shape == (3,)


class TestAllPresets:
    @pytest.mark.parametrize("preset", ALL_PRESETS)
    def test_zero_amplitude_is_identity(self, preset, rest_vertices):
        result = presets.apply(
            preset, rest_vertices.positions, 2.0, 1.5, 0.0, rest_vertices.normals
        )
        np.testing.assert_array_equal(result, rest_vertices.positions)

    @pytest.mark.parametrize("preset", ALL_PRESETS)
    def test_shape_and_finite(self, preset, rest_vertices):
        result = presets.apply(
            preset, rest_vertices.positions, 1.0, 1.5, 0.5, rest_vertices.normals
        )
        assert result.shape == rest_vertices.positions.shape
        assert np.all(np.isfinite(result))

    @pytest.mark.parametrize("preset", ALL_PRESETS)
    def test_displacement_stays_bounded(self, preset, rest_vertices):
        amp = 0.5
        result = presets.apply(
            preset, rest_vertices.positions, 3.0, 2.0, amp, rest_vertices.normals
        )
        radial = np.linalg.norm(result, axis=1)
        # Nothing escapes far beyond the base radius
        assert np.all(np.abs(radial - 1.5) <= amp * 1.5)

    @pytest.mark.parametrize("preset", ALL_PRESETS)
    def test_deforms_surface(self, preset, rest_vertices):
        result = presets.apply(
            preset, rest_vertices.positions, 0.5, 1.5, 0.4, rest_vertices.normals
        )
        assert not np.allclose(result, rest_vertices.positions)

    @pytest.mark.parametrize("preset", ALL_PRESETS)
    def test_time_animates(self, preset, rest_vertices):
        a = presets.apply(preset, rest_vertices.positions, 0.0, 1.5, 0.4, rest_vertices.normals)
        b = presets.apply(preset, rest_vertices.positions, 1.7, 1.5, 0.4, rest_vertices.normals)
        assert not np.allclose(a, b)

    def test_presets_differ(self, rest_vertices):
        outputs = {
            p: presets.apply(p, rest_vertices.positions, 0.5, 1.5, 0.4, rest_vertices.normals)
            for p in ALL_PRESETS
        }
        for i, a in enumerate(ALL_PRESETS):
            for b in ALL_PRESETS[i + 1:]:
                assert not np.allclose(outputs[a], outputs[b]), f"{a} == {b}"

    def test_switching_presets_is_stateless(self, rest_vertices):
        args = (rest_vertices.positions, 0.8, 1.5, 0.3, rest_vertices.normals)
        before = presets.apply("spiky", *args)
        presets.apply("twister", *args)
        presets.apply("turbulence", *args)
        np.testing.assert_array_equal(presets.apply("spiky", *args), before)


class TestTravelingWaves:
    def test_constant_along_latitude(self):
        """Vertices at the same height get the same displacement."""
        angles = np.linspace(0, 2 * np.pi, 8, endpoint=False)
        y = 0.6
        r = np.sqrt(1.5 ** 2 - y ** 2)
        pos = np.stack([r * np.cos(angles), np.full_like(angles, y), r * np.sin(angles)], axis=1)
        normal = pos / 1.5

        result = presets.apply("traveling_waves", pos, 0.4, 1.5, 0.3, normal)
        offsets = np.einsum("ij,ij->i", result - pos, normal)
        np.testing.assert_allclose(offsets, offsets[0], atol=1e-12)


class TestTwister:
    def test_twist_preserves_horizontal_radius(self):
        """The twist is a Y-axis rotation, so only the Y push remains."""
        pos = np.array([[1.5, 0.0, 0.0]])
        normal = np.array([[0.0, 1.0, 0.0]])  # push along Y only
        result = presets.apply("twister", pos, 1.0, 1.0, 0.3, normal)
        # Horizontal radius is untouched by the rotation
        assert np.hypot(result[0, 0], result[0, 2]) == pytest.approx(1.5)
