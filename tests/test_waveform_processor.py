"""
Tests for the phase-aligned standing wave.
"""

import numpy as np
import pytest

from scituner.errors import PreconditionViolation
from scituner.stats import data_dev
from scituner.waveform_processor import (
    EDGE_VERTICES,
    FREQ_MAX,
    FREQ_MIN,
    LIGHT_REPEAT,
    WAVE_BASELINE,
    WAVE_GAIN,
    aligned_segment,
    build_smooth_standing_wave,
    build_standing_wave,
    display_frequency,
    shortest_window,
)


def _tone(ctx, offset, frequency=441.0, amplitude=0.5):
    """Fill ctx with a tone starting `offset` samples into its cycle."""
    n = np.arange(ctx.signal_length) + offset
    ctx.push(amplitude * np.sin(2 * np.pi * frequency * n / ctx.sample_rate))
    ctx.peak_frequency = frequency


class TestDisplayFrequency:
    """Tests for display_frequency clamping."""

    def test_in_range(self):
        assert display_frequency(440.0) == 440.0
        assert display_frequency(41.2) == 41.2

    def test_upper_clamp(self):
        assert display_frequency(30000.0) == FREQ_MAX

    def test_lower_clamp(self):
        assert display_frequency(5.0) == FREQ_MIN
        assert display_frequency(0.0) == FREQ_MIN

    def test_shortest_window(self):
        assert shortest_window(44100) == 16384
        assert shortest_window(8000) == 2048


class TestAlignedSegment:
    """Tests for aligned_segment."""

    @pytest.mark.parametrize("offset", [0, 37, 1000, 2222])
    def test_starts_on_crest(self, make_context, offset):
        ctx = make_context(sample_count=4096)
        _tone(ctx, offset)
        start, wavelength = aligned_segment(ctx)
        assert wavelength == pytest.approx(100.0)
        assert 0 <= start < ctx.signal_length - 2 * wavelength
        assert ctx.signal[start] == pytest.approx(0.5, abs=0.01)

    def test_low_note_uses_its_own_wavelength(self, make_context):
        ctx = make_context(sample_count=16384)
        _tone(ctx, 0, frequency=41.2)
        start, wavelength = aligned_segment(ctx)
        assert start >= 0
        assert wavelength == pytest.approx(44100 / 41.2)

    @pytest.mark.parametrize("offset", [0, 300, 1100, 1700])
    def test_lowest_note_fits_shortest_window(self, make_context, sample_rate, offset):
        ctx = make_context(sample_count=shortest_window(sample_rate))
        _tone(ctx, offset, frequency=FREQ_MIN)
        start, wavelength = aligned_segment(ctx)
        assert start >= 0
        assert wavelength == pytest.approx(sample_rate / FREQ_MIN)

    def test_low_note_in_short_window(self, make_context):
        # silence gives zero phase: start = 1956 - 1070 - 1070 < 0
        ctx = make_context(sample_count=4096)
        ctx.peak_frequency = 41.2
        with pytest.raises(PreconditionViolation):
            aligned_segment(ctx)

    def test_clamped_floor_in_short_window(self, make_context):
        ctx = make_context(sample_count=4096)
        ctx.recalculate()
        assert ctx.peak_frequency == 0.0
        with pytest.raises(PreconditionViolation):
            aligned_segment(ctx)
        with pytest.raises(PreconditionViolation):
            build_standing_wave(ctx, 64)

    def test_closed_context(self, make_context):
        ctx = make_context()
        ctx.close()
        with pytest.raises(PreconditionViolation):
            aligned_segment(ctx)


class TestStandingWave:
    """Tests for build_standing_wave."""

    def test_layout(self, make_context):
        ctx = make_context(sample_count=4096)
        _tone(ctx, 0)
        wave = build_standing_wave(ctx, 128)
        assert len(wave) == 128
        x = wave.vertices()[:, 0]
        assert x[0] == pytest.approx(-0.8)
        np.testing.assert_allclose(np.diff(x), 1.6 / 128, atol=1e-6)

    def test_normalized(self, make_context):
        ctx = make_context(sample_count=4096)
        _tone(ctx, 0)
        y = build_standing_wave(ctx, 128).vertices()[:, 1]
        assert np.max(np.abs(y - WAVE_BASELINE)) == pytest.approx(WAVE_GAIN, abs=1e-6)
        assert np.mean(y) == pytest.approx(WAVE_BASELINE, abs=1e-5)

    def test_steady_across_frames(self, make_context):
        waves = []
        for offset in (0, 37, 1000):
            ctx = make_context(sample_count=4096)
            _tone(ctx, offset)
            waves.append(build_standing_wave(ctx, 128).vertices()[:, 1])
        np.testing.assert_allclose(waves[1], waves[0], atol=0.03)
        np.testing.assert_allclose(waves[2], waves[0], atol=0.03)

    @pytest.mark.parametrize("frequency", [441.0, 220.5, 1102.5])
    def test_zero_crossings_evenly_spaced(self, make_context, frequency):
        # 128 vertices cover two wavelengths: a crossing every 32 vertices
        count = 128
        ctx = make_context(sample_count=4096)
        _tone(ctx, 37, frequency=frequency)
        y = build_standing_wave(ctx, count).vertices()[:, 1] - WAVE_BASELINE

        crossings = []
        for j in range(count - 1):
            if (y[j] > 0) != (y[j + 1] > 0):
                crossings.append(j + y[j] / (y[j] - y[j + 1]))

        assert len(crossings) == 4
        np.testing.assert_allclose(np.diff(crossings), count / 4, atol=1.0)
        # segment starts on a crest, within one source sample
        assert crossings[0] == pytest.approx(count / 8, abs=2.0)

    def test_silence_is_flat(self, make_context):
        ctx = make_context(sample_count=16384)
        ctx.recalculate()
        y = build_standing_wave(ctx, 64).vertices()[:, 1]
        np.testing.assert_allclose(y, WAVE_BASELINE)


class TestSmoothStandingWave:
    """Tests for build_smooth_standing_wave."""

    def test_counts(self, make_context):
        ctx = make_context(sample_count=4096, point_count=64)
        _tone(ctx, 0)
        mesh, light = build_smooth_standing_wave(ctx, 0.02)
        assert len(mesh) == 63 * EDGE_VERTICES
        assert len(light) == 63 * LIGHT_REPEAT
        assert mesh.dimension == 2
        assert light.dimension == 4

    def test_points_normalized(self, make_context):
        ctx = make_context(sample_count=4096, point_count=64)
        _tone(ctx, 0)
        build_smooth_standing_wave(ctx, 0.02)
        assert data_dev(ctx.points) == pytest.approx(0.2)
        assert np.mean(ctx.points) == pytest.approx(0.0, abs=0.05)

    def test_mesh_x_range(self, make_context):
        ctx = make_context(sample_count=4096, point_count=64)
        _tone(ctx, 0)
        mesh, _ = build_smooth_standing_wave(ctx, 0.02)
        x = mesh.vertices()[:, 0]
        assert np.min(x) == pytest.approx(-1.0)
        assert np.max(x) == pytest.approx(2.0 * 63 / 64 - 1.0)

    def test_light_tapered_at_ends(self, make_context):
        ctx = make_context(sample_count=4096, point_count=64)
        _tone(ctx, 0)
        _, light = build_smooth_standing_wave(ctx, 0.02)
        v = light.vertices()
        dx = 2.0 / 64
        assert v[0, 0] == pytest.approx(-1.0 + 0.01)
        assert v[LIGHT_REPEAT, 0] == pytest.approx(dx - 1.0)
        assert v[-1, 2] == pytest.approx(dx * 63 - 1.0 - 0.01)
        assert v[-LIGHT_REPEAT - 1, 2] == pytest.approx(dx * 62 - 1.0)
