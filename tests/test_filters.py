"""
Tests for filters.py
====================
Grayscale and invert filters, and switching between filter modes.
"""

import numpy as np
import pytest

from color_particle_filter import (
    FilterMode,
    FrameFilter,
    Particle,
    grayscale,
    make_target_frame,
    reverse_rgb,
)

RED = (255, 0, 0)


class TestGrayscale:
    """Tests for the luma filter"""

    def test_pure_channels(self):
        frame = np.array([[[255, 0, 0], [0, 255, 0], [0, 0, 255]]], dtype=np.uint8)
        grayscale(frame)
        assert frame[0, :, 0].tolist() == [76, 149, 29]
        assert np.all(frame[..., 0] == frame[..., 1])
        assert np.all(frame[..., 1] == frame[..., 2])

    def test_white_stays_white(self):
        frame = np.full((2, 2, 3), 255, dtype=np.uint8)
        grayscale(frame)
        assert np.all(frame >= 254)

    def test_alpha_untouched(self):
        frame = np.zeros((2, 2, 4), dtype=np.uint8)
        frame[..., 0] = 100
        frame[..., 3] = 7
        grayscale(frame)
        assert np.all(frame[..., 3] == 7)
        assert np.all(frame[..., :3] == 29)


class TestReverseRgb:
    """Tests for the invert filter"""

    def test_inverts_every_byte(self):
        frame = np.array([[[0, 10, 255, 128]]], dtype=np.uint8)
        reverse_rgb(frame)
        assert frame.tolist() == [[[255, 245, 0, 127]]]

    def test_twice_is_identity(self):
        frame = make_target_frame((10, 10), 64, 48, RED, 8)
        original = frame.copy()
        reverse_rgb(frame)
        reverse_rgb(frame)
        assert np.array_equal(frame, original)


class TestFrameFilter:
    """Tests for the active-filter switch"""

    def _buffer(self):
        return bytearray(make_target_frame((20, 10), 64, 48, RED, 8).tobytes())

    def test_normal_leaves_buffer(self):
        frame_filter = FrameFilter((64, 48))
        buf = self._buffer()
        assert frame_filter.apply(buf) is True
        assert buf == self._buffer()

    def test_gray_mode(self):
        frame_filter = FrameFilter((64, 48))
        frame_filter.set_mode(FilterMode.GRAY)
        buf = self._buffer()
        frame_filter.apply(buf)
        frame = np.frombuffer(bytes(buf), dtype=np.uint8).reshape(48, 64, 3)
        assert np.all(frame[..., 0] == frame[..., 2])

    def test_reverse_mode_by_name(self):
        frame_filter = FrameFilter((64, 48))
        frame_filter.set_mode("reverse")
        buf = self._buffer()
        frame_filter.apply(buf)
        assert bytes(buf) == bytes(255 - b for b in self._buffer())

    def test_entering_particle_mode_creates_population(self, rng):
        frame_filter = FrameFilter((64, 48), num_particles=500, rng=rng)
        assert frame_filter.population is None
        frame_filter.set_mode(FilterMode.PARTICLE)
        assert frame_filter.population is not None
        assert frame_filter.population.frame_size == (64, 48)
        assert frame_filter.population.target_count == 500

    def test_staying_in_particle_mode_keeps_history(self, rng):
        frame_filter = FrameFilter((64, 48), num_particles=500, rng=rng)
        frame_filter.set_mode(FilterMode.PARTICLE)
        population = frame_filter.population
        frame_filter.set_mode(FilterMode.PARTICLE)
        assert frame_filter.population is population

    def test_reentering_particle_mode_resets(self, rng):
        frame_filter = FrameFilter((64, 48), num_particles=500, rng=rng)
        frame_filter.set_mode(FilterMode.PARTICLE)
        population = frame_filter.population
        frame_filter.set_mode(FilterMode.NORMAL)
        frame_filter.set_mode(FilterMode.PARTICLE)
        assert frame_filter.population is not population

    def test_particle_mode_advances_population(self, rng):
        frame_filter = FrameFilter((64, 48), num_particles=500, target_color=RED, rng=rng)
        frame_filter.set_mode(FilterMode.PARTICLE)
        frame_filter.population.reseed(count=500)
        assert frame_filter.apply(self._buffer()) is True
        assert len(frame_filter.population) <= 500

    def test_target_color_forwarded(self, rng):
        frame_filter = FrameFilter((64, 48), rng=rng)
        frame_filter.set_mode(FilterMode.PARTICLE)
        frame_filter.target_color = (0, 0, 255)
        assert frame_filter.target_color == (0, 0, 255)
        assert frame_filter.population.target_color == (0, 0, 255)

    def test_invalid_target_color(self):
        frame_filter = FrameFilter((64, 48))
        with pytest.raises(ValueError):
            frame_filter.target_color = (0, 0, 256)

    @pytest.mark.parametrize("mode", [FilterMode.GRAY, FilterMode.REVERSE, FilterMode.PARTICLE])
    def test_malformed_buffer_skipped(self, mode, rng):
        frame_filter = FrameFilter((64, 48), num_particles=100, rng=rng)
        frame_filter.set_mode(mode)
        buf = bytearray(10)
        assert frame_filter.apply(buf) is False
        assert buf == bytearray(10)

    def test_reseed_on_empty(self, rng):
        frame_filter = FrameFilter((64, 48), num_particles=100000, rng=rng, reseed_on_empty=True)
        frame_filter.set_mode(FilterMode.PARTICLE)
        frame_filter.population.particles = [Particle((-5, -5))]
        frame_filter.apply(self._buffer())
        assert len(frame_filter.population) > 0

    def test_empty_population_stays_empty_by_default(self, rng):
        frame_filter = FrameFilter((64, 48), num_particles=100000, rng=rng)
        frame_filter.set_mode(FilterMode.PARTICLE)
        frame_filter.population.particles = [Particle((-5, -5))]
        assert frame_filter.apply(self._buffer()) is True
        assert len(frame_filter.population) == 0

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            FrameFilter((64, 48)).set_mode("sepia")
