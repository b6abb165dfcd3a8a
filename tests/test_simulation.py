"""
Tests for simulation.py and the video driver
============================================
Synthetic target frames and running the tracker over a video file.
"""

import numpy as np
import pytest

from color_particle_filter import (
    ConfigurationError,
    ParticlePopulation,
    block_bounds,
    make_target_frame,
    move_block,
    run_tracker,
    simulate_target,
)

RED = (255, 0, 0)
CYAN = (0, 255, 255)


class TestMakeTargetFrame:
    """Tests for single synthetic frames"""

    def test_block_and_complement_background(self):
        frame = make_target_frame((10, 20), 64, 48, RED, block_size=5)
        assert frame.shape == (48, 64, 3)
        assert np.all(frame[20:25, 10:15] == RED)
        assert tuple(frame[19, 10]) == CYAN
        assert tuple(frame[20, 15]) == CYAN
        assert np.count_nonzero(np.all(frame == RED, axis=-1)) == 25

    def test_custom_background(self):
        frame = make_target_frame((0, 0), 8, 8, RED, block_size=2, background_color=(1, 2, 3))
        assert tuple(frame[7, 7]) == (1, 2, 3)

    def test_block_bounds_inclusive(self):
        assert block_bounds((10, 20), 5) == (10, 20, 14, 24)


class TestMoveBlock:
    """Tests for the block random walk"""

    def test_stays_inside_frame(self, rng):
        origin = (0, 0)
        for _ in range(500):
            origin = move_block(origin, rng, 64, 48, block_size=10, step_size=20)
            assert 0 <= origin[0] <= 54
            assert 0 <= origin[1] <= 38


class TestSimulateTarget:
    """Tests for multi-frame simulation"""

    def test_frames_and_blocks(self):
        data = simulate_target(frame_width=80, frame_height=60, block_size=10, num_frames=6, seed=3)
        assert len(data) == 6
        for entry in data:
            x0, y0, x1, y1 = entry["block"]
            assert np.all(entry["frame"][y0:y1 + 1, x0:x1 + 1] == RED)

    def test_seed_reproducible(self):
        a = simulate_target(frame_width=80, frame_height=60, block_size=10, num_frames=4, seed=5)
        b = simulate_target(frame_width=80, frame_height=60, block_size=10, num_frames=4, seed=5)
        assert [e["block"] for e in a] == [e["block"] for e in b]


class TestRunTracker:
    """Tests for the video driver"""

    def test_missing_video(self, tmp_path):
        with pytest.raises(ConfigurationError):
            run_tracker(str(tmp_path / "missing.avi"), output_path=str(tmp_path / "out.avi"))

    def test_tracks_simulated_video(self, tmp_path):
        video = tmp_path / "target.avi"
        simulate_target(
            output_path=str(video), frame_width=160, frame_height=120, block_size=30, num_frames=8, seed=1
        )
        if not video.exists() or video.stat().st_size == 0:
            pytest.skip("no video encoder available")

        population = run_tracker(
            str(video), output_path=str(tmp_path / "tracked.avi"), num_particles=2000, seed=7
        )
        assert isinstance(population, ParticlePopulation)
        assert population.frame_size == (160, 120)
        assert len(population) <= 2000
