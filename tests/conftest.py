import numpy as np
import pytest

from color_particle_filter import Particle, ParticlePopulation

RED = (255, 0, 0)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def make_population(rng):
    """Build a population of 640x360 by default and replace its particles."""

    def _make(particles=(), frame_size=(640, 360), target_count=10000, target_color=RED):
        population = ParticlePopulation(frame_size, target_count, target_color, rng=rng)
        population.particles = [
            p if isinstance(p, Particle) else Particle(p) for p in particles
        ]
        return population

    return _make
