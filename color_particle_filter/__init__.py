"""
Color Particle Filter.

A small library for tracking a target color in a live RGB stream with a
particle filter, plus the grayscale and invert pixel filters that share its
frame-buffer handling.
"""

from .color import Color, color_similarity, complement_color
from .errors import (
    ColorParticleFilterError,
    ConfigurationError,
    FrameBufferError,
    InvalidColorError,
)
from .filters import FilterMode, FrameFilter, grayscale, reverse_rgb
from .frame import frame_view, required_buffer_size, sample_frame
from .simulation import block_bounds, make_target_frame, move_block, simulate_target
from .tracker import (
    Particle,
    ParticlePopulation,
    predict,
    select,
    normalize_weights,
    diffuse,
    estimate_centroid,
    annotate,
    particle_filter_step,
    run_tracker,
)
from .visualization import draw_crosshair, draw_particles, in_frame_mask
