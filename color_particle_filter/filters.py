"""
Per-frame pixel filters and the active-filter switch.

``grayscale`` and ``reverse_rgb`` rewrite a frame in-place.  ``FrameFilter``
holds the currently selected filter and owns the particle population while
the particle tracker is active.
"""

import enum
import logging

import cv2
import numpy as np

from .color import Color
from .errors import FrameBufferError
from .frame import frame_view
from .tracker import (
    DEFAULT_FRAME_HEIGHT,
    DEFAULT_FRAME_WIDTH,
    DEFAULT_NUM_PARTICLES,
    DEFAULT_TARGET_COLOR,
    ParticlePopulation,
    particle_filter_step,
)

logger = logging.getLogger(__name__)

GRAY_WEIGHTS = (0.299, 0.587, 0.114)


def grayscale(frame_rgb):
    """Replace the color channels of every pixel with its luma (in-place).

    ``gray = 0.299 R + 0.587 G + 0.114 B``, truncated.  Channels beyond the
    third are left alone.
    """
    rgb = frame_rgb[..., :3]
    gray = rgb.astype(np.float32) @ np.asarray(GRAY_WEIGHTS, dtype=np.float32)
    rgb[...] = gray.astype(np.uint8)[..., np.newaxis]


def reverse_rgb(frame_rgb):
    """Invert every byte of the frame (in-place), alpha included."""
    if frame_rgb.flags.c_contiguous:
        cv2.bitwise_not(frame_rgb, dst=frame_rgb)
    else:
        np.subtract(255, frame_rgb, out=frame_rgb)


class FilterMode(enum.Enum):
    NORMAL = "normal"
    GRAY = "gray"
    REVERSE = "reverse"
    PARTICLE = "particle"


class FrameFilter:
    """Applies the selected filter to each incoming frame.

    Switching into :attr:`FilterMode.PARTICLE` from any other mode starts a
    fresh particle population; staying in it keeps the accumulated state.

    Parameters
    ----------
    frame_size : tuple[int, int]
        ``(width, height)`` of the incoming frames.
    n_channels : int
        Bytes per pixel of the incoming buffers.
    rowstride : int or None
        Bytes per row, when rows are padded.
    num_particles : int
        Target population size for the tracker.
    target_color : sequence
        Initial RGB color to track.
    rng : numpy.random.Generator or None
        Passed on to every population this filter creates.
    reseed_on_empty : bool
        Draw a fresh cloud when the tracker's population dies out.
    """

    def __init__(
        self,
        frame_size=(DEFAULT_FRAME_WIDTH, DEFAULT_FRAME_HEIGHT),
        n_channels=3,
        rowstride=None,
        num_particles=DEFAULT_NUM_PARTICLES,
        target_color=DEFAULT_TARGET_COLOR,
        rng=None,
        reseed_on_empty=False,
    ):
        self.frame_size = tuple(frame_size)
        self.n_channels = n_channels
        self.rowstride = rowstride
        self.num_particles = num_particles
        self.rng = rng
        self.reseed_on_empty = reseed_on_empty
        self.mode = FilterMode.NORMAL
        self.population = None
        self._target_color = Color.from_value(target_color)

    @property
    def target_color(self):
        return self._target_color

    @target_color.setter
    def target_color(self, value):
        self._target_color = Color.from_value(value)
        if self.population is not None:
            self.population.target_color = self._target_color

    def set_mode(self, mode):
        """Select the active filter, starting tracking when entering particle mode."""
        mode = FilterMode(mode)
        if mode is FilterMode.PARTICLE and self.mode is not FilterMode.PARTICLE:
            self.population = ParticlePopulation(
                self.frame_size, self.num_particles, self._target_color, rng=self.rng
            )
        logger.info("Filter mode %s -> %s", self.mode.value, mode.value)
        self.mode = mode

    def apply(self, buffer):
        """Run the active filter on *buffer* in-place.

        Returns
        -------
        bool
            False when the buffer did not match the configured frame layout
            and was left untouched.
        """
        if self.mode is FilterMode.NORMAL:
            return True

        width, height = self.frame_size
        try:
            if self.mode is FilterMode.PARTICLE:
                particle_filter_step(
                    buffer, self.population, n_channels=self.n_channels, rowstride=self.rowstride
                )
            else:
                frame = frame_view(buffer, width, height, self.n_channels, self.rowstride)
                if self.mode is FilterMode.GRAY:
                    grayscale(frame)
                else:
                    reverse_rgb(frame)
        except FrameBufferError as exc:
            logger.warning("Skipping malformed frame: %s", exc)
            return False

        if (
            self.mode is FilterMode.PARTICLE
            and self.reseed_on_empty
            and len(self.population) == 0
        ):
            self.population.reseed()
        return True
