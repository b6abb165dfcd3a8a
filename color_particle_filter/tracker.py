"""
Color-target particle filter.

Maintains a population of weighted ``(x, y)`` hypotheses about where a target
color sits in a live RGB stream.  Each tick advances every particle by its
velocity, scores it against the target color, keeps an elite set (the top 1%
by rank plus anything scoring above 0.9), normalises the survivors' weights,
and refills the population by Gaussian-radius diffusion around the survivors.
The mean particle position is drawn back into the frame as a crosshair.

Selection is deterministic and rank based; it is not weight-proportional
resampling.
"""

import logging

import cv2
import numpy as np

from .color import Color, color_similarity
from .errors import ConfigurationError, FrameBufferError
from .frame import frame_view
from .visualization import draw_crosshair, draw_particles, in_frame_mask

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Default parameters
# ---------------------------------------------------------------------------
DEFAULT_FRAME_WIDTH = 640
DEFAULT_FRAME_HEIGHT = 360
DEFAULT_NUM_PARTICLES = 10000
DEFAULT_TARGET_COLOR = (255, 0, 0)
LIKELIHOOD_THRESHOLD = 0.9
KEEP_FRACTION_DIVISOR = 100


# ---------------------------------------------------------------------------
# Particle and population
# ---------------------------------------------------------------------------
class Particle:
    """A single position/velocity hypothesis.

    Attributes
    ----------
    position : tuple[int, int]
        Pixel coordinate ``(x, y)``; may lie outside the frame.
    velocity : tuple[int, int]
        Displacement applied at the next prediction.
    likelihood : float
        Similarity of the color under ``position`` to the target color.
    weight : float
        Likelihood normalised over the surviving set.
    keep : bool
        Selection flag, only meaningful during selection.
    """

    def __init__(self, position, velocity=(0, 0), likelihood=1.0, weight=0.0, keep=False):
        self.position = (int(position[0]), int(position[1]))
        self.velocity = (int(velocity[0]), int(velocity[1]))
        self.likelihood = float(likelihood)
        self.weight = float(weight)
        self.keep = bool(keep)

    def __repr__(self):
        return (
            f"Particle(position={self.position}, velocity={self.velocity}, "
            f"likelihood={self.likelihood:.3f}, weight={self.weight:.3g})"
        )


class ParticlePopulation:
    """Tracker state carried from one tick to the next.

    Particles are stored as parallel arrays (``positions``, ``velocities``,
    ``likelihoods``, ``weights``) so that every stage of a tick runs as a
    whole-array operation.  The ``particles`` property exposes them as
    :class:`Particle` objects.

    Parameters
    ----------
    frame_size : tuple[int, int]
        ``(width, height)`` of every frame this population will see.
    target_count : int
        Desired number of particles.  A soft target: flooring in diffusion
        lets the population settle below it.
    target_color : sequence
        RGB color to track.  Can be changed between ticks.
    rng : numpy.random.Generator or None
        Source of randomness for seeding and diffusion.
    """

    def __init__(
        self,
        frame_size=(DEFAULT_FRAME_WIDTH, DEFAULT_FRAME_HEIGHT),
        target_count=DEFAULT_NUM_PARTICLES,
        target_color=DEFAULT_TARGET_COLOR,
        rng=None,
    ):
        width, height = (int(v) for v in frame_size)
        if width <= 0 or height <= 0:
            raise ConfigurationError(f"frame size must be positive, got {width}x{height}")
        if int(target_count) < 1:
            raise ConfigurationError(f"target_count must be at least 1, got {target_count}")

        self.frame_size = (width, height)
        self.target_count = int(target_count)
        self.target_color = target_color
        self.rng = rng if rng is not None else np.random.default_rng()
        self.centroid = (width // 2, height // 2)
        self.reseed()

    @property
    def target_color(self):
        return self._target_color

    @target_color.setter
    def target_color(self, value):
        self._target_color = Color.from_value(value)

    def __len__(self):
        return len(self.positions)

    def reseed(self, count=None):
        """Replace the population with a uniformly random cloud.

        When *count* is None the size is drawn uniformly from
        ``[0, target_count)``.
        """
        width, height = self.frame_size
        if count is None:
            count = int(self.rng.integers(0, self.target_count))
        self.positions = np.column_stack(
            (self.rng.integers(0, width, size=count), self.rng.integers(0, height, size=count))
        ).astype(np.int64)
        self.velocities = np.zeros((count, 2), dtype=np.int64)
        self.likelihoods = np.ones(count, dtype=np.float64)
        self.weights = np.zeros(count, dtype=np.float64)
        logger.info("Seeded %d particles over a %dx%d frame", count, width, height)

    @property
    def particles(self):
        return [
            Particle(tuple(p), tuple(v), like, wgt)
            for p, v, like, wgt in zip(
                self.positions.tolist(),
                self.velocities.tolist(),
                self.likelihoods.tolist(),
                self.weights.tolist(),
            )
        ]

    @particles.setter
    def particles(self, particles):
        particles = list(particles)
        self.positions = np.array([p.position for p in particles], dtype=np.int64).reshape(-1, 2)
        self.velocities = np.array([p.velocity for p in particles], dtype=np.int64).reshape(-1, 2)
        self.likelihoods = np.array([p.likelihood for p in particles], dtype=np.float64)
        self.weights = np.array([p.weight for p in particles], dtype=np.float64)

    def take(self, index):
        """Keep only the particles selected by *index*, in that order."""
        self.positions = self.positions[index]
        self.velocities = self.velocities[index]
        self.likelihoods = self.likelihoods[index]
        self.weights = self.weights[index]


# ---------------------------------------------------------------------------
# Filter stages
# ---------------------------------------------------------------------------
def predict(population, grid):
    """Advance every particle by its velocity and score it against *grid*.

    Particles that land outside ``(0, width) x (0, height)`` get likelihood 0
    but are not removed.

    Returns
    -------
    int
        Number of particles inside the frame.
    """
    width, height = population.frame_size
    if grid.shape[:2] != (height, width):
        raise FrameBufferError(
            f"grid shape {grid.shape[:2]} does not match frame size {width}x{height}"
        )

    population.positions = population.positions + population.velocities
    inside = in_frame_mask(population.positions, width, height)
    likelihoods = np.zeros(len(population), dtype=np.float64)
    if inside.any():
        xs = population.positions[inside, 0]
        ys = population.positions[inside, 1]
        likelihoods[inside] = color_similarity(grid[ys, xs], population.target_color)
    population.likelihoods = likelihoods
    return int(inside.sum())


def select(population, threshold=LIKELIHOOD_THRESHOLD):
    """Drop every particle that is neither above *threshold* nor in the top 1%.

    The population is sorted ascending by likelihood (stable), and the
    particle at rank ``i`` survives when its likelihood exceeds *threshold*
    or ``i >= n - n // 100``.  Survivors remain in ascending order.

    Returns
    -------
    int
        Number of survivors.
    """
    n = len(population)
    population.take(np.argsort(population.likelihoods, kind="stable"))

    keep_count = n // KEEP_FRACTION_DIVISOR
    keep = (population.likelihoods > threshold) | (np.arange(n) >= n - keep_count)
    population.take(np.flatnonzero(keep))
    return len(population)


def normalize_weights(population):
    """Set each weight to its share of the summed likelihood.

    Returns False, leaving every weight at 0, when the population is empty or
    the likelihoods sum to 0.
    """
    like_sum = float(population.likelihoods.sum())
    if len(population) == 0 or not like_sum > 0.0:
        population.weights = np.zeros(len(population), dtype=np.float64)
        return False
    population.weights = population.likelihoods / like_sum
    return True


def diffuse(population, rng=None):
    """Refill the population with children spread around the survivors.

    Each survivor spawns ``floor(weight * (target_count - survivors))``
    children.  A child's offset has a Gaussian radius (standard deviation
    ``width + height``, scaled by ``1 - likelihood`` of the parent) and a
    uniform angle; the offset also becomes the child's velocity.

    Returns
    -------
    int
        Number of children appended.
    """
    if rng is None:
        rng = population.rng
    width, height = population.frame_size
    survivor_count = len(population)
    gap = max(population.target_count - survivor_count, 0)

    counts = np.floor(population.weights * gap).astype(np.int64)
    total = int(counts.sum())
    if total == 0:
        return 0

    parents = np.repeat(np.arange(survivor_count), counts)
    parent_likelihoods = population.likelihoods[parents]
    radius = rng.normal(0.0, width + height, size=total) * (1.0 - parent_likelihoods)
    theta = rng.uniform(-np.pi, np.pi, size=total)
    # astype truncates toward zero
    offsets = np.column_stack((radius * np.cos(theta), radius * np.sin(theta))).astype(np.int64)

    population.positions = np.concatenate((population.positions, population.positions[parents] + offsets))
    population.velocities = np.concatenate((population.velocities, offsets))
    population.likelihoods = np.concatenate((population.likelihoods, parent_likelihoods))
    population.weights = np.concatenate((population.weights, population.weights[parents]))
    return total


def estimate_centroid(positions):
    """Mean of *positions* truncated toward zero, or None when empty."""
    n = len(positions)
    if n == 0:
        return None
    sums = positions.sum(axis=0)
    return (int(sums[0] / n), int(sums[1] / n))


def annotate(frame_rgb, population):
    """Draw markers and the crosshair, and update ``population.centroid``.

    Markers are drawn for in-frame particles only, while the centroid
    averages every particle including those outside the frame.
    """
    draw_particles(frame_rgb, population.positions)
    population.centroid = estimate_centroid(population.positions)
    if population.centroid is not None:
        draw_crosshair(frame_rgb, population.centroid)
    return population.centroid


# ---------------------------------------------------------------------------
# One tick
# ---------------------------------------------------------------------------
def particle_filter_step(buffer, population, rng=None, n_channels=3, rowstride=None):
    """Run one prediction, selection, diffusion and annotation cycle.

    Parameters
    ----------
    buffer : bytearray, memoryview or ndarray
        Raw interleaved RGB(A) pixels of the current frame.  Annotated
        in-place.
    population : ParticlePopulation
        Tracker state; replaced by the next tick's population.
    rng : numpy.random.Generator or None
        Overrides ``population.rng`` for diffusion.
    n_channels, rowstride : int
        Buffer layout, see :func:`frame_view`.

    Raises
    ------
    FrameBufferError
        If the buffer does not fit the population's frame size.  Neither the
        buffer nor the population is modified in that case.
    """
    width, height = population.frame_size
    frame = frame_view(buffer, width, height, n_channels, rowstride)

    before = len(population)
    inside = predict(population, frame[..., :3])
    survivors = select(population)
    if normalize_weights(population):
        children = diffuse(population, rng)
    else:
        logger.warning(
            "Likelihoods of %d survivors sum to zero; skipping diffusion this tick", survivors
        )
        children = 0

    centroid = annotate(frame, population)
    if centroid is None:
        logger.warning("Particle population is empty; no centroid this tick")
    logger.debug(
        "particles=%d in_frame=%d survivors=%d children=%d centroid=%s",
        before, inside, survivors, children, centroid,
    )


# ---------------------------------------------------------------------------
# Video driver
# ---------------------------------------------------------------------------
def run_tracker(
    video_path,
    output_path="particle_tracking.mp4",
    target_color=DEFAULT_TARGET_COLOR,
    num_particles=DEFAULT_NUM_PARTICLES,
    fps=30.0,
    seed=None,
    show_preview=False,
):
    """Run the particle filter over every frame of a video file.

    Parameters
    ----------
    video_path : str
        Path to the input video.
    output_path : str
        Path for the annotated output video.
    target_color : sequence
        RGB color to track.
    num_particles : int
        Target population size.
    fps : float
        Frames per second for the output video.
    seed : int or None
        Seed for the tracker's random generator.
    show_preview : bool
        If True, display a live OpenCV window.

    Returns
    -------
    ParticlePopulation
        Tracker state after the last frame.
    """
    cap = cv2.VideoCapture(video_path)
    if not cap.isOpened():
        raise ConfigurationError(f"cannot open video {video_path!r}")
    frame_width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
    frame_height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))

    fourcc = cv2.VideoWriter_fourcc(*"XVID")
    out = cv2.VideoWriter(output_path, fourcc, fps, (frame_width, frame_height))

    population = ParticlePopulation(
        (frame_width, frame_height), num_particles, target_color, rng=np.random.default_rng(seed)
    )
    logger.info("Tracking %s in %s (%dx%d)", population.target_color, video_path, frame_width, frame_height)

    n_frames = 0
    while True:
        ok, frame = cap.read()
        if not ok:
            break

        frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        particle_filter_step(frame_rgb, population)
        frame_bgr = cv2.cvtColor(frame_rgb, cv2.COLOR_RGB2BGR)
        out.write(frame_bgr)
        n_frames += 1

        if show_preview:
            cv2.imshow("Particle filter", frame_bgr)
            if cv2.waitKey(1) & 0xFF == 27:
                break

    out.release()
    cap.release()
    if show_preview:
        cv2.destroyAllWindows()
    logger.info("Processed %d frames; final centroid %s", n_frames, population.centroid)
    return population
