"""
Synthetic target simulation.

Generates RGB frames holding a single square block of the target color on a
background of its complement, with the block performing a random walk.  Used
to produce demo videos and deterministic scenes for exercising the tracker.
"""

import cv2
import numpy as np

from .color import Color, complement_color
from .tracker import DEFAULT_FRAME_HEIGHT, DEFAULT_FRAME_WIDTH, DEFAULT_TARGET_COLOR

# ---------------------------------------------------------------------------
# Default constants
# ---------------------------------------------------------------------------
DEFAULT_BLOCK_SIZE = 50
DEFAULT_STEP_SIZE = 8
DEFAULT_NUM_FRAMES = 120


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def make_target_frame(
    block_origin,
    frame_width=DEFAULT_FRAME_WIDTH,
    frame_height=DEFAULT_FRAME_HEIGHT,
    target_color=DEFAULT_TARGET_COLOR,
    block_size=DEFAULT_BLOCK_SIZE,
    background_color=None,
):
    """Render one RGB frame with a filled block at *block_origin*.

    Parameters
    ----------
    block_origin : tuple[int, int]
        Top-left ``(x, y)`` corner of the block.
    frame_width, frame_height : int
        Canvas dimensions.
    target_color : sequence
        RGB color of the block.
    block_size : int
        Side length of the block in pixels.
    background_color : sequence or None
        RGB background; the complement of *target_color* when None.

    Returns
    -------
    ndarray
        RGB image of shape ``(frame_height, frame_width, 3)``.
    """
    target = Color.from_value(target_color)
    if background_color is None:
        background_color = complement_color(target)
    frame = np.empty((frame_height, frame_width, 3), dtype=np.uint8)
    frame[...] = Color.from_value(background_color)

    x, y = block_origin
    cv2.rectangle(
        frame,
        (int(x), int(y)),
        (int(x) + block_size - 1, int(y) + block_size - 1),
        tuple(target),
        thickness=-1,
    )
    return frame


def block_bounds(block_origin, block_size=DEFAULT_BLOCK_SIZE):
    """Return ``(x0, y0, x1, y1)``, inclusive, of a block at *block_origin*."""
    x, y = block_origin
    return x, y, x + block_size - 1, y + block_size - 1


def move_block(
    block_origin,
    rng,
    frame_width=DEFAULT_FRAME_WIDTH,
    frame_height=DEFAULT_FRAME_HEIGHT,
    block_size=DEFAULT_BLOCK_SIZE,
    step_size=DEFAULT_STEP_SIZE,
):
    """Take one random step, keeping the whole block inside the frame."""
    angle = rng.uniform(0.0, 2.0 * np.pi)
    dx = int(step_size * np.cos(angle))
    dy = int(step_size * np.sin(angle))
    x = min(max(block_origin[0] + dx, 0), frame_width - block_size)
    y = min(max(block_origin[1] + dy, 0), frame_height - block_size)
    return (x, y)


def simulate_target(
    output_path=None,
    frame_width=DEFAULT_FRAME_WIDTH,
    frame_height=DEFAULT_FRAME_HEIGHT,
    target_color=DEFAULT_TARGET_COLOR,
    block_size=DEFAULT_BLOCK_SIZE,
    num_frames=DEFAULT_NUM_FRAMES,
    step_size=DEFAULT_STEP_SIZE,
    fps=30.0,
    seed=None,
):
    """Run the block random walk for *num_frames* frames.

    Parameters
    ----------
    output_path : str or None
        When given, frames are also written to this video file (BGR).
    frame_width, frame_height : int
        Canvas dimensions.
    target_color : sequence
        RGB color of the block.
    block_size : int
        Side length of the block.
    num_frames : int
        Number of frames to generate.
    step_size : int
        Pixel length of each random step.
    fps : float
        Frames per second for the output video.
    seed : int or None
        Seed for the random walk.

    Returns
    -------
    list[dict]
        Each entry contains ``'frame'`` (RGB ndarray) and ``'block'``
        (inclusive ``(x0, y0, x1, y1)`` bounds).
    """
    rng = np.random.default_rng(seed)
    out = None
    if output_path is not None:
        fourcc = cv2.VideoWriter_fourcc(*"XVID")
        out = cv2.VideoWriter(output_path, fourcc, fps, (frame_width, frame_height))

    origin = (
        int(rng.integers(0, frame_width - block_size + 1)),
        int(rng.integers(0, frame_height - block_size + 1)),
    )
    total_data = []
    for _ in range(num_frames):
        frame = make_target_frame(origin, frame_width, frame_height, target_color, block_size)
        total_data.append({"frame": frame, "block": block_bounds(origin, block_size)})
        if out is not None:
            out.write(cv2.cvtColor(frame, cv2.COLOR_RGB2BGR))
        origin = move_block(origin, rng, frame_width, frame_height, block_size, step_size)

    if out is not None:
        out.release()
    return total_data
