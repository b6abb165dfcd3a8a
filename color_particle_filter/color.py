"""
Color value type and the color similarity model.

Similarity is the normalised complement of the Euclidean distance between
two RGB colors, so identical colors score 1 and opposite corners of the RGB
cube score 0.
"""

from typing import NamedTuple

import numpy as np

from .errors import InvalidColorError

MAX_CHANNEL = 255
MAX_SQUARED_DISTANCE = 3.0 * MAX_CHANNEL ** 2


class Color(NamedTuple):
    """An immutable 8-bit RGB color."""

    red: int
    green: int
    blue: int

    @classmethod
    def from_value(cls, value):
        """Build a Color from any three-item sequence, validating the range."""
        if isinstance(value, cls):
            return value
        try:
            channels = [int(c) for c in value]
        except (TypeError, ValueError) as exc:
            raise InvalidColorError(f"not a color: {value!r}", value=value) from exc
        if len(channels) != 3:
            raise InvalidColorError(f"expected 3 channels, got {len(channels)}", value=value)
        for c in channels:
            if not 0 <= c <= MAX_CHANNEL:
                raise InvalidColorError(f"channel out of range 0..255: {c}", value=value)
        return cls(*channels)


def complement_color(color):
    """Return the color on the opposite corner of the RGB cube."""
    r, g, b = Color.from_value(color)
    return Color(MAX_CHANNEL - r, MAX_CHANNEL - g, MAX_CHANNEL - b)


def color_similarity(observed, target):
    """Score how close *observed* is to *target*.

    Parameters
    ----------
    observed : sequence or ndarray
        A single RGB color or an array of colors with shape ``(..., 3)``.
    target : sequence
        The RGB color being tracked.

    Returns
    -------
    float or ndarray
        ``1 - |observed - target| / (255 * sqrt(3))`` clipped to ``[0, 1]``.
        A float for a single color, an array of matching leading shape
        otherwise.
    """
    diff = np.asarray(observed, dtype=np.float64)[..., :3] - np.asarray(target, dtype=np.float64)
    # dividing before the root keeps opposite corners at exactly 0
    score = np.clip(1.0 - np.sqrt(np.sum(diff * diff, axis=-1) / MAX_SQUARED_DISTANCE), 0.0, 1.0)
    if np.ndim(score) == 0:
        return float(score)
    return score
