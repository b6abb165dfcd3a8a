"""
Visualization helpers for the particle filter.

Drawing utilities that stamp particle markers and the centroid crosshair
directly into an RGB frame view (in-place).
"""

import cv2

MARKER_COLOR = (255, 0, 0)
CROSSHAIR_COLOR = (255, 255, 255)


def in_frame_mask(positions, width, height):
    """Return a boolean mask of positions strictly inside ``(0, width) x (0, height)``."""
    x = positions[:, 0]
    y = positions[:, 1]
    return (0 < x) & (x < width) & (0 < y) & (y < height)


def draw_particles(frame_rgb, positions, color=MARKER_COLOR):
    """Stamp one marker pixel per in-frame particle onto *frame_rgb* (in-place).

    Parameters
    ----------
    frame_rgb : ndarray
        ``(height, width, channels)`` frame view; only the first three
        channels are written.
    positions : ndarray
        ``(n, 2)`` integer ``(x, y)`` particle positions.
    color : tuple
        RGB marker colour.

    Returns
    -------
    int
        Number of markers drawn.
    """
    h, w = frame_rgb.shape[:2]
    visible = positions[in_frame_mask(positions, w, h)]
    frame_rgb[visible[:, 1], visible[:, 0], :3] = color
    return len(visible)


def draw_crosshair(frame_rgb, center, color=CROSSHAIR_COLOR):
    """Draw a full-width row and a full-height column through *center* (in-place).

    Each line is drawn only when the centre lies inside the frame on that
    line's axis.
    """
    h, w = frame_rgb.shape[:2]
    cx, cy = center
    # cv2 needs a contiguous 3-channel image; padded or RGBA views are drawn
    # on through numpy instead.
    if frame_rgb.shape[2] == 3 and frame_rgb.flags.c_contiguous:
        if 0 <= cy < h:
            cv2.line(frame_rgb, (0, int(cy)), (w - 1, int(cy)), color, 1)
        if 0 <= cx < w:
            cv2.line(frame_rgb, (int(cx), 0), (int(cx), h - 1), color, 1)
        return
    if 0 <= cy < h:
        frame_rgb[int(cy), :, :3] = color
    if 0 <= cx < w:
        frame_rgb[:, int(cx), :3] = color

