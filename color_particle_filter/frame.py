"""
Frame sampler.

Wraps a raw interleaved pixel buffer (row-major, red/green/blue first, three
or more bytes per pixel) in a numpy view so that particles can look up the
color at ``(x, y)`` in constant time and overlays can be drawn back into the
same memory.  No pixel data is copied.
"""

import numpy as np

from .errors import FrameBufferError


def _as_byte_array(buffer, writable):
    if isinstance(buffer, np.ndarray):
        if buffer.dtype != np.uint8:
            raise FrameBufferError(f"expected a uint8 buffer, got {buffer.dtype}")
        if writable and not buffer.flags.writeable:
            raise FrameBufferError("buffer is read-only")
        if buffer.ndim == 1:
            return buffer
        if not buffer.flags.c_contiguous:
            raise FrameBufferError("buffer must be C-contiguous")
        return buffer.reshape(-1)

    try:
        flat = np.frombuffer(buffer, dtype=np.uint8)
    except (TypeError, ValueError) as exc:
        raise FrameBufferError(f"unsupported buffer type: {type(buffer).__name__}") from exc
    if writable and not flat.flags.writeable:
        raise FrameBufferError("buffer is read-only")
    return flat


def required_buffer_size(width, height, n_channels=3, rowstride=None):
    """Return the minimum number of bytes a frame of this layout occupies.

    The last row is allowed to omit its padding, as GdkPixbuf does.
    """
    if rowstride is None:
        rowstride = width * n_channels
    return rowstride * (height - 1) + width * n_channels


def frame_view(buffer, width, height, n_channels=3, rowstride=None, writable=True):
    """Return a ``(height, width, n_channels)`` uint8 view over *buffer*.

    Parameters
    ----------
    buffer : bytearray, memoryview or ndarray
        Interleaved pixel data, row-major.
    width, height : int
        Frame dimensions in pixels.
    n_channels : int
        Bytes per pixel; the first three are red, green, blue.
    rowstride : int or None
        Bytes between the starts of consecutive rows.  Defaults to
        ``width * n_channels``.
    writable : bool
        Reject read-only buffers when True.

    Raises
    ------
    FrameBufferError
        If the buffer is too short for the declared layout or otherwise
        unusable.  Nothing is read past the end of the buffer.
    """
    if width <= 0 or height <= 0:
        raise FrameBufferError(f"invalid frame size {width}x{height}")
    if n_channels < 3:
        raise FrameBufferError(f"need at least 3 channels per pixel, got {n_channels}")
    row_bytes = width * n_channels
    if rowstride is None:
        rowstride = row_bytes
    if rowstride < row_bytes:
        raise FrameBufferError(f"rowstride {rowstride} shorter than a row of {row_bytes} bytes")

    flat = _as_byte_array(buffer, writable)
    expected = required_buffer_size(width, height, n_channels, rowstride)
    if flat.size < expected:
        raise FrameBufferError(
            f"buffer holds {flat.size} bytes, frame {width}x{height}x{n_channels} needs {expected}",
            expected_size=expected,
            actual_size=flat.size,
        )

    if rowstride == row_bytes:
        return flat[: height * row_bytes].reshape(height, width, n_channels)
    step = flat.strides[0]
    return np.lib.stride_tricks.as_strided(
        flat,
        shape=(height, width, n_channels),
        strides=(rowstride * step, n_channels * step, step),
        writeable=writable,
    )


def sample_frame(buffer, width, height, n_channels=3, rowstride=None):
    """Return the RGB grid ``(height, width, 3)`` of *buffer*.

    ``grid[y, x]`` is the color of pixel ``(x, y)``.  The grid shares memory
    with the buffer.
    """
    return frame_view(buffer, width, height, n_channels, rowstride, writable=False)[..., :3]
