"""Exception classes for the color particle filter."""


class ColorParticleFilterError(Exception):
    """Base exception for all color particle filter errors."""

    pass


class ConfigurationError(ColorParticleFilterError, ValueError):
    """Raised when a tracker is constructed with an unusable configuration."""

    pass


class InvalidColorError(ColorParticleFilterError, ValueError):
    """Raised when a color does not have three channels in 0..255."""

    def __init__(self, message, value=None):
        self.value = value
        super().__init__(message)


class FrameBufferError(ColorParticleFilterError, ValueError):
    """Raised when a pixel buffer does not match the declared frame layout.

    The condition is local to one frame; callers are expected to skip the
    frame rather than abort.
    """

    def __init__(self, message, expected_size=None, actual_size=None):
        self.expected_size = expected_size
        self.actual_size = actual_size
        super().__init__(message)
