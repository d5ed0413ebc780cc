"""
Exceptions raised by the icon pipeline.
"""


class IconError(ValueError):
    """Base class for everything the pipeline raises on bad input."""


class DecodeError(IconError):
    """Compressed stream or raster could not be decoded."""


class ContainerParseError(IconError):
    """Icon container framing is malformed."""


class OutOfBounds(IconError, IndexError):
    """Pixel access outside the image buffer."""


class UnsupportedMask(IconError):
    """Mask dimensions do not match the canvas it is applied to."""


class LookupFailed(IconError):
    """Canonical icon lookup could not reach or parse the search service."""
