"""
JPEG 2000 sample decoding and planar -> interleaved reordering.

The decoder hands back four channel planes stored one after another
(RRRR...GGGG...BBBB...AAAA...); convert_planar_to_interleaved turns that into
the RGBA-per-pixel layout RasterImage expects.
"""

from __future__ import annotations

import io
import logging
import struct
from dataclasses import dataclass
from typing import Optional, Sequence

from PIL import Image, ImageFile

from .errors import DecodeError
from .raster import RasterImage

log = logging.getLogger(__name__)

CHANNELS = 4

# JP2 signature box, then the bare codestream SOC + SIZ markers
JP2_SIGNATURE = b"\x00\x00\x00\x0cjP  \r\n\x87\n"
J2K_SIGNATURE = b"\xff\x4f\xff\x51"

CODEC_VARIANTS = {
    "jp2": JP2_SIGNATURE,
    "j2k": J2K_SIGNATURE,
}


def sniff_codec(data: bytes) -> Optional[str]:
    """
    Return the codec variant tag for a JPEG 2000 stream, or None.
    """
    for variant, signature in CODEC_VARIANTS.items():
        if data.startswith(signature):
            return variant
    return None


@dataclass(frozen=True)
class PlanarBuffer:
    width: int
    height: int
    data: bytes

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise DecodeError(f"Invalid image size {self.width}x{self.height}")
        expected = self.width * self.height * CHANNELS
        if len(self.data) != expected:
            raise DecodeError(f"Planar buffer holds {len(self.data)} bytes, expected {expected}")

    @property
    def plane_size(self) -> int:
        return self.width * self.height

    def plane(self, channel: int) -> bytes:
        start = channel * self.plane_size
        return self.data[start:start + self.plane_size]

    @classmethod
    def from_planes(cls, width: int, height: int, planes: Sequence[bytes]) -> "PlanarBuffer":
        """
        Build a buffer from up to four planes.

        Planes shorter than width * height, and planes that are missing
        altogether, are filled with zero samples.
        """
        size = width * height
        if len(planes) > CHANNELS:
            raise DecodeError(f"Expected at most {CHANNELS} planes, got {len(planes)}")
        out = bytearray(size * CHANNELS)
        for channel, plane in enumerate(planes):
            chunk = bytes(plane[:size])
            start = channel * size
            out[start:start + len(chunk)] = chunk
        return cls(width, height, bytes(out))


def _load_jpeg2000(data: bytes, variant: str) -> Image.Image:
    """
    Open and decode a JPEG 2000 stream. A stream that ends early is decoded
    a second time with truncated loading, leaving the missing samples at 0.
    """
    img = Image.open(io.BytesIO(data), formats=["JPEG2000"])
    try:
        img.load()
        return img
    except OSError as e:
        log.warning("Truncated %s stream (%s); missing samples default to 0", variant, e)

    img = Image.open(io.BytesIO(data), formats=["JPEG2000"])
    previous = ImageFile.LOAD_TRUNCATED_IMAGES
    ImageFile.LOAD_TRUNCATED_IMAGES = True
    try:
        img.load()
    finally:
        ImageFile.LOAD_TRUNCATED_IMAGES = previous
    return img


def decode_planar_codec(data: bytes, variant: str = "jp2") -> PlanarBuffer:
    """
    Decode a JPEG 2000 stream into a PlanarBuffer.

    variant is "jp2" (boxed file format) or "j2k" (raw codestream). Greyscale
    sources are expanded to RGB and sources without alpha come back opaque.
    Truncated streams decode with zero samples where data is missing.
    """
    signature = CODEC_VARIANTS.get(variant)
    if signature is None:
        raise DecodeError(f"Unsupported codec variant: {variant!r}")
    if not data.startswith(signature):
        raise DecodeError(f"Stream does not start with a {variant} signature")

    try:
        img = _load_jpeg2000(data, variant)
        if img.mode != "RGBA":
            img = img.convert("RGBA")
    except (OSError, EOFError, SyntaxError, ValueError, struct.error, Image.DecompressionBombError) as e:
        raise DecodeError(f"Could not decode {variant} stream: {e}") from e

    width, height = img.size
    log.debug("Decoded %s stream: %dx%d", variant, width, height)
    return PlanarBuffer.from_planes(width, height, [band.tobytes() for band in img.split()])


def convert_planar_to_interleaved(planar: PlanarBuffer, legacy_rounding: bool = True) -> RasterImage:
    """
    Interleave the four planes of `planar` into an RGBA RasterImage.

    Output byte i reads plane i % 4 at offset round_half_up(i / 4), with 0
    past the end of a plane. That means R and G come from sample k of pixel k
    while B and A come from sample k + 1, and the last pixel's B and A are 0.
    Icons produced by the earlier decoder depend on this, so it is the
    default; pass legacy_rounding=False for a plain i // 4 deinterleave.
    """
    out = bytearray(planar.plane_size * CHANNELS)
    for channel in range(CHANNELS):
        samples = planar.plane(channel)
        if legacy_rounding and channel >= 2:
            # (i + 2) // 4 == i // 4 + 1 for these channels
            samples = samples[1:] + b"\x00"
        out[channel::CHANNELS] = samples
    return RasterImage.from_rgba_bytes(planar.width, planar.height, bytes(out))


def decode_jpeg2000(data: bytes, variant: Optional[str] = None, legacy_rounding: bool = True) -> RasterImage:
    """
    Full JPEG 2000 path: decode samples, then reorder them to RGBA.
    """
    variant = variant or sniff_codec(data)
    if variant is None:
        raise DecodeError("Not a JPEG 2000 stream")
    return convert_planar_to_interleaved(decode_planar_codec(data, variant), legacy_rounding=legacy_rounding)
