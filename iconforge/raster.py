"""
RGBA raster canvas used throughout the icon pipeline.

Pixels are exchanged as packed 0xRRGGBBAA integers; storage is a Pillow
image in RGBA mode owned by the RasterImage.
"""

from __future__ import annotations

import io
from enum import Enum
from pathlib import Path
from typing import Tuple, Union

from PIL import Image, ImageOps, UnidentifiedImageError

from .errors import DecodeError, OutOfBounds

TRANSPARENT = 0x00000000
OPAQUE_WHITE = 0xFFFFFFFF

RESAMPLE = Image.Resampling.LANCZOS


class ResizeMode(Enum):
    SHRINK_TO_FIT = "shrink-to-fit"
    FILL_AND_CROP = "fill-and-crop"


def pack_rgba(rgba: Tuple[int, int, int, int]) -> int:
    r, g, b, a = rgba
    return (r << 24) | (g << 16) | (b << 8) | a


def unpack_rgba(value: int) -> Tuple[int, int, int, int]:
    value &= 0xFFFFFFFF
    return (value >> 24) & 0xFF, (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF


class RasterImage:
    """
    Addressable width x height RGBA buffer.

    Use the classmethods to build one; the constructor takes ownership of an
    RGBA Pillow image.
    """

    def __init__(self, image: Image.Image):
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        self._image = image

    # ---------- Construction ----------
    @classmethod
    def create(cls, width: int, height: int, fill: int = TRANSPARENT) -> "RasterImage":
        if width <= 0 or height <= 0:
            raise ValueError(f"Canvas size must be positive, got {width}x{height}")
        return cls(Image.new("RGBA", (width, height), unpack_rgba(fill)))

    @classmethod
    def from_image(cls, image: Image.Image) -> "RasterImage":
        """
        Copy a Pillow image of any mode into a new RasterImage.
        """
        return cls(image.convert("RGBA"))

    @classmethod
    def from_rgba_bytes(cls, width: int, height: int, data: bytes) -> "RasterImage":
        if len(data) != width * height * 4:
            raise ValueError(f"Expected {width * height * 4} bytes for {width}x{height}, got {len(data)}")
        return cls(Image.frombytes("RGBA", (width, height), bytes(data)))

    @classmethod
    def from_bytes(cls, data: bytes) -> "RasterImage":
        """
        Decode a conventional raster (PNG, JPEG, ...) with Pillow.
        """
        try:
            img = Image.open(io.BytesIO(data))
            img.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
            raise DecodeError(f"Could not decode raster image: {e}") from e
        return cls.from_image(img)

    # ---------- Properties ----------
    @property
    def width(self) -> int:
        return self._image.width

    @property
    def height(self) -> int:
        return self._image.height

    @property
    def size(self) -> Tuple[int, int]:
        return self._image.size

    @property
    def image(self) -> Image.Image:
        """Copy of the backing image; mutating it does not affect this canvas."""
        return self._image.copy()

    def __repr__(self) -> str:
        return f"RasterImage({self.width}x{self.height})"

    # ---------- Pixel access ----------
    def _check_bounds(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise OutOfBounds(f"Pixel ({x}, {y}) outside {self.width}x{self.height} image")

    def get_pixel(self, x: int, y: int) -> int:
        self._check_bounds(x, y)
        return pack_rgba(self._image.getpixel((x, y)))

    def set_pixel(self, x: int, y: int, value: int) -> None:
        self._check_bounds(x, y)
        self._image.putpixel((x, y), unpack_rgba(value))

    def has_alpha(self) -> bool:
        """
        True if any pixel is not fully opaque.
        """
        lowest, _ = self._image.getchannel("A").getextrema()
        return lowest < 255

    # ---------- Geometry ----------
    def resize(self, width: int, height: int, mode: ResizeMode) -> "RasterImage":
        """
        Aspect-preserving resize into a new image.

        SHRINK_TO_FIT returns an image that fits inside width x height (one
        side may come out smaller). FILL_AND_CROP scales to cover the target
        and centre-crops the overflow, so the result is exactly width x height.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Target size must be positive, got {width}x{height}")
        if mode is ResizeMode.SHRINK_TO_FIT:
            return RasterImage(ImageOps.contain(self._image, (width, height), RESAMPLE))
        if mode is ResizeMode.FILL_AND_CROP:
            return RasterImage(ImageOps.fit(self._image, (width, height), RESAMPLE))
        raise ValueError(f"Unknown resize mode: {mode!r}")

    def resize_exact(self, width: int, height: int) -> "RasterImage":
        return RasterImage(self._image.resize((width, height), RESAMPLE))

    def composite(self, overlay: "RasterImage", x: int, y: int, blend: bool = False) -> "RasterImage":
        """
        Paste overlay with its top-left corner at (x, y).

        Overlay pixels falling outside this image are dropped. By default the
        overlay replaces the pixels underneath; with blend=True it is
        alpha-composited (source over). Returns self for chaining.
        """
        left, top = max(x, 0), max(y, 0)
        right = min(x + overlay.width, self.width)
        bottom = min(y + overlay.height, self.height)
        if right <= left or bottom <= top:
            return self

        patch = overlay._image.crop((left - x, top - y, right - x, bottom - y))
        if blend:
            self._image.alpha_composite(patch, dest=(left, top))
        else:
            self._image.paste(patch, (left, top))
        return self

    # ---------- Export ----------
    def tobytes(self) -> bytes:
        return self._image.tobytes()

    def to_png(self) -> bytes:
        buf = io.BytesIO()
        self._image.save(buf, format="PNG")
        return buf.getvalue()

    def save(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self._image.save(path, format="PNG")
        return path
