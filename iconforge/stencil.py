"""
Binary stencil masks for clipping the assembled icon to its rounded shape.

A stencil pixel is either 0xFFFFFFFF (keep) or 0x00000000 (clear). Masks are
applied with a bitwise AND of the packed pixel values, which only gives a
clean cut-out when every mask pixel is one of those two values; both
builders below guarantee that, apply_mask does not check it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union

from PIL import Image, ImageDraw

from .errors import UnsupportedMask
from .raster import RasterImage

DEFAULT_CORNER_RADIUS_FACTOR = 0.225
ALPHA_THRESHOLD = 128


def _stencil_from_coverage(coverage: Image.Image) -> RasterImage:
    # coverage is an "L" image holding only 0 and 255
    return RasterImage(Image.merge("RGBA", [coverage] * 4))


def build_stencil_mask(
    size: int,
    inset: int,
    corner_radius_factor: float = DEFAULT_CORNER_RADIUS_FACTOR,
) -> RasterImage:
    """
    Rounded square covering [inset, size - inset) on both axes.
    Drawn in 1-bit mode, so there is no antialiased edge.
    """
    side = size - 2 * inset
    if inset < 0 or side <= 0:
        raise ValueError(f"Inset {inset} leaves no room in a {size}px mask")

    shape = Image.new("1", (size, size), 0)
    draw = ImageDraw.Draw(shape)
    draw.rounded_rectangle(
        [(inset, inset), (inset + side - 1, inset + side - 1)],
        radius=int(side * corner_radius_factor),
        fill=255,
    )
    return _stencil_from_coverage(shape.convert("L"))


def load_stencil_mask(path: Union[str, Path], size: int) -> RasterImage:
    """
    Load a mask image and turn it into a size x size stencil.

    Nearest-neighbour scaling keeps edges hard; alpha at or above
    ALPHA_THRESHOLD keeps the pixel.
    """
    with Image.open(path) as img:
        alpha = img.convert("RGBA").getchannel("A")
    if alpha.size != (size, size):
        alpha = alpha.resize((size, size), Image.Resampling.NEAREST)
    coverage = alpha.point(lambda v: 255 if v >= ALPHA_THRESHOLD else 0)
    return _stencil_from_coverage(coverage)


def fit_stencil_mask(mask: RasterImage, size: int) -> RasterImage:
    if mask.size == (size, size):
        return mask
    return RasterImage(mask.image.resize((size, size), Image.Resampling.NEAREST))


def apply_mask(canvas: RasterImage, mask: RasterImage) -> RasterImage:
    """
    Return a new image where every pixel is mask AND canvas.
    """
    if mask.size != canvas.size:
        raise UnsupportedMask(
            f"Mask is {mask.width}x{mask.height} but canvas is {canvas.width}x{canvas.height}"
        )
    # AND over the whole buffer at once; byte-wise AND equals AND of the
    # packed 0xRRGGBBAA values pixel by pixel
    raw = canvas.tobytes()
    masked = int.from_bytes(mask.tobytes(), "big") & int.from_bytes(raw, "big")
    return RasterImage.from_rgba_bytes(canvas.width, canvas.height, masked.to_bytes(len(raw), "big"))
