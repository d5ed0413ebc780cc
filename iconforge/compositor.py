"""
Adaptive icon generation.

Given source art (any raster Pillow reads, a JPEG 2000 stream or an icns
container) produce an output_size x output_size icon:

1. sources with transparency are shrunk by scale_factor and centred inside
   the icon area, opaque sources are scaled to cover the icon area and
   cropped;
2. the result is laid over a background-coloured canvas, inset by
   inner_padding on every side;
3. the canvas is clipped with a binary stencil mask.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from .codec import CODEC_VARIANTS, decode_jpeg2000, sniff_codec
from .container import ICNS_MAGIC, extract_container_image
from .errors import ContainerParseError, DecodeError
from .raster import OPAQUE_WHITE, RasterImage, ResizeMode
from .stencil import DEFAULT_CORNER_RADIUS_FACTOR, apply_mask, build_stencil_mask, fit_stencil_mask

log = logging.getLogger(__name__)


# ---------- Config ----------
DEFAULT_OUTPUT_SIZE = 1024
DEFAULT_INNER_PADDING = 100
DEFAULT_SCALE_FACTOR = 0.9
DEFAULT_BACKGROUND = OPAQUE_WHITE

SOURCE_KINDS = ("auto", "icns", "jp2", "j2k", "raster")

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


def parse_hex_color(text: str) -> int:
    """
    'ffffff' / '#fff' / 'ff000080' -> packed 0xRRGGBBAA (alpha defaults to ff).
    """
    m = _HEX_COLOR.match(text.strip())
    if not m:
        raise ValueError(f"Not a hex colour: {text!r}")
    digits = m.group(1)
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    if len(digits) == 6:
        digits += "ff"
    return int(digits, 16)


@dataclass(frozen=True)
class IconConfig:
    output_size: int = DEFAULT_OUTPUT_SIZE
    inner_padding: int = DEFAULT_INNER_PADDING
    scale_factor: float = DEFAULT_SCALE_FACTOR
    background_color: int = DEFAULT_BACKGROUND
    corner_radius_factor: float = DEFAULT_CORNER_RADIUS_FACTOR

    def __post_init__(self):
        if self.output_size <= 0:
            raise ValueError(f"output_size must be positive, got {self.output_size}")
        if self.inner_padding < 0 or self.icon_area <= 0:
            raise ValueError(f"inner_padding {self.inner_padding} leaves no icon area in {self.output_size}px")
        if self.scale_factor <= 0:
            raise ValueError(f"scale_factor must be positive, got {self.scale_factor}")

    @property
    def icon_area(self) -> int:
        return self.output_size - 2 * self.inner_padding

    @classmethod
    def from_args(cls, args) -> "IconConfig":
        return cls(
            output_size=args.size,
            inner_padding=args.padding,
            scale_factor=args.scale,
            background_color=args.color,
        )


@dataclass(frozen=True)
class CompositionPolicy:
    mode: ResizeMode
    width: int
    height: int


# ---------- Source loading ----------
def sniff_source_kind(data: bytes) -> str:
    if data.startswith(ICNS_MAGIC):
        return "icns"
    return sniff_codec(data) or "raster"


def _decode_payload(data: bytes, legacy_rounding: bool) -> RasterImage:
    variant = sniff_codec(data)
    if variant is not None:
        return decode_jpeg2000(data, variant, legacy_rounding=legacy_rounding)
    return RasterImage.from_bytes(data)


def load_source(
    source_bytes: bytes,
    source_kind: str = "auto",
    fallback_bytes: Optional[bytes] = None,
    legacy_rounding: bool = True,
) -> RasterImage:
    """
    Decode source art into a RasterImage.

    For icns sources an unreadable container, or one without image elements,
    switches to fallback_bytes when given (decoded as JPEG 2000 or with
    Pillow, never as a container). Anything that cannot be decoded raises
    DecodeError.
    """
    if source_kind not in SOURCE_KINDS:
        raise ValueError(f"Unknown source kind {source_kind!r}; expected one of {', '.join(SOURCE_KINDS)}")
    kind = sniff_source_kind(source_bytes) if source_kind == "auto" else source_kind

    if kind == "icns":
        payload = None
        try:
            payload = extract_container_image(source_bytes)
        except ContainerParseError as e:
            log.warning("Icon container is unreadable: %s", e)
        if payload is None:
            if fallback_bytes is None:
                raise DecodeError("Icon container holds no usable image and no fallback source was given")
            log.warning("Using fallback source image instead of the icon container")
            return _decode_payload(fallback_bytes, legacy_rounding)
        return _decode_payload(payload, legacy_rounding)

    if kind in CODEC_VARIANTS:
        return decode_jpeg2000(source_bytes, kind, legacy_rounding=legacy_rounding)
    return RasterImage.from_bytes(source_bytes)


# ---------- Layout ----------
def choose_policy(source: RasterImage, config: IconConfig) -> CompositionPolicy:
    area = config.icon_area
    if source.has_alpha():
        target = max(1, round(area * config.scale_factor))
        return CompositionPolicy(ResizeMode.SHRINK_TO_FIT, target, target)
    return CompositionPolicy(ResizeMode.FILL_AND_CROP, area, area)


def center_offset(area: int, scaled: RasterImage, policy: CompositionPolicy) -> Tuple[int, int]:
    if policy.mode is ResizeMode.FILL_AND_CROP:
        return 0, 0
    return (area - scaled.width) // 2, (area - scaled.height) // 2


def compose_icon(
    source: RasterImage,
    config: Optional[IconConfig] = None,
    mask: Optional[RasterImage] = None,
    adaptive: bool = True,
) -> RasterImage:
    """
    Lay out, assemble and mask an already decoded source image.

    adaptive=False stretches the source over the whole icon area (used for
    artwork that already has the final icon shape).
    """
    config = config or IconConfig()
    area = config.icon_area

    if adaptive:
        policy = choose_policy(source, config)
        if policy.mode is ResizeMode.FILL_AND_CROP:
            log.info("Source image is opaque; filling the icon area without scaling down")
        scaled = source.resize(policy.width, policy.height, policy.mode)
        x, y = center_offset(area, scaled, policy)
        log.debug("Policy %s -> %dx%d at (%d, %d)", policy.mode.value, scaled.width, scaled.height, x, y)
    else:
        scaled = source.resize_exact(area, area)
        x, y = 0, 0

    layer = RasterImage.create(area, area).composite(scaled, x, y)
    canvas = RasterImage.create(config.output_size, config.output_size, config.background_color)
    canvas.composite(layer, config.inner_padding, config.inner_padding, blend=True)

    if mask is None:
        stencil = build_stencil_mask(config.output_size, config.inner_padding, config.corner_radius_factor)
    else:
        stencil = fit_stencil_mask(mask, config.output_size)
    return apply_mask(canvas, stencil)


def generate_icon(
    source_bytes: bytes,
    source_kind: str = "auto",
    config: Optional[IconConfig] = None,
    mask: Optional[RasterImage] = None,
    fallback_bytes: Optional[bytes] = None,
    adaptive: bool = True,
) -> RasterImage:
    """
    Decode source_bytes and build the finished icon. Raises DecodeError when
    no source image can be decoded.
    """
    source = load_source(source_bytes, source_kind, fallback_bytes=fallback_bytes)
    return compose_icon(source, config=config, mask=mask, adaptive=adaptive)
