"""
Rounded adaptive icon generation: icns extraction, JPEG 2000 sample
reordering and stencil-masked compositing.
"""

__version__ = "1.0.0"

from .codec import PlanarBuffer, convert_planar_to_interleaved, decode_planar_codec
from .compositor import IconConfig, compose_icon, generate_icon, parse_hex_color
from .container import ContainerEntry, extract_container_image, parse_container
from .errors import ContainerParseError, DecodeError, IconError, LookupFailed, OutOfBounds, UnsupportedMask
from .raster import RasterImage, ResizeMode
from .stencil import apply_mask, build_stencil_mask, load_stencil_mask

__all__ = [
    "ContainerEntry",
    "ContainerParseError",
    "DecodeError",
    "IconConfig",
    "IconError",
    "LookupFailed",
    "OutOfBounds",
    "PlanarBuffer",
    "RasterImage",
    "ResizeMode",
    "UnsupportedMask",
    "apply_mask",
    "build_stencil_mask",
    "compose_icon",
    "convert_planar_to_interleaved",
    "decode_planar_codec",
    "extract_container_image",
    "generate_icon",
    "load_stencil_mask",
    "parse_container",
    "parse_hex_color",
]
