#!/usr/bin/env python3
"""
Generate rounded adaptive icons from images, icns files or .app bundles.

Run:
  iconforge generate /Applications/Foo.app -o foo.png
  iconforge generate art.png --local -s 0.8 -c 1e1e1e
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .bundle import locate_bundle_icon
from .compositor import (
    DEFAULT_INNER_PADDING,
    DEFAULT_OUTPUT_SIZE,
    DEFAULT_SCALE_FACTOR,
    IconConfig,
    generate_icon,
    parse_hex_color,
)
from .errors import IconError, LookupFailed
from .lookup import DEFAULT_REGION, DEFAULT_TIMEOUT_SECONDS, fetch_bytes, search_app_icon
from .raster import RasterImage
from .stencil import load_stencil_mask

log = logging.getLogger("iconforge")


def output_path(source: Path, output: str) -> Path:
    """
    Explicit outputs always get a .png extension; otherwise write
    <stem>_icon.png into the current directory.
    """
    if output:
        return Path(output).expanduser().with_suffix(".png").resolve()
    return Path.cwd() / f"{source.stem}_icon.png"


def lookup_icon(term: str, region: str, timeout_seconds: int) -> Optional[bytes]:
    print(f"Searching iOS App with name: {term}")
    try:
        match = search_app_icon(term, region=region, timeout_seconds=timeout_seconds)
        if match is None:
            print(f"Cannot find iOS App with name: {term}")
            return None
        print(f"Found iOS app: {match.name} with icon: {match.icon_url}")
        print("If this app is incorrect, pass --keyword with the right name or use --local")
        return fetch_bytes(match.icon_url, timeout_seconds=timeout_seconds)
    except LookupFailed as e:
        log.warning("App lookup failed: %s", e)
        return None


def process_source(source: Path, args, config: IconConfig, mask: Optional[RasterImage]) -> Path:
    print(f"Processing {source}...")
    local = args.local or bool(args.input)
    term = args.keyword

    if source.is_dir():
        if source.suffix != ".app":
            raise IconError(f"{source}: Not an App directory")
        name, icon_path = locate_bundle_icon(source)
        term = term or name
    else:
        icon_path = source
    if args.input:
        icon_path = Path(args.input).expanduser().resolve()

    icon = None
    if term and not local:
        artwork = lookup_icon(term, args.region, args.timeout)
        if artwork is not None:
            icon = generate_icon(artwork, "raster", config=config, mask=mask, adaptive=False)

    if icon is None:
        print("Generating adaptive icon...")
        if not icon_path.is_file():
            raise IconError(f"Cannot find icon at {icon_path}")
        source_bytes = icon_path.read_bytes()
        icon = generate_icon(source_bytes, "auto", config=config, mask=mask, fallback_bytes=source_bytes)

    out = icon.save(output_path(source, args.output))
    print(f"Wrote {out}")
    return out


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="iconforge", description="Rounded adaptive icon generator")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = ap.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate icons for one or more sources")
    gen.add_argument("sources", nargs="+", help="Image, icns file or .app bundle")
    gen.add_argument("-o", "--output", default="", help="Output PNG path (single source only)")
    gen.add_argument("-s", "--scale", type=float, default=DEFAULT_SCALE_FACTOR, help="Scale for icons with transparency (default: 0.9)")
    gen.add_argument("-c", "--color", type=parse_hex_color, default="ffffff", help="Background colour as hex (default: ffffff)")
    gen.add_argument("--size", type=int, default=DEFAULT_OUTPUT_SIZE, help="Output size in pixels (square)")
    gen.add_argument("--padding", type=int, default=DEFAULT_INNER_PADDING, help="Margin around the icon area in pixels")
    gen.add_argument("--mask", default="", help="Stencil mask image (default: built-in rounded square)")
    gen.add_argument("-i", "--input", default="", help="Custom source image to use instead of the bundle icon")
    gen.add_argument("-l", "--local", action="store_true", help="Skip the iOS App lookup")
    gen.add_argument("-k", "--keyword", default="", help="Name to search for an iOS App")
    gen.add_argument("-r", "--region", default=DEFAULT_REGION, help="Country or region to search (default: us)")
    gen.add_argument("--timeout", type=int, default=DEFAULT_TIMEOUT_SECONDS, help="Lookup timeout in seconds")
    gen.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    if args.output and len(args.sources) > 1:
        ap.error("--output can only be used with a single source")

    try:
        config = IconConfig.from_args(args)
        mask = load_stencil_mask(Path(args.mask).expanduser(), config.output_size) if args.mask else None
        for src in args.sources:
            process_source(Path(src).expanduser().resolve(), args, config, mask)
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
