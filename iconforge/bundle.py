"""
Locate the icon of a macOS .app bundle.
"""

from __future__ import annotations

import logging
import plistlib
from pathlib import Path
from typing import Tuple
from xml.parsers.expat import ExpatError

log = logging.getLogger(__name__)

FALLBACK_ICON = Path("Contents/Resources/AppIcon.icns")


def bundle_stem(app_dir: Path) -> str:
    name = app_dir.name
    return name[:-4] if name.endswith(".app") else name


def locate_bundle_icon(app_dir: Path) -> Tuple[str, Path]:
    """
    Returns (display name, icon path) read from Contents/Info.plist.

    If the plist is missing or unreadable the bundle stem and
    Contents/Resources/AppIcon.icns are used instead.
    """
    app_dir = Path(app_dir)
    info_plist = app_dir / "Contents" / "Info.plist"

    try:
        with info_plist.open("rb") as f:
            info = plistlib.load(f)
        if not isinstance(info, dict):
            raise ValueError("Info.plist is not a dictionary")
    except (OSError, ValueError, ExpatError) as e:
        log.warning("Could not read %s (%s); using fallback name and AppIcon.icns", info_plist, e)
        return bundle_stem(app_dir), app_dir / FALLBACK_ICON

    name = info.get("CFBundleDisplayName") or info.get("CFBundleName")
    if not isinstance(name, str) or not name:
        name = bundle_stem(app_dir)
    icon_file = info.get("CFBundleIconFile")
    if not icon_file or not isinstance(icon_file, str):
        return name, app_dir / FALLBACK_ICON
    if not icon_file.endswith(".icns"):
        icon_file += ".icns"
    return name, app_dir / "Contents" / "Resources" / icon_file
