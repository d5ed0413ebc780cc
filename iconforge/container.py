"""
Apple icns container parsing.

Layout:
- 4 bytes: 'icns' magic
- 4 bytes: total length (big-endian, header included)
- Repeated elements: 4-byte type + 4-byte length (header included) + data
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import List, Optional

from .errors import ContainerParseError

log = logging.getLogger(__name__)

ICNS_MAGIC = b"icns"
HEADER_SIZE = 8

# Element types whose payload is an encoded PNG or JPEG 2000 image. Masks
# (s8mk, l8mk, ...), TOC / icnV metadata and the legacy RLE and 1-bit
# bitmaps are not selectable.
IMAGE_TYPES = frozenset({
    "icp4", "icp5", "icp6",
    "ic07", "ic08", "ic09", "ic10",
    "ic11", "ic12", "ic13", "ic14",
    "icsb", "icsB", "sb24", "SB24",
})


def is_image_type(tag: str) -> bool:
    return tag in IMAGE_TYPES


@dataclass(frozen=True)
class ContainerEntry:
    tag: str
    data: bytes

    @property
    def is_image(self) -> bool:
        return is_image_type(self.tag)

    def __len__(self) -> int:
        return len(self.data)


def parse_container(data: bytes) -> List[ContainerEntry]:
    """
    Split an icns blob into its elements, in file order.
    Raises ContainerParseError on any framing problem.
    """
    if len(data) < HEADER_SIZE:
        raise ContainerParseError(f"Container too short ({len(data)} bytes)")
    magic, total = struct.unpack_from(">4sI", data, 0)
    if magic != ICNS_MAGIC:
        raise ContainerParseError(f"Bad container magic: {magic!r}")
    if total < HEADER_SIZE or total > len(data):
        raise ContainerParseError(f"Declared length {total} does not fit {len(data)} bytes of data")

    entries: List[ContainerEntry] = []
    pos = HEADER_SIZE
    while pos < total:
        if total - pos < HEADER_SIZE:
            raise ContainerParseError(f"Truncated element header at offset {pos}")
        raw_tag, length = struct.unpack_from(">4sI", data, pos)
        if length < HEADER_SIZE or pos + length > total:
            raise ContainerParseError(f"Element at offset {pos} has invalid length {length}")
        tag = raw_tag.decode("latin-1")
        entries.append(ContainerEntry(tag=tag, data=bytes(data[pos + HEADER_SIZE:pos + length])))
        pos += length

    return entries


def select_image_entry(entries: List[ContainerEntry]) -> Optional[ContainerEntry]:
    """
    Largest image payload wins; on equal sizes the first one seen is kept.
    """
    best: Optional[ContainerEntry] = None
    for entry in entries:
        if not entry.is_image:
            continue
        if best is None or len(entry) > len(best):
            best = entry
    return best


def extract_container_image(data: bytes) -> Optional[bytes]:
    """
    Return the payload of the best image element, or None if the container
    has no image elements.
    """
    entry = select_image_entry(parse_container(data))
    if entry is None:
        log.debug("Container has no image elements")
        return None
    log.debug("Selected container element %s (%d bytes)", entry.tag, len(entry))
    return entry.data


def build_container(entries: List[ContainerEntry]) -> bytes:
    """
    Serialise elements back into an icns blob.
    """
    body = b"".join(
        struct.pack(">4sI", e.tag.encode("latin-1"), len(e.data) + HEADER_SIZE) + e.data
        for e in entries
    )
    return struct.pack(">4sI", ICNS_MAGIC, len(body) + HEADER_SIZE) + body
