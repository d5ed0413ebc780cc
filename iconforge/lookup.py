"""
Canonical icon lookup through the public iTunes Search API.
"""

from __future__ import annotations

import http.client
import json
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

from .errors import LookupFailed

log = logging.getLogger(__name__)

SEARCH_URL = "https://itunes.apple.com/search"
USER_AGENT = "iconforge/1.0"
DEFAULT_REGION = "us"
DEFAULT_TIMEOUT_SECONDS = 6


@dataclass(frozen=True)
class AppMatch:
    name: str
    icon_url: str


def search_url(term: str, region: str = DEFAULT_REGION) -> str:
    query = urlencode({
        "media": "software",
        "entity": "software,iPadSoftware",
        "term": term,
        "country": region,
        "limit": 1,
    })
    return f"{SEARCH_URL}?{query}"


def fetch_bytes(url: str, timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS) -> bytes:
    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    try:
        with urllib.request.urlopen(req, timeout=timeout_seconds) as resp:
            return resp.read()
    except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
        raise LookupFailed(f"Request to {url} failed: {e}") from e


def search_app_icon(
    term: str,
    region: str = DEFAULT_REGION,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> Optional[AppMatch]:
    """
    Best iOS app match for `term` in `region`, or None when nothing is found.
    """
    body = fetch_bytes(search_url(term, region), timeout_seconds=timeout_seconds)
    try:
        data = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise LookupFailed(f"Search response is not JSON: {e}") from e

    if not isinstance(data, dict):
        raise LookupFailed("Search response is not a JSON object")
    results = data.get("results")
    if results is not None and not isinstance(results, list):
        raise LookupFailed("Search response 'results' is not an array")
    if not results:
        log.debug("No app found for %r in %s", term, region)
        return None

    app = results[0]
    if not isinstance(app, dict):
        raise LookupFailed("Search result is not a JSON object")
    icon_url = app.get("artworkUrl512") or app.get("artworkUrl100")
    if not isinstance(icon_url, str) or not icon_url:
        return None
    name = app.get("trackName")
    return AppMatch(name=name if isinstance(name, str) and name else term, icon_url=icon_url)
