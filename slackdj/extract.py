"""
Track reference extraction from slash-command text.
"""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import unquote_plus

from . import uri as spotify_uri
from .error_handling import get_logger

URL_REGEX = re.compile(r"(https?://[^\s>]+)")

logger = get_logger("extract")


def find_url(text: str) -> Optional[str]:
    """
    First http(s) URL in percent-decoded ``text``, without Slack's closing ``>``.

    Form bodies encode spaces as ``+``, so ``+`` decodes to a space.

    Slack wraps links as ``<https://...>``. The run stops at the closing
    ``>``, so trailing punctuation is left out and a bare URL keeps its last
    character.
    """
    match = URL_REGEX.search(unquote_plus(text or ""))
    if not match:
        return None
    return match.group(1)


def extract_track_uri(text: Optional[str]) -> Optional[str]:
    """
    Canonical ``spotify:track:<id>`` for the first link in ``text``.

    Returns None when there is no link, the link does not parse, or it points
    at anything other than a track (album, artist, playlist, show, ...).
    """
    url = find_url(text or "")
    if url is None:
        logger.info("No URL found in message text")
        return None

    try:
        resource = spotify_uri.parse(url)
    except ValueError as e:
        logger.info(f"Ignoring unparseable link {url}: {e}")
        return None

    if not resource.is_track:
        logger.info(f"Ignoring Spotify {resource.type} link {url}")
        return None

    track_uri = resource.to_uri()
    logger.info(f"Extracted track reference {track_uri}")
    return track_uri
