"""
Spotify resource URI parsing.

Accepts open.spotify.com links (including localised ``/intl-xx/`` and
``/embed/`` paths and legacy ``/user/<id>/playlist/<id>`` links) as well as
native ``spotify:<type>:<id>`` URIs, and canonicalises them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import unquote, urlparse

RESOURCE_TYPES = ("track", "album", "artist", "playlist", "show", "episode", "user")
SPOTIFY_HOSTS = ("open.spotify.com", "play.spotify.com", "embed.spotify.com")

_ID_RE = re.compile(r"^[A-Za-z0-9]+$")
_INTL_RE = re.compile(r"^intl-[a-z]{2}(-[a-z]{2})?$", re.IGNORECASE)


class SpotifyUriError(ValueError):
    """Raised when a string is not a recognisable Spotify resource."""
    pass


@dataclass(frozen=True)
class SpotifyUri:
    type: str
    id: str
    user: Optional[str] = None

    def to_uri(self) -> str:
        """Native ``spotify:`` form, e.g. ``spotify:track:6J1Qcreg3a9hlJuvJCvjl5``."""
        return f"spotify:{self.type}:{self.id}"

    @property
    def is_track(self) -> bool:
        return self.type == "track"


def _resource(rtype: str, rid: str, user: Optional[str] = None) -> SpotifyUri:
    rtype = rtype.lower()
    if rtype not in RESOURCE_TYPES:
        raise SpotifyUriError(f"Unsupported Spotify resource type: {rtype!r}")
    if not rid:
        raise SpotifyUriError(f"Missing Spotify {rtype} id")
    if rtype != "user" and not _ID_RE.match(rid):
        raise SpotifyUriError(f"Invalid Spotify {rtype} id: {rid!r}")
    return SpotifyUri(type=rtype, id=rid, user=user)


def _from_segments(segments: List[str]) -> SpotifyUri:
    if len(segments) >= 4 and segments[0] == "user" and segments[2] == "playlist":
        return _resource("playlist", segments[3], user=segments[1])
    if len(segments) == 2 and segments[0] == "user":
        return _resource("user", segments[1])
    if len(segments) < 2:
        raise SpotifyUriError(f"Not a Spotify resource path: /{'/'.join(segments)}")
    return _resource(segments[0], segments[1])


def parse(value: str) -> SpotifyUri:
    """
    Parse a Spotify link or URI.

    Raises:
        SpotifyUriError: if ``value`` is not a Spotify resource
    """
    if not isinstance(value, str):
        raise SpotifyUriError(f"Expected a string, got {type(value).__name__}")

    # Slack renders labelled links as <url|label>
    text = value.strip().split("|", 1)[0]
    if not text:
        raise SpotifyUriError("Empty Spotify URI")

    if text.lower().startswith("spotify:"):
        segments = [unquote(s) for s in text.split(":")[1:]]
        return _from_segments(segments)

    parsed = urlparse(text)
    if parsed.scheme not in ("http", "https"):
        raise SpotifyUriError(f"Not an http(s) URL: {text!r}")
    if (parsed.hostname or "").lower() not in SPOTIFY_HOSTS:
        raise SpotifyUriError(f"Not a Spotify host: {parsed.hostname!r}")

    segments = [unquote(s) for s in parsed.path.split("/") if s]
    while segments and (segments[0] == "embed" or _INTL_RE.match(segments[0])):
        segments = segments[1:]
    return _from_segments(segments)


def to_uri(value: str) -> str:
    """Canonical ``spotify:`` URI for any supported link or URI."""
    return parse(value).to_uri()
