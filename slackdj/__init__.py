"""
slackdj - Slack slash command to Spotify playlist relay.

Usage:
    from slackdj import PlaylistUpdater, RelayConfig, extract_track_uri

    updater = PlaylistUpdater(RelayConfig.from_env())
    track_uri = extract_track_uri(text)
    if track_uri:
        updater.update(track_uri)
"""

from .config import RelayConfig
from .error_handling import (
    ConfigurationError,
    CredentialRefreshError,
    MalformedPayload,
    NoTrackFound,
    RelayError,
)
from .extract import extract_track_uri
from .payload import is_valid_payload, normalize_payload
from .prune import prune_playlist
from .updater import PlaylistOutcome, PlaylistUpdater, UpdateResult

__version__ = "0.1.0"

__all__ = [
    # Configuration
    "RelayConfig",
    # Pipeline
    "normalize_payload",
    "is_valid_payload",
    "extract_track_uri",
    "PlaylistUpdater",
    "PlaylistOutcome",
    "UpdateResult",
    "prune_playlist",
    # Errors
    "RelayError",
    "MalformedPayload",
    "NoTrackFound",
    "CredentialRefreshError",
    "ConfigurationError",
]
