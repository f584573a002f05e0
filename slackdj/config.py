"""
Configuration for the playlist relay.

All environment variables are read here, once, into a ``RelayConfig`` that is
passed explicitly to the updater and pruner.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

from dotenv import load_dotenv

from .error_handling import ConfigurationError

PROJECT_ROOT = Path(__file__).resolve().parent.parent

DEFAULT_REDIRECT_URI = "http://127.0.0.1:8888/callback"
DEFAULT_RETENTION_DAYS = 30
DEFAULT_PAGE_SIZE = 50
DEFAULT_REQUEST_TIMEOUT = 10

SCOPES = [
    "playlist-modify-public",
    "playlist-modify-private",
    "playlist-read-private",
]


def parse_bool_env(value: Optional[str], default: bool = False) -> bool:
    """Parse a boolean environment value."""
    if value is None or value == "":
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_int_env(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}")


def load_env_file(env_path: Optional[Path] = None) -> bool:
    """Load a .env file into os.environ (existing variables win)."""
    env_path = env_path or PROJECT_ROOT / ".env"
    if env_path.exists():
        return load_dotenv(env_path)
    return False


@dataclass
class RelayConfig:
    client_id: str
    client_secret: str
    refresh_token: str
    access_token: str = ""
    redirect_uri: str = DEFAULT_REDIRECT_URI
    playlist_id: Optional[str] = None
    archive_playlist_id: Optional[str] = None
    monthly_playlist_id: Optional[str] = None
    retention_days: int = DEFAULT_RETENTION_DAYS
    page_size: int = DEFAULT_PAGE_SIZE
    paginate: bool = False
    request_timeout: int = DEFAULT_REQUEST_TIMEOUT
    log_level: str = "INFO"
    scopes: List[str] = field(default_factory=lambda: list(SCOPES))

    @property
    def target_playlist_ids(self) -> List[str]:
        """Every configured playlist, de-duplicated, in declaration order."""
        ids = [self.playlist_id, self.archive_playlist_id, self.monthly_playlist_id]
        return list(dict.fromkeys(pid for pid in ids if pid))

    @property
    def rolling_playlist_id(self) -> Optional[str]:
        return self.monthly_playlist_id or None

    def validate(self) -> "RelayConfig":
        missing = [
            name for name in ("client_id", "client_secret", "refresh_token")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigurationError(
                f"Missing Spotify credentials: {', '.join(missing)}. "
                "Set them in environment variables or .env file."
            )
        if not self.target_playlist_ids:
            raise ConfigurationError(
                "No playlist configured. Set SPOTIFY_PLAYLIST_ID or "
                "SPOTIFY_ARCHIVE_PLAYLIST_ID / SPOTIFY_MONTHLY_PLAYLIST_ID."
            )
        if self.retention_days < 0:
            raise ConfigurationError("RETENTION_DAYS must not be negative")
        return self

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        validate: bool = True,
    ) -> "RelayConfig":
        """
        Build a config from environment variables.

        When ``env`` is omitted the project .env file is loaded first and
        ``os.environ`` is read. ``validate=False`` skips the credential and
        playlist checks (used for the one-off authorize URL).
        """
        if env is None:
            load_env_file()
            env = os.environ

        config = cls(
            client_id=env.get("SPOTIFY_CLIENT_ID", ""),
            client_secret=env.get("SPOTIFY_CLIENT_SECRET", ""),
            refresh_token=env.get("SPOTIFY_REFRESH_TOKEN", ""),
            access_token=env.get("SPOTIFY_AUTHORIZATION_CODE", ""),
            redirect_uri=env.get("SPOTIFY_REDIRECT_URI") or DEFAULT_REDIRECT_URI,
            playlist_id=env.get("SPOTIFY_PLAYLIST_ID") or None,
            archive_playlist_id=env.get("SPOTIFY_ARCHIVE_PLAYLIST_ID") or None,
            monthly_playlist_id=env.get("SPOTIFY_MONTHLY_PLAYLIST_ID") or None,
            retention_days=_parse_int_env(env, "RETENTION_DAYS", DEFAULT_RETENTION_DAYS),
            page_size=_parse_int_env(env, "PRUNE_PAGE_SIZE", DEFAULT_PAGE_SIZE),
            paginate=parse_bool_env(env.get("PRUNE_PAGINATE"), False),
            request_timeout=_parse_int_env(env, "SPOTIFY_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
            log_level=env.get("LOG_LEVEL", "INFO"),
        )
        return config.validate() if validate else config
