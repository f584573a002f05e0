"""
Spotify capability layer used by the updater and pruner.

Wraps spotipy behind the handful of calls the relay needs: refresh the access
token, add tracks, list tracks, remove tracks and build the one-off authorize
URL. One instance belongs to one webhook invocation and is never shared.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, Optional

import requests
import spotipy
from spotipy.cache_handler import MemoryCacheHandler
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from .config import RelayConfig
from .error_handling import CredentialRefreshError, get_logger

logger = get_logger("client")

TRACK_FIELDS = "items(added_at,track(uri)),next"


class SpotifyPlaylistClient:
    """
    Per-invocation Spotify client.

    Usage:
        with SpotifyPlaylistClient(config) as client:
            client.refresh_access_token()
            client.add_tracks_to_playlist(playlist_id, ["spotify:track:..."])
    """

    def __init__(
        self,
        config: RelayConfig,
        auth_manager: Optional[SpotifyOAuth] = None,
        spotify_factory: Callable[..., spotipy.Spotify] = spotipy.Spotify,
    ):
        self.config = config
        self.access_token = config.access_token
        self.refresh_token = config.refresh_token
        self._auth = auth_manager or self._build_auth(config.scopes)
        self._spotify_factory = spotify_factory
        self._session = requests.Session()
        self._sp: Optional[spotipy.Spotify] = None
        self._sp_lock = threading.Lock()

    def _build_auth(self, scopes: List[str], state: Optional[str] = None) -> SpotifyOAuth:
        return SpotifyOAuth(
            client_id=self.config.client_id,
            client_secret=self.config.client_secret,
            redirect_uri=self.config.redirect_uri,
            scope=" ".join(scopes),
            state=state,
            open_browser=False,
            cache_handler=MemoryCacheHandler(),
            requests_timeout=self.config.request_timeout,
        )

    def __enter__(self) -> "SpotifyPlaylistClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    def set_access_token(self, token: str) -> None:
        self.access_token = token
        self._sp = None

    def set_refresh_token(self, token: str) -> None:
        self.refresh_token = token

    @property
    def spotify(self) -> spotipy.Spotify:
        """spotipy client bound to the current access token, without retries."""
        with self._sp_lock:
            if self._sp is None:
                self._sp = self._spotify_factory(
                    auth=self.access_token,
                    requests_session=self._session,
                    requests_timeout=self.config.request_timeout,
                    retries=0,
                    status_retries=0,
                )
            return self._sp

    def refresh_access_token(self) -> str:
        """
        Exchange the refresh token for a fresh access token.

        Raises:
            CredentialRefreshError: if Spotify rejects the refresh or is unreachable
        """
        if not self.refresh_token:
            raise CredentialRefreshError("No refresh token configured")
        try:
            token_info = self._auth.refresh_access_token(self.refresh_token)
        except (SpotifyOauthError, SpotifyException, requests.RequestException) as e:
            raise CredentialRefreshError(f"Failed to refresh Spotify access token: {e}") from e

        access_token = (token_info or {}).get("access_token")
        if not access_token:
            raise CredentialRefreshError("Spotify refresh response had no access_token")

        self.set_access_token(access_token)
        # Spotify may rotate the refresh token; keep it for the rest of this invocation
        if token_info.get("refresh_token"):
            self.set_refresh_token(token_info["refresh_token"])
        logger.info("Refreshed Spotify access token")
        return access_token

    def add_tracks_to_playlist(self, playlist_id: str, track_uris: List[str]) -> Dict[str, Any]:
        return self.spotify.playlist_add_items(playlist_id, track_uris)

    def get_playlist_tracks(
        self,
        playlist_id: str,
        limit: int = 50,
        offset: int = 0,
    ) -> Dict[str, Any]:
        """One page of ``{"items": [{"track": {"uri"}, "added_at"}], "next"}``."""
        return self.spotify.playlist_items(
            playlist_id,
            fields=TRACK_FIELDS,
            limit=limit,
            offset=offset,
        )

    def remove_tracks_from_playlist(self, playlist_id: str, track_uris: List[str]) -> Dict[str, Any]:
        return self.spotify.playlist_remove_all_occurrences_of_items(playlist_id, track_uris)

    def create_authorize_url(
        self,
        scopes: Optional[List[str]] = None,
        state: Optional[str] = None,
    ) -> str:
        """URL a user visits once to grant the relay access to their playlists."""
        auth = self._build_auth(scopes or self.config.scopes, state=state)
        return auth.get_authorize_url(state=state)
