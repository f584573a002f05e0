"""
Playlist updating: refresh credentials, add a track everywhere, prune.

Each call to ``PlaylistUpdater.update`` builds its own client and refreshes
its own access token. Adds to the target playlists run concurrently and are
joined regardless of outcome; a failed add is logged and reported in the
result, never raised. Only a failed token refresh aborts the invocation.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

from .client import SpotifyPlaylistClient
from .config import RelayConfig
from .error_handling import get_logger, handle_errors
from .prune import prune_playlist

logger = get_logger("updater")


@dataclass
class PlaylistOutcome:
    playlist_id: str
    ok: bool
    error: Optional[BaseException] = None


@dataclass
class UpdateResult:
    track_uri: str
    outcomes: List[PlaylistOutcome] = field(default_factory=list)
    pruned: Optional[int] = None

    @property
    def failures(self) -> List[PlaylistOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def all_ok(self) -> bool:
        return not self.failures


def add_to_playlists(
    client: SpotifyPlaylistClient,
    playlist_ids: List[str],
    track_uri: str,
) -> List[PlaylistOutcome]:
    """
    Add ``track_uri`` to every playlist concurrently and wait for all of them.

    Returns one outcome per playlist, in the order of ``playlist_ids``.
    """
    if not playlist_ids:
        return []

    results: Dict[str, PlaylistOutcome] = {}
    with ThreadPoolExecutor(max_workers=len(playlist_ids)) as executor:
        futures = {
            executor.submit(client.add_tracks_to_playlist, pid, [track_uri]): pid
            for pid in playlist_ids
        }
        for future in as_completed(futures):
            pid = futures[future]
            try:
                future.result()
                results[pid] = PlaylistOutcome(playlist_id=pid, ok=True)
                logger.info(f"Added {track_uri} to playlist {pid}")
            except Exception as e:
                results[pid] = PlaylistOutcome(playlist_id=pid, ok=False, error=e)
                logger.error(f"Failed to add {track_uri} to playlist {pid}: {e}", exc_info=True)

    return [results[pid] for pid in playlist_ids]


class PlaylistUpdater:
    """
    Adds a track to the configured playlists and prunes the rolling one.

    Usage:
        updater = PlaylistUpdater(RelayConfig.from_env())
        result = updater.update("spotify:track:6J1Qcreg3a9hlJuvJCvjl5")
    """

    def __init__(
        self,
        config: RelayConfig,
        client_factory: Callable[[RelayConfig], SpotifyPlaylistClient] = SpotifyPlaylistClient,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config
        self.client_factory = client_factory
        self.clock = clock

    def update(self, track_uri: str) -> UpdateResult:
        """
        Refresh the token, add ``track_uri`` to every target playlist, prune.

        Raises:
            CredentialRefreshError: no playlist was touched
        """
        with self.client_factory(self.config) as client:
            client.set_access_token(self.config.access_token)
            client.set_refresh_token(self.config.refresh_token)
            client.refresh_access_token()

            result = UpdateResult(track_uri=track_uri)
            result.outcomes = add_to_playlists(client, self.config.target_playlist_ids, track_uri)
            if result.failures:
                logger.warning(
                    f"{len(result.failures)}/{len(result.outcomes)} playlist add(s) failed for {track_uri}"
                )

            if self.config.rolling_playlist_id:
                result.pruned = self.prune(client)
        return result

    @handle_errors(default_return=None)
    def prune(self, client: SpotifyPlaylistClient) -> int:
        """Prune the rolling playlist; failures are logged and give None."""
        now = self.clock() if self.clock else None
        return prune_playlist(
            client,
            self.config.rolling_playlist_id,
            retention_days=self.config.retention_days,
            page_size=self.config.page_size,
            paginate=self.config.paginate,
            now=now,
        )
