"""Shared fixtures: an in-memory stand-in for the Spotify playlist client."""

from datetime import datetime, timedelta, timezone

import pytest

from slackdj.config import RelayConfig

NOW = datetime(2024, 3, 31, 12, 0, 0, tzinfo=timezone.utc)


def iso_days_ago(days: float, now: datetime = NOW) -> str:
    return (now - timedelta(days=days)).strftime("%Y-%m-%dT%H:%M:%SZ")


class FakePlaylistClient:
    """Keeps playlists in memory and records every call made against it."""

    def __init__(self, playlists=None, fail_on=(), refresh_error=None):
        self.playlists = {pid: list(items) for pid, items in (playlists or {}).items()}
        self.fail_on = set(fail_on)
        self.refresh_error = refresh_error
        self.calls = []
        self.access_token = None
        self.refresh_token = None
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True

    def set_access_token(self, token):
        self.access_token = token

    def set_refresh_token(self, token):
        self.refresh_token = token

    def refresh_access_token(self):
        self.calls.append(("refresh",))
        if self.refresh_error is not None:
            raise self.refresh_error
        self.access_token = "fresh-token"
        return self.access_token

    def add_tracks_to_playlist(self, playlist_id, track_uris):
        self.calls.append(("add", playlist_id, list(track_uris)))
        if playlist_id in self.fail_on:
            raise RuntimeError(f"add failed for {playlist_id}")
        added_at = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        for uri in track_uris:
            self.playlists.setdefault(playlist_id, []).append(
                {"track": {"uri": uri}, "added_at": added_at}
            )
        return {"snapshot_id": "snap"}

    def get_playlist_tracks(self, playlist_id, limit=50, offset=0):
        self.calls.append(("list", playlist_id, limit, offset))
        items = self.playlists.get(playlist_id, [])
        page = items[offset:offset + limit]
        has_next = offset + limit < len(items)
        return {"items": page, "next": "next-page" if has_next else None}

    def remove_tracks_from_playlist(self, playlist_id, track_uris):
        self.calls.append(("remove", playlist_id, list(track_uris)))
        doomed = set(track_uris)
        self.playlists[playlist_id] = [
            item for item in self.playlists.get(playlist_id, [])
            if item["track"]["uri"] not in doomed
        ]
        return {"snapshot_id": "snap"}

    def calls_named(self, name):
        return [c for c in self.calls if c[0] == name]


@pytest.fixture
def config():
    return RelayConfig(
        client_id="client-id",
        client_secret="client-secret",
        refresh_token="refresh-token",
        access_token="stale-token",
        archive_playlist_id="archive",
        monthly_playlist_id="monthly",
    )


@pytest.fixture
def fake_client():
    return FakePlaylistClient()
