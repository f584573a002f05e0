"""
Rolling playlist pruning.

Removes every track whose ``added_at`` is at least ``retention_days`` old.
Age is plain elapsed seconds / 86400, so a "month" is a fixed 30 days.

By default only the first page (50 entries) of the playlist is inspected.
A playlist that grows past one page therefore keeps its later entries until
the head of the playlist has been pruned; pass ``paginate=True`` to walk
every page.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterator, List, Optional

import pandas as pd

from .error_handling import get_logger

logger = get_logger("prune")

SECONDS_PER_DAY = 86400
DEFAULT_RETENTION_DAYS = 30
DEFAULT_PAGE_SIZE = 50
MAX_REMOVE_BATCH = 100  # Spotify API limit per request


def _chunked(seq: List[str], n: int = MAX_REMOVE_BATCH) -> Iterator[List[str]]:
    for i in range(0, len(seq), n):
        yield seq[i:i + n]


def fetch_playlist_entries(
    client,
    playlist_id: str,
    page_size: int = DEFAULT_PAGE_SIZE,
    paginate: bool = False,
) -> pd.DataFrame:
    """
    Playlist entries as a DataFrame with ``uri`` and UTC ``added_at`` columns.

    Entries without a track (removed from the catalogue) are skipped.
    """
    rows = []
    offset = 0
    while True:
        page = client.get_playlist_tracks(playlist_id, limit=page_size, offset=offset) or {}
        items = page.get("items") or []
        for item in items:
            track = item.get("track") or {}
            if track.get("uri"):
                rows.append({"uri": track["uri"], "added_at": item.get("added_at")})

        if not paginate or not items or not page.get("next"):
            break
        offset += page_size

    entries = pd.DataFrame(rows, columns=["uri", "added_at"])
    entries["added_at"] = pd.to_datetime(entries["added_at"], errors="coerce", utc=True)
    return entries


def compute_age_days(added_at: pd.Series, now: datetime) -> pd.Series:
    """Age in days of each timestamp; unparseable timestamps give NaN."""
    now_ts = pd.Timestamp(now)
    if now_ts.tzinfo is None:
        now_ts = now_ts.tz_localize("UTC")
    else:
        now_ts = now_ts.tz_convert("UTC")
    return (now_ts - added_at).dt.total_seconds() / SECONDS_PER_DAY


def select_expired(
    entries: pd.DataFrame,
    retention_days: int = DEFAULT_RETENTION_DAYS,
    now: Optional[datetime] = None,
) -> List[str]:
    """URIs of entries whose age is >= retention_days, first occurrence order."""
    if entries.empty:
        return []
    now = now or datetime.now(timezone.utc)
    ages = compute_age_days(entries["added_at"], now)
    expired = entries.loc[ages >= retention_days, "uri"]
    return list(dict.fromkeys(expired))


def prune_playlist(
    client,
    playlist_id: str,
    retention_days: int = DEFAULT_RETENTION_DAYS,
    page_size: int = DEFAULT_PAGE_SIZE,
    paginate: bool = False,
    now: Optional[datetime] = None,
) -> int:
    """
    Remove tracks at or past the retention window from ``playlist_id``.

    Args:
        client: Authenticated ``SpotifyPlaylistClient`` (or anything with the same calls)
        playlist_id: Rolling playlist to prune
        retention_days: Age threshold in days (inclusive)
        page_size: Entries fetched per page
        paginate: Walk every page instead of only the first one
        now: Reference time, defaults to the current UTC time

    Returns:
        Number of distinct tracks removed. Removal is by URI, so a track that
        expired also loses any newer copies of itself in the playlist.

    Raises:
        SpotifyException: API errors propagate to the caller unretried
    """
    entries = fetch_playlist_entries(client, playlist_id, page_size=page_size, paginate=paginate)
    expired = select_expired(entries, retention_days=retention_days, now=now)

    if not expired:
        logger.info(f"Nothing to prune in {playlist_id} ({len(entries)} entries checked)")
        return 0

    for chunk in _chunked(expired):
        client.remove_tracks_from_playlist(playlist_id, chunk)

    logger.info(
        f"Pruned {len(expired)} track(s) older than {retention_days} days from {playlist_id}"
    )
    return len(expired)
