import unittest
from datetime import timedelta
from unittest.mock import MagicMock

import pandas as pd

from conftest import NOW, FakePlaylistClient, iso_days_ago
from slackdj.prune import (
    compute_age_days,
    fetch_playlist_entries,
    prune_playlist,
    select_expired,
)


def _entry(uri, days_ago):
    return {"track": {"uri": uri}, "added_at": iso_days_ago(days_ago)}


class TestPrunePlaylist(unittest.TestCase):
    def test_boundary_is_inclusive(self):
        client = FakePlaylistClient({"monthly": [
            _entry("spotify:track:exactly30", 30),
            _entry("spotify:track:day29", 29),
            _entry("spotify:track:old", 45),
        ]})

        removed = prune_playlist(client, "monthly", retention_days=30, now=NOW)

        self.assertEqual(removed, 2)
        self.assertEqual(
            client.calls_named("remove"),
            [("remove", "monthly", ["spotify:track:exactly30", "spotify:track:old"])],
        )
        remaining = [item["track"]["uri"] for item in client.playlists["monthly"]]
        self.assertEqual(remaining, ["spotify:track:day29"])

    def test_just_under_the_window_is_kept(self):
        client = FakePlaylistClient({"monthly": [
            {"track": {"uri": "spotify:track:almost"},
             "added_at": (NOW - timedelta(days=30) + timedelta(seconds=1)).strftime("%Y-%m-%dT%H:%M:%SZ")},
        ]})
        self.assertEqual(prune_playlist(client, "monthly", retention_days=30, now=NOW), 0)

    def test_pruning_is_idempotent(self):
        client = FakePlaylistClient({"monthly": [
            _entry("spotify:track:a", 40),
            _entry("spotify:track:b", 5),
        ]})

        self.assertEqual(prune_playlist(client, "monthly", now=NOW), 1)
        self.assertEqual(prune_playlist(client, "monthly", now=NOW), 0)
        self.assertEqual(len(client.calls_named("remove")), 1)

    def test_empty_playlist_is_a_no_op(self):
        client = FakePlaylistClient({"monthly": []})
        self.assertEqual(prune_playlist(client, "monthly", now=NOW), 0)
        self.assertEqual(client.calls_named("remove"), [])

    def test_only_first_page_is_inspected_by_default(self):
        # 60 entries: the 10 expired ones sit past the first page of 50
        items = [_entry(f"spotify:track:new{i}", 1) for i in range(50)]
        items += [_entry(f"spotify:track:old{i}", 90) for i in range(10)]
        client = FakePlaylistClient({"monthly": items})

        self.assertEqual(prune_playlist(client, "monthly", now=NOW), 0)
        self.assertEqual(client.calls_named("list"), [("list", "monthly", 50, 0)])
        self.assertEqual(len(client.playlists["monthly"]), 60)

    def test_paginate_walks_every_page(self):
        items = [_entry(f"spotify:track:new{i}", 1) for i in range(50)]
        items += [_entry(f"spotify:track:old{i}", 90) for i in range(10)]
        client = FakePlaylistClient({"monthly": items})

        self.assertEqual(prune_playlist(client, "monthly", paginate=True, now=NOW), 10)
        self.assertEqual(len(client.calls_named("list")), 2)
        self.assertEqual(len(client.playlists["monthly"]), 50)

    def test_expired_track_loses_its_recent_copy_too(self):
        # Removal is by URI, so every occurrence of an expired track goes
        client = FakePlaylistClient({"monthly": [
            _entry("spotify:track:u", 40),
            _entry("spotify:track:u", 2),
            _entry("spotify:track:v", 2),
        ]})

        self.assertEqual(prune_playlist(client, "monthly", now=NOW), 1)
        self.assertEqual(
            client.calls_named("remove"), [("remove", "monthly", ["spotify:track:u"])]
        )
        remaining = [item["track"]["uri"] for item in client.playlists["monthly"]]
        self.assertEqual(remaining, ["spotify:track:v"])

    def test_api_errors_propagate(self):
        client = MagicMock()
        client.get_playlist_tracks.side_effect = RuntimeError("boom")
        with self.assertRaises(RuntimeError):
            prune_playlist(client, "monthly", now=NOW)


class TestPruneHelpers(unittest.TestCase):
    def test_fetch_skips_missing_tracks(self):
        client = MagicMock()
        client.get_playlist_tracks.return_value = {
            "items": [
                {"track": None, "added_at": iso_days_ago(3)},
                _entry("spotify:track:a", 3),
            ],
            "next": None,
        }
        entries = fetch_playlist_entries(client, "monthly")
        self.assertEqual(list(entries["uri"]), ["spotify:track:a"])
        self.assertEqual(str(entries["added_at"].dt.tz), "UTC")

    def test_age_uses_fixed_day_length(self):
        added_at = pd.to_datetime(pd.Series([iso_days_ago(1.5)]), utc=True)
        self.assertAlmostEqual(compute_age_days(added_at, NOW).iloc[0], 1.5)

    def test_unparseable_timestamp_is_kept(self):
        entries = pd.DataFrame({"uri": ["spotify:track:a"], "added_at": [pd.NaT]})
        entries["added_at"] = pd.to_datetime(entries["added_at"], utc=True)
        self.assertEqual(select_expired(entries, 0, now=NOW), [])

    def test_duplicates_are_removed_once(self):
        entries = pd.DataFrame({
            "uri": ["spotify:track:a", "spotify:track:a"],
            "added_at": [iso_days_ago(31), iso_days_ago(32)],
        })
        entries["added_at"] = pd.to_datetime(entries["added_at"], utc=True)
        self.assertEqual(select_expired(entries, 30, now=NOW), ["spotify:track:a"])


if __name__ == "__main__":
    unittest.main()
