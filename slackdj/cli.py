"""
slackdj CLI - run the webhook server or drive the relay by hand.
"""

from __future__ import annotations

import argparse
import secrets

from .client import SpotifyPlaylistClient
from .config import RelayConfig
from .error_handling import RelayError, setup_logging
from .extract import extract_track_uri
from .prune import prune_playlist
from .updater import PlaylistUpdater


def main(argv=None):
    ap = argparse.ArgumentParser(
        prog="slackdj",
        description="Relay Slack slash-command track links into Spotify playlists.",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    # Serve command
    ap_serve = sub.add_parser("serve", help="Run the webhook HTTP server.")
    ap_serve.add_argument("--host", default="127.0.0.1")
    ap_serve.add_argument("--port", type=int, default=3000)

    # Add command
    ap_add = sub.add_parser("add", help="Add the track linked in TEXT to the configured playlists.")
    ap_add.add_argument("text", help="Message text containing an open.spotify.com track link")

    # Prune command
    ap_prune = sub.add_parser("prune", help="Prune the rolling playlist.")
    ap_prune.add_argument("--days", type=int, default=None,
                          help="Retention window in days (default: RETENTION_DAYS or 30)")
    ap_prune.add_argument("--paginate", action="store_true",
                          help="Inspect every page instead of only the first 50 entries")

    # Authorize URL command
    ap_auth = sub.add_parser("authorize-url", help="Print the one-time Spotify authorize URL.")
    ap_auth.add_argument("--state", default=None, help="OAuth state (default: random)")

    args = ap.parse_args(argv)

    config = RelayConfig.from_env(validate=args.cmd != "authorize-url")
    setup_logging(config.log_level)

    if args.cmd == "serve":
        import uvicorn

        from .webhook import create_app

        uvicorn.run(create_app(PlaylistUpdater(config)), host=args.host, port=args.port)
        return

    if args.cmd == "add":
        track_uri = extract_track_uri(args.text)
        if track_uri is None:
            raise SystemExit("Error: no Spotify track link found in TEXT")
        try:
            result = PlaylistUpdater(config).update(track_uri)
        except RelayError as e:
            raise SystemExit(f"Error: {e}")
        for outcome in result.outcomes:
            mark = "✅" if outcome.ok else "❌"
            print(f"{mark} {outcome.playlist_id}")
        if result.pruned is not None:
            print(f"🧹 Pruned {result.pruned} track(s)")
        return

    if args.cmd == "prune":
        if not config.rolling_playlist_id:
            raise SystemExit("Error: SPOTIFY_MONTHLY_PLAYLIST_ID is not set")
        days = config.retention_days if args.days is None else args.days
        with SpotifyPlaylistClient(config) as client:
            try:
                client.refresh_access_token()
            except RelayError as e:
                raise SystemExit(f"Error: {e}")
            removed = prune_playlist(
                client,
                config.rolling_playlist_id,
                retention_days=days,
                page_size=config.page_size,
                paginate=args.paginate or config.paginate,
            )
        print(f"🧹 Pruned {removed} track(s)")
        return

    if args.cmd == "authorize-url":
        with SpotifyPlaylistClient(config) as client:
            print(client.create_authorize_url(state=args.state or secrets.token_urlsafe(16)))
        return


if __name__ == "__main__":
    main()
