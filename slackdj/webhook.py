"""
HTTP boundary for the Slack slash command.

Status codes:
    200  track handled (even if some playlist adds or the prune failed)
    400  payload missing token/channel_id/text, or no track link in text
    500  credential refresh (or anything else unexpected) failed
"""

from __future__ import annotations

import json
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.concurrency import run_in_threadpool

from .config import RelayConfig
from .error_handling import MalformedPayload, NoTrackFound, RelayError, get_logger
from .extract import extract_track_uri
from .payload import RawPayload, is_valid_payload, normalize_payload
from .updater import PlaylistUpdater, UpdateResult

logger = get_logger("webhook")


def process_payload(payload: RawPayload, updater: PlaylistUpdater) -> UpdateResult:
    """
    Normalise, validate, extract and hand the track to the updater.

    Raises:
        MalformedPayload: a required field is missing or empty
        NoTrackFound: text has no Spotify track link
        CredentialRefreshError: propagated from the updater
    """
    tokens = normalize_payload(payload)
    logger.info(f"Received payload with keys: {sorted(tokens)}")

    if not is_valid_payload(tokens):
        raise MalformedPayload("Payload is missing token, channel_id or text")

    track_uri = extract_track_uri(tokens["text"])
    if track_uri is None:
        raise NoTrackFound("No Spotify track link in message text")

    return updater.update(track_uri)


def handle_webhook(payload: RawPayload, updater: PlaylistUpdater) -> int:
    """Run one slash-command invocation and return the HTTP status code."""
    try:
        process_payload(payload, updater)
    except RelayError as e:
        logger.warning(f"Rejected webhook ({e.status_code}): {e}")
        return e.status_code
    except Exception as e:
        logger.error(f"Webhook failed: {e}", exc_info=True)
        return 500
    return 200


def _decode_body(body: bytes, content_type: str) -> RawPayload:
    if "application/json" in content_type:
        try:
            return json.loads(body or b"null")
        except ValueError:
            logger.warning("Request body is not valid JSON")
            return None
    return body.decode("utf-8", errors="replace")


def create_app(updater: Optional[PlaylistUpdater] = None) -> FastAPI:
    """
    Build the FastAPI app.

    Without an explicit ``updater`` one is built from the environment on the
    first request, so importing this module never requires credentials.
    """
    app = FastAPI(title="slackdj", description="Slack slash command to Spotify playlists")
    app.state.updater = updater

    def get_updater() -> PlaylistUpdater:
        if app.state.updater is None:
            app.state.updater = PlaylistUpdater(RelayConfig.from_env())
        return app.state.updater

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    class _ConfiguredUpdater:
        # Defers building the updater until a valid payload needs it
        def update(self, track_uri: str) -> UpdateResult:
            return get_updater().update(track_uri)

    @app.post("/api/dj")
    async def dj(request: Request) -> Response:
        body = await request.body()
        payload = _decode_body(body, request.headers.get("content-type", ""))
        status_code = await run_in_threadpool(handle_webhook, payload, _ConfiguredUpdater())
        return Response(status_code=status_code)

    return app


app = create_app()
