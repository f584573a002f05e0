"""
Slash-command payload handling.

Slack posts either a URL-encoded form body or, behind some proxies, an
already-parsed object. Both are flattened to a plain ``dict`` here. Values are
left percent-encoded; only ``text`` is decoded later by the extractor.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Union

REQUIRED_KEYS = ("token", "channel_id", "text")

RawPayload = Union[str, bytes, Mapping[str, Any], None]


def parse_form_string(payload: str) -> Dict[str, Optional[str]]:
    """
    Split ``key=value&key=value`` on ``&`` then on the first ``=`` of each pair.

    A pair without ``=`` maps its key to None.

    Example:
        >>> parse_form_string("token=T&channel_id=C&flag")
        {'token': 'T', 'channel_id': 'C', 'flag': None}
    """
    tokens: Dict[str, Optional[str]] = {}
    for pair in payload.split("&"):
        key, sep, value = pair.partition("=")
        tokens[key] = value if sep else None
    return tokens


def normalize_payload(payload: RawPayload) -> Dict[str, Optional[str]]:
    """
    Turn a raw webhook payload into a key -> string mapping.

    Never raises; anything unusable comes back as a mapping the validator
    will reject.
    """
    if payload is None:
        return {}
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="replace")
    if isinstance(payload, str):
        return parse_form_string(payload)
    if isinstance(payload, Mapping):
        return {
            str(key): None if value is None else str(value)
            for key, value in payload.items()
        }
    return {}


def is_valid_payload(payload: Mapping[str, Any]) -> bool:
    """
    True iff token, channel_id and text are all present and non-empty.

    This is a presence check only. The token is not compared against the
    Slack verification token.
    """
    # TODO: verify Slack's X-Slack-Signature header once the relay is exposed beyond the trusted workspace
    return all(payload.get(key) for key in REQUIRED_KEYS)
