"""
Session token payload reader.

Decodes the middle segment of a three-part dot-delimited token and exposes
its claims. The signature is NOT verified: claims read here are
self-asserted by whoever produced the token and must not be used as a trust
boundary.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class TokenDecodeError(ValueError):
    pass


def parse_token_payload(token: str) -> Dict[str, Any]:
    parts = (token or "").split(".")
    if len(parts) != 3:
        raise TokenDecodeError(f"Token must have 3 segments, got {len(parts)}")

    segment = parts[1].replace("-", "+").replace("_", "/")
    segment += "=" * (-len(segment) % 4)
    try:
        raw = base64.b64decode(segment, validate=True)
        payload = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise TokenDecodeError("Can't parse token payload") from exc

    if not isinstance(payload, dict):
        raise TokenDecodeError("Token payload is not a JSON object")
    return payload


def try_parse_token_payload(token: str) -> Optional[Dict[str, Any]]:
    try:
        return parse_token_payload(token)
    except TokenDecodeError as e:
        logger.error("Can't parse token payload: %s", e)
        return None


def get_token_parameter(token: str, parameter: str) -> str:
    payload = try_parse_token_payload(token)
    if payload is None:
        return ""
    value = payload.get(parameter)
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float)):
        return json.dumps(value)
    return ""


def get_user_id(token: str) -> str:
    return get_token_parameter(token, "sub")


def get_token_provider(token: str) -> str:
    return get_token_parameter(token, "provider")


def is_master_account(token: str) -> bool:
    payload = try_parse_token_payload(token)
    return bool(payload) and payload.get("is_master") is True


def get_steam_user_id(token: str) -> str:
    """Steam builds carry the profile URL in the ``id`` claim; its last path segment is the user id."""
    payload = parse_token_payload(token)
    profile_url = payload.get("id")
    if not isinstance(profile_url, str):
        raise TokenDecodeError("Can't find Steam profile ID in token payload")
    return profile_url.rstrip("/").rsplit("/", 1)[-1]
