"""
Response classification.

Every completed exchange passes through here before anything touches the
body for domain decoding. A classifier returns None when the response can be
handed to the caller, or an ErrorRecord describing the failure.

Store error body example: {"statusCode": 403, "errorCode": 0, "errorMessage": "Token not found"}
Login error body example: {"error": {"code": "003-007", "description": "Invalid token"}}
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Optional

import httpx

from src.integrations.contracts.interfaces import ErrorRecord

logger = logging.getLogger(__name__)

NO_RESPONSE_STATUS = 204
NO_RESPONSE_MESSAGE = "No response"
ERROR_FIELD = "errorMessage"

# Returns a record built from structured fields, or a string naming why they were absent.
ErrorExtractor = Callable[[int, Dict[str, Any]], "ErrorRecord | str"]


def classify_response(response: Optional[httpx.Response], succeeded: bool) -> Optional[ErrorRecord]:
    """Classify a store backend exchange."""
    return _classify(response, succeeded, _extract_store_error)


def classify_login_response(response: Optional[httpx.Response], succeeded: bool) -> Optional[ErrorRecord]:
    """Classify an identity backend exchange."""
    return _classify(response, succeeded, _extract_login_error)


def _classify(
    response: Optional[httpx.Response],
    succeeded: bool,
    extract: ErrorExtractor,
) -> Optional[ErrorRecord]:
    if not succeeded or response is None:
        logger.warning("request failed (%s)", NO_RESPONSE_MESSAGE)
        return ErrorRecord(NO_RESPONSE_STATUS, 0, NO_RESPONSE_MESSAGE)

    if response.is_success:
        return None

    body = response.text
    status_code = response.status_code
    default_message = f"Invalid response. code={status_code} error={body}"

    try:
        data = json.loads(body)
    except ValueError:
        data = None

    if isinstance(data, dict):
        extracted = extract(status_code, data)
        if isinstance(extracted, ErrorRecord):
            record = extracted
        else:
            record = ErrorRecord(status_code, 0, f"{default_message}. {extracted}")
    else:
        record = ErrorRecord(status_code, 0, f"{default_message}. Can't deserialize error json")

    logger.warning("request failed (%s): %s", record.message, body)
    return record


def _extract_store_error(status_code: int, data: Dict[str, Any]) -> "ErrorRecord | str":
    message = data.get(ERROR_FIELD)
    if not isinstance(message, str):
        return f"Can't deserialize error json: no field '{ERROR_FIELD}' found"
    return ErrorRecord(
        status_code=_as_int(data.get("statusCode"), status_code),
        error_code=_as_int(data.get("errorCode"), 0),
        message=message,
    )


def _extract_login_error(status_code: int, data: Dict[str, Any]) -> "ErrorRecord | str":
    error = data.get("error")
    if not isinstance(error, dict):
        return "Can't deserialize error json: no field 'error' found"
    return ErrorRecord(
        status_code=status_code,
        error_code=str(error.get("code", "")),
        message=str(error.get("description", "")),
    )


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return int(value)
    return default
