"""Error handling helpers for the SDK request pipeline."""
from typing import Any, Dict, Optional
import logging

from src.integrations.contracts.interfaces import ErrorRecord
from src.integrations.policy.codec import (
    DESERIALIZE_FAILED,
    SCHEMA_MISMATCH,
    DeserializeError,
    SchemaMismatchError,
)
from src.login.token import TokenDecodeError

logger = logging.getLogger(__name__)


class ErrorHandler:
    def to_record(self, exc: Exception, status_code: int = 0, context: Optional[Dict[str, Any]] = None) -> ErrorRecord:
        """Turn a decoding failure into the record handed to error callbacks."""
        if isinstance(exc, DeserializeError):
            message = DESERIALIZE_FAILED
        elif isinstance(exc, SchemaMismatchError):
            message = SCHEMA_MISMATCH
        elif isinstance(exc, TokenDecodeError):
            message = str(exc)
        else:
            logger.error("Unhandled exception in request pipeline: %s", exc, exc_info=exc)
            return ErrorRecord(status_code, 0, f"Unexpected error: {exc}")

        logger.error("%s (%s) context=%s", message, exc, context or {})
        return ErrorRecord(status_code, 0, message)

    def handle_callback_exception(self, exc: Exception, context: Optional[Dict[str, Any]] = None) -> None:
        logger.error("Caller callback raised: %s context=%s", exc, context or {}, exc_info=exc)
