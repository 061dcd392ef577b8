"""
Per-request completion.

Carries the caller's optional callbacks together with the future returned
from the public operation. Each dispatched request settles its completion
exactly once; a later settle attempt is logged and ignored.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Generic, Optional, TypeVar

from src.error_handler import ErrorHandler
from src.integrations.contracts.interfaces import ErrorRecord, Result

logger = logging.getLogger(__name__)

T = TypeVar("T")

SuccessCallback = Callable[[Any], None]
ErrorCallback = Callable[[ErrorRecord], None]


class Completion(Generic[T]):
    def __init__(
        self,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        error_handler: Optional[ErrorHandler] = None,
        name: str = "",
    ) -> None:
        self.on_success = on_success
        self.on_error = on_error
        self.name = name
        self._errors = error_handler or ErrorHandler()
        self.future: "asyncio.Future[Result[T]]" = asyncio.get_running_loop().create_future()

    @property
    def done(self) -> bool:
        return self.future.done()

    def succeed(self, value: Optional[T] = None) -> None:
        if not self._settle(Result(value=value)):
            return
        if self.on_success is not None:
            self._invoke(self.on_success, value)

    def fail(self, error: ErrorRecord) -> None:
        if not self._settle(Result(error=error)):
            return
        if self.on_error is not None:
            self._invoke(self.on_error, error)

    def derive(self, name: str = "") -> "Completion[T]":
        """New completion for a follow-up request that reuses this one's callbacks."""
        return Completion(self.on_success, self.on_error, self._errors, name=name or self.name)

    def _settle(self, result: Result) -> bool:
        if self.future.done():
            logger.warning("Completion %s settled twice; ignoring %s", self.name, result)
            return False
        self.future.set_result(result)
        return True

    def _invoke(self, callback: Callable[[Any], None], argument: Any) -> None:
        try:
            callback(argument)
        except Exception as exc:
            self._errors.handle_callback_exception(exc, {"operation": self.name})
