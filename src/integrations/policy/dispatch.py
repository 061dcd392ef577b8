"""
Fire-and-complete dispatch for requests outside the cart queue.

Builds the request, starts it, and on completion:
1) classifies the exchange (store or login flavour)
2) fails the completion with the classified error, or
3) hands the response to ``on_response``; codec failures raised there are
   turned into error records
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

import httpx

from src.error_handler import ErrorHandler
from src.integrations.clients.real_http.request_builder import RequestBuilder
from src.integrations.clients.real_http.transport import HttpRequest
from src.integrations.contracts.interfaces import ErrorRecord, RequestVerb
from src.integrations.policy.codec import IntegrationResponseError
from src.integrations.policy.completion import Completion
from src.integrations.policy.response_classifier import classify_response

logger = logging.getLogger(__name__)

Classifier = Callable[[Optional[httpx.Response], bool], Optional[ErrorRecord]]
ResponseHandler = Callable[[httpx.Response], None]


def dispatch(
    builder: RequestBuilder,
    url: str,
    verb: RequestVerb,
    completion: Completion,
    on_response: ResponseHandler,
    *,
    auth_token: str = "",
    content: str = "",
    headers: Optional[Dict[str, str]] = None,
    classify: Classifier = classify_response,
    error_handler: Optional[ErrorHandler] = None,
) -> HttpRequest:
    errors = error_handler or ErrorHandler()
    request = builder.build(url, verb, auth_token, content)
    for name, value in (headers or {}).items():
        request.set_header(name, value)

    def handle(_request: HttpRequest, response: Optional[httpx.Response], succeeded: bool) -> None:
        error = classify(response, succeeded)
        if error is not None:
            completion.fail(error)
            return

        logger.debug("%s response: %s", completion.name or url, response.text)
        try:
            on_response(response)
        except IntegrationResponseError as exc:
            completion.fail(errors.to_record(exc, response.status_code, {"operation": completion.name}))

    request.on_complete(handle)
    request.process()
    return request
