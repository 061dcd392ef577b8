"""
Outbound request construction.

Adds the client identification metadata the backend expects on every call
(query parameters and X-* headers), the bearer token and the JSON body.
"""

from __future__ import annotations

import logging

from src.integrations.clients.real_http.transport import HttpRequest, HttpTransport
from src.integrations.contracts.interfaces import RequestVerb

logger = logging.getLogger(__name__)

VERBS_WITHOUT_BODY = frozenset({RequestVerb.GET})


class RequestBuilder:
    def __init__(
        self,
        transport: HttpTransport,
        sdk: str,
        sdk_version: str,
        engine: str = "python",
        engine_version: str = "",
    ) -> None:
        self.transport = transport
        self.sdk = sdk
        self.sdk_version = sdk_version
        self.engine = engine
        self.engine_version = engine_version

    def meta_query(self, url: str) -> str:
        separator = "&" if "?" in url else "?"
        return (
            f"{separator}engine={self.engine}&engine_v={self.engine_version}"
            f"&sdk={self.sdk}&sdk_v={self.sdk_version}"
        )

    def build(
        self,
        url: str,
        verb: RequestVerb = RequestVerb.GET,
        auth_token: str = "",
        content: str = "",
    ) -> HttpRequest:
        request = self.transport.create_request()
        request.set_url(url + self.meta_query(url))

        request.set_header("X-ENGINE", self.engine.upper())
        request.set_header("X-ENGINE-V", self.engine_version)
        request.set_header("X-SDK", self.sdk.upper())
        request.set_header("X-SDK-V", self.sdk_version)

        request.set_verb(verb)
        if content and verb in VERBS_WITHOUT_BODY:
            logger.warning("Request content is not empty for %s request %s. Maybe you should use POST?", verb.value, url)

        if auth_token:
            request.set_header("Authorization", f"Bearer {auth_token}")

        if content:
            request.set_header("Content-Type", "application/json")
            request.set_content(content)

        return request
