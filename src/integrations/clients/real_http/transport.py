"""
HTTP transport built on httpx.

Purpose:
- Creates request objects that can be built now and executed later
- Executes them on the running asyncio loop without blocking the caller
- Reports completion as (request, response | None, succeeded) to one handler

The status of a request is what the cart queue inspects to decide whether
something is in flight, so it is updated synchronously on process() and
before the completion handler runs.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, Optional

import httpx

from src.integrations.contracts.interfaces import RequestStatus, RequestVerb

logger = logging.getLogger(__name__)

CompletionHandler = Callable[["HttpRequest", Optional[httpx.Response], bool], None]


class HttpRequest:
    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client
        self.url: str = ""
        self.verb: RequestVerb = RequestVerb.GET
        self.headers: Dict[str, str] = {}
        self.content: Optional[str] = None
        self.status: RequestStatus = RequestStatus.NOT_STARTED
        self.response: Optional[httpx.Response] = None
        self._on_complete: Optional[CompletionHandler] = None
        self._task: Optional[asyncio.Task] = None

    def set_url(self, url: str) -> None:
        self.url = url

    def set_verb(self, verb: RequestVerb) -> None:
        self.verb = verb

    def set_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def set_content(self, content: str) -> None:
        self.content = content

    def on_complete(self, handler: CompletionHandler) -> None:
        self._on_complete = handler

    def process(self) -> bool:
        """Start the request on the running loop. Returns False if it was already started."""
        if self.status != RequestStatus.NOT_STARTED:
            logger.debug("Request %s %s already started (%s)", self.verb.value, self.url, self.status.value)
            return False

        loop = asyncio.get_running_loop()
        self.status = RequestStatus.PROCESSING
        self._task = loop.create_task(self._run())
        return True

    async def wait(self) -> None:
        """Wait until the request and its completion handler have run."""
        if self._task is not None:
            await asyncio.shield(self._task)

    async def _run(self) -> None:
        succeeded = False
        try:
            self.response = await self._client.request(
                self.verb.value,
                self.url,
                headers=self.headers,
                content=self.content,
            )
            self.status = RequestStatus.SUCCEEDED
            succeeded = True
        except (httpx.NetworkError, httpx.ConnectTimeout) as e:
            logger.error("Connection error for %s %s: %s", self.verb.value, self.url, e)
            self.status = RequestStatus.FAILED_CONNECTION_ERROR
        except httpx.HTTPError as e:
            logger.error("Request error for %s %s: %s", self.verb.value, self.url, e)
            self.status = RequestStatus.FAILED
        except Exception:
            # e.g. UnicodeEncodeError for a non-ASCII header value; the handler must still run
            logger.exception("Unexpected error for %s %s", self.verb.value, self.url)
            self.status = RequestStatus.FAILED
            self.response = None

        if self._on_complete is None:
            return
        try:
            self._on_complete(self, self.response, succeeded)
        except Exception:
            logger.exception("Completion handler failed for %s %s", self.verb.value, self.url)


class HttpTransport:
    """Request factory bound to one shared httpx.AsyncClient."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout_seconds: float = 30.0) -> None:
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout_seconds)

    def create_request(self) -> HttpRequest:
        return HttpRequest(self.client)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
