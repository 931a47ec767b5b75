from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field

import httpx

from .constants import (
    DEPRECATION_HEADER,
    LOGGER,
    REQUEST_ID_HEADER,
    RETRY_AFTER_HEADER,
    RETRY_WAIT_SECONDS,
    RETRYABLE_STATUS_CODES,
)


def _retry_after_seconds(header: str | None) -> float | None:
    if header is None:
        return None
    try:
        return max(0.0, float(header))
    except ValueError:
        return None


def _lower_headers(headers: httpx.Headers) -> dict[str, str]:
    return {key.lower(): value for key, value in headers.items()}


class RetryTransport(httpx.AsyncBaseTransport):
    """Replays a request on 429 and 500 responses.

    A 429 waits for ``Retry-After`` when present; every other retry waits
    ``RETRY_WAIT_SECONDS``. The last response is returned once retries run out.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        *,
        max_retries: int = 0,
        sleep=asyncio.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self._transport = transport
        self._max_retries = max(0, max_retries)
        self._sleep = sleep
        self._logger = logger or LOGGER

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        body = request.content
        retries = 0

        while True:
            next_request = httpx.Request(
                method=request.method,
                url=request.url,
                headers=request.headers,
                content=body,
                extensions=request.extensions,
            )
            response = await self._transport.handle_async_request(next_request)

            if response.status_code not in RETRYABLE_STATUS_CODES or retries >= self._max_retries:
                return response

            wait_seconds = None
            if response.status_code == 429:
                wait_seconds = HttpResponse(
                    response.status_code, _lower_headers(response.headers)
                ).retry_request_after
            if wait_seconds is None:
                wait_seconds = RETRY_WAIT_SECONDS

            self._logger.warning(
                "Retrying %s after %ss (%s %s)",
                response.status_code,
                wait_seconds,
                request.method,
                request.url,
            )
            await response.aclose()
            await self._sleep(wait_seconds)
            retries += 1

    async def aclose(self) -> None:
        await self._transport.aclose()


class BorrowedTransport(httpx.AsyncBaseTransport):
    """Forwards requests to a caller-owned transport and leaves closing it to the caller."""

    def __init__(self, transport: httpx.AsyncBaseTransport) -> None:
        self._transport = transport

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await self._transport.handle_async_request(request)

    async def aclose(self) -> None:
        return None


@dataclass
class HttpResponse:
    code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: dict | list | str | None = None

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> "HttpResponse":
        try:
            body = response.json()
        except ValueError:
            body = response.text or None
        return cls(
            code=response.status_code,
            headers=_lower_headers(response.headers),
            body=body,
        )

    @property
    def is_ok(self) -> bool:
        return 200 <= self.code < 300

    @property
    def request_id(self) -> str | None:
        return self.headers.get(REQUEST_ID_HEADER.lower())

    @property
    def retry_request_after(self) -> float | None:
        return _retry_after_seconds(self.headers.get(RETRY_AFTER_HEADER.lower()))

    @property
    def deprecation_reason(self) -> str | None:
        return self.headers.get(DEPRECATION_HEADER.lower())


def serialize_error(response: HttpResponse) -> str:
    """Collapse an error response body into a single JSON message."""
    error_body: dict = {}
    body = response.body
    if isinstance(body, dict):
        for key in ("errors", "error", "error_description"):
            if key in body:
                error_body[key] = body[key]
    elif body:
        error_body["errors"] = body

    if response.request_id:
        error_body["error_reference"] = (
            f"If you report this error, please include this id: {response.request_id}."
        )
    return json.dumps(error_body, sort_keys=True)


def log_deprecation(response: HttpResponse, url: str) -> None:
    reason = response.deprecation_reason
    if reason:
        LOGGER.warning("Deprecated request to Shopify API at %s, received reason: %s", url, reason)
