from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from .config import LATEST_API_VERSION, Config
from .constants import ACCESS_TOKEN_HEADER, LOGGER, RETRYABLE_STATUS_CODES, library_user_agent
from .errors import HttpNetworkError, HttpResponseError, MaxHttpRetriesExceededError
from .http import (
    BorrowedTransport,
    HttpResponse,
    RetryTransport,
    log_deprecation,
    serialize_error,
)

if TYPE_CHECKING:
    from shopify_auth.session import Session


class GraphqlClient:
    """Minimal Admin GraphQL client bound to one session.

    Only posts ``{query, variables}`` envelopes; response shapes are left to
    the caller.
    """

    def __init__(
        self,
        session: "Session",
        config: Config | None = None,
        *,
        api_version: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep=None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._session = session
        self._config = config
        if api_version is None:
            api_version = config.api_version if config is not None else LATEST_API_VERSION
        self._api_version = api_version
        self._transport = transport
        self._sleep = sleep
        self._logger = logger or LOGGER

    @property
    def api_version(self) -> str:
        return self._api_version

    @property
    def endpoint(self) -> str:
        return f"https://{self._session.shop}/admin/api/{self._api_version}/graphql.json"

    def _headers(self, extra: dict[str, str] | None) -> dict[str, str]:
        prefix = self._config.user_agent_prefix if self._config is not None else None
        headers = {
            "Accept": "application/json",
            "User-Agent": library_user_agent(prefix),
            ACCESS_TOKEN_HEADER: self._session.access_token,
        }
        if extra:
            headers.update(extra)
        return headers

    def _build_transport(self, tries: int) -> RetryTransport:
        retry_kwargs = {"max_retries": max(0, tries - 1), "logger": self._logger}
        if self._sleep is not None:
            retry_kwargs["sleep"] = self._sleep
        if self._transport is not None:
            inner: httpx.AsyncBaseTransport = BorrowedTransport(self._transport)
        else:
            inner = httpx.AsyncHTTPTransport()
        return RetryTransport(inner, **retry_kwargs)

    async def query(
        self,
        query: str,
        variables: dict | None = None,
        headers: dict[str, str] | None = None,
        tries: int = 1,
    ) -> HttpResponse:
        payload: dict = {"query": query}
        if variables is not None:
            payload["variables"] = variables

        async with httpx.AsyncClient(transport=self._build_transport(tries)) as client:
            try:
                raw = await client.post(self.endpoint, json=payload, headers=self._headers(headers))
            except httpx.HTTPError as error:
                raise HttpNetworkError(str(error)) from error

        response = HttpResponse.from_httpx(raw)
        log_deprecation(response, self.endpoint)

        if response.is_ok:
            return response

        message = serialize_error(response)
        if tries > 1 and response.code in RETRYABLE_STATUS_CODES:
            raise MaxHttpRetriesExceededError(response.code, tries, message, response.request_id)
        raise HttpResponseError(response.code, message, response.request_id)
