from __future__ import annotations

import urllib.parse
from collections.abc import Mapping
from dataclasses import dataclass, fields

import httpx

from shopify_api.config import Config, ShopDomain
from shopify_api.constants import AUTH_LOGGER
from shopify_api.errors import ConfigError
from shopify_api.scopes import AuthScopes

from .errors import (
    InvalidCallbackError,
    InvalidHmacError,
    MissingHostConfigError,
    StateMismatchError,
    TokenExchangeFailedError,
)
from .hmac_signature import compute_signature, constant_time_compare, matches_any_secret
from .session import Session
from .state import StateParam
from .token_request import request_access_token

PER_USER_GRANT_OPTION = ("grant_options[]", "per-user")


@dataclass(frozen=True)
class AuthQuery:
    """Query parameters Shopify sends to the OAuth callback."""

    code: str
    shop: str
    timestamp: str
    state: str
    host: str
    hmac: str

    @classmethod
    def from_query_params(cls, params: Mapping[str, str]) -> "AuthQuery":
        missing = [item.name for item in fields(cls) if not params.get(item.name)]
        if missing:
            raise InvalidCallbackError(f"Missing query parameters: {', '.join(missing)}")
        return cls(**{item.name: params[item.name] for item in fields(cls)})

    def to_signable_string(self) -> str:
        # Values are not url-encoded; this must match what Shopify signed.
        pairs = sorted(
            (item.name, getattr(self, item.name)) for item in fields(self) if item.name != "hmac"
        )
        return "&".join(f"{key}={value}" for key, value in pairs)


@dataclass(frozen=True)
class BeginAuthResult:
    auth_url: str
    state: StateParam


def _encode_query(params: list[tuple[str, str]]) -> str:
    return "&".join(
        f"{urllib.parse.quote(key, safe='')}={urllib.parse.quote(value, safe='')}"
        for key, value in params
    )


def begin_auth(
    config: Config,
    shop: ShopDomain,
    redirect_path: str,
    is_online: bool,
    scope_override: AuthScopes | None = None,
) -> BeginAuthResult:
    """Build the authorization redirect for ``shop``.

    The caller persists ``result.state`` and passes it back to
    ``validate_auth_callback``.
    """
    if config.host is None:
        raise MissingHostConfigError()

    state = StateParam.new()
    scopes = scope_override if scope_override is not None else config.scopes
    params = [
        ("client_id", config.api_key),
        ("scope", str(scopes)),
        ("redirect_uri", config.host.join(redirect_path)),
        ("state", str(state)),
    ]
    if is_online:
        params.append(PER_USER_GRANT_OPTION)

    auth_url = f"https://{shop}/admin/oauth/authorize?{_encode_query(params)}"
    AUTH_LOGGER.info("Beginning %s OAuth for %s", "online" if is_online else "offline", shop)
    return BeginAuthResult(auth_url=auth_url, state=state)


def validate_hmac(query: AuthQuery, config: Config) -> bool:
    message = query.to_signable_string()
    return matches_any_secret(config, query.hmac, lambda secret: compute_signature(message, secret))


async def validate_auth_callback(
    config: Config,
    auth_query: AuthQuery,
    expected_state: str,
    *,
    client: httpx.AsyncClient | None = None,
) -> Session:
    """Verify an OAuth callback and exchange its code for an access token.

    Checks run in order and stop at the first failure: HMAC, state, shop domain.
    """
    if not validate_hmac(auth_query, config):
        AUTH_LOGGER.warning("Rejected OAuth callback with invalid HMAC for %s", auth_query.shop)
        raise InvalidHmacError()

    if not constant_time_compare(auth_query.state, expected_state):
        raise StateMismatchError(expected_state, auth_query.state)

    try:
        shop = ShopDomain.parse(auth_query.shop)
    except ConfigError:
        raise InvalidCallbackError(f"Invalid shop domain: {auth_query.shop}") from None

    return await request_access_token(
        shop,
        {
            "client_id": config.api_key,
            "client_secret": config.api_secret_key,
            "code": auth_query.code,
        },
        TokenExchangeFailedError,
        client=client,
    )
