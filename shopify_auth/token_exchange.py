from __future__ import annotations

from enum import Enum

import httpx

from shopify_api.config import Config, ShopDomain

from .errors import InvalidJwtError, NotEmbeddedAppError, OAuthError, TokenExchangeFailedError
from .jwt_payload import JwtPayload
from .session import Session
from .token_request import request_access_token

TOKEN_EXCHANGE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:token-exchange"
ID_TOKEN_TYPE = "urn:ietf:params:oauth:token-type:id_token"


class RequestedTokenType(str, Enum):
    ONLINE = "urn:shopify:params:oauth:token-type:online-access-token"
    OFFLINE = "urn:shopify:params:oauth:token-type:offline-access-token"


def _reject_invalid_subject_token(response: httpx.Response) -> OAuthError | None:
    if response.status_code != 400:
        return None
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("error") == "invalid_subject_token":
        return InvalidJwtError("Session token was rejected by token exchange")
    return None


async def _exchange_token(
    config: Config,
    shop: ShopDomain,
    session_token: str,
    requested_token_type: RequestedTokenType,
    *,
    client: httpx.AsyncClient | None = None,
) -> Session:
    if not config.is_embedded:
        raise NotEmbeddedAppError()

    JwtPayload.decode(session_token, config)

    return await request_access_token(
        shop,
        {
            "client_id": config.api_key,
            "client_secret": config.api_secret_key,
            "grant_type": TOKEN_EXCHANGE_GRANT_TYPE,
            "subject_token": session_token,
            "subject_token_type": ID_TOKEN_TYPE,
            "requested_token_type": requested_token_type.value,
        },
        TokenExchangeFailedError,
        client=client,
        reject=_reject_invalid_subject_token,
    )


async def exchange_online_token(
    config: Config,
    shop: ShopDomain,
    session_token: str,
    *,
    client: httpx.AsyncClient | None = None,
) -> Session:
    """Trade an App Bridge session token for a user-scoped access token."""
    return await _exchange_token(
        config, shop, session_token, RequestedTokenType.ONLINE, client=client
    )


async def exchange_offline_token(
    config: Config,
    shop: ShopDomain,
    session_token: str,
    *,
    client: httpx.AsyncClient | None = None,
) -> Session:
    """Trade an App Bridge session token for an app-level access token."""
    return await _exchange_token(
        config, shop, session_token, RequestedTokenType.OFFLINE, client=client
    )
