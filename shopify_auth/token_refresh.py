from __future__ import annotations

import httpx

from shopify_api.config import Config, ShopDomain

from .errors import TokenRefreshFailedError
from .session import Session
from .token_exchange import TOKEN_EXCHANGE_GRANT_TYPE, RequestedTokenType
from .token_request import request_access_token

REFRESH_TOKEN_GRANT_TYPE = "refresh_token"


def build_refresh_payload(config: Config, refresh_token: str) -> dict[str, str]:
    return {
        "client_id": config.api_key,
        "client_secret": config.api_secret_key,
        "grant_type": REFRESH_TOKEN_GRANT_TYPE,
        "refresh_token": refresh_token,
    }


def build_migration_payload(config: Config, access_token: str) -> dict[str, str]:
    offline = RequestedTokenType.OFFLINE.value
    return {
        "client_id": config.api_key,
        "client_secret": config.api_secret_key,
        "grant_type": TOKEN_EXCHANGE_GRANT_TYPE,
        "subject_token": access_token,
        "subject_token_type": offline,
        "requested_token_type": offline,
        "expiring": "1",
    }


async def refresh_access_token(
    config: Config,
    shop: ShopDomain,
    refresh_token: str,
    *,
    client: httpx.AsyncClient | None = None,
) -> Session:
    return await request_access_token(
        shop,
        build_refresh_payload(config, refresh_token),
        TokenRefreshFailedError,
        client=client,
    )


async def migrate_to_expiring_token(
    config: Config,
    shop: ShopDomain,
    access_token: str,
    *,
    client: httpx.AsyncClient | None = None,
) -> Session:
    """Swap a non-expiring offline token for an expiring one.

    Irreversible: Shopify invalidates ``access_token`` once this succeeds.
    """
    return await request_access_token(
        shop,
        build_migration_payload(config, access_token),
        TokenRefreshFailedError,
        client=client,
    )
