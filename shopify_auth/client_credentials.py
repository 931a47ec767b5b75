from __future__ import annotations

import httpx

from shopify_api.config import Config, ShopDomain

from .errors import ClientCredentialsFailedError, NotPrivateAppError
from .session import Session
from .token_request import request_access_token

CLIENT_CREDENTIALS_GRANT_TYPE = "client_credentials"


async def exchange_client_credentials(
    config: Config,
    shop: ShopDomain,
    *,
    client: httpx.AsyncClient | None = None,
) -> Session:
    """Obtain an offline token for a non-embedded app without user interaction."""
    if config.is_embedded:
        raise NotPrivateAppError()

    return await request_access_token(
        shop,
        {
            "client_id": config.api_key,
            "client_secret": config.api_secret_key,
            "grant_type": CLIENT_CREDENTIALS_GRANT_TYPE,
        },
        ClientCredentialsFailedError,
        client=client,
    )
