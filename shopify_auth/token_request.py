from __future__ import annotations

from collections.abc import Callable

import httpx

from shopify_api.config import ShopDomain
from shopify_api.constants import AUTH_LOGGER

from .errors import OAuthError, TokenRequestError
from .session import AccessTokenResponse, Session

RejectHook = Callable[[httpx.Response], "OAuthError | None"]


def access_token_url(shop: ShopDomain) -> str:
    return f"https://{shop}/admin/oauth/access_token"


async def request_access_token(
    shop: ShopDomain,
    payload: dict[str, str],
    error_cls: type[TokenRequestError],
    *,
    client: httpx.AsyncClient | None = None,
    reject: RejectHook | None = None,
) -> Session:
    """POST ``payload`` to the shop's token endpoint and build a ``Session``.

    ``reject`` may translate a non-2xx response into a more specific error
    before the generic ``error_cls`` is raised.
    """
    own_client = client is None
    http_client = client or httpx.AsyncClient()
    url = access_token_url(shop)

    try:
        response = await http_client.post(
            url,
            json=payload,
            headers={"Accept": "application/json"},
        )
    except httpx.HTTPError as error:
        AUTH_LOGGER.warning("Token request to %s failed before a response: %s", shop, error)
        raise error_cls(0, f"Network error: {error}") from error
    finally:
        if own_client:
            await http_client.aclose()

    if not response.is_success:
        AUTH_LOGGER.warning(
            "Token request to %s rejected grant=%s status=%s",
            shop,
            payload.get("grant_type", "authorization_code"),
            response.status_code,
        )
        if reject is not None:
            mapped = reject(response)
            if mapped is not None:
                raise mapped
        raise error_cls(response.status_code, response.text)

    try:
        token_response = AccessTokenResponse.from_payload(response.json())
    except ValueError as error:
        raise error_cls(
            response.status_code, f"Failed to parse token response: {error}"
        ) from error

    session = Session.from_access_token_response(shop, token_response)
    AUTH_LOGGER.info(
        "Issued %s session for %s", "online" if session.is_online else "offline", shop
    )
    return session
