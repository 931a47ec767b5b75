import json

import pytest

from shopify_api.config import Config, ShopDomain
from shopify_auth.errors import InvalidJwtError, NotEmbeddedAppError, TokenExchangeFailedError
from shopify_auth.token_exchange import (
    ID_TOKEN_TYPE,
    TOKEN_EXCHANGE_GRANT_TYPE,
    RequestedTokenType,
    exchange_offline_token,
    exchange_online_token,
)
from tests.conftest import API_KEY, API_SECRET, OLD_API_SECRET
from tests.oauth_helpers import (
    TOKEN_URL,
    make_session_token,
    offline_token_payload,
    online_token_payload,
)


@pytest.mark.asyncio
async def test_exchange_offline_token(httpx_mock, config: Config, shop: ShopDomain) -> None:
    httpx_mock.add_response(url=TOKEN_URL, method="POST", json=offline_token_payload())
    session_token = make_session_token()

    session = await exchange_offline_token(config, shop, session_token)

    assert session.id == "offline_test-shop.myshopify.com"
    assert session.is_online is False
    body = json.loads(httpx_mock.get_request().content)
    assert body == {
        "client_id": API_KEY,
        "client_secret": API_SECRET,
        "grant_type": TOKEN_EXCHANGE_GRANT_TYPE,
        "subject_token": session_token,
        "subject_token_type": ID_TOKEN_TYPE,
        "requested_token_type": RequestedTokenType.OFFLINE.value,
    }


@pytest.mark.asyncio
async def test_exchange_online_token(httpx_mock, config: Config, shop: ShopDomain) -> None:
    httpx_mock.add_response(url=TOKEN_URL, method="POST", json=online_token_payload())

    session = await exchange_online_token(config, shop, make_session_token())

    assert session.is_online is True
    assert session.shopify_session_id == "shopify-session-1"
    body = json.loads(httpx_mock.get_request().content)
    assert body["requested_token_type"] == (
        "urn:shopify:params:oauth:token-type:online-access-token"
    )


@pytest.mark.asyncio
async def test_exchange_requires_embedded_app(private_config: Config, shop: ShopDomain) -> None:
    with pytest.raises(NotEmbeddedAppError):
        await exchange_offline_token(private_config, shop, make_session_token())


@pytest.mark.asyncio
async def test_exchange_rejects_invalid_session_token(config: Config, shop: ShopDomain) -> None:
    token = make_session_token(secret="wrong-secret-0123456789abcdefghijklmn")

    with pytest.raises(InvalidJwtError, match="Error decoding session token"):
        await exchange_online_token(config, shop, token)


@pytest.mark.asyncio
async def test_exchange_accepts_token_signed_with_old_secret(
    httpx_mock, rotated_config: Config, shop: ShopDomain
) -> None:
    httpx_mock.add_response(url=TOKEN_URL, method="POST", json=offline_token_payload())

    session = await exchange_offline_token(
        rotated_config, shop, make_session_token(secret=OLD_API_SECRET)
    )

    assert session.access_token == "shpat_offline"


@pytest.mark.asyncio
async def test_exchange_maps_invalid_subject_token(
    httpx_mock, config: Config, shop: ShopDomain
) -> None:
    httpx_mock.add_response(
        url=TOKEN_URL,
        method="POST",
        status_code=400,
        json={"error": "invalid_subject_token", "error_description": "stale"},
    )

    with pytest.raises(InvalidJwtError) as exc_info:
        await exchange_offline_token(config, shop, make_session_token())

    assert exc_info.value.reason == "Session token was rejected by token exchange"


@pytest.mark.asyncio
async def test_exchange_other_400_is_exchange_failure(
    httpx_mock, config: Config, shop: ShopDomain
) -> None:
    httpx_mock.add_response(
        url=TOKEN_URL, method="POST", status_code=400, json={"error": "invalid_request"}
    )

    with pytest.raises(TokenExchangeFailedError) as exc_info:
        await exchange_offline_token(config, shop, make_session_token())

    assert exc_info.value.status == 400
    assert "invalid_request" in exc_info.value.message


@pytest.mark.asyncio
async def test_exchange_server_error(httpx_mock, config: Config, shop: ShopDomain) -> None:
    httpx_mock.add_response(url=TOKEN_URL, method="POST", status_code=503, text="unavailable")

    with pytest.raises(TokenExchangeFailedError) as exc_info:
        await exchange_online_token(config, shop, make_session_token())

    assert exc_info.value.status == 503
    assert exc_info.value.to_payload()["message"] == "unavailable"
