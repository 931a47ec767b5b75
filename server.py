from __future__ import annotations

from collections.abc import Callable

import httpx
import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response
from starlette.routing import Route

from shopify_api.config import Config, ShopDomain
from shopify_api.constants import APP_VERSION, AUTH_LOGGER
from shopify_api.env import config_from_env, get_bind_address, load_env, setup_logging, validate_env
from shopify_api.errors import ConfigError
from shopify_auth.errors import (
    InvalidHmacError,
    OAuthError,
    StateMismatchError,
    TokenRequestError,
)
from shopify_auth.oauth import AuthQuery, begin_auth, validate_auth_callback
from shopify_auth.session_store import MemorySessionStore, SessionStore
from shopify_webhooks.errors import (
    InvalidWebhookHmacError,
    NoHandlerForTopicError,
    PayloadParseError,
)
from shopify_webhooks.registry import WebhookRegistry
from shopify_webhooks.verification import WebhookRequest

STATE_COOKIE = "shopify_oauth_state"
CALLBACK_PATH = "/auth/callback"


class ShopifyApp:
    """Reference wiring of the OAuth and webhook flows into HTTP routes."""

    def __init__(
        self,
        config: Config,
        *,
        registry: WebhookRegistry | None = None,
        session_store: SessionStore | None = None,
        http_client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self.config = config
        self.registry = registry or WebhookRegistry()
        self.session_store = session_store or MemorySessionStore()
        self._http_client_factory = http_client_factory

    def routes(self) -> list[Route]:
        return [
            Route("/health", self._handle_health, methods=["GET"]),
            Route("/auth", self._handle_begin_auth, methods=["GET"]),
            Route(CALLBACK_PATH, self._handle_callback, methods=["GET"]),
            Route("/webhooks", self._handle_webhook, methods=["POST"]),
        ]

    # -- handlers --------------------------------------------------------------

    async def _handle_health(self, request: Request) -> Response:
        return JSONResponse({"status": "ok", "version": APP_VERSION})

    async def _handle_begin_auth(self, request: Request) -> Response:
        try:
            shop = ShopDomain.parse(request.query_params.get("shop", ""))
        except ConfigError as error:
            return self._error("invalid_shop", str(error), 400)

        is_online = request.query_params.get("online", "").lower() in {"1", "true", "yes"}
        try:
            result = begin_auth(self.config, shop, CALLBACK_PATH, is_online)
        except OAuthError as error:
            return self._error("oauth_error", str(error), 500)

        response = RedirectResponse(url=result.auth_url, status_code=302)
        response.set_cookie(
            STATE_COOKIE,
            str(result.state),
            httponly=True,
            secure=True,
            samesite="lax",
            max_age=600,
        )
        return response

    async def _handle_callback(self, request: Request) -> Response:
        expected_state = request.cookies.get(STATE_COOKIE)
        if not expected_state:
            return self._error("invalid_state", "Missing OAuth state cookie.", 400)

        try:
            auth_query = AuthQuery.from_query_params(request.query_params)
            session = await self._validate_callback(auth_query, expected_state)
        except InvalidHmacError as error:
            return self._oauth_error(error, 401)
        except StateMismatchError as error:
            return self._oauth_error(error, 403)
        except TokenRequestError as error:
            return self._oauth_error(error, 502)
        except OAuthError as error:
            return self._oauth_error(error, 400)

        await self.session_store.store(session)
        response = JSONResponse(
            {"shop": str(session.shop), "session_id": session.id, "is_online": session.is_online}
        )
        response.delete_cookie(STATE_COOKIE)
        return response

    async def _validate_callback(self, auth_query: AuthQuery, expected_state: str):
        if self._http_client_factory is None:
            return await validate_auth_callback(self.config, auth_query, expected_state)
        async with self._http_client_factory() as client:
            return await validate_auth_callback(
                self.config, auth_query, expected_state, client=client
            )

    async def _handle_webhook(self, request: Request) -> Response:
        webhook_request = WebhookRequest.from_headers(await request.body(), request.headers)
        try:
            await self.registry.process(self.config, webhook_request)
        except InvalidWebhookHmacError as error:
            return self._error("invalid_hmac", str(error), 401)
        except NoHandlerForTopicError as error:
            return self._error("unknown_topic", str(error), 404)
        except PayloadParseError as error:
            return self._error("invalid_payload", str(error), 400)
        return JSONResponse({"status": "ok"})

    def _oauth_error(self, error: OAuthError, status_code: int) -> Response:
        AUTH_LOGGER.warning("OAuth callback rejected: %s", type(error).__name__)
        return JSONResponse(error.to_payload(), status_code=status_code)

    def _error(self, code: str, description: str, status_code: int) -> Response:
        return JSONResponse(
            {"error": code, "error_description": description},
            status_code=status_code,
        )


def create_app(
    config: Config,
    *,
    registry: WebhookRegistry | None = None,
    session_store: SessionStore | None = None,
    http_client_factory: Callable[[], httpx.AsyncClient] | None = None,
) -> Starlette:
    shopify_app = ShopifyApp(
        config,
        registry=registry,
        session_store=session_store,
        http_client_factory=http_client_factory,
    )
    app = Starlette(routes=shopify_app.routes())
    app.state.shopify = shopify_app
    return app


def main() -> None:
    load_env()
    validate_env()
    setup_logging()
    host, port = get_bind_address()
    app = create_app(config_from_env())
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
