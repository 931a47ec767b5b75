from __future__ import annotations

import logging
import platform

LOGGER = logging.getLogger("shopify_api.http")
AUTH_LOGGER = logging.getLogger("shopify_api.auth")
WEBHOOK_LOGGER = logging.getLogger("shopify_api.webhooks")

APP_VERSION = "0.1.0"
SDK_NAME = "Shopify API Library"

ACCESS_TOKEN_HEADER = "X-Shopify-Access-Token"
DEPRECATION_HEADER = "X-Shopify-API-Deprecated-Reason"
REQUEST_ID_HEADER = "X-Request-Id"
RETRY_AFTER_HEADER = "Retry-After"

RETRY_WAIT_SECONDS = 1.0
RETRYABLE_STATUS_CODES = frozenset({429, 500})


def library_user_agent(prefix: str | None = None) -> str:
    banner = f"{SDK_NAME} v{APP_VERSION} | Python {platform.python_version()}"
    if prefix:
        return f"{prefix} | {banner}"
    return banner
