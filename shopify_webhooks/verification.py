from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from shopify_api.config import Config
from shopify_api.constants import WEBHOOK_LOGGER
from shopify_auth.hmac_signature import compute_signature_base64, matches_any_secret

from .errors import InvalidWebhookHmacError
from .types import WebhookTopic

HEADER_HMAC = "X-Shopify-Hmac-SHA256"
HEADER_TOPIC = "X-Shopify-Topic"
HEADER_SHOP_DOMAIN = "X-Shopify-Shop-Domain"
HEADER_API_VERSION = "X-Shopify-API-Version"
HEADER_WEBHOOK_ID = "X-Shopify-Webhook-Id"


@dataclass(frozen=True)
class WebhookRequest:
    body: bytes
    hmac_header: str
    topic: str | None = None
    shop_domain: str | None = None
    api_version: str | None = None
    webhook_id: str | None = None

    @classmethod
    def from_headers(cls, body: bytes, headers: Mapping[str, str]) -> "WebhookRequest":
        lowered = {key.lower(): value for key, value in headers.items()}
        return cls(
            body=body,
            hmac_header=lowered.get(HEADER_HMAC.lower(), ""),
            topic=lowered.get(HEADER_TOPIC.lower()),
            shop_domain=lowered.get(HEADER_SHOP_DOMAIN.lower()),
            api_version=lowered.get(HEADER_API_VERSION.lower()),
            webhook_id=lowered.get(HEADER_WEBHOOK_ID.lower()),
        )


@dataclass(frozen=True)
class WebhookContext:
    """Routing metadata of a webhook whose signature has been verified."""

    topic: WebhookTopic | None
    topic_raw: str
    shop_domain: str | None
    api_version: str | None
    webhook_id: str | None


def verify_hmac(config: Config, body: bytes, hmac_header: str) -> bool:
    """True when ``hmac_header`` signs ``body`` with the current or the old API secret."""
    if not hmac_header:
        return False
    return matches_any_secret(
        config, hmac_header, lambda secret: compute_signature_base64(body, secret)
    )


def verify_webhook(config: Config, request: WebhookRequest) -> WebhookContext:
    if not verify_hmac(config, request.body, request.hmac_header):
        WEBHOOK_LOGGER.warning(
            "Rejected webhook with invalid HMAC topic=%s shop=%s",
            request.topic,
            request.shop_domain,
        )
        raise InvalidWebhookHmacError()

    topic_raw = request.topic or ""
    return WebhookContext(
        topic=WebhookTopic.parse(topic_raw),
        topic_raw=topic_raw,
        shop_domain=request.shop_domain,
        api_version=request.api_version,
        webhook_id=request.webhook_id,
    )
