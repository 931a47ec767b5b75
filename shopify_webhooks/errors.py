from __future__ import annotations


class WebhookError(RuntimeError):
    """Base class for webhook verification, routing and registration failures."""

    def to_payload(self) -> dict:
        return {"error": type(self).__name__, "message": str(self)}


class InvalidWebhookHmacError(WebhookError):
    def __init__(self) -> None:
        super().__init__("Webhook HMAC signature validation failed")


class NoHandlerForTopicError(WebhookError):
    def __init__(self, topic: str) -> None:
        super().__init__(f"No handler registered for webhook topic '{topic}'")
        self.topic = topic


class PayloadParseError(WebhookError):
    def __init__(self, message: str) -> None:
        super().__init__(f"Failed to parse webhook payload: {message}")
        self.message = message


class RegistrationNotFoundError(WebhookError):
    def __init__(self, topic: str) -> None:
        super().__init__(f"No webhook registration found for topic '{topic}'")
        self.topic = topic


class SubscriptionNotFoundError(WebhookError):
    def __init__(self, topic: str) -> None:
        super().__init__(f"No webhook subscription exists in Shopify for topic '{topic}'")
        self.topic = topic


class ShopifyError(WebhookError):
    def __init__(self, message: str) -> None:
        super().__init__(f"Shopify returned errors: {message}")
        self.message = message


class HostNotConfiguredError(WebhookError):
    def __init__(self) -> None:
        super().__init__("Host URL must be configured to register HTTP webhooks")


class WebhookRequestError(WebhookError):
    def __init__(self, message: str) -> None:
        super().__init__(f"Webhook GraphQL request failed: {message}")
        self.message = message
