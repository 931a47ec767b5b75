from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

from shopify_api.config import Config

from .errors import HostNotConfiguredError, WebhookError

if TYPE_CHECKING:
    from .verification import WebhookContext


class WebhookTopic(str, Enum):
    ORDERS_CREATE = "orders/create"
    ORDERS_UPDATED = "orders/updated"
    ORDERS_PAID = "orders/paid"
    ORDERS_CANCELLED = "orders/cancelled"
    ORDERS_FULFILLED = "orders/fulfilled"
    ORDERS_PARTIALLY_FULFILLED = "orders/partially_fulfilled"
    ORDERS_DELETE = "orders/delete"
    PRODUCTS_CREATE = "products/create"
    PRODUCTS_UPDATE = "products/update"
    PRODUCTS_DELETE = "products/delete"
    CUSTOMERS_CREATE = "customers/create"
    CUSTOMERS_UPDATE = "customers/update"
    CUSTOMERS_DELETE = "customers/delete"
    CUSTOMERS_ENABLE = "customers/enable"
    CUSTOMERS_DISABLE = "customers/disable"
    COLLECTIONS_CREATE = "collections/create"
    COLLECTIONS_UPDATE = "collections/update"
    COLLECTIONS_DELETE = "collections/delete"
    CHECKOUTS_CREATE = "checkouts/create"
    CHECKOUTS_UPDATE = "checkouts/update"
    CHECKOUTS_DELETE = "checkouts/delete"
    CARTS_CREATE = "carts/create"
    CARTS_UPDATE = "carts/update"
    FULFILLMENTS_CREATE = "fulfillments/create"
    FULFILLMENTS_UPDATE = "fulfillments/update"
    REFUNDS_CREATE = "refunds/create"
    APP_UNINSTALLED = "app/uninstalled"
    SHOP_UPDATE = "shop/update"
    THEMES_CREATE = "themes/create"
    THEMES_UPDATE = "themes/update"
    THEMES_PUBLISH = "themes/publish"
    THEMES_DELETE = "themes/delete"
    INVENTORY_LEVELS_UPDATE = "inventory_levels/update"
    INVENTORY_LEVELS_CONNECT = "inventory_levels/connect"
    INVENTORY_LEVELS_DISCONNECT = "inventory_levels/disconnect"
    INVENTORY_ITEMS_CREATE = "inventory_items/create"
    INVENTORY_ITEMS_UPDATE = "inventory_items/update"
    INVENTORY_ITEMS_DELETE = "inventory_items/delete"

    @property
    def graphql_name(self) -> str:
        """Enum name used by the Admin GraphQL API, e.g. ``ORDERS_CREATE``."""
        return self.value.replace("/", "_").upper()

    @classmethod
    def parse(cls, raw: str | None) -> "WebhookTopic | None":
        if not raw:
            return None
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class HttpDelivery:
    uri: str

    def callback_uri(self, config: Config) -> str:
        # Relative paths are resolved against the app host.
        if not self.uri.startswith("/"):
            return self.uri
        if config.host is None:
            raise HostNotConfiguredError()
        return config.host.join(self.uri)


@dataclass(frozen=True)
class EventBridgeDelivery:
    arn: str

    def callback_uri(self, config: Config) -> str:
        return self.arn


@dataclass(frozen=True)
class PubSubDelivery:
    project_id: str
    topic_id: str

    def callback_uri(self, config: Config) -> str:
        return f"pubsub://{self.project_id}:{self.topic_id}"


WebhookDeliveryMethod = Union[HttpDelivery, EventBridgeDelivery, PubSubDelivery]

WebhookHandler = Callable[["WebhookContext", Any], Awaitable[None]]


@dataclass(frozen=True)
class WebhookRegistration:
    topic: WebhookTopic
    delivery_method: WebhookDeliveryMethod
    include_fields: tuple[str, ...] | None = None
    metafield_namespaces: tuple[str, ...] | None = None
    filter: str | None = None
    handler: WebhookHandler | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        # Normalise list inputs so registrations stay hashable and comparable.
        for name in ("include_fields", "metafield_namespaces"):
            value = getattr(self, name)
            if isinstance(value, str):
                raise TypeError(f"{name} must be a sequence of strings, not a single string")
            if value is not None and not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value))


class RegistrationOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    ALREADY_REGISTERED = "already_registered"
    DELETED = "deleted"
    FAILED = "failed"


@dataclass(frozen=True)
class WebhookRegistrationResult:
    topic: WebhookTopic
    outcome: RegistrationOutcome
    subscription_id: str | None = None
    error: WebhookError | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is not RegistrationOutcome.FAILED
