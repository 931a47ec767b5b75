from __future__ import annotations

import dataclasses
import json
from typing import TYPE_CHECKING, Any

import httpx

from shopify_api.config import Config
from shopify_api.constants import WEBHOOK_LOGGER
from shopify_api.errors import HttpError
from shopify_api.graphql import GraphqlClient

from .errors import (
    NoHandlerForTopicError,
    PayloadParseError,
    RegistrationNotFoundError,
    ShopifyError,
    SubscriptionNotFoundError,
    WebhookError,
    WebhookRequestError,
)
from .types import (
    RegistrationOutcome,
    WebhookHandler,
    WebhookRegistration,
    WebhookRegistrationResult,
    WebhookTopic,
)
from .verification import WebhookRequest, verify_webhook

if TYPE_CHECKING:
    from shopify_auth.session import Session

SUBSCRIPTION_QUERY = """
query webhookSubscriptions($topics: [WebhookSubscriptionTopic!]) {
  webhookSubscriptions(first: 1, topics: $topics) {
    edges {
      node {
        id
        uri
        includeFields
        metafieldNamespaces
        filter
      }
    }
  }
}
"""

CREATE_MUTATION = """
mutation webhookSubscriptionCreate(
  $topic: WebhookSubscriptionTopic!
  $webhookSubscription: WebhookSubscriptionInput!
) {
  webhookSubscriptionCreate(topic: $topic, webhookSubscription: $webhookSubscription) {
    webhookSubscription {
      id
    }
    userErrors {
      field
      message
    }
  }
}
"""

UPDATE_MUTATION = """
mutation webhookSubscriptionUpdate($id: ID!, $webhookSubscription: WebhookSubscriptionInput!) {
  webhookSubscriptionUpdate(id: $id, webhookSubscription: $webhookSubscription) {
    webhookSubscription {
      id
    }
    userErrors {
      field
      message
    }
  }
}
"""

DELETE_MUTATION = """
mutation webhookSubscriptionDelete($id: ID!) {
  webhookSubscriptionDelete(id: $id) {
    deletedWebhookSubscriptionId
    userErrors {
      field
      message
    }
  }
}
"""


@dataclasses.dataclass(frozen=True)
class _RemoteSubscription:
    id: str
    uri: str
    include_fields: tuple[str, ...]
    metafield_namespaces: tuple[str, ...]
    filter: str | None


def _as_tuple(values: Any) -> tuple[str, ...]:
    if not values:
        return ()
    return tuple(value for value in values if isinstance(value, str))


class WebhookRegistry:
    """Declared webhook subscriptions and their handlers, keyed by topic.

    Configure with ``add_registration`` before serving requests. Handlers are
    kept apart from the declarative registration so registrations compare by
    configuration alone.
    """

    def __init__(self) -> None:
        self._registrations: dict[WebhookTopic, WebhookRegistration] = {}
        self._handlers: dict[WebhookTopic, WebhookHandler] = {}

    def add_registration(self, registration: WebhookRegistration) -> "WebhookRegistry":
        topic = registration.topic
        if registration.handler is not None:
            self._handlers[topic] = registration.handler
        else:
            self._handlers.pop(topic, None)
        self._registrations[topic] = dataclasses.replace(registration, handler=None)
        return self

    def get_registration(self, topic: WebhookTopic) -> WebhookRegistration | None:
        return self._registrations.get(topic)

    def list_registrations(self) -> list[WebhookRegistration]:
        return list(self._registrations.values())

    def get_handler(self, topic: WebhookTopic) -> WebhookHandler | None:
        return self._handlers.get(topic)

    async def process(self, config: Config, request: WebhookRequest) -> None:
        context = verify_webhook(config, request)

        handler = self._handlers.get(context.topic) if context.topic is not None else None
        if handler is None:
            raise NoHandlerForTopicError(context.topic_raw)

        try:
            payload = json.loads(request.body)
        except ValueError as error:
            raise PayloadParseError(str(error)) from error

        WEBHOOK_LOGGER.info(
            "Dispatching webhook topic=%s shop=%s id=%s",
            context.topic_raw,
            context.shop_domain,
            context.webhook_id,
        )
        await handler(context, payload)

    # -- remote reconciliation -------------------------------------------------

    async def register(
        self,
        session: "Session",
        config: Config,
        topic: WebhookTopic,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> WebhookRegistrationResult:
        """Create, update or keep the remote subscription for ``topic``.

        No mutation is sent when the remote subscription already matches.
        """
        registration = self._registrations.get(topic)
        if registration is None:
            raise RegistrationNotFoundError(topic.value)

        uri = registration.delivery_method.callback_uri(config)
        client = GraphqlClient(session, config, transport=transport)
        existing = await self._query_existing(client, topic)

        subscription_input = _subscription_input(uri, registration)
        if existing is None:
            subscription_id = await self._mutate(
                client,
                CREATE_MUTATION,
                {"topic": topic.graphql_name, "webhookSubscription": subscription_input},
                "webhookSubscriptionCreate",
            )
            outcome = RegistrationOutcome.CREATED
        elif _matches(existing, uri, registration):
            subscription_id = existing.id
            outcome = RegistrationOutcome.ALREADY_REGISTERED
        else:
            subscription_id = await self._mutate(
                client,
                UPDATE_MUTATION,
                {"id": existing.id, "webhookSubscription": subscription_input},
                "webhookSubscriptionUpdate",
            )
            outcome = RegistrationOutcome.UPDATED

        WEBHOOK_LOGGER.info(
            "Webhook %s for %s: %s (%s)", topic.value, session.shop, outcome.value, subscription_id
        )
        return WebhookRegistrationResult(topic, outcome, subscription_id)

    async def register_all(
        self,
        session: "Session",
        config: Config,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> list[WebhookRegistrationResult]:
        results = []
        for topic in list(self._registrations):
            try:
                result = await self.register(session, config, topic, transport=transport)
            except WebhookError as error:
                WEBHOOK_LOGGER.warning("Webhook registration failed for %s: %s", topic.value, error)
                result = WebhookRegistrationResult(topic, RegistrationOutcome.FAILED, error=error)
            results.append(result)
        return results

    async def unregister(
        self,
        session: "Session",
        config: Config,
        topic: WebhookTopic,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> WebhookRegistrationResult:
        client = GraphqlClient(session, config, transport=transport)
        existing = await self._query_existing(client, topic)
        if existing is None:
            raise SubscriptionNotFoundError(topic.value)

        await self._mutate(
            client, DELETE_MUTATION, {"id": existing.id}, "webhookSubscriptionDelete"
        )
        WEBHOOK_LOGGER.info(
            "Deleted webhook %s for %s (%s)", topic.value, session.shop, existing.id
        )
        return WebhookRegistrationResult(topic, RegistrationOutcome.DELETED, existing.id)

    async def unregister_all(
        self,
        session: "Session",
        config: Config,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> list[WebhookRegistrationResult]:
        results = []
        for topic in list(self._registrations):
            try:
                result = await self.unregister(session, config, topic, transport=transport)
            except WebhookError as error:
                WEBHOOK_LOGGER.warning("Webhook removal failed for %s: %s", topic.value, error)
                result = WebhookRegistrationResult(topic, RegistrationOutcome.FAILED, error=error)
            results.append(result)
        return results

    async def _execute(self, client: GraphqlClient, query: str, variables: dict) -> dict:
        try:
            response = await client.query(query, variables)
        except HttpError as error:
            raise WebhookRequestError(str(error)) from error

        body = response.body
        if not isinstance(body, dict):
            raise ShopifyError("Invalid response structure")
        errors = body.get("errors")
        if errors:
            raise ShopifyError(_join_messages(errors))
        data = body.get("data")
        if not isinstance(data, dict):
            raise ShopifyError("Invalid response structure")
        return data

    async def _query_existing(
        self, client: GraphqlClient, topic: WebhookTopic
    ) -> _RemoteSubscription | None:
        data = await self._execute(client, SUBSCRIPTION_QUERY, {"topics": [topic.graphql_name]})
        edges = _as_dict(data.get("webhookSubscriptions")).get("edges")
        if not isinstance(edges, list):
            raise ShopifyError("Invalid response structure")
        if not edges:
            return None

        node = _as_dict(_as_dict(edges[0]).get("node"))
        subscription_id = node.get("id")
        if not isinstance(subscription_id, str):
            raise ShopifyError("Missing webhook ID")
        return _RemoteSubscription(
            id=subscription_id,
            uri=node.get("uri") or "",
            include_fields=_as_tuple(node.get("includeFields")),
            metafield_namespaces=_as_tuple(node.get("metafieldNamespaces")),
            filter=node.get("filter") or None,
        )

    async def _mutate(
        self, client: GraphqlClient, mutation: str, variables: dict, field_name: str
    ) -> str | None:
        data = await self._execute(client, mutation, variables)
        result = _as_dict(data.get(field_name))
        user_errors = result.get("userErrors") or []
        if not isinstance(user_errors, list):
            raise ShopifyError("Invalid response structure")
        if user_errors:
            raise ShopifyError(_join_messages(user_errors))

        if "deletedWebhookSubscriptionId" in result:
            return result["deletedWebhookSubscriptionId"]
        return _as_dict(result.get("webhookSubscription")).get("id")


def _as_dict(value: Any) -> dict:
    # GraphQL nulls read as empty objects.
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ShopifyError("Invalid response structure")
    return value


def _subscription_input(uri: str, registration: WebhookRegistration) -> dict:
    payload: dict[str, Any] = {"uri": uri}
    if registration.include_fields is not None:
        payload["includeFields"] = list(registration.include_fields)
    if registration.metafield_namespaces is not None:
        payload["metafieldNamespaces"] = list(registration.metafield_namespaces)
    if registration.filter is not None:
        payload["filter"] = registration.filter
    return payload


def _matches(existing: _RemoteSubscription, uri: str, registration: WebhookRegistration) -> bool:
    # Shopify reports unset lists as [] and unset filters as "" or null.
    return (
        existing.uri == uri
        and existing.include_fields == _as_tuple(registration.include_fields)
        and existing.metafield_namespaces == _as_tuple(registration.metafield_namespaces)
        and existing.filter == (registration.filter or None)
    )


def _join_messages(errors: Any) -> str:
    if isinstance(errors, str):
        return errors
    if not isinstance(errors, list):
        return str(errors)
    messages = [
        error["message"] if isinstance(error, dict) and "message" in error else str(error)
        for error in errors
    ]
    return "; ".join(messages)
