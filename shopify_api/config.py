from __future__ import annotations

import re
from dataclasses import dataclass, field

from pydantic import AnyHttpUrl, TypeAdapter, ValidationError

from .constants import LOGGER
from .errors import ConfigError
from .scopes import AuthScopes

SHOP_DOMAIN_SUFFIX = ".myshopify.com"
_SHOP_NAME_RE = re.compile(r"^[a-z0-9-]+$")
_VERSION_RE = re.compile(r"^\d{4}-(01|04|07|10)$")
_HOST_URL_ADAPTER = TypeAdapter(AnyHttpUrl)

UNSTABLE_API_VERSION = "unstable"
KNOWN_API_VERSIONS = (
    "2024-01",
    "2024-04",
    "2024-07",
    "2024-10",
    "2025-01",
    "2025-04",
    "2025-07",
    "2025-10",
)
LATEST_API_VERSION = KNOWN_API_VERSIONS[-1]


def parse_api_version(raw: str) -> str:
    version = raw.strip().lower()
    if version == UNSTABLE_API_VERSION or version in KNOWN_API_VERSIONS:
        return version
    if _VERSION_RE.match(version):
        return version
    raise ConfigError(
        f"Invalid API version '{raw}'. Expected format: 'YYYY-MM' (e.g., '2024-01') or 'unstable'."
    )


def is_stable_api_version(version: str) -> bool:
    return version in KNOWN_API_VERSIONS


@dataclass(frozen=True)
class ShopDomain:
    """A normalized ``*.myshopify.com`` domain.

    Accepts either the bare shop name (``my-store``) or the full domain
    (``my-store.myshopify.com``). Custom domains are rejected.
    """

    domain: str

    @classmethod
    def parse(cls, raw: str) -> "ShopDomain":
        domain = raw.strip().lower()
        if not domain:
            raise _invalid_shop(domain)

        if domain.endswith(SHOP_DOMAIN_SUFFIX):
            shop_name = domain[: -len(SHOP_DOMAIN_SUFFIX)]
            full_domain = domain
        elif "." in domain:
            raise _invalid_shop(domain)
        else:
            shop_name = domain
            full_domain = f"{domain}{SHOP_DOMAIN_SUFFIX}"

        if (
            not shop_name
            or shop_name.startswith("-")
            or shop_name.endswith("-")
            or not _SHOP_NAME_RE.match(shop_name)
        ):
            raise _invalid_shop(full_domain)
        return cls(full_domain)

    @property
    def shop_name(self) -> str:
        return self.domain[: -len(SHOP_DOMAIN_SUFFIX)]

    def __str__(self) -> str:
        return self.domain


def _invalid_shop(domain: str) -> ConfigError:
    return ConfigError(
        f"Invalid shop domain '{domain}'. "
        "Expected format: 'shop-name' or 'shop-name.myshopify.com'."
    )


@dataclass(frozen=True)
class HostUrl:
    """Public base URL of the app, used to build OAuth and webhook callback URLs."""

    url: str
    scheme: str
    host_name: str

    @classmethod
    def parse(cls, raw: str) -> "HostUrl":
        url = raw.strip()
        try:
            parsed = _HOST_URL_ADAPTER.validate_python(url)
        except ValidationError:
            raise ConfigError(
                f"Invalid host URL '{url}'. Please provide a valid URL with scheme "
                "(e.g., 'https://myapp.example.com')."
            ) from None
        if not parsed.host:
            raise ConfigError(f"Invalid host URL '{url}'.")
        return cls(url=url.rstrip("/"), scheme=parsed.scheme, host_name=parsed.host)

    def join(self, path: str) -> str:
        return f"{self.url}{path}"

    def __str__(self) -> str:
        return self.url


@dataclass(frozen=True)
class Config:
    api_key: str
    api_secret_key: str = field(repr=False)
    old_api_secret_key: str | None = field(default=None, repr=False)
    scopes: AuthScopes = field(default_factory=AuthScopes)
    host: HostUrl | None = None
    api_version: str = LATEST_API_VERSION
    is_embedded: bool = True
    user_agent_prefix: str | None = None

    @classmethod
    def build(
        cls,
        *,
        api_key: str,
        api_secret_key: str,
        old_api_secret_key: str | None = None,
        scopes: AuthScopes | str | None = None,
        host: HostUrl | str | None = None,
        api_version: str | None = None,
        is_embedded: bool = True,
        user_agent_prefix: str | None = None,
    ) -> "Config":
        """Validate inputs and return an immutable config.

        Raises ``ConfigError`` describing the first invalid field.
        """
        if not api_key or not api_key.strip():
            raise ConfigError("API key cannot be empty. Please provide a valid Shopify API key.")
        if not api_secret_key or not api_secret_key.strip():
            raise ConfigError(
                "API secret key cannot be empty. Please provide a valid Shopify API secret key."
            )
        if old_api_secret_key is not None and not old_api_secret_key.strip():
            raise ConfigError("Old API secret key cannot be empty when provided.")

        if isinstance(scopes, str):
            scopes = AuthScopes.parse(scopes)
        if isinstance(host, str):
            host = HostUrl.parse(host)
        version = parse_api_version(api_version) if api_version else LATEST_API_VERSION
        if not is_stable_api_version(version):
            LOGGER.warning("Shopify API version %s is not a known stable release", version)

        return cls(
            api_key=api_key.strip(),
            api_secret_key=api_secret_key,
            old_api_secret_key=old_api_secret_key,
            scopes=scopes if scopes is not None else AuthScopes(),
            host=host,
            api_version=version,
            is_embedded=is_embedded,
            user_agent_prefix=user_agent_prefix,
        )

    def secrets(self) -> tuple[str, ...]:
        if self.old_api_secret_key:
            return (self.api_secret_key, self.old_api_secret_key)
        return (self.api_secret_key,)
