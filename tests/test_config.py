import pytest

from shopify_api.config import (
    LATEST_API_VERSION,
    Config,
    HostUrl,
    ShopDomain,
    is_stable_api_version,
    parse_api_version,
)
from shopify_api.errors import ConfigError


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("my-store", "my-store.myshopify.com"),
        ("my-store.myshopify.com", "my-store.myshopify.com"),
        ("  My-Store.MyShopify.com ", "my-store.myshopify.com"),
        ("store42", "store42.myshopify.com"),
    ],
)
def test_shop_domain_normalizes(raw: str, expected: str) -> None:
    assert str(ShopDomain.parse(raw)) == expected


@pytest.mark.parametrize(
    "raw",
    ["", "evil.example.com", "-store", "store-", "my_store", "sto re", ".myshopify.com"],
)
def test_shop_domain_rejects_invalid(raw: str) -> None:
    with pytest.raises(ConfigError, match="Invalid shop domain"):
        ShopDomain.parse(raw)


def test_shop_name() -> None:
    assert ShopDomain.parse("my-store").shop_name == "my-store"


def test_host_url_parses() -> None:
    host = HostUrl.parse("https://app.example.com/")

    assert host.url == "https://app.example.com"
    assert host.scheme == "https"
    assert host.host_name == "app.example.com"
    assert host.join("/auth/callback") == "https://app.example.com/auth/callback"


@pytest.mark.parametrize("raw", ["app.example.com", "https://", "not a url"])
def test_host_url_rejects_invalid(raw: str) -> None:
    with pytest.raises(ConfigError):
        HostUrl.parse(raw)


def test_api_versions() -> None:
    assert parse_api_version("2024-10") == "2024-10"
    assert parse_api_version("UNSTABLE") == "unstable"
    assert parse_api_version("2026-01") == "2026-01"
    assert is_stable_api_version("2025-01") is True
    assert is_stable_api_version("unstable") is False
    assert is_stable_api_version("2026-01") is False
    assert LATEST_API_VERSION == "2025-10"


@pytest.mark.parametrize("raw", ["2024", "2024-02", "24-01", "latest"])
def test_api_version_rejects_invalid(raw: str) -> None:
    with pytest.raises(ConfigError, match="Invalid API version"):
        parse_api_version(raw)


def test_config_defaults() -> None:
    config = Config.build(api_key="key", api_secret_key="secret")

    assert config.is_embedded is True
    assert config.host is None
    assert config.old_api_secret_key is None
    assert config.api_version == LATEST_API_VERSION
    assert config.scopes.is_empty()
    assert config.secrets() == ("secret",)


def test_config_parses_strings() -> None:
    config = Config.build(
        api_key="key",
        api_secret_key="secret",
        old_api_secret_key="old",
        scopes="write_products",
        host="https://app.example.com",
        api_version="2025-04",
    )

    assert "read_products" in config.scopes
    assert str(config.host) == "https://app.example.com"
    assert config.api_version == "2025-04"
    assert config.secrets() == ("secret", "old")


@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"api_key": "", "api_secret_key": "secret"}, "API key cannot be empty"),
        ({"api_key": "key", "api_secret_key": " "}, "API secret key cannot be empty"),
        (
            {"api_key": "key", "api_secret_key": "secret", "old_api_secret_key": ""},
            "Old API secret key",
        ),
        ({"api_key": "key", "api_secret_key": "secret", "scopes": "bad!"}, "Invalid scopes"),
        ({"api_key": "key", "api_secret_key": "secret", "host": "nope"}, "Invalid host URL"),
    ],
)
def test_config_validation_errors(kwargs: dict, message: str) -> None:
    with pytest.raises(ConfigError, match=message):
        Config.build(**kwargs)


def test_config_is_immutable() -> None:
    config = Config.build(api_key="key", api_secret_key="secret")

    with pytest.raises(AttributeError):
        config.api_key = "other"  # type: ignore[misc]


def test_config_repr_hides_secrets() -> None:
    config = Config.build(
        api_key="key", api_secret_key="super-secret", old_api_secret_key="old-one"
    )

    assert "super-secret" not in repr(config)
    assert "old-one" not in repr(config)


@pytest.mark.parametrize("version", ["unstable", "2026-01"])
def test_config_warns_on_non_stable_version(caplog, version: str) -> None:
    with caplog.at_level("WARNING", logger="shopify_api.http"):
        config = Config.build(api_key="key", api_secret_key="secret", api_version=version)

    assert config.api_version == version
    assert f"{version} is not a known stable release" in caplog.text


def test_config_stable_version_does_not_warn(caplog) -> None:
    with caplog.at_level("WARNING", logger="shopify_api.http"):
        Config.build(api_key="key", api_secret_key="secret", api_version="2025-01")

    assert caplog.text == ""
