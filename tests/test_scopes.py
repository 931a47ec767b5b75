import pytest

from shopify_api.errors import ConfigError
from shopify_api.scopes import AuthScopes


def test_parse_trims_and_skips_empty_items() -> None:
    scopes = AuthScopes.parse(" read_products, ,read_orders ,")

    assert list(scopes) == ["read_orders", "read_products"]


def test_write_scope_implies_read_scope() -> None:
    scopes = AuthScopes.parse("write_products")

    assert "read_products" in scopes
    assert "write_products" in scopes


def test_unauthenticated_write_implies_unauthenticated_read() -> None:
    scopes = AuthScopes.parse("unauthenticated_write_checkouts")

    assert "unauthenticated_read_checkouts" in scopes
    assert "read_checkouts" not in scopes


def test_invalid_characters_are_rejected() -> None:
    with pytest.raises(ConfigError, match="Invalid characters in scope: 'read-products'"):
        AuthScopes.parse("read-products")


def test_string_form_is_sorted() -> None:
    assert str(AuthScopes.parse("write_orders,read_customers")) == (
        "read_customers,read_orders,write_orders"
    )


def test_covers() -> None:
    granted = AuthScopes.parse("write_products,read_orders")

    assert granted.covers(AuthScopes.parse("read_products"))
    assert not granted.covers(AuthScopes.parse("write_orders"))


def test_parse_lenient() -> None:
    assert AuthScopes.parse_lenient("bad scope").is_empty()
    assert AuthScopes.parse_lenient(None).is_empty()
    assert AuthScopes.parse_lenient("read_products") == AuthScopes(["read_products"])
