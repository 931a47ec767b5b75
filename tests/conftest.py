import pytest

from shopify_api.config import Config, ShopDomain

API_KEY = "test-api-key"
API_SECRET = "primary-secret-0123456789abcdefghijklmnop"
OLD_API_SECRET = "rotated-secret-0123456789abcdefghijklmnop"
APP_HOST = "https://app.example.com"


@pytest.fixture
def config() -> Config:
    return Config.build(
        api_key=API_KEY,
        api_secret_key=API_SECRET,
        scopes="read_products,write_orders",
        host=APP_HOST,
    )


@pytest.fixture
def rotated_config() -> Config:
    return Config.build(
        api_key=API_KEY,
        api_secret_key=API_SECRET,
        old_api_secret_key=OLD_API_SECRET,
        scopes="read_products",
        host=APP_HOST,
    )


@pytest.fixture
def private_config() -> Config:
    return Config.build(
        api_key=API_KEY,
        api_secret_key=API_SECRET,
        scopes="read_products",
        is_embedded=False,
    )


@pytest.fixture
def shop() -> ShopDomain:
    return ShopDomain.parse("test-shop")
