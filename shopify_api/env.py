from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from .config import Config
from .constants import AUTH_LOGGER, LOGGER, WEBHOOK_LOGGER
from .errors import ConfigError

REQUIRED_ENV_VARS = (
    "SHOPIFY_API_KEY",
    "SHOPIFY_API_SECRET",
)


def is_truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_csv_env(key: str) -> set[str]:
    raw = os.getenv(key, "")
    if not raw.strip():
        return set()
    return {item.strip() for item in raw.split(",") if item.strip()}


def _get_env_int(key: str, default: int) -> int:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{key} must be an integer value.")


def _get_env_str(key: str) -> str | None:
    raw = os.getenv(key, "").strip()
    return raw or None


def load_env() -> None:
    env_path = Path(__file__).resolve().parent.parent / ".env"
    if not env_path.exists():
        return
    load_dotenv(env_path, override=True)


def validate_env() -> None:
    missing = [key for key in REQUIRED_ENV_VARS if not os.getenv(key, "").strip()]
    if missing:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")

    try:
        config_from_env()
    except ConfigError as error:
        raise RuntimeError(f"Invalid Shopify configuration: {error}") from error


def config_from_env() -> Config:
    """Build a validated ``Config`` from ``SHOPIFY_*`` environment variables."""
    embedded_raw = os.getenv("SHOPIFY_IS_EMBEDDED")
    return Config.build(
        api_key=os.getenv("SHOPIFY_API_KEY", "").strip(),
        api_secret_key=os.getenv("SHOPIFY_API_SECRET", "").strip(),
        old_api_secret_key=_get_env_str("SHOPIFY_OLD_API_SECRET"),
        scopes=",".join(sorted(parse_csv_env("SHOPIFY_SCOPES"))),
        host=_get_env_str("SHOPIFY_APP_HOST"),
        api_version=_get_env_str("SHOPIFY_API_VERSION"),
        is_embedded=True if embedded_raw is None else is_truthy(embedded_raw),
        user_agent_prefix=_get_env_str("SHOPIFY_USER_AGENT_PREFIX"),
    )


def get_bind_address() -> tuple[str, int]:
    host = os.getenv("SHOPIFY_APP_BIND_HOST", "127.0.0.1").strip() or "127.0.0.1"
    return host, _get_env_int("SHOPIFY_APP_PORT", 8000)


def setup_logging() -> bool:
    debug_enabled = is_truthy(os.getenv("SHOPIFY_API_DEBUG"))
    if debug_enabled:
        logging.basicConfig(level=logging.INFO)
        for logger in (LOGGER, AUTH_LOGGER, WEBHOOK_LOGGER):
            logger.setLevel(logging.INFO)
    return debug_enabled
