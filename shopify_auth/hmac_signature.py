from __future__ import annotations

import base64
import hashlib
import hmac
from collections.abc import Callable
from typing import TypeVar

from shopify_api.config import Config

T = TypeVar("T")


def _digest(message: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def compute_signature(message: str, secret: str) -> str:
    """Lowercase hex HMAC-SHA256 of ``message``, as used for OAuth callbacks."""
    return _digest(message.encode("utf-8"), secret).hex()


def compute_signature_base64(body: bytes, secret: str) -> str:
    """Standard base64 HMAC-SHA256 of a raw body, as used for webhooks."""
    return base64.b64encode(_digest(body, secret)).decode("ascii")


def constant_time_compare(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def call_with_secret_fallback(
    config: Config,
    attempt: Callable[[str], T],
    *,
    errors: tuple[type[BaseException], ...] = (Exception,),
) -> T:
    """Run ``attempt`` with the primary secret, then with the old secret.

    When every configured secret fails, the primary secret's error is
    re-raised so callers report the current key's failure.
    """
    primary, *fallbacks = config.secrets()
    try:
        return attempt(primary)
    except errors as primary_error:
        if not fallbacks:
            raise
        try:
            return attempt(fallbacks[0])
        except errors:
            raise primary_error from None


class _SignatureMismatch(Exception):
    pass


def matches_any_secret(config: Config, signature: str, sign: Callable[[str], str]) -> bool:
    """True when ``signature`` equals ``sign(secret)`` for the primary or old secret."""

    def attempt(secret: str) -> bool:
        if not constant_time_compare(sign(secret), signature):
            raise _SignatureMismatch
        return True

    try:
        return call_with_secret_fallback(config, attempt, errors=(_SignatureMismatch,))
    except _SignatureMismatch:
        return False
