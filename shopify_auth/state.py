from __future__ import annotations

import base64
import binascii
import json
import secrets
import string
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

NONCE_LENGTH = 15
_NONCE_ALPHABET = string.ascii_letters + string.digits


def generate_nonce() -> str:
    return "".join(secrets.choice(_NONCE_ALPHABET) for _ in range(NONCE_LENGTH))


@dataclass(frozen=True)
class StateParam:
    """OAuth ``state`` value.

    Either a bare nonce, or a base64 JSON envelope ``{"nonce", "data"}`` that
    carries caller data through the authorization redirect.
    """

    value: str
    is_structured: bool = False

    @classmethod
    def new(cls) -> "StateParam":
        return cls(generate_nonce())

    @classmethod
    def with_data(cls, data: Any) -> "StateParam":
        envelope = json.dumps({"nonce": generate_nonce(), "data": data}, separators=(",", ":"))
        encoded = base64.b64encode(envelope.encode("utf-8")).decode("ascii")
        return cls(encoded, is_structured=True)

    @classmethod
    def from_raw(cls, raw: str) -> "StateParam":
        return cls(raw)

    def nonce(self) -> str:
        # Raw stored value in both modes; use extract_nonce() for the bare nonce.
        return self.value

    def _decode_envelope(self) -> dict | None:
        try:
            decoded = base64.b64decode(self.value, validate=True)
            envelope = json.loads(decoded.decode("utf-8"))
        except (binascii.Error, ValueError):
            return None
        if not isinstance(envelope, dict):
            return None
        return envelope

    def extract_nonce(self) -> str:
        if not self.is_structured:
            return self.value
        envelope = self._decode_envelope()
        if envelope is None or not isinstance(envelope.get("nonce"), str):
            return self.value
        return envelope["nonce"]

    def extract_data(self, parser: Callable[[Any], Any] | None = None) -> Any | None:
        """Return the embedded data, or ``None`` if there is none or it does not parse."""
        envelope = self._decode_envelope()
        if envelope is None or "data" not in envelope:
            return None
        data = envelope["data"]
        if parser is None:
            return data
        try:
            return parser(data)
        except (KeyError, TypeError, ValueError):
            return None

    def __str__(self) -> str:
        return self.value
