from __future__ import annotations

from dataclasses import dataclass

import jwt

from shopify_api.config import Config

from .errors import InvalidJwtError
from .hmac_signature import call_with_secret_fallback

JWT_ALGORITHM = "HS256"
JWT_LEEWAY_SECONDS = 10
_REQUIRED_CLAIMS = ["iss", "dest", "aud", "exp", "nbf", "iat", "jti"]


def _decode(token: str, secret: str) -> dict:
    # Audience is compared against the API key after decoding.
    return jwt.decode(
        token,
        secret,
        algorithms=[JWT_ALGORITHM],
        leeway=JWT_LEEWAY_SECONDS,
        options={"verify_aud": False, "require": _REQUIRED_CLAIMS},
    )


@dataclass(frozen=True)
class JwtPayload:
    """Validated claims of an App Bridge session token.

    Only built by ``decode``; every instance has passed signature, time and
    audience checks.
    """

    iss: str
    dest: str
    aud: str
    exp: int
    nbf: int
    iat: int
    jti: str
    sub: str | None = None
    sid: str | None = None

    @classmethod
    def decode(cls, token: str, config: Config) -> "JwtPayload":
        try:
            claims = call_with_secret_fallback(
                config,
                lambda secret: _decode(token, secret),
                errors=(jwt.PyJWTError,),
            )
        except jwt.PyJWTError as error:
            raise InvalidJwtError(f"Error decoding session token: {error}") from error

        payload = cls._from_claims(claims)
        if payload.aud != config.api_key:
            raise InvalidJwtError("Session token had invalid API key")
        return payload

    @classmethod
    def _from_claims(cls, claims: dict) -> "JwtPayload":
        for name in ("iss", "dest", "aud", "jti"):
            if not isinstance(claims.get(name), str):
                raise InvalidJwtError(
                    f"Error decoding session token: claim '{name}' must be a string"
                )
        sub = claims.get("sub")
        sid = claims.get("sid")
        return cls(
            iss=claims["iss"],
            dest=claims["dest"],
            aud=claims["aud"],
            exp=int(claims["exp"]),
            nbf=int(claims["nbf"]),
            iat=int(claims["iat"]),
            jti=claims["jti"],
            sub=sub if isinstance(sub, str) else None,
            sid=sid if isinstance(sid, str) else None,
        )

    def shop(self) -> str:
        return self.dest.removeprefix("https://")

    def shopify_user_id(self) -> int | None:
        """Numeric user id for admin-issued tokens, else ``None``."""
        if not self.iss.endswith("/admin"):
            return None
        if not self.sub or not (self.sub.isascii() and self.sub.isdigit()):
            return None
        return int(self.sub)
