from __future__ import annotations


class OAuthError(RuntimeError):
    """Base class for authentication failures."""

    def to_payload(self) -> dict:
        return {"error": type(self).__name__, "message": str(self)}


class InvalidHmacError(OAuthError):
    def __init__(self) -> None:
        super().__init__("HMAC signature validation failed")


class StateMismatchError(OAuthError):
    def __init__(self, expected: str, received: str) -> None:
        super().__init__(f"OAuth state mismatch: expected '{expected}', received '{received}'")
        self.expected = expected
        self.received = received

    def to_payload(self) -> dict:
        return {"error": type(self).__name__, "message": "OAuth state mismatch"}


class InvalidCallbackError(OAuthError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid OAuth callback: {reason}")
        self.reason = reason


class MissingHostConfigError(OAuthError):
    def __init__(self) -> None:
        super().__init__("Host URL must be configured to begin OAuth")


class InvalidJwtError(OAuthError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid session token: {reason}")
        self.reason = reason


class NotEmbeddedAppError(OAuthError):
    def __init__(self) -> None:
        super().__init__("Token exchange requires an embedded app configuration")


class NotPrivateAppError(OAuthError):
    def __init__(self) -> None:
        super().__init__("Client credentials grant requires a non-embedded app configuration")


class TokenRequestError(OAuthError):
    """Failure talking to the access token endpoint.

    ``status`` is the HTTP status code, or ``0`` when no response arrived.
    """

    action = "Token request"

    def __init__(self, status: int, message: str) -> None:
        super().__init__(f"{self.action} failed with status {status}: {message}")
        self.status = status
        self.message = message

    def to_payload(self) -> dict:
        return {"error": type(self).__name__, "status": self.status, "message": self.message}


class TokenExchangeFailedError(TokenRequestError):
    action = "Token exchange"


class ClientCredentialsFailedError(TokenRequestError):
    action = "Client credentials exchange"


class TokenRefreshFailedError(TokenRequestError):
    action = "Token refresh"
