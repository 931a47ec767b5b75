from __future__ import annotations


class ConfigError(ValueError):
    """Raised when SDK configuration or a configuration value object is invalid."""


class HttpError(RuntimeError):
    def to_payload(self) -> dict:
        return {"error": type(self).__name__, "message": str(self)}


class HttpNetworkError(HttpError):
    def __init__(self, message: str) -> None:
        super().__init__(f"Network error: {message}")
        self.reason = message


class HttpResponseError(HttpError):
    def __init__(self, code: int, message: str, error_reference: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.error_reference = error_reference

    def to_payload(self) -> dict:
        return {
            "error": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "error_reference": self.error_reference,
        }


class MaxHttpRetriesExceededError(HttpResponseError):
    def __init__(
        self,
        code: int,
        tries: int,
        message: str,
        error_reference: str | None = None,
    ) -> None:
        super().__init__(
            code,
            f"Exceeded maximum retry count of {tries}. Last message: {message}",
            error_reference,
        )
        self.tries = tries
