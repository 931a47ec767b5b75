from __future__ import annotations

from collections.abc import Iterable, Iterator

from .errors import ConfigError

_IMPLIED_PREFIXES = (
    ("unauthenticated_write_", "unauthenticated_read_"),
    ("write_", "read_"),
)


def _implied_scope(scope: str) -> str | None:
    for write_prefix, read_prefix in _IMPLIED_PREFIXES:
        if scope.startswith(write_prefix):
            return read_prefix + scope[len(write_prefix) :]
    return None


class AuthScopes:
    """Set of OAuth access scopes.

    Write scopes imply their read counterpart, so ``write_products`` also
    grants ``read_products``. The string form is the sorted comma-joined list
    sent to the authorization endpoint.
    """

    __slots__ = ("_scopes",)

    def __init__(self, scopes: Iterable[str] = ()) -> None:
        normalized = {scope.strip() for scope in scopes if scope.strip()}
        implied = {_implied_scope(scope) for scope in normalized}
        implied.discard(None)
        self._scopes: frozenset[str] = frozenset(normalized | implied)

    @classmethod
    def parse(cls, raw: str) -> "AuthScopes":
        scopes = []
        for item in raw.split(","):
            scope = item.strip()
            if not scope:
                continue
            if not all(char.isascii() and (char.isalnum() or char == "_") for char in scope):
                raise ConfigError(f"Invalid scopes: Invalid characters in scope: '{scope}'")
            scopes.append(scope)
        return cls(scopes)

    @classmethod
    def parse_lenient(cls, raw: str | None) -> "AuthScopes":
        if not raw:
            return cls()
        try:
            return cls.parse(raw)
        except ConfigError:
            return cls()

    def covers(self, other: "AuthScopes") -> bool:
        return other._scopes <= self._scopes

    def is_empty(self) -> bool:
        return not self._scopes

    def __contains__(self, scope: object) -> bool:
        return scope in self._scopes

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._scopes))

    def __len__(self) -> int:
        return len(self._scopes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AuthScopes):
            return NotImplemented
        return self._scopes == other._scopes

    def __hash__(self) -> int:
        return hash(self._scopes)

    def __str__(self) -> str:
        return ",".join(sorted(self._scopes))

    def __repr__(self) -> str:
        return f"AuthScopes({str(self)!r})"
