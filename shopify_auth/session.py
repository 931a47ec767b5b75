from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone

from shopify_api.config import ShopDomain
from shopify_api.scopes import AuthScopes

REFRESH_TOKEN_EXPIRY_BUFFER = timedelta(seconds=60)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AssociatedUser:
    id: int
    first_name: str
    last_name: str
    email: str
    email_verified: bool
    account_owner: bool
    locale: str
    collaborator: bool

    @classmethod
    def from_payload(cls, payload: dict) -> "AssociatedUser":
        user_id = payload.get("id")
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise ValueError("associated_user.id must be an integer.")
        return cls(
            id=user_id,
            first_name=str(payload.get("first_name", "")),
            last_name=str(payload.get("last_name", "")),
            email=str(payload.get("email", "")),
            email_verified=bool(payload.get("email_verified", False)),
            account_owner=bool(payload.get("account_owner", False)),
            locale=str(payload.get("locale", "")),
            collaborator=bool(payload.get("collaborator", False)),
        )


def _optional_int(payload: dict, key: str) -> int | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{key} must be an integer.")
    return value


def _optional_str(payload: dict, key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string.")
    return value


@dataclass(frozen=True)
class AccessTokenResponse:
    """Body returned by ``/admin/oauth/access_token`` for every grant type."""

    access_token: str
    scope: str
    expires_in: int | None = None
    associated_user_scope: str | None = None
    associated_user: AssociatedUser | None = None
    session: str | None = None
    refresh_token: str | None = None
    refresh_token_expires_in: int | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "AccessTokenResponse":
        if not isinstance(payload, dict):
            raise ValueError("Token response must be a JSON object.")

        access_token = payload.get("access_token")
        scope = payload.get("scope")
        if not isinstance(access_token, str) or not access_token:
            raise ValueError("Token response missing access_token.")
        if not isinstance(scope, str):
            raise ValueError("Token response scope must be a string.")

        user_payload = payload.get("associated_user")
        if user_payload is not None and not isinstance(user_payload, dict):
            raise ValueError("associated_user must be an object.")

        return cls(
            access_token=access_token,
            scope=scope,
            expires_in=_optional_int(payload, "expires_in"),
            associated_user_scope=_optional_str(payload, "associated_user_scope"),
            associated_user=AssociatedUser.from_payload(user_payload) if user_payload else None,
            session=_optional_str(payload, "session"),
            refresh_token=_optional_str(payload, "refresh_token"),
            refresh_token_expires_in=_optional_int(payload, "refresh_token_expires_in"),
        )


@dataclass
class Session:
    id: str
    shop: ShopDomain
    access_token: str = field(repr=False)
    scopes: AuthScopes = field(default_factory=AuthScopes)
    is_online: bool = False
    expires: datetime | None = None
    state: str | None = None
    shopify_session_id: str | None = None
    associated_user: AssociatedUser | None = None
    associated_user_scopes: AuthScopes | None = None
    refresh_token: str | None = field(default=None, repr=False)
    refresh_token_expires_at: datetime | None = None

    @staticmethod
    def offline_id(shop: ShopDomain) -> str:
        return f"offline_{shop}"

    @staticmethod
    def online_id(shop: ShopDomain, user_id: int) -> str:
        return f"{shop}_{user_id}"

    @classmethod
    def from_access_token_response(
        cls, shop: ShopDomain, response: AccessTokenResponse
    ) -> "Session":
        """Build the session for any token grant.

        The session is online exactly when the response carries an associated user.
        """
        now = _utcnow()
        user = response.associated_user
        return cls(
            id=cls.online_id(shop, user.id) if user else cls.offline_id(shop),
            shop=shop,
            access_token=response.access_token,
            scopes=AuthScopes.parse_lenient(response.scope),
            is_online=user is not None,
            expires=(
                now + timedelta(seconds=response.expires_in)
                if response.expires_in is not None
                else None
            ),
            shopify_session_id=response.session,
            associated_user=user,
            associated_user_scopes=(
                AuthScopes.parse_lenient(response.associated_user_scope)
                if response.associated_user_scope is not None
                else None
            ),
            refresh_token=response.refresh_token,
            refresh_token_expires_at=(
                now + timedelta(seconds=response.refresh_token_expires_in)
                if response.refresh_token_expires_in is not None
                else None
            ),
        )

    def expired(self) -> bool:
        if self.expires is None:
            return False
        return _utcnow() >= self.expires

    def is_active(self) -> bool:
        return bool(self.access_token) and not self.expired()

    def refresh_token_expired(self) -> bool:
        if self.refresh_token_expires_at is None:
            return False
        return _utcnow() + REFRESH_TOKEN_EXPIRY_BUFFER >= self.refresh_token_expires_at

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop": str(self.shop),
            "access_token": self.access_token,
            "scopes": str(self.scopes),
            "is_online": self.is_online,
            "expires": self.expires.isoformat() if self.expires else None,
            "state": self.state,
            "shopify_session_id": self.shopify_session_id,
            "associated_user": asdict(self.associated_user) if self.associated_user else None,
            "associated_user_scopes": (
                str(self.associated_user_scopes)
                if self.associated_user_scopes is not None
                else None
            ),
            "refresh_token": self.refresh_token,
            "refresh_token_expires_at": (
                self.refresh_token_expires_at.isoformat()
                if self.refresh_token_expires_at
                else None
            ),
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "Session":
        user = payload.get("associated_user")
        user_scopes = payload.get("associated_user_scopes")
        expires = payload.get("expires")
        refresh_expires = payload.get("refresh_token_expires_at")
        return cls(
            id=payload["id"],
            shop=ShopDomain.parse(payload["shop"]),
            access_token=payload["access_token"],
            scopes=AuthScopes.parse_lenient(payload.get("scopes")),
            is_online=bool(payload.get("is_online", False)),
            expires=datetime.fromisoformat(expires) if expires else None,
            state=payload.get("state"),
            shopify_session_id=payload.get("shopify_session_id"),
            associated_user=AssociatedUser(**user) if user else None,
            associated_user_scopes=(
                AuthScopes.parse_lenient(user_scopes) if user_scopes is not None else None
            ),
            refresh_token=payload.get("refresh_token"),
            refresh_token_expires_at=(
                datetime.fromisoformat(refresh_expires) if refresh_expires else None
            ),
        )
