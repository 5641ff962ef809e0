"""Request authorization.

An upload is accepted when one of two authorizers vouches for it:

* :class:`AppProxyAuthorizer` -- the request came through the shop's app
  proxy and carries a valid ``signature`` query parameter.
* :class:`DirectSecretAuthorizer` -- the request carries the shared
  ``X-Engraving-Direct-Secret`` header and names a shop.

Both resolve the shop's offline Admin API token through a
:class:`SessionStore`.  :class:`ChainAuthorizer` tries them in order and
returns the first session found.
"""

from __future__ import annotations

import hashlib
import hmac
import re
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from shopstage.config import ShopstageConfig
from shopstage.errors import ShopstageAuthError
from shopstage.models import AdminSession
from shopstage.observability import get_logger

log = get_logger("shopstage.auth")

DIRECT_SECRET_HEADER = "X-Engraving-Direct-Secret"
SHOP_HEADER = "X-Shop-Domain"

UNAUTHORIZED_MESSAGE = (
    "Unauthorized. Use app proxy or send X-Engraving-Direct-Secret and X-Shop-Domain."
)

_SHOP_DOMAIN_RE = re.compile(r"^[a-z0-9][a-z0-9-]*\.myshopify\.com$")


def normalize_shop_domain(raw: str | None) -> str | None:
    """Return a canonical ``*.myshopify.com`` host, or ``None`` if invalid.

    The shop becomes the host of outbound Admin API calls, so anything that
    is not a plain myshopify subdomain is refused.
    """
    if not raw:
        return None
    shop = raw.strip().lower()
    for prefix in ("https://", "http://"):
        if shop.startswith(prefix):
            shop = shop[len(prefix):]
    shop = shop.rstrip("/")
    if not _SHOP_DOMAIN_RE.match(shop):
        return None
    return shop


# ---------------------------------------------------------------------------
# Request view and session store
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AuthRequest:
    """The parts of an incoming request authorizers look at.

    Attributes
    ----------
    query:
        Query parameters in arrival order; a key may repeat.
    headers:
        Request headers.  Lookups should be case-insensitive, which
        Starlette's ``Headers`` already is.
    form_shop:
        The ``shop`` form field, if it was a plain string.
    """

    query: Sequence[tuple[str, str]] = ()
    headers: Mapping[str, str] = field(default_factory=dict)
    form_shop: str | None = None

    def header(self, name: str) -> str | None:
        value = self.headers.get(name)
        if value is None:
            value = self.headers.get(name.lower())
        return value


@runtime_checkable
class SessionStore(Protocol):
    """Looks up the offline Admin API token for a shop."""

    async def access_token_for(self, shop: str) -> str | None:
        ...


class StaticSessionStore:
    """Session store backed by a fixed ``shop -> token`` mapping."""

    def __init__(self, tokens: Mapping[str, str]) -> None:
        self._tokens = {shop.lower(): token for shop, token in tokens.items()}

    async def access_token_for(self, shop: str) -> str | None:
        return self._tokens.get(shop.lower())


# ---------------------------------------------------------------------------
# Authorizers
# ---------------------------------------------------------------------------

@runtime_checkable
class Authorizer(Protocol):
    """Resolves an :class:`AdminSession` for a request, or ``None``.

    Implementations raise :class:`ShopstageAuthError` when the request
    presents credentials that turn out to be invalid, and return ``None``
    when it presents none of the kind they handle.
    """

    async def authorize(self, request: AuthRequest) -> AdminSession | None:
        ...


def app_proxy_message(query: Sequence[tuple[str, str]]) -> str:
    """Build the string an app-proxy signature is computed over.

    Every parameter except ``signature`` is rendered as ``key=value``
    (repeated keys have their values joined with ``,``), sorted, and
    concatenated with no separator.
    """
    grouped: dict[str, list[str]] = {}
    for key, value in query:
        if key == "signature":
            continue
        grouped.setdefault(key, []).append(value)
    return "".join(sorted(f"{key}={','.join(values)}" for key, values in grouped.items()))


def sign_app_proxy_query(query: Sequence[tuple[str, str]], secret: str) -> str:
    """Return the hex HMAC-SHA256 signature for *query*."""
    return hmac.new(
        secret.encode("utf-8"),
        app_proxy_message(query).encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


class AppProxyAuthorizer:
    """Trusts requests forwarded by the shop's app proxy.

    Parameters
    ----------
    api_secret:
        App secret the proxy signs with.  Empty disables this authorizer.
    sessions:
        Where the shop's offline token is looked up.
    max_age_seconds:
        Maximum age of the signed ``timestamp``.  ``0`` disables the check.
    clock:
        Returns the current UNIX time; injectable for tests.
    """

    via = "app_proxy"

    def __init__(
        self,
        api_secret: str,
        sessions: SessionStore,
        max_age_seconds: float = 90.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret = api_secret
        self._sessions = sessions
        self._max_age = max_age_seconds
        self._clock = clock

    async def authorize(self, request: AuthRequest) -> AdminSession | None:
        signature = next((v for k, v in request.query if k == "signature"), None)
        if not self._secret or signature is None:
            return None

        expected = sign_app_proxy_query(request.query, self._secret)
        if not hmac.compare_digest(signature.lower().encode("utf-8"), expected.encode("utf-8")):
            raise ShopstageAuthError(
                message="Invalid app proxy signature",
                context={"reason": "bad_signature"},
            )

        if self._max_age:
            timestamp = next((v for k, v in request.query if k == "timestamp"), None)
            try:
                age = self._clock() - float(timestamp) if timestamp is not None else None
            except ValueError:
                age = None
            if age is None or abs(age) > self._max_age:
                raise ShopstageAuthError(
                    message="App proxy request expired",
                    context={"reason": "stale_timestamp", "timestamp": timestamp},
                )

        shop = normalize_shop_domain(next((v for k, v in request.query if k == "shop"), None))
        if shop is None:
            raise ShopstageAuthError(
                message="App proxy request has no valid shop",
                context={"reason": "invalid_shop"},
            )

        token = await self._sessions.access_token_for(shop)
        if not token:
            raise ShopstageAuthError(
                message=f"No session for shop {shop}",
                context={"reason": "no_session", "shop": shop},
            )
        return AdminSession(shop=shop, access_token=token, via=self.via)


class DirectSecretAuthorizer:
    """Trusts requests carrying the shared direct-upload secret.

    The shop comes from the ``shop`` form field, falling back to the
    ``X-Shop-Domain`` header.

    Parameters
    ----------
    secret:
        The server-held shared secret.  Empty disables this authorizer.
    sessions:
        Where the shop's offline token is looked up.
    """

    via = "direct_secret"

    def __init__(self, secret: str, sessions: SessionStore) -> None:
        self._secret = secret
        self._sessions = sessions

    async def authorize(self, request: AuthRequest) -> AdminSession | None:
        presented = request.header(DIRECT_SECRET_HEADER)
        if not self._secret or not presented:
            return None

        if not hmac.compare_digest(presented.encode("utf-8"), self._secret.encode("utf-8")):
            raise ShopstageAuthError(
                message="Invalid direct upload secret",
                context={"reason": "bad_secret"},
            )

        shop = normalize_shop_domain(request.form_shop or request.header(SHOP_HEADER))
        if shop is None:
            raise ShopstageAuthError(
                message="Direct upload requires a valid shop",
                context={"reason": "invalid_shop"},
            )

        token = await self._sessions.access_token_for(shop)
        if not token:
            raise ShopstageAuthError(
                message=f"No session for shop {shop}",
                context={"reason": "no_session", "shop": shop},
            )
        return AdminSession(shop=shop, access_token=token, via=self.via)


class ChainAuthorizer:
    """Tries each authorizer in order and returns the first session.

    A member that rejects the request is logged and skipped; if no member
    produces a session, :class:`ShopstageAuthError` is raised.
    """

    def __init__(self, authorizers: Sequence[Authorizer]) -> None:
        self._authorizers = list(authorizers)

    async def authorize(self, request: AuthRequest) -> AdminSession:
        for authorizer in self._authorizers:
            try:
                session = await authorizer.authorize(request)
            except ShopstageAuthError as exc:
                log.info(
                    "Authorizer rejected request",
                    extra={
                        "extra_fields": {
                            "op": "authorize",
                            "authorizer": type(authorizer).__name__,
                            "reason": exc.context.get("reason"),
                        }
                    },
                )
                continue
            if session is not None:
                return session

        raise ShopstageAuthError(message=UNAUTHORIZED_MESSAGE)


def build_authorizer(config: ShopstageConfig, sessions: SessionStore | None = None) -> ChainAuthorizer:
    """Assemble the default app-proxy then direct-secret chain from *config*."""
    store = sessions if sessions is not None else StaticSessionStore(config.access_tokens)
    return ChainAuthorizer([
        AppProxyAuthorizer(
            config.api_secret,
            store,
            max_age_seconds=config.app_proxy_max_age_seconds,
        ),
        DirectSecretAuthorizer(config.direct_upload_secret, store),
    ])
