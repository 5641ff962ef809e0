"""Async GraphQL transport for the Admin API.

:class:`AdminTransport` handles the lifecycle of one GraphQL call:

1. POST ``{"query", "variables"}`` to
   ``https://{shop}/admin/api/{version}/graphql.json`` with the shop's
   access token.
2. On ``2xx`` without top-level ``errors`` -- return the ``data`` object.
3. On ``2xx`` with top-level ``errors`` -- raise :class:`ShopstageAdminAPIError`.
4. On any other status -- raise :class:`ShopstageAdminAPIError`.
5. On timeout / connection failure -- raise :class:`ShopstageNetworkError`.

Calls are issued once.  Field-level ``userErrors`` are part of ``data`` and
are left for the caller to interpret.
"""

from __future__ import annotations

import json as _json
import sys
import time
from typing import Any

import httpx

from shopstage.config import ShopstageConfig
from shopstage.errors import ShopstageAdminAPIError, ShopstageNetworkError
from shopstage.models import AdminSession
from shopstage.observability import NoopMetricsHook, get_logger

log = get_logger("shopstage.transport")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def graphql_url(config: ShopstageConfig, shop: str) -> str:
    """Return the Admin GraphQL endpoint for *shop*."""
    return f"{config.admin_scheme}://{shop}/admin/api/{config.api_version}/graphql.json"


def _raise_for_status(response: httpx.Response, operation: str) -> None:
    """Raise :class:`ShopstageAdminAPIError` for a non-2xx GraphQL reply."""
    status = response.status_code
    try:
        body = response.json()
    except ValueError:
        body = {}

    detail = ""
    if isinstance(body, dict):
        detail = body.get("errors") or body.get("error") or ""
    if not detail:
        detail = response.text[:500]

    raise ShopstageAdminAPIError(
        message=f"Admin API error {status} on {operation}: {detail}",
        context={"status_code": status, "operation": operation},
    )


def _error_messages(errors: Any) -> list[str]:
    """Flatten a GraphQL ``errors`` value into a list of messages."""
    if isinstance(errors, list):
        return [
            str(err.get("message", err)) if isinstance(err, dict) else str(err)
            for err in errors
        ]
    return [str(errors)]


def _dump_payload(
    url: str,
    payload: dict | None,
    response_status: int | None,
    response_body: Any | None,
    secrets: tuple[str, ...] = (),
) -> None:
    """Write a redacted debug dump of the request/response to stderr."""
    from shopstage.utils.redact import redact

    dump: dict[str, Any] = {"method": "POST", "url": url}
    if payload is not None:
        dump["request_body"] = payload
    if response_status is not None:
        dump["response_status"] = response_status
    if response_body is not None:
        dump["response_body"] = response_body
    safe_dump = redact(dump, secrets)
    print(
        _json.dumps(safe_dump, indent=2, default=str),
        file=sys.stderr,
    )


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------

class AdminTransport:
    """Async Admin GraphQL transport bound to one shop session.

    Parameters
    ----------
    config:
        A :class:`ShopstageConfig` controlling version, timeout and proxy.
    session:
        The shop domain and access token resolved by an authorizer.
    client:
        Optional pre-built ``httpx.AsyncClient`` (used by tests to install a
        ``MockTransport``).  When omitted, one is created and owned.
    """

    def __init__(
        self,
        config: ShopstageConfig,
        session: AdminSession,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._session = session
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._url = graphql_url(config, session.shop)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout_seconds),
            proxy=config.http_proxy,
        )

    @property
    def shop(self) -> str:
        return self._session.shop

    # -- public API --------------------------------------------------------

    async def execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        operation: str = "graphql",
    ) -> dict[str, Any]:
        """Run one GraphQL operation and return its ``data`` object.

        Parameters
        ----------
        query:
            GraphQL document.
        variables:
            Variables for the document.
        operation:
            Short name used in logs, metrics and error messages.

        Returns
        -------
        dict
            The ``data`` member of the response (empty dict when absent).

        Raises
        ------
        ShopstageAdminAPIError
            On non-2xx responses, unparseable bodies or top-level GraphQL
            ``errors``.
        ShopstageNetworkError
            On timeouts and connection failures.
        """
        payload = {"query": query, "variables": variables or {}}
        tags = {"operation": operation}

        t0 = time.monotonic()
        try:
            response = await self._client.post(
                self._url,
                json=payload,
                headers={
                    "X-Shopify-Access-Token": self._session.access_token,
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
            )
        except (httpx.TimeoutException, httpx.NetworkError) as exc:
            self._metrics.increment(
                "shopstage.admin_requests_total",
                tags={**tags, "status": "error"},
            )
            log.warning(
                "Admin API network error",
                extra={
                    "extra_fields": {
                        "op": operation,
                        "shop": self._session.shop,
                        "error": str(exc),
                    }
                },
            )
            raise ShopstageNetworkError(
                message=f"Network error on {operation}: {exc}",
                context={"url": self._url, "operation": operation},
                cause=exc,
            ) from exc
        elapsed_ms = (time.monotonic() - t0) * 1000

        self._metrics.increment(
            "shopstage.admin_requests_total",
            tags={**tags, "status": str(response.status_code)},
        )
        self._metrics.timing("shopstage.admin_request_duration_ms", elapsed_ms, tags=tags)

        if self._config.debug_dump_payload:
            try:
                resp_body: Any = response.json()
            except ValueError:
                resp_body = response.text[:1000]
            _dump_payload(
                self._url, payload, response.status_code, resp_body,
                secrets=(self._session.access_token,),
            )

        if not 200 <= response.status_code < 300:
            log.warning(
                "Admin API returned an error status",
                extra={
                    "extra_fields": {
                        "op": operation,
                        "shop": self._session.shop,
                        "status_code": response.status_code,
                    }
                },
            )
            _raise_for_status(response, operation)

        try:
            body = response.json()
        except ValueError as exc:
            raise ShopstageAdminAPIError(
                message=f"Admin API returned invalid JSON on {operation}",
                context={"status_code": response.status_code, "operation": operation},
                cause=exc,
            ) from exc

        if not isinstance(body, dict):
            raise ShopstageAdminAPIError(
                message=f"Admin API returned an unexpected body on {operation}",
                context={"status_code": response.status_code, "operation": operation},
            )

        errors = body.get("errors")
        if errors:
            messages = _error_messages(errors)
            raise ShopstageAdminAPIError(
                message=f"Admin API error on {operation}: {', '.join(messages)}",
                context={
                    "status_code": response.status_code,
                    "operation": operation,
                    "errors": messages,
                },
            )

        data = body.get("data")
        return data if isinstance(data, dict) else {}

    async def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> AdminTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
