"""Multipart POST to a staged upload target.

The storage endpoint is a third-party object store, so requests made here
never carry Admin API credentials.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx

from shopstage.config import ShopstageConfig
from shopstage.errors import ShopstageNetworkError
from shopstage.observability import get_logger

log = get_logger("shopstage.storage")


def build_multipart_fields(
    parameters: Sequence[tuple[str, str]],
    data: bytes,
    filename: str,
    content_type: str,
) -> list[tuple[str, tuple[Any, ...]]]:
    """Build an ordered ``files=`` list for httpx.

    Form parameters come first, in the given order, as plain fields
    (``filename=None``); the file part is always last.
    """
    fields: list = [(name, (None, value.encode("utf-8"))) for name, value in parameters]
    fields.append(("file", (filename, data, content_type)))
    return fields


class StorageUploader:
    """Sends staged-upload form posts.

    Parameters
    ----------
    config:
        Supplies the upload timeout and outbound proxy.
    client:
        Optional pre-built ``httpx.AsyncClient`` (tests pass one wired to a
        ``MockTransport``).  When omitted, one is created and owned.
    """

    def __init__(
        self,
        config: ShopstageConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.upload_timeout_seconds),
            proxy=config.http_proxy,
        )

    async def post_form(
        self,
        url: str,
        parameters: Sequence[tuple[str, str]],
        data: bytes,
        filename: str,
        content_type: str,
    ) -> httpx.Response:
        """POST the multipart form and return the raw response.

        Status handling is left to the caller.

        Raises
        ------
        ShopstageNetworkError
            On timeouts and connection failures.
        """
        try:
            return await self._client.post(
                url,
                files=build_multipart_fields(parameters, data, filename, content_type),
            )
        except (httpx.TimeoutException, httpx.NetworkError) as exc:
            log.warning(
                "Staged upload network error",
                extra={"extra_fields": {"op": "transmit", "error": str(exc)}},
            )
            raise ShopstageNetworkError(
                message=f"Network error on staged upload: {exc}",
                context={"operation": "stagedUpload"},
                cause=exc,
            ) from exc

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> StorageUploader:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
