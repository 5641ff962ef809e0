"""Per-request Admin API client bundle.

:class:`AdminClient` owns the two HTTP clients one upload needs -- the
authenticated GraphQL transport and the credential-free storage uploader --
and closes both when the request is done.  A fresh bundle is built for each
request, so no connection state is shared between requests.
"""

from __future__ import annotations

from shopstage.config import ShopstageConfig
from shopstage.models import AdminSession

from .files import FileAPI
from .storage import StorageUploader
from .transport import AdminTransport


class AdminClient:
    """Async context manager exposing ``files`` and ``storage``.

    Usage::

        async with AdminClient(config, session) as admin:
            payload = await admin.files.staged_uploads_create("a.png", "image/png")
    """

    def __init__(self, config: ShopstageConfig, session: AdminSession) -> None:
        self.session = session
        self._transport = AdminTransport(config, session)
        self.files = FileAPI(self._transport)
        self.storage = StorageUploader(config)

    async def close(self) -> None:
        try:
            await self._transport.close()
        finally:
            await self.storage.close()

    async def __aenter__(self) -> AdminClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
