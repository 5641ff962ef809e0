"""Asset registrar.

Turns bytes sitting at a staged resource URL into a managed file.
"""

from __future__ import annotations

from typing import Any

from shopstage.models import AssetStatus, RemoteAsset

from .stage import raise_for_user_errors


def extract_url(node: dict[str, Any]) -> str | None:
    """Return the durable URL of a file node, if it has one.

    ``MediaImage`` nodes carry it under ``image.url``; ``GenericFile`` nodes
    under ``url``.
    """
    image = node.get("image") or {}
    return image.get("url") or node.get("url") or None


async def register_asset(
    files: Any,
    resource_url: str,
    alt: str | None = None,
) -> RemoteAsset:
    """Create a file from *resource_url* and return what is known about it.

    Some file types resolve synchronously, in which case the returned asset
    already carries a ``url``; otherwise only ``id`` is set and the caller
    must poll.  When the response names no file at all, both ``id`` and
    ``url`` are ``None``: there is nothing to poll and the upload can only
    be reported as pending.

    Raises
    ------
    ShopstageUserError
        If the Admin API reports user errors (HTTP 400).
    """
    payload = await files.file_create(
        original_source=resource_url,
        content_type="IMAGE",
        alt=alt,
    )
    raise_for_user_errors(payload, "fileCreate")

    created_files = payload.get("files") or []
    created = created_files[0] if created_files else {}
    file_id = created.get("id") or None
    url = extract_url(created)
    return RemoteAsset(
        id=file_id,
        status=AssetStatus.READY if url else AssetStatus.parse(created.get("fileStatus")),
        url=url,
    )
