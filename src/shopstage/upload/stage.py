"""Staging negotiator.

Asks the Admin API for a one-time upload target for a single file.
"""

from __future__ import annotations

from typing import Any

from shopstage.errors import ShopstageStagingError, ShopstageUserError
from shopstage.models import StagedTarget


def raise_for_user_errors(payload: dict[str, Any], operation: str) -> None:
    """Raise :class:`ShopstageUserError` if *payload* carries ``userErrors``.

    The error message is the upstream messages joined with ``", "``.
    """
    user_errors = payload.get("userErrors") or []
    if not user_errors:
        return
    messages = [str(err.get("message", "")) for err in user_errors]
    raise ShopstageUserError(
        message=", ".join(messages),
        context={"operation": operation, "user_errors": user_errors},
    )


async def negotiate_staged_target(
    files: Any,
    filename: str,
    mime_type: str,
    resource: str = "PRODUCT_IMAGE",
) -> StagedTarget:
    """Create a staged upload target for one file.

    Parameters
    ----------
    files:
        A :class:`~shopstage.admin_api.FileAPI` (or anything with the same
        ``staged_uploads_create`` coroutine).
    filename:
        Name chosen by the service, not the client.
    mime_type:
        MIME type detected by the validator.
    resource:
        Resource kind the target is created for.

    Returns
    -------
    StagedTarget

    Raises
    ------
    ShopstageUserError
        If the Admin API reports user errors (HTTP 400).
    ShopstageStagingError
        If no target, or a target without ``url`` / ``resourceUrl``, came
        back (HTTP 500).
    """
    payload = await files.staged_uploads_create(
        filename=filename,
        mime_type=mime_type,
        resource=resource,
        http_method="POST",
    )
    raise_for_user_errors(payload, "stagedUploadsCreate")

    targets = payload.get("stagedTargets") or []
    target = targets[0] if targets else None
    if not target or not target.get("url") or not target.get("resourceUrl"):
        raise ShopstageStagingError(
            context={"filename": filename, "targets": len(targets)},
        )

    parameters = tuple(
        (str(p["name"]), str(p["value"])) for p in (target.get("parameters") or [])
    )
    return StagedTarget(
        upload_url=target["url"],
        resource_url=target["resourceUrl"],
        parameters=parameters,
    )
