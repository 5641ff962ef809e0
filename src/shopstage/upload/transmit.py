"""Binary transmitter.

Posts the validated bytes to the negotiated staged target.
"""

from __future__ import annotations

from typing import Any

from shopstage.errors import ShopstageUploadTransportError
from shopstage.models import StagedTarget


async def transmit(
    storage: Any,
    target: StagedTarget,
    data: bytes,
    filename: str,
    content_type: str,
) -> None:
    """Send *data* to ``target.upload_url`` as a multipart form.

    The target's parameters are sent first, in order, followed by the
    ``file`` part.  A single attempt is made.

    Raises
    ------
    ShopstageUploadTransportError
        If the storage endpoint answers with a non-2xx status (HTTP 502).
    """
    response = await storage.post_form(
        target.upload_url,
        target.parameters,
        data,
        filename,
        content_type,
    )
    if not 200 <= response.status_code < 300:
        reason = response.reason_phrase or str(response.status_code)
        raise ShopstageUploadTransportError(
            message=f"Upload failed: {reason}",
            context={"status_code": response.status_code, "url": target.upload_url},
        )
