"""Completion poller.

Follows a registered file until the Admin API reports a URL, reports the
file as failed, or the attempt budget runs out::

    NO_URL_YET --(url present)------> READY      (stop)
    NO_URL_YET --(status FAILED)----> FAILED     (stop)
    NO_URL_YET --(neither)----------> NO_URL_YET (next attempt)
    NO_URL_YET --(budget exhausted)-> TIMED_OUT

The delay is awaited *before* each query.  ``sleep`` is injectable so the
schedule can be driven by a fake clock in tests; the default,
:func:`asyncio.sleep`, yields the event loop while waiting.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from shopstage.models import AssetStatus, PollResult, PollState, RemoteAsset
from shopstage.observability import get_logger

from .register import extract_url

log = get_logger("shopstage.poll")

Sleep = Callable[[float], Awaitable[Any]]


async def poll_for_url(
    files: Any,
    asset: RemoteAsset,
    max_attempts: int = 15,
    delay: float = 1.0,
    sleep: Sleep = asyncio.sleep,
) -> PollResult:
    """Query *asset* until it has a URL, fails, or *max_attempts* is spent.

    Parameters
    ----------
    files:
        A :class:`~shopstage.admin_api.FileAPI` (or anything with the same
        ``get_file`` coroutine).
    asset:
        The registered file.  Must carry an ``id``.
    max_attempts:
        Number of queries to issue at most.
    delay:
        Seconds awaited before each query.
    sleep:
        Coroutine function used to wait.

    Returns
    -------
    PollResult
        ``READY`` with the refined asset, ``FAILED`` on an explicit failure
        status, or ``TIMED_OUT`` once the budget is spent.  ``attempts`` is
        the number of queries issued.
    """
    if asset.id is None:
        raise ValueError("Cannot poll an asset without an id")

    current = asset
    for attempt in range(1, max_attempts + 1):
        await sleep(delay)
        node = await files.get_file(asset.id)
        current = current.refine(AssetStatus.parse(node.get("fileStatus")), extract_url(node))

        if current.url:
            return PollResult(PollState.READY, current, attempt)

        if current.status == AssetStatus.FAILED:
            log.warning(
                "File processing failed",
                extra={"extra_fields": {"op": "poll", "file_id": asset.id, "attempt": attempt}},
            )
            return PollResult(PollState.FAILED, current, attempt)

        log.debug(
            "File not ready yet",
            extra={
                "extra_fields": {
                    "op": "poll",
                    "file_id": asset.id,
                    "attempt": attempt,
                    "status": current.status.value,
                }
            },
        )

    return PollResult(PollState.TIMED_OUT, current, max_attempts)
