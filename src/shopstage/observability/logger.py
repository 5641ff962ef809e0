"""JSON log lines for the upload service.

Each module owns a child of the ``shopstage`` logger:

=========================  ==============================================
``shopstage.app``          one line per request (status, pending, timing)
``shopstage.auth``         rejected app-proxy signatures and secrets
``shopstage.transport``    Admin API GraphQL calls and their failures
``shopstage.storage``      multipart POSTs to the staged target
``shopstage.pipeline``     stage failures and the final upload outcome
``shopstage.poll``         each status query while waiting for a URL
=========================  ==============================================

A finished upload looks like::

    {"ts": "2026-01-05T12:00:00.123456+00:00", "level": "INFO",
     "logger": "shopstage.pipeline", "message": "Upload finished",
     "op": "upload", "stage": "pending",
     "file_id": "gid://shopify/MediaImage/1", "poll_attempts": 15}

Structured fields go through ``extra={"extra_fields": {...}}``.  They are
passed through :func:`shopstage.utils.redact` first, so a field such as
``access_token`` or a stray ``bytes`` body never reaches the log verbatim.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from shopstage.utils.redact import redact

_ROOT = "shopstage"


class StructuredFormatter(logging.Formatter):
    """Render a record as one JSON object per line.

    ``ts``, ``level``, ``logger`` and ``message`` are always present and
    cannot be overridden by extra fields.  Tracebacks land under
    ``exception`` and ``stack_info``.
    """

    def format(self, record: logging.LogRecord) -> str:
        extra_fields: dict[str, Any] | None = getattr(record, "extra_fields", None)
        entry: dict[str, Any] = redact(extra_fields) if extra_fields else {}
        entry.update(
            ts=datetime.now(timezone.utc).isoformat(),
            level=record.levelname,
            logger=record.name,
            message=record.getMessage(),
        )

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str)


# Names that already carry a handler; get_logger never adds a second one.
_configured_loggers: set[str] = set()


def _resolve(level: int | str) -> int:
    return logging.getLevelName(level.upper()) if isinstance(level, str) else level


def get_logger(
    name: str = _ROOT,
    *,
    level: int | str = logging.DEBUG,
    stream: Any | None = None,
) -> logging.Logger:
    """Return the logger *name* with a JSON handler attached.

    *level* and *stream* only take effect the first time *name* is seen;
    after that the existing logger is returned untouched.  The logger does
    not propagate, so records are written once even when a parent such as
    ``shopstage`` is configured too.  The service adjusts levels afterwards
    with :func:`set_level`.
    """
    logger = logging.getLogger(name)
    if name in _configured_loggers:
        return logger

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())
    logger.addHandler(handler)
    logger.setLevel(_resolve(level))
    logger.propagate = False
    _configured_loggers.add(name)
    return logger


def set_level(level: int | str) -> None:
    """Apply *level* to every logger created through :func:`get_logger`."""
    resolved = _resolve(level)
    for name in _configured_loggers:
        logging.getLogger(name).setLevel(resolved)
