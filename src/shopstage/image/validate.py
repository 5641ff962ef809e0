"""Image validation: size and magic-byte checks.

Classifies an upload before any network call is made.  The size check runs
first so an oversized payload is refused regardless of its content; the
format check then compares the first bytes against a short list of image
signatures.

This is a format sniff, not a decoder: a truncated or corrupt file whose
first bytes carry a valid signature is accepted.
"""

from __future__ import annotations

from shopstage.config import DEFAULT_MAX_UPLOAD_BYTES
from shopstage.errors import ErrorCode
from shopstage.models import Accepted, Rejected, ValidationResult

SNIFF_BYTES = 12
"""Only this many leading bytes are ever inspected."""

INVALID_IMAGE_MESSAGE = "Invalid image. Only PNG, JPEG, and GIF are allowed."

# Signatures in match order: (magic, mime, extension).
_MAGIC_BYTES: list[tuple[bytes, str, str]] = [
    (b"\x89PNG\r\n\x1a\n", "image/png", "png"),
    (b"\xff\xd8\xff", "image/jpeg", "jpg"),
    (b"GIF87a", "image/gif", "gif"),
    (b"GIF89a", "image/gif", "gif"),
]


def _format_limit(max_bytes: int) -> str:
    """Render a byte limit the way it appears in the rejection message."""
    mib = 1024 * 1024
    if max_bytes % mib == 0:
        return f"{max_bytes // mib} MB"
    if max_bytes % 1024 == 0:
        return f"{max_bytes // 1024} KB"
    return f"{max_bytes} bytes"


def _sniff(head: bytes) -> tuple[str, str] | None:
    """Return ``(mime, extension)`` for the first matching signature."""
    for magic, mime, extension in _MAGIC_BYTES:
        if head[:len(magic)] == magic:
            return mime, extension
    return None


def validate_image(
    head: bytes,
    declared_size: int,
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
) -> ValidationResult:
    """Validate an upload's size and image signature.

    Parameters
    ----------
    head:
        The leading bytes of the upload.  Anything past
        :data:`SNIFF_BYTES` is ignored, so callers may pass the whole
        payload or just its prefix.
    declared_size:
        Size of the upload as declared by the request.
    max_bytes:
        Largest accepted size.  Defaults to 5 MiB.

    Returns
    -------
    Accepted | Rejected
        ``Accepted(mime, extension)`` when the size is within the limit and
        a signature matches; otherwise ``Rejected`` with a client-facing
        reason.
    """
    if declared_size > max_bytes:
        return Rejected(
            reason=f"File too large (max {_format_limit(max_bytes)})",
            code=ErrorCode.IMAGE_SIZE_ERROR,
        )

    match = _sniff(bytes(head[:SNIFF_BYTES]))
    if match is None:
        return Rejected(reason=INVALID_IMAGE_MESSAGE, code=ErrorCode.IMAGE_TYPE_ERROR)

    mime, extension = match
    return Accepted(mime=mime, extension=extension)
