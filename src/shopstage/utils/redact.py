"""Secret / payload redaction for safe logging.

Before any Admin API payload is written to logs or debug dumps the
:func:`redact` function must be applied.  It enforces the following rules:

* Values under **sensitive keys** (tokens, secrets, signatures, cookies)
  are masked, keeping only the last four characters.
* Every **known secret** passed by the caller is scrubbed wherever it
  appears inside a string value.
* **Binary values** (``bytes`` or long strings that are mostly
  non-printable) are replaced with ``<binary:N_bytes>``.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable
from typing import Any

# Substrings: if any of these appear in a key name (case-insensitive), the
# value is redacted.  Catches ``X-Shopify-Access-Token``,
# ``X-Engraving-Direct-Secret``, ``x-goog-signature`` and friends.
_SENSITIVE_KEY_PATTERNS: frozenset[str] = frozenset({
    "token",
    "secret",
    "password",
    "credential",
    "authorization",
    "cookie",
    "signature",
    "policy",
    "api_key",
    "api-key",
})

_BINARY_LENGTH_THRESHOLD = 256


def _mask(value: str) -> str:
    if len(value) >= 8:
        return f"<redacted:...{value[-4:]}>"
    return "<redacted>"


def _scrub(value: str, secrets: tuple[str, ...]) -> str:
    """Replace every occurrence of a known secret in *value*."""
    for secret in secrets:
        if secret and secret in value:
            value = value.replace(secret, "<redacted>")
    return value


def _looks_binary(value: str) -> bool:
    """Heuristic: return True if *value* appears to be raw binary data."""
    if len(value) < _BINARY_LENGTH_THRESHOLD:
        return False
    non_printable = sum(
        1
        for ch in value[:512]
        if not ch.isprintable() and ch not in ("\n", "\r", "\t")
    )
    return non_printable > len(value[:512]) * 0.1


def _redact_value(value: Any, secrets: tuple[str, ...]) -> Any:
    if isinstance(value, dict):
        return _redact_dict(value, secrets)
    if isinstance(value, (list, tuple)):
        return [_redact_value(item, secrets) for item in value]
    if isinstance(value, str):
        if _looks_binary(value):
            return f"<binary:{len(value.encode('utf-8'))}_bytes>"
        return _scrub(value, secrets)
    if isinstance(value, (bytes, bytearray)):
        return f"<binary:{len(value)}_bytes>"
    return value


def _redact_dict(d: dict, secrets: tuple[str, ...]) -> dict:
    result: dict = {}
    for key, value in d.items():
        key_lower = key.lower() if isinstance(key, str) else ""
        if any(pat in key_lower for pat in _SENSITIVE_KEY_PATTERNS):
            result[key] = _mask(value) if isinstance(value, str) else "<redacted>"
        else:
            result[key] = _redact_value(value, secrets)
    return result


def redact(payload: dict, secrets: Iterable[str] = ()) -> dict:
    """Return a deep copy of *payload* with sensitive data redacted.

    Parameters
    ----------
    payload:
        The dictionary to sanitize (a GraphQL request body, a response
        body, or a set of headers).
    secrets:
        Known secret strings (access tokens, shared secrets) to scrub from
        every string value in the tree.

    Returns
    -------
    dict
        A new dictionary.  The original *payload* is never mutated.

    Examples
    --------
    >>> redact({"X-Shopify-Access-Token": "shpat_0123456789"})
    {'X-Shopify-Access-Token': '<redacted:...6789>'}
    """
    safe = copy.deepcopy(payload)
    return _redact_dict(safe, tuple(s for s in secrets if s))
