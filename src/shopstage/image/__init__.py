"""Content validation for uploaded images.

Exports
-------
validate_image
    Classify an upload by size and leading magic bytes.
SNIFF_BYTES
    Number of leading bytes the validator looks at.
"""

from .validate import SNIFF_BYTES, validate_image

__all__ = [
    "SNIFF_BYTES",
    "validate_image",
]
