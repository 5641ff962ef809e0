"""shopstage: staged image uploads into a shop's Admin API files.

Public re-exports
-----------------

* **Application:** :func:`create_app`
* **Configuration:** :class:`ShopstageConfig`
* **Errors:** Every :class:`ShopstageError` subclass and :class:`ErrorCode`
* **Models:** Data model dataclasses and enums

Usage::

    from shopstage import ShopstageConfig, create_app

    app = create_app(ShopstageConfig(direct_upload_secret="s3cret",
                                     access_tokens={"demo.myshopify.com": "shpat_..."}))
"""

from __future__ import annotations

# ── Application ────────────────────────────────────────────────────────
from shopstage.app import create_app

# ── Configuration ───────────────────────────────────────────────────────
from shopstage.config import DEFAULT_MAX_UPLOAD_BYTES, ShopstageConfig, ShopstageSettings

# ── Errors ──────────────────────────────────────────────────────────────
from shopstage.errors import (
    ErrorCode,
    ShopstageAdminAPIError,
    ShopstageAuthError,
    ShopstageError,
    ShopstageImageError,
    ShopstageImageSizeError,
    ShopstageImageTypeError,
    ShopstageInternalError,
    ShopstageMethodNotAllowedError,
    ShopstageMissingFileError,
    ShopstageNetworkError,
    ShopstageProcessingError,
    ShopstageStagingError,
    ShopstageUploadTransportError,
    ShopstageUserError,
)

# ── Models ──────────────────────────────────────────────────────────────
from shopstage.models import (
    Accepted,
    AdminSession,
    AssetStatus,
    OrchestrationOutcome,
    PollResult,
    PollState,
    Rejected,
    RemoteAsset,
    StagedTarget,
    UploadCandidate,
    UploadStage,
    ValidationResult,
)

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Application
    "create_app",
    # Configuration
    "ShopstageConfig",
    "ShopstageSettings",
    "DEFAULT_MAX_UPLOAD_BYTES",
    # Error base + code enum
    "ShopstageError",
    "ErrorCode",
    # Client input errors
    "ShopstageMethodNotAllowedError",
    "ShopstageMissingFileError",
    "ShopstageImageError",
    "ShopstageImageSizeError",
    "ShopstageImageTypeError",
    "ShopstageAuthError",
    # Upstream errors
    "ShopstageUserError",
    "ShopstageStagingError",
    "ShopstageUploadTransportError",
    "ShopstageProcessingError",
    "ShopstageAdminAPIError",
    "ShopstageNetworkError",
    "ShopstageInternalError",
    # Models
    "UploadCandidate",
    "Accepted",
    "Rejected",
    "ValidationResult",
    "StagedTarget",
    "RemoteAsset",
    "PollResult",
    "OrchestrationOutcome",
    "AdminSession",
    # Models: enums
    "AssetStatus",
    "PollState",
    "UploadStage",
]
