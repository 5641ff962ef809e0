"""Service configuration for shopstage.

:class:`ShopstageConfig` is a dataclass that captures every tuneable knob
of the upload service.  An instance is passed to :func:`shopstage.app.create_app`
and flows from there into the authorizers, the Admin API client and the
upload pipeline.

Deployments usually build it with :meth:`ShopstageConfig.from_env`, which
reads ``SHOPSTAGE_*`` variables through :class:`ShopstageSettings`
(pydantic-settings) so that casting and range checks happen at the edge.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024
"""Largest accepted upload (5 MiB)."""

_SECRET_FIELDS = frozenset({"api_secret", "direct_upload_secret", "access_tokens"})

_ENV_PREFIX = "SHOPSTAGE_"


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass
class ShopstageConfig:
    """Complete configuration for the upload service.

    Every parameter has a default, but a deployment with neither
    ``api_secret`` nor ``direct_upload_secret`` rejects every request.

    Parameters
    ----------
    api_secret:
        App secret used to verify app-proxy request signatures.  Never logged.
    direct_upload_secret:
        Shared secret expected in the ``X-Engraving-Direct-Secret`` header
        for direct (non-proxied) uploads.  Empty disables direct uploads.
    access_tokens:
        Offline Admin API access token per shop domain.
    api_version:
        Admin API version segment of the GraphQL URL.
    admin_scheme:
        URL scheme used to reach ``https://{shop}/admin/...``.  Only tests
        against a local stub should change it.
    endpoint_path:
        Path the upload endpoint is mounted at.
    staged_resource:
        ``resource`` value sent with ``stagedUploadsCreate``.
    filename_stem:
        Stem of the filename declared upstream; the extension comes from the
        detected image type.
    file_alt:
        Alt text attached to the registered file.
    max_upload_bytes:
        Maximum accepted upload size.  Default is 5 MiB.
    poll_max_attempts:
        Number of status queries issued for a file without an inline URL.
    poll_delay_seconds:
        Delay before each status query.
    timeout_seconds:
        Per-call timeout for Admin API requests.
    upload_timeout_seconds:
        Timeout for the multipart POST to the staged target.
    app_proxy_max_age_seconds:
        Maximum age of an app-proxy ``timestamp``.  ``0`` disables the check.
    http_proxy:
        Optional outbound HTTP/HTTPS proxy URL.
    log_level:
        Level applied to the ``shopstage`` logger.
    metrics:
        Optional :class:`~shopstage.observability.MetricsHook` backend.
    debug_dump_payload:
        Write the (redacted) Admin API payloads to *stderr*.
    """

    # ── Authorization ──────────────────────────────────────────────────
    api_secret: str = ""

    direct_upload_secret: str = ""

    access_tokens: dict[str, str] = field(default_factory=dict)

    app_proxy_max_age_seconds: float = 90.0

    # ── Admin API ──────────────────────────────────────────────────────
    api_version: str = "2025-01"

    admin_scheme: str = "https"

    staged_resource: str = "PRODUCT_IMAGE"

    filename_stem: str = "engraving-preview"

    file_alt: str = "Engraving preview"

    # ── HTTP surface ───────────────────────────────────────────────────
    endpoint_path: str = "/apps/engraving/upload"

    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES

    # ── Polling ────────────────────────────────────────────────────────
    poll_max_attempts: int = 15

    poll_delay_seconds: float = 1.0

    # ── Outbound HTTP ──────────────────────────────────────────────────
    timeout_seconds: float = 10.0

    upload_timeout_seconds: float = 30.0

    http_proxy: str | None = None

    # ── Observability ──────────────────────────────────────────────────
    log_level: str = "INFO"

    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_payload: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.admin_scheme not in ("https", "http"):
            raise ValueError(f"admin_scheme must be 'https' or 'http', got {self.admin_scheme!r}")
        if not self.endpoint_path.startswith("/"):
            raise ValueError(f"endpoint_path must start with '/', got {self.endpoint_path!r}")
        if self.max_upload_bytes <= 0:
            raise ValueError(f"max_upload_bytes must be > 0, got {self.max_upload_bytes}")
        if self.poll_max_attempts < 0:
            raise ValueError(f"poll_max_attempts must be >= 0, got {self.poll_max_attempts}")
        if self.poll_delay_seconds < 0:
            raise ValueError(f"poll_delay_seconds must be >= 0, got {self.poll_delay_seconds}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if self.upload_timeout_seconds <= 0:
            raise ValueError(
                f"upload_timeout_seconds must be > 0, got {self.upload_timeout_seconds}"
            )
        if self.app_proxy_max_age_seconds < 0:
            raise ValueError(
                f"app_proxy_max_age_seconds must be >= 0, got {self.app_proxy_max_age_seconds}"
            )

    def __repr__(self) -> str:
        """Mask secrets to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "access_tokens":
                parts.append(f"access_tokens=<{len(val)} shops>")
            elif f.name in _SECRET_FIELDS:
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"{f.name}='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"ShopstageConfig({', '.join(parts)})"

    # -- construction from the environment ---------------------------------

    @classmethod
    def from_env(cls, env_file: str | None = None) -> ShopstageConfig:
        """Build a config from ``SHOPSTAGE_*`` environment variables.

        Unset variables keep their dataclass defaults.  *env_file* names an
        optional dotenv file read underneath the process environment.
        """
        return ShopstageSettings(_env_file=env_file).to_config()


# ---------------------------------------------------------------------------
# Environment settings
# ---------------------------------------------------------------------------

class ShopstageSettings(BaseSettings):
    """``SHOPSTAGE_*`` environment variables, typed and validated.

    Every field defaults to ``None`` so that :meth:`to_config` only passes
    what the deployment actually set; the dataclass owns the defaults.
    ``SHOPSTAGE_ACCESS_TOKENS`` is a comma-separated list of ``shop=token``
    pairs.  ``SHOPSTAGE_HOST`` and ``SHOPSTAGE_PORT`` only matter to the
    ``python -m shopstage`` entry point.
    """

    model_config = SettingsConfigDict(
        env_prefix=_ENV_PREFIX,
        extra="ignore",
        case_sensitive=False,
        env_ignore_empty=True,
        env_file_encoding="utf-8",
    )

    api_secret: str | None = Field(default=None, description="App-proxy signing secret.")
    direct_upload_secret: str | None = Field(
        default=None,
        description="Secret expected in X-Engraving-Direct-Secret.",
    )
    access_tokens: Annotated[dict[str, str] | None, NoDecode] = Field(
        default=None,
        description="Admin API token per shop, as shop=token,shop=token.",
    )
    app_proxy_max_age_seconds: float | None = Field(default=None, ge=0)

    api_version: str | None = Field(default=None, min_length=1)
    admin_scheme: str | None = None
    staged_resource: str | None = Field(default=None, min_length=1)
    filename_stem: str | None = Field(default=None, min_length=1)
    file_alt: str | None = None

    endpoint_path: str | None = None
    max_upload_bytes: int | None = Field(default=None, gt=0)

    poll_max_attempts: int | None = Field(default=None, ge=0)
    poll_delay_seconds: float | None = Field(default=None, ge=0)

    timeout_seconds: float | None = Field(default=None, gt=0)
    upload_timeout_seconds: float | None = Field(default=None, gt=0)
    http_proxy: str | None = None

    log_level: str | None = None
    debug_dump_payload: bool | None = None

    host: str = Field(default="127.0.0.1", description="Bind address for uvicorn.")
    port: int = Field(default=8000, ge=1, le=65535, description="Bind port for uvicorn.")

    @field_validator("access_tokens", mode="before")
    @classmethod
    def _split_access_tokens(cls, value: Any) -> Any:
        if isinstance(value, str):
            return _parse_access_tokens(value)
        return value

    def to_config(self) -> ShopstageConfig:
        """Return a :class:`ShopstageConfig` for the variables that were set."""
        return ShopstageConfig(**self.model_dump(exclude_none=True, exclude={"host", "port"}))


def _parse_access_tokens(raw: str) -> dict[str, str]:
    """Parse ``shop=token,shop=token`` into a dict."""
    tokens: dict[str, str] = {}
    for pair in raw.split(","):
        pair = pair.strip()
        if not pair:
            continue
        shop, sep, token = pair.partition("=")
        if not sep or not shop.strip() or not token.strip():
            raise ValueError(
                f"{_ENV_PREFIX}ACCESS_TOKENS entries must look like shop=token, got {pair!r}"
            )
        tokens[shop.strip().lower()] = token.strip()
    return tokens
