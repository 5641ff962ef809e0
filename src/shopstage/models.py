"""Data models for shopstage.

Every entity here lives for exactly one request: it is created while an
upload is being handled and discarded with the response.  All types are
plain dataclasses with no behaviour beyond what the pipeline needs to keep
their invariants.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from shopstage.errors import ErrorCode, ShopstageError

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class AssetStatus(str, Enum):
    """Processing status of a registered file, as reported by the Admin API."""

    UPLOADED = "UPLOADED"
    """Bytes are known to the API; processing has not started."""

    PROCESSING = "PROCESSING"
    """The API is still materialising the file."""

    READY = "READY"
    """Processing finished; a durable URL is available."""

    FAILED = "FAILED"
    """Terminal failure.  No URL will ever be produced."""

    @classmethod
    def parse(cls, raw: Any) -> AssetStatus:
        """Map a raw ``fileStatus`` value to a member.

        Unknown or missing values are treated as ``PROCESSING`` so that a new
        upstream status never ends polling early.
        """
        try:
            return cls(raw)
        except ValueError:
            return cls.PROCESSING


class PollState(str, Enum):
    """Outcome of the completion poller."""

    NO_URL_YET = "no_url_yet"
    READY = "ready"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class UploadStage(str, Enum):
    """Lifecycle stages of one upload request."""

    RECEIVED = "received"
    """The candidate bytes were read from the request."""

    VALIDATED = "validated"
    """The content validator accepted the bytes."""

    STAGED = "staged"
    """A staged upload target was negotiated."""

    TRANSMITTED = "transmitted"
    """The bytes were posted to the staged target."""

    REGISTERED = "registered"
    """``fileCreate`` accepted the resource URL.  The asset may or may not
    already carry a URL."""

    READY = "ready"
    """A durable URL is known (terminal)."""

    PENDING = "pending"
    """Polling was exhausted without a URL or a failure (terminal, soft)."""

    FAILED = "failed"
    """A stage reported an error (terminal)."""


# ---------------------------------------------------------------------------
# Request input
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UploadCandidate:
    """Raw upload payload taken from the ``file`` form field.

    Attributes
    ----------
    data:
        The full byte payload.
    size:
        Size declared by the multipart part (falls back to ``len(data)``).
    filename:
        Client-supplied name.  Informational only, never forwarded upstream.
    """

    data: bytes
    size: int
    filename: str | None = None


@dataclass(frozen=True)
class AdminSession:
    """Admin API credentials resolved for one request.

    ``via`` records which authorizer produced the session (``"app_proxy"``
    or ``"direct_secret"``).
    """

    shop: str
    access_token: str = field(repr=False)
    via: str = ""


# ---------------------------------------------------------------------------
# Validation results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Accepted:
    """The bytes carry a known image signature."""

    mime: str
    extension: str


@dataclass(frozen=True)
class Rejected:
    """The bytes were refused before any network call."""

    reason: str
    code: ErrorCode = ErrorCode.IMAGE_TYPE_ERROR


ValidationResult = Union[Accepted, Rejected]


# ---------------------------------------------------------------------------
# Upstream entities
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StagedTarget:
    """A one-time, pre-authorised upload destination.

    ``parameters`` keeps the order returned by the Admin API; the storage
    backend may verify the form fields positionally.
    """

    upload_url: str
    resource_url: str
    parameters: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class RemoteAsset:
    """A file registered with the Admin API.

    ``url`` is monotonic: once known it is never replaced by ``None``.
    """

    id: str | None
    status: AssetStatus = AssetStatus.UPLOADED
    url: str | None = None

    def refine(self, status: AssetStatus, url: str | None) -> RemoteAsset:
        """Return a copy updated with a fresher status report."""
        return RemoteAsset(id=self.id, status=status, url=url or self.url)


@dataclass(frozen=True)
class PollResult:
    """Final state of the completion poller."""

    state: PollState
    asset: RemoteAsset
    attempts: int


# ---------------------------------------------------------------------------
# Response envelope
# ---------------------------------------------------------------------------

PENDING_MESSAGE = "File created but URL not ready yet"


@dataclass
class OrchestrationOutcome:
    """The single JSON envelope returned for a request."""

    status_code: int
    body: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, url: str) -> OrchestrationOutcome:
        # image_url and file_url are aliases kept for older clients.
        return cls(200, {"url": url, "image_url": url, "file_url": url})

    @classmethod
    def pending(cls, file_id: str | None) -> OrchestrationOutcome:
        return cls(
            200,
            {
                "error": PENDING_MESSAGE,
                "url": None,
                "image_url": None,
                "file_url": None,
                "file_id": file_id,
            },
        )

    @classmethod
    def from_error(cls, error: ShopstageError) -> OrchestrationOutcome:
        return cls(error.http_status, {"error": error.message})

    @property
    def is_pending(self) -> bool:
        return self.status_code == 200 and self.body.get("url") is None
