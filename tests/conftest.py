"""Shared test fixtures for the shopstage test suite."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from shopstage.config import ShopstageConfig

PNG_HEADER = b"\x89PNG\r\n\x1a\n"
JPEG_HEADER = b"\xff\xd8\xff\xe0"
GIF89_HEADER = b"GIF89a"

SHOP = "demo-shop.myshopify.com"
ACCESS_TOKEN = "shpat_test_token_abcd1234"
DIRECT_SECRET = "direct-secret-5678"


@pytest.fixture
def config() -> ShopstageConfig:
    """Default test configuration with no poll delay."""
    return ShopstageConfig(
        direct_upload_secret=DIRECT_SECRET,
        access_tokens={SHOP: ACCESS_TOKEN},
        poll_delay_seconds=0.0,
    )


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_HEADER + b"\x00" * 64


def staged_payload(
    url: str = "https://storage.example.com/bucket",
    resource_url: str = "https://storage.example.com/bucket/tmp/abc/preview.png",
    parameters: list[dict[str, str]] | None = None,
) -> dict:
    """A ``stagedUploadsCreate`` payload with one target."""
    if parameters is None:
        parameters = [
            {"name": "key", "value": "tmp/abc/preview.png"},
            {"name": "policy", "value": "cG9saWN5"},
            {"name": "x-goog-signature", "value": "deadbeef"},
        ]
    return {
        "stagedTargets": [
            {"url": url, "resourceUrl": resource_url, "parameters": parameters}
        ],
        "userErrors": [],
    }


def make_files_api(
    staged: dict | None = None,
    created: dict | None = None,
    nodes: list[dict] | None = None,
) -> MagicMock:
    """A FileAPI double whose coroutines return the given payloads.

    *nodes* is the sequence of ``get_file`` answers, one per poll attempt.
    """
    api = MagicMock()
    api.staged_uploads_create = AsyncMock(return_value=staged or staged_payload())
    api.file_create = AsyncMock(
        return_value=created
        or {
            "files": [{"id": "gid://shopify/MediaImage/1", "fileStatus": "UPLOADED"}],
            "userErrors": [],
        }
    )
    api.get_file = AsyncMock(side_effect=list(nodes or []))
    return api


def make_storage(status_code: int = 201) -> MagicMock:
    """A StorageUploader double answering every post with *status_code*."""
    storage = MagicMock()
    response = httpx.Response(status_code)
    storage.post_form = AsyncMock(return_value=response)
    return storage


class FakeClock:
    """Records requested delays instead of sleeping."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def sleep(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class RecordingMetricsHook:
    """Metrics hook that remembers every call, for assertions."""

    def __init__(self) -> None:
        self.increments: list[tuple[str, int, dict | None]] = []
        self.timings: list[tuple[str, float, dict | None]] = []
        self.gauges: list[tuple[str, float, dict | None]] = []

    def increment(self, name: str, value: int = 1, tags: dict | None = None) -> None:
        self.increments.append((name, value, tags))

    def timing(self, name: str, ms: float, tags: dict | None = None) -> None:
        self.timings.append((name, ms, tags))

    def gauge(self, name: str, value: float, tags: dict | None = None) -> None:
        self.gauges.append((name, value, tags))

    def counter_names(self) -> list[str]:
        return [name for name, _, _ in self.increments]
