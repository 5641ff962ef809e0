"""Tests for ShopstageConfig defaults, validation, masking and the env settings."""

from __future__ import annotations

import os

import pytest
from pydantic import ValidationError

from shopstage.config import (
    DEFAULT_MAX_UPLOAD_BYTES,
    ShopstageConfig,
    ShopstageSettings,
    _parse_access_tokens,
)


class TestDefaults:
    def test_values(self):
        config = ShopstageConfig()
        assert config.max_upload_bytes == DEFAULT_MAX_UPLOAD_BYTES == 5 * 1024 * 1024
        assert config.poll_max_attempts == 15
        assert config.poll_delay_seconds == 1.0
        assert config.timeout_seconds == 10.0
        assert config.upload_timeout_seconds == 30.0
        assert config.endpoint_path == "/apps/engraving/upload"
        assert config.staged_resource == "PRODUCT_IMAGE"
        assert config.access_tokens == {}
        assert config.metrics is None
        assert config.debug_dump_payload is False

    def test_access_tokens_not_shared(self):
        a, b = ShopstageConfig(), ShopstageConfig()
        a.access_tokens["x"] = "y"
        assert b.access_tokens == {}


class TestValidation:
    @pytest.mark.parametrize(
        ("kwargs", "match"),
        [
            ({"admin_scheme": "ftp"}, "admin_scheme"),
            ({"endpoint_path": "upload"}, "endpoint_path"),
            ({"max_upload_bytes": 0}, "max_upload_bytes"),
            ({"poll_max_attempts": -1}, "poll_max_attempts"),
            ({"poll_delay_seconds": -0.5}, "poll_delay_seconds"),
            ({"timeout_seconds": 0}, "timeout_seconds"),
            ({"upload_timeout_seconds": -1}, "upload_timeout_seconds"),
            ({"app_proxy_max_age_seconds": -1}, "app_proxy_max_age_seconds"),
        ],
    )
    def test_rejected(self, kwargs, match):
        with pytest.raises(ValueError, match=match):
            ShopstageConfig(**kwargs)

    def test_zero_poll_budget_allowed(self):
        assert ShopstageConfig(poll_max_attempts=0, poll_delay_seconds=0).poll_max_attempts == 0


class TestRepr:
    def test_secrets_masked(self):
        config = ShopstageConfig(
            api_secret="app-secret-9876",
            direct_upload_secret="direct-secret-5678",
            access_tokens={"a.myshopify.com": "shpat_aaaa", "b.myshopify.com": "shpat_bbbb"},
        )
        text = repr(config)
        assert "app-secret-9876" not in text
        assert "direct-secret-5678" not in text
        assert "shpat_" not in text
        assert "api_secret='...9876'" in text
        assert "access_tokens=<2 shops>" in text

    def test_short_secret_fully_masked(self):
        assert "direct_upload_secret='****'" in repr(ShopstageConfig(direct_upload_secret="abc"))


class TestFromEnv:
    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in list(os.environ):
            if name.upper().startswith("SHOPSTAGE_"):
                monkeypatch.delenv(name)

    def test_empty_environment_uses_defaults(self):
        assert ShopstageConfig.from_env() == ShopstageConfig()

    def test_reads_prefixed_variables(self, monkeypatch):
        for name, value in {
            "SHOPSTAGE_API_SECRET": "s3cret",
            "SHOPSTAGE_DIRECT_UPLOAD_SECRET": "d1rect",
            "SHOPSTAGE_ACCESS_TOKENS": "Demo.myshopify.com=shpat_1, other.myshopify.com=shpat_2",
            "SHOPSTAGE_API_VERSION": "2024-10",
            "SHOPSTAGE_ENDPOINT_PATH": "/upload",
            "SHOPSTAGE_POLL_MAX_ATTEMPTS": "5",
            "SHOPSTAGE_POLL_DELAY_SECONDS": "0.5",
            "SHOPSTAGE_TIMEOUT_SECONDS": "3",
            "SHOPSTAGE_MAX_UPLOAD_BYTES": "1048576",
            "SHOPSTAGE_LOG_LEVEL": "DEBUG",
            "SHOPSTAGE_DEBUG_DUMP_PAYLOAD": "yes",
            "UNRELATED": "ignored",
        }.items():
            monkeypatch.setenv(name, value)

        config = ShopstageConfig.from_env()
        assert config.api_secret == "s3cret"
        assert config.direct_upload_secret == "d1rect"
        assert config.access_tokens == {
            "demo.myshopify.com": "shpat_1",
            "other.myshopify.com": "shpat_2",
        }
        assert config.api_version == "2024-10"
        assert config.endpoint_path == "/upload"
        assert config.poll_max_attempts == 5
        assert config.poll_delay_seconds == 0.5
        assert config.timeout_seconds == 3.0
        assert config.max_upload_bytes == 1024 * 1024
        assert config.log_level == "DEBUG"
        assert config.debug_dump_payload is True

    def test_lowercase_names_accepted(self, monkeypatch):
        monkeypatch.setenv("shopstage_file_alt", "Custom alt")
        assert ShopstageConfig.from_env().file_alt == "Custom alt"

    def test_empty_values_ignored(self, monkeypatch):
        monkeypatch.setenv("SHOPSTAGE_POLL_MAX_ATTEMPTS", "")
        assert ShopstageConfig.from_env().poll_max_attempts == 15

    @pytest.mark.parametrize("value", ["0", "false", "no", "off"])
    def test_debug_flag_false(self, monkeypatch, value):
        monkeypatch.setenv("SHOPSTAGE_DEBUG_DUMP_PAYLOAD", value)
        assert ShopstageConfig.from_env().debug_dump_payload is False

    def test_bad_number_names_field(self, monkeypatch):
        monkeypatch.setenv("SHOPSTAGE_POLL_MAX_ATTEMPTS", "many")
        with pytest.raises(ValidationError, match="poll_max_attempts"):
            ShopstageConfig.from_env()

    def test_range_checked_at_the_edge(self, monkeypatch):
        monkeypatch.setenv("SHOPSTAGE_TIMEOUT_SECONDS", "0")
        with pytest.raises(ValidationError, match="timeout_seconds"):
            ShopstageConfig.from_env()

    def test_dataclass_validation_still_applies(self, monkeypatch):
        monkeypatch.setenv("SHOPSTAGE_ADMIN_SCHEME", "ftp")
        with pytest.raises(ValueError, match="admin_scheme"):
            ShopstageConfig.from_env()

    def test_malformed_access_tokens(self, monkeypatch):
        monkeypatch.setenv("SHOPSTAGE_ACCESS_TOKENS", "demo.myshopify.com")
        with pytest.raises(ValidationError, match="shop=token"):
            ShopstageConfig.from_env()

    def test_env_file(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "SHOPSTAGE_FILE_ALT=From file\nSHOPSTAGE_POLL_MAX_ATTEMPTS=3\n", encoding="utf-8"
        )
        monkeypatch.setenv("SHOPSTAGE_POLL_MAX_ATTEMPTS", "7")
        config = ShopstageConfig.from_env(env_file=str(env_file))
        assert config.file_alt == "From file"
        assert config.poll_max_attempts == 7


class TestSettings:
    def test_unset_fields_stay_none(self, monkeypatch):
        monkeypatch.delenv("SHOPSTAGE_API_SECRET", raising=False)
        assert ShopstageSettings(_env_file=None).api_secret is None

    def test_bind_address_defaults(self, monkeypatch):
        monkeypatch.delenv("SHOPSTAGE_HOST", raising=False)
        monkeypatch.delenv("SHOPSTAGE_PORT", raising=False)
        settings = ShopstageSettings(_env_file=None)
        assert (settings.host, settings.port) == ("127.0.0.1", 8000)

    def test_port_out_of_range(self, monkeypatch):
        monkeypatch.setenv("SHOPSTAGE_PORT", "70000")
        with pytest.raises(ValidationError, match="port"):
            ShopstageSettings(_env_file=None)

    def test_init_values_bypass_token_parsing(self):
        settings = ShopstageSettings(_env_file=None, access_tokens={"a.myshopify.com": "t"})
        assert settings.to_config().access_tokens == {"a.myshopify.com": "t"}


class TestParseAccessTokens:
    def test_skips_blank_entries(self):
        assert _parse_access_tokens("a.myshopify.com=t1,,") == {"a.myshopify.com": "t1"}

    def test_token_may_contain_equals(self):
        assert _parse_access_tokens("a.myshopify.com=abc=") == {"a.myshopify.com": "abc="}

    @pytest.mark.parametrize("raw", ["a.myshopify.com", "=token", "a.myshopify.com="])
    def test_malformed(self, raw):
        with pytest.raises(ValueError, match="shop=token"):
            _parse_access_tokens(raw)
