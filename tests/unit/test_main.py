"""Tests for the ``python -m shopstage`` entry point."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi import FastAPI

from shopstage.__main__ import main
from shopstage.observability import set_level


class TestMain:
    @pytest.fixture(autouse=True)
    def restore_level(self):
        yield
        set_level("INFO")

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SHOPSTAGE_HOST", raising=False)
        monkeypatch.delenv("SHOPSTAGE_PORT", raising=False)
        monkeypatch.delenv("SHOPSTAGE_LOG_LEVEL", raising=False)
        with patch("shopstage.__main__.uvicorn.run") as run:
            main()

        app = run.call_args.args[0]
        assert isinstance(app, FastAPI)
        assert run.call_args.kwargs == {"host": "127.0.0.1", "port": 8000, "log_level": "info"}

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("SHOPSTAGE_HOST", "0.0.0.0")
        monkeypatch.setenv("SHOPSTAGE_PORT", "9090")
        monkeypatch.setenv("SHOPSTAGE_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("SHOPSTAGE_ENDPOINT_PATH", "/upload")
        with patch("shopstage.__main__.uvicorn.run") as run:
            main()

        app = run.call_args.args[0]
        assert app.state.config.endpoint_path == "/upload"
        assert run.call_args.kwargs == {"host": "0.0.0.0", "port": 9090, "log_level": "warning"}
