"""Tests for the FileAPI wrappers: variables sent and sub-objects returned."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from shopstage.admin_api.files import FILE_CREATE, GET_FILE, STAGED_UPLOADS_CREATE, FileAPI


def make_api(data: dict) -> tuple[FileAPI, MagicMock]:
    transport = MagicMock()
    transport.execute = AsyncMock(return_value=data)
    return FileAPI(transport), transport


class TestStagedUploadsCreate:
    async def test_variables(self):
        api, transport = make_api({"stagedUploadsCreate": {"stagedTargets": []}})
        await api.staged_uploads_create("engraving-preview.png", "image/png")

        transport.execute.assert_awaited_once_with(
            STAGED_UPLOADS_CREATE,
            {
                "input": [
                    {
                        "filename": "engraving-preview.png",
                        "mimeType": "image/png",
                        "resource": "PRODUCT_IMAGE",
                        "httpMethod": "POST",
                    }
                ]
            },
            operation="stagedUploadsCreate",
        )

    async def test_custom_resource(self):
        api, transport = make_api({})
        await api.staged_uploads_create("a.gif", "image/gif", resource="FILE")
        variables = transport.execute.call_args.args[1]
        assert variables["input"][0]["resource"] == "FILE"

    async def test_returns_payload(self):
        payload = {"stagedTargets": [{"url": "u"}], "userErrors": []}
        api, _ = make_api({"stagedUploadsCreate": payload})
        assert await api.staged_uploads_create("a.png", "image/png") == payload

    async def test_missing_payload_returns_empty(self):
        api, _ = make_api({"stagedUploadsCreate": None})
        assert await api.staged_uploads_create("a.png", "image/png") == {}


class TestFileCreate:
    async def test_variables_with_alt(self):
        api, transport = make_api({"fileCreate": {"files": []}})
        await api.file_create("https://storage/x.png", alt="Engraving preview")

        transport.execute.assert_awaited_once_with(
            FILE_CREATE,
            {
                "files": [
                    {
                        "contentType": "IMAGE",
                        "originalSource": "https://storage/x.png",
                        "alt": "Engraving preview",
                    }
                ]
            },
            operation="fileCreate",
        )

    async def test_alt_omitted_when_none(self):
        api, transport = make_api({})
        await api.file_create("https://storage/x.png")
        file_input = transport.execute.call_args.args[1]["files"][0]
        assert "alt" not in file_input

    async def test_returns_payload(self):
        payload = {"files": [{"id": "gid://shopify/MediaImage/9"}], "userErrors": []}
        api, _ = make_api({"fileCreate": payload})
        assert await api.file_create("https://storage/x.png") == payload


class TestGetFile:
    async def test_variables(self):
        api, transport = make_api({"node": {"fileStatus": "READY"}})
        node = await api.get_file("gid://shopify/MediaImage/9")
        transport.execute.assert_awaited_once_with(
            GET_FILE, {"id": "gid://shopify/MediaImage/9"}, operation="getFile"
        )
        assert node == {"fileStatus": "READY"}

    @pytest.mark.parametrize("data", [{}, {"node": None}])
    async def test_unknown_id_returns_empty(self, data):
        api, _ = make_api(data)
        assert await api.get_file("gid://shopify/MediaImage/404") == {}


class TestQueries:
    def test_file_create_selects_both_url_shapes(self):
        assert "... on MediaImage { image { url } }" in FILE_CREATE
        assert "... on GenericFile { url }" in FILE_CREATE

    def test_get_file_selects_status(self):
        assert GET_FILE.count("fileStatus") == 2
