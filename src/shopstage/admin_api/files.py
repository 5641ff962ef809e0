"""File API wrappers for the Admin GraphQL API.

:class:`FileAPI` covers the three operations of the staged-upload lifecycle:

1. **Staged upload create** -- reserve a one-time upload target.
2. **File create** -- register the uploaded bytes as a managed file.
3. **Get file** -- query a file node by id to follow its processing.

Each method returns the relevant sub-object of the GraphQL ``data`` member
as-is; interpreting ``userErrors`` is left to the upload stages.
"""

from __future__ import annotations

from typing import Any

from .transport import AdminTransport

STAGED_UPLOADS_CREATE = """
mutation stagedUploadsCreate($input: [StagedUploadInput!]!) {
  stagedUploadsCreate(input: $input) {
    stagedTargets {
      url
      resourceUrl
      parameters { name value }
    }
    userErrors { field message }
  }
}
"""

FILE_CREATE = """
mutation fileCreate($files: [FileCreateInput!]!) {
  fileCreate(files: $files) {
    files {
      id
      fileStatus
      ... on MediaImage { image { url } }
      ... on GenericFile { url }
    }
    userErrors { field message code }
  }
}
"""

GET_FILE = """
query getFile($id: ID!) {
  node(id: $id) {
    ... on MediaImage {
      fileStatus
      image { url }
    }
    ... on GenericFile {
      fileStatus
      url
    }
  }
}
"""


class FileAPI:
    """Async wrapper for the Admin API file operations.

    Parameters
    ----------
    transport:
        A configured :class:`AdminTransport` instance.
    """

    def __init__(self, transport: AdminTransport) -> None:
        self._transport = transport

    async def staged_uploads_create(
        self,
        filename: str,
        mime_type: str,
        resource: str = "PRODUCT_IMAGE",
        http_method: str = "POST",
    ) -> dict[str, Any]:
        """Request a single staged upload target.

        Parameters
        ----------
        filename:
            Name declared for the upload (e.g. ``"preview.png"``).
        mime_type:
            Detected MIME type.
        resource:
            Resource kind the target is created for.
        http_method:
            Method the bytes will be sent with.

        Returns
        -------
        dict
            The ``stagedUploadsCreate`` payload with ``stagedTargets`` and
            ``userErrors``.
        """
        variables = {
            "input": [
                {
                    "filename": filename,
                    "mimeType": mime_type,
                    "resource": resource,
                    "httpMethod": http_method,
                }
            ]
        }
        data = await self._transport.execute(
            STAGED_UPLOADS_CREATE, variables, operation="stagedUploadsCreate"
        )
        return data.get("stagedUploadsCreate") or {}

    async def file_create(
        self,
        original_source: str,
        content_type: str = "IMAGE",
        alt: str | None = None,
    ) -> dict[str, Any]:
        """Register a file from a staged resource URL.

        Returns
        -------
        dict
            The ``fileCreate`` payload with ``files`` and ``userErrors``.
        """
        file_input: dict[str, Any] = {
            "contentType": content_type,
            "originalSource": original_source,
        }
        if alt is not None:
            file_input["alt"] = alt
        data = await self._transport.execute(
            FILE_CREATE, {"files": [file_input]}, operation="fileCreate"
        )
        return data.get("fileCreate") or {}

    async def get_file(self, file_id: str) -> dict[str, Any]:
        """Fetch a file node by id.

        Returns
        -------
        dict
            The node (``fileStatus`` plus ``image.url`` or ``url``), or an
            empty dict if the id resolves to nothing.
        """
        data = await self._transport.execute(
            GET_FILE, {"id": file_id}, operation="getFile"
        )
        return data.get("node") or {}
