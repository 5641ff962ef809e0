"""shopstage.admin_api -- Admin API transport and endpoint wrappers.

This sub-package provides:

* :mod:`.transport` -- async GraphQL transport bound to one shop session.
* :mod:`.files` -- staged upload, file create and file node queries.
* :mod:`.storage` -- multipart POST to staged upload targets.
* :mod:`.client` -- per-request bundle of the above.
"""

from __future__ import annotations

from .client import AdminClient
from .files import FileAPI
from .storage import StorageUploader, build_multipart_fields
from .transport import AdminTransport, graphql_url

__all__ = [
    "AdminClient",
    "AdminTransport",
    "FileAPI",
    "StorageUploader",
    "build_multipart_fields",
    "graphql_url",
]
