"""Full error hierarchy for shopstage.

Every error class inherits from :class:`ShopstageError`.  Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, an optional ``cause``
(chained exception), and the HTTP status the service answers with when the
error ends a request (``http_status``).

Error codes are defined as a :class:`str` enum so that they serialise
naturally to JSON and can be matched with simple ``==`` comparisons.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error shopstage can raise."""

    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    MISSING_FILE = "MISSING_FILE"
    IMAGE_SIZE_ERROR = "IMAGE_SIZE_ERROR"
    IMAGE_TYPE_ERROR = "IMAGE_TYPE_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    USER_ERROR = "USER_ERROR"
    STAGED_TARGET_MISSING = "STAGED_TARGET_MISSING"
    UPLOAD_TRANSPORT_ERROR = "UPLOAD_TRANSPORT_ERROR"
    PROCESSING_FAILED = "PROCESSING_FAILED"
    ADMIN_API_ERROR = "ADMIN_API_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class ShopstageError(Exception):
    """Base exception for all shopstage errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A client-facing description of what went wrong.  This is the text
        placed in the ``error`` field of the JSON envelope.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys and expected types are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    http_status: int = 500

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Client input errors
# ---------------------------------------------------------------------------

class ShopstageMethodNotAllowedError(ShopstageError):
    """The endpoint was called with a method other than ``POST``.

    Context keys: ``method``.
    """

    http_status = 405

    def __init__(
        self,
        message: str = "Method not allowed",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.METHOD_NOT_ALLOWED,
            message=message,
            context=context,
            cause=cause,
        )


class ShopstageMissingFileError(ShopstageError):
    """The multipart body carried no ``file`` field, or an empty one."""

    http_status = 400

    def __init__(
        self,
        message: str = "Missing or empty file",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.MISSING_FILE,
            message=message,
            context=context,
            cause=cause,
        )


class ShopstageImageError(ShopstageError):
    """Base for content validation failures.

    Context keys: ``size_bytes``, ``max_bytes``.
    """

    http_status = 400


class ShopstageImageSizeError(ShopstageImageError):
    """The declared upload size exceeds the configured maximum."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.IMAGE_SIZE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ShopstageImageTypeError(ShopstageImageError):
    """The leading bytes match none of the accepted image signatures."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.IMAGE_TYPE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------

class ShopstageAuthError(ShopstageError):
    """Neither a trusted app-proxy session nor a valid direct secret was found.

    Context keys: ``reason``, ``shop``.
    """

    http_status = 401

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.AUTH_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Upstream (Admin API / storage) errors
# ---------------------------------------------------------------------------

class ShopstageUserError(ShopstageError):
    """The Admin API rejected a mutation with field-level user errors.

    The message is the comma-joined list of upstream messages.

    Context keys: ``operation``, ``user_errors``.
    """

    http_status = 400

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.USER_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ShopstageStagingError(ShopstageError):
    """The staged target came back without an upload URL or resource URL."""

    http_status = 500

    def __init__(
        self,
        message: str = "Staged upload target missing",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.STAGED_TARGET_MISSING,
            message=message,
            context=context,
            cause=cause,
        )


class ShopstageUploadTransportError(ShopstageError):
    """The storage endpoint answered the staged upload with a non-2xx status.

    Context keys: ``status_code``, ``url``.
    """

    http_status = 502

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.UPLOAD_TRANSPORT_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ShopstageProcessingError(ShopstageError):
    """The Admin API reported the registered file as ``FAILED``.

    Context keys: ``file_id``, ``attempt``.
    """

    http_status = 502

    def __init__(
        self,
        message: str = "File processing failed",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.PROCESSING_FAILED,
            message=message,
            context=context,
            cause=cause,
        )


class ShopstageAdminAPIError(ShopstageError):
    """The Admin GraphQL endpoint returned a non-2xx status or top-level errors.

    Context keys: ``status_code``, ``errors``.
    """

    http_status = 500

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.ADMIN_API_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ShopstageNetworkError(ShopstageError):
    """A connection or timeout failure prevented a response from arriving.

    Context keys: ``url``.
    """

    http_status = 500

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NETWORK_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ShopstageInternalError(ShopstageError):
    """Wraps any unexpected exception raised while handling an upload.

    Context keys: ``stage``, ``exception_type``.
    """

    http_status = 500

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.INTERNAL_ERROR,
            message=message,
            context=context,
            cause=cause,
        )
