"""FastAPI application exposing the upload endpoint.

Routes
------
``OPTIONS`` on any path
    204 with CORS headers reflecting the caller's ``Origin``.
``GET`` on the endpoint
    405 with a usage hint.
Any other method on a known path
    405 in the same JSON envelope, with CORS headers.
``POST`` on the endpoint (``multipart/form-data`` with field ``file``)
    Authorize, validate and forward the image; always one JSON envelope.
``GET /healthz``
    Liveness probe.

Usage::

    from shopstage import ShopstageConfig, create_app

    app = create_app(ShopstageConfig.from_env())
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, Response
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from shopstage.admin_api import AdminClient
from shopstage.auth import UNAUTHORIZED_MESSAGE, AuthRequest, build_authorizer
from shopstage.config import ShopstageConfig
from shopstage.errors import (
    ShopstageAuthError,
    ShopstageError,
    ShopstageMethodNotAllowedError,
    ShopstageMissingFileError,
)
from shopstage.image.validate import SNIFF_BYTES
from shopstage.models import AdminSession, OrchestrationOutcome, UploadCandidate
from shopstage.observability import NoopMetricsHook, get_logger, set_level
from shopstage.upload import UploadPipeline
from shopstage.upload.poll import Sleep

log = get_logger("shopstage.app")

ALLOWED_METHODS = "POST, OPTIONS"
ALLOWED_HEADERS = "Content-Type, X-Engraving-Direct-Secret, X-Shop-Domain"

GET_NOT_ALLOWED_MESSAGE = "Method not allowed. Use POST with form field 'file'."

ClientFactory = Callable[[AdminSession], Any]


def cors_headers(request: Request) -> dict[str, str]:
    """Permissive CORS headers that reflect the request's ``Origin``."""
    origin = request.headers.get("origin")
    headers = {
        "Access-Control-Allow-Origin": origin or "*",
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
    }
    if origin:
        headers["Vary"] = "Origin"
    return headers


def json_response(outcome: OrchestrationOutcome, request: Request) -> JSONResponse:
    return JSONResponse(
        content=outcome.body,
        status_code=outcome.status_code,
        headers=cors_headers(request),
    )


async def read_candidate(upload: Any, max_bytes: int) -> UploadCandidate:
    """Turn the ``file`` form value into an :class:`UploadCandidate`.

    Oversized uploads are only read up to the sniffed prefix; the validator
    rejects them on their declared size.

    Raises
    ------
    ShopstageMissingFileError
        If *upload* is absent, not a file part, or empty.
    """
    if not isinstance(upload, UploadFile):
        raise ShopstageMissingFileError()

    declared = upload.size
    if declared is not None and declared > max_bytes:
        data = await upload.read(SNIFF_BYTES)
    else:
        data = await upload.read()
    size = declared if declared is not None else len(data)

    if size == 0 or not data:
        raise ShopstageMissingFileError()
    return UploadCandidate(data=data, size=size, filename=upload.filename)


def create_app(
    config: ShopstageConfig | None = None,
    *,
    authorizer: Any | None = None,
    client_factory: ClientFactory | None = None,
    sleep: Sleep = asyncio.sleep,
) -> FastAPI:
    """Build the FastAPI application.

    Parameters
    ----------
    config:
        Service configuration.  Read from the environment when omitted.
    authorizer:
        Object with an async ``authorize(AuthRequest)`` method.  Defaults to
        the app-proxy then direct-secret chain built from *config*.
    client_factory:
        Callable turning an :class:`AdminSession` into an async context
        manager exposing ``files`` and ``storage``.  Defaults to
        :class:`~shopstage.admin_api.AdminClient`.
    sleep:
        Coroutine function awaited between poll attempts.
    """
    config = config if config is not None else ShopstageConfig.from_env()
    authorizer = authorizer if authorizer is not None else build_authorizer(config)
    if client_factory is None:
        def client_factory(session: AdminSession) -> AdminClient:
            return AdminClient(config, session)

    metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
    set_level(config.log_level)

    app = FastAPI(title="shopstage", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.config = config

    async def handle_upload(request: Request) -> OrchestrationOutcome:
        form = await request.form()
        try:
            form_shop = form.get("shop")
            auth_request = AuthRequest(
                query=request.query_params.multi_items(),
                headers=request.headers,
                form_shop=form_shop if isinstance(form_shop, str) else None,
            )
            try:
                session = await authorizer.authorize(auth_request)
            except ShopstageAuthError as exc:
                return OrchestrationOutcome.from_error(exc)
            if session is None:
                return OrchestrationOutcome.from_error(
                    ShopstageAuthError(message=UNAUTHORIZED_MESSAGE)
                )

            try:
                candidate = await read_candidate(form.get("file"), config.max_upload_bytes)
            except ShopstageError as exc:
                return OrchestrationOutcome.from_error(exc)

            async with client_factory(session) as admin:
                pipeline = UploadPipeline(config, admin.files, admin.storage, sleep=sleep)
                return await pipeline.run(candidate)
        finally:
            await form.close()

    @app.options("/{full_path:path}")
    async def preflight(request: Request, full_path: str) -> Response:
        return Response(status_code=204, headers=cors_headers(request))

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get(config.endpoint_path)
    async def upload_get(request: Request) -> JSONResponse:
        error = ShopstageMethodNotAllowedError(
            message=GET_NOT_ALLOWED_MESSAGE,
            context={"method": request.method},
        )
        return json_response(OrchestrationOutcome.from_error(error), request)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> Response:
        if exc.status_code != 405:
            return await http_exception_handler(request, exc)
        error = ShopstageMethodNotAllowedError(context={"method": request.method})
        return json_response(OrchestrationOutcome.from_error(error), request)

    @app.post(config.endpoint_path)
    async def upload_post(request: Request) -> JSONResponse:
        t0 = time.monotonic()
        try:
            outcome = await handle_upload(request)
        except Exception as exc:
            log.error(
                "Upload request failed",
                exc_info=True,
                extra={"extra_fields": {"op": "upload", "path": request.url.path}},
            )
            outcome = OrchestrationOutcome(500, {"error": str(exc) or "Upload failed"})

        elapsed_ms = (time.monotonic() - t0) * 1000
        tags = {"status": str(outcome.status_code)}
        metrics.increment("shopstage.requests_total", tags=tags)
        metrics.timing("shopstage.request_duration_ms", elapsed_ms, tags=tags)
        log.info(
            "Upload request handled",
            extra={
                "extra_fields": {
                    "op": "upload",
                    "status_code": outcome.status_code,
                    "pending": outcome.is_pending,
                    "duration_ms": round(elapsed_ms, 1),
                }
            },
        )
        return json_response(outcome, request)

    return app
