"""
Main API module for the shortener.

Responsibilities:
    - Expose HTTP endpoints for shortening (plain text, JSON, batch),
      redirecting, listing and deleting a user's links
    - Resolve the calling user from a signed cookie (see `auth`)
    - Map storage outcomes to status codes (201/409, 307/404/410, 202, 204)
    - Compress responses and log every request

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - Storage backend chosen once from configuration (DSN > file > memory);
      routes only talk to the BaseStorage contract.
    - URL syntax is validated here; the storage layer trusts its input.

Running:
    python main.py -a localhost:8080 -b http://localhost:8080/ -f shortener_data.json
    uvicorn main:create_app --factory
"""

import logging
import sys
import time
from contextlib import asynccontextmanager
from typing import List, Optional, Sequence
from urllib.parse import urlparse

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse
from starlette.concurrency import run_in_threadpool

from auth.dependencies import get_user_id, require_user_id
from auth.middleware import IdentityMiddleware
from shortener import __version__
from shortener.config import Settings, get_settings
from shortener.exceptions import BackendUnavailableError, ShortenerError, ShortURLNotFoundError
from shortener.schemas import BatchRequestItem, BatchResponseItem, ShortenRequest, ShortenResponse, UserURL
from shortener.storage.base import BaseStorage
from shortener.storage.storage_factory import get_storage

log = logging.getLogger("shortener")

INTERNAL_SERVER_ERROR = "Internal Server Error."


def configure_logging(level: str = "INFO") -> None:
    """Basic console logging unless the host process already configured handlers."""
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    log.setLevel(level)


def _is_valid_url(url: str) -> bool:
    """Syntactic check only: http/https scheme and a network location."""
    parsed = urlparse(url)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def create_app(settings: Optional[Settings] = None, storage: Optional[BaseStorage] = None) -> FastAPI:
    """
    Factory function to build and configure a new FastAPI app instance.

    Args:
        settings (Optional[Settings]): Defaults to `get_settings()` (environment).
        storage (Optional[BaseStorage]): Inject a backend; defaults to the one
            selected and bootstrapped by `get_storage(settings)`.

    Returns:
        FastAPI: A fully configured application instance.

    Raises:
        BackendUnavailableError: The configured backend could not be initialized.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    storage = storage if storage is not None else get_storage(settings)
    base_url = settings.base_url

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        try:
            storage.close()
        except ShortenerError:
            log.exception("Could not close storage")

    app = FastAPI(
        title="Shortener",
        description="URL shortener with per-user links and soft deletion",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.storage = storage

    app.add_middleware(IdentityMiddleware, secret=settings.secret_key)
    app.add_middleware(GZipMiddleware, minimum_size=500)

    log.info("Shortener storage backend: %s, base URL: %s", settings.storage_backend, base_url)

    # ----------------------------------------------------------------
    # Middleware & error mapping
    # ----------------------------------------------------------------
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        log.info("%s %s -> %d (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
        return response

    @app.exception_handler(RequestValidationError)
    async def bad_request(request: Request, exc: RequestValidationError) -> PlainTextResponse:
        return PlainTextResponse("Invalid request format", status_code=400)

    @app.exception_handler(ShortenerError)
    async def storage_failure(request: Request, exc: ShortenerError) -> PlainTextResponse:
        log.error("%s %s failed: [%s] %s", request.method, request.url.path, exc.error_code, exc)
        return PlainTextResponse(INTERNAL_SERVER_ERROR, status_code=500)

    def _delete_in_background(user_id: str, codes: List[str]) -> None:
        try:
            deleted = storage.delete_batch(user_id, codes)
        except ShortenerError:
            log.exception("Failed to mark URLs as deleted for user %s", user_id)
            return
        log.info("Deleted %d of %d requested URLs for user %s", len(deleted), len(codes), user_id)

    # ----------------------------------------------------------------
    # Routes
    # ----------------------------------------------------------------
    @app.post("/", status_code=201, response_class=PlainTextResponse)
    async def shorten_text(request: Request, user_id: str = Depends(get_user_id)) -> PlainTextResponse:
        """
        Shorten the URL sent as the raw request body.

        Returns the short URL as text: 201 when newly created, 409 when the
        URL was already shortened (body carries the existing short URL).
        """
        body = (await request.body()).decode("utf-8", errors="replace").strip()
        if not body:
            return PlainTextResponse("Empty body", status_code=400)
        if not _is_valid_url(body):
            return PlainTextResponse("Invalid URL", status_code=400)

        result = await run_in_threadpool(storage.save, user_id, body, base_url)
        return PlainTextResponse(result.short_url, status_code=409 if result.conflict else 201)

    @app.post("/api/shorten", status_code=201, response_model=ShortenResponse)
    def shorten_json(req: ShortenRequest, user_id: str = Depends(get_user_id)) -> JSONResponse:
        """JSON variant of `POST /`: `{"url": ...}` -> `{"result": <short url>}`."""
        if not req.url:
            raise HTTPException(status_code=400, detail="Empty url field")
        if not _is_valid_url(req.url):
            raise HTTPException(status_code=400, detail="Invalid URL")

        result = storage.save(user_id, req.url, base_url)
        return JSONResponse(
            ShortenResponse(result=result.short_url).model_dump(),
            status_code=409 if result.conflict else 201,
        )

    @app.post("/api/shorten/batch", status_code=201, response_model=List[BatchResponseItem])
    def shorten_batch(items: List[BatchRequestItem], user_id: str = Depends(get_user_id)) -> List[BatchResponseItem]:
        """
        Shorten many URLs at once; all are stored or none.

        Each response item echoes the request's correlation_id.
        """
        if not items:
            raise HTTPException(status_code=400, detail="Empty batch")
        if not all(_is_valid_url(item.original_url) for item in items):
            raise HTTPException(status_code=400, detail="Invalid URL in batch")

        shorts = storage.save_batch(user_id, [item.original_url for item in items], base_url)
        return [
            BatchResponseItem(correlation_id=item.correlation_id, short_url=short)
            for item, short in zip(items, shorts)
        ]

    @app.get("/api/user/urls", response_model=List[UserURL])
    def user_urls(user_id: str = Depends(require_user_id)):
        """List the caller's live links; 204 when there are none."""
        entries = storage.load_user_urls(user_id, base_url)
        if not entries:
            return Response(status_code=204)
        return [UserURL(short_url=e.short_url, original_url=e.original_url) for e in entries]

    @app.delete("/api/user/urls", status_code=202)
    def delete_user_urls(
        codes: List[str],
        background_tasks: BackgroundTasks,
        user_id: str = Depends(require_user_id),
    ) -> Response:
        """
        Accept a JSON list of short codes for deletion.

        Deletion runs after the response is sent; codes that belong to other
        users are ignored.
        """
        background_tasks.add_task(_delete_in_background, user_id, codes)
        return Response(status_code=202)

    @app.get("/ping", response_class=PlainTextResponse)
    def ping() -> PlainTextResponse:
        try:
            storage.ping()
        except BackendUnavailableError:
            return PlainTextResponse("DB connection failed", status_code=500)
        return PlainTextResponse("OK")

    @app.get("/version/", response_class=PlainTextResponse)
    def version() -> str:
        return __version__

    @app.get("/{code}")
    def redirect_short_url(code: str) -> Response:
        """Redirect (307) to the original URL; 404 if unknown, 410 if deleted."""
        try:
            url, is_deleted = storage.load_full(code)
        except ShortURLNotFoundError:
            return PlainTextResponse("Short URL not found", status_code=404)
        if is_deleted:
            return PlainTextResponse("URL is gone", status_code=410)
        return RedirectResponse(url=url, status_code=307)

    return app


def run(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entry point: parse flags/env, build the app and serve it with uvicorn."""
    import uvicorn

    settings = get_settings(sys.argv[1:] if argv is None else argv)
    app = create_app(settings)
    host, port = settings.host_port()
    uvicorn.run(app, host=host, port=port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
