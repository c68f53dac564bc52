from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError

from .config import get_settings
from .routers import webhook
from .services.error_handling import (
    AppError,
    build_error_response,
    log_exception,
    map_exception_to_error_code,
    new_trace_id,
)
from .services.session_store import SessionStore, get_session_store

logger = logging.getLogger(__name__)


async def sweep_idle_sessions(store: SessionStore, interval_seconds: float) -> None:
    """Periodically evict idle sessions until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            store.evict_expired()
        except Exception:  # pragma: no cover - keep the sweeper alive
            logger.exception("Session sweep failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    store = get_session_store()
    sweeper: asyncio.Task | None = None
    if settings.session_idle_ttl_seconds and settings.session_sweep_interval_seconds > 0:
        sweeper = asyncio.create_task(sweep_idle_sessions(store, settings.session_sweep_interval_seconds))
        logger.info(
            "Session sweeper started (ttl=%ss interval=%ss)",
            settings.session_idle_ttl_seconds,
            settings.session_sweep_interval_seconds,
        )
    try:
        yield
    finally:
        if sweeper is not None:
            sweeper.cancel()
            with suppress(asyncio.CancelledError):
                await sweeper


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="Media Assistant Gateway",
        version=settings.service_version,
        docs_url="/docs" if settings.debug else None,
        lifespan=lifespan,
    )

    @app.get("/health")
    async def health() -> dict[str, object]:
        return {"status": "ok", "sessions": get_session_store().session_count()}

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        trace_id = new_trace_id()
        await log_exception(request=request, exc=exc, trace_id=trace_id, handled=True)
        error_code, reason, status_code = map_exception_to_error_code(exc)
        return build_error_response(
            error_code=error_code,
            reason=reason,
            status_code=status_code,
            debug_payload={"trace_id": trace_id},
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        trace_id = new_trace_id()
        await log_exception(request=request, exc=exc, trace_id=trace_id, handled=True)
        error_code, reason, status_code = map_exception_to_error_code(exc)
        return build_error_response(
            error_code=error_code,
            reason=reason,
            status_code=status_code,
            debug_payload={"trace_id": trace_id},
        )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        trace_id = new_trace_id()
        await log_exception(request=request, exc=exc, trace_id=trace_id, handled=True)
        error_code, reason, status_code = map_exception_to_error_code(exc)
        debug_payload = {"trace_id": trace_id}
        if exc.debug:
            debug_payload.update(exc.debug)
        return build_error_response(
            error_code=error_code,
            reason=reason,
            status_code=status_code,
            debug_payload=debug_payload,
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        trace_id = new_trace_id()
        await log_exception(request=request, exc=exc, trace_id=trace_id, handled=False)
        error_code, reason, status_code = map_exception_to_error_code(exc)
        return build_error_response(
            error_code=error_code,
            reason=reason,
            status_code=status_code,
            debug_payload={"trace_id": trace_id},
        )

    app.include_router(webhook.router)
    if settings.langsmith_api_key and settings.langsmith_tracing_v2:
        logger.info(
            "LangSmith tracing enabled for project=%s",
            settings.langsmith_project or "media-assistant-gateway",
        )
    else:
        logger.info("LangSmith tracing disabled (no API key or flag)")
    logger.info("FastAPI app initialized (env=%s search_backend=%s)", settings.env, settings.search_backend)
    return app


app = create_app()
