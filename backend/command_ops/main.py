# backend/command_ops/main.py
from __future__ import annotations

import logging
import os
import uuid
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from command_ops.db import healthcheck
from command_ops.errors import AppError, DatabaseError, RateLimitError, ValidationError
from command_ops.rate_limit import RateLimiter, create_rate_limiter
from command_ops.services.analytics import AnalyticsCache

from command_ops.routers.missions import router as missions_router
from command_ops.routers.quests import router as quests_router
from command_ops.routers.archive import router as archive_router
from command_ops.routers.analytics import router as analytics_router
from command_ops.routers.feedback import router as feedback_router
from command_ops.routers.onboarding import router as onboarding_router
from command_ops.routers.profile import router as profile_router

APP_VERSION = os.getenv("APP_VERSION", "0.1.0")

log = logging.getLogger("command_ops")
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _envelope(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    retryable: bool = False,
    details: Any = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    rid = getattr(request.state, "request_id", None)
    headers = dict(headers or {})
    if rid:
        headers["X-Request-Id"] = rid
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "request_id": rid,
            "retryable": retryable,
            "details": details,
        },
        headers=headers,
    )


def _plain_errors(errors) -> list:
    # ctx/input may hold objects that aren't JSON-serializable
    return [{k: v for k, v in e.items() if k not in ("ctx", "input", "url")} for e in errors]


def build_app(
    rate_limiter: Optional[RateLimiter] = None,
    analytics_cache: Optional[AnalyticsCache] = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.rate_limiter.close()
        app.state.analytics_cache.close()

    app = FastAPI(title="Command Ops API", version=APP_VERSION, lifespan=lifespan)
    app.state.rate_limiter = rate_limiter or create_rate_limiter()
    app.state.analytics_cache = analytics_cache or AnalyticsCache()

    # CORS
    frontend_origin = os.getenv("FRONTEND_ORIGIN", "http://localhost:3000")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[frontend_origin],
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1|0\.0\.0\.0)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id", "Retry-After"],
        max_age=600,
    )

    @app.middleware("http")
    async def _request_id(request: Request, call_next):
        rid = request.headers.get("X-Request-Id") or uuid.uuid4().hex.upper()
        request.state.request_id = rid
        log.info("request start %s %s rid=%s", request.method, request.url.path, rid)
        resp = await call_next(request)
        resp.headers["X-Request-Id"] = rid
        log.info("request end %s %s -> %s rid=%s", request.method, request.url.path, resp.status_code, rid)
        return resp

    # Errors
    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            log.error("%s: %s context=%s", exc.code, exc, exc.context)
        else:
            log.info("%s: %s", exc.code, exc)
        headers = None
        if isinstance(exc, RateLimitError) and exc.retry_after:
            headers = {"Retry-After": str(exc.retry_after)}
        details = exc.details if isinstance(exc, ValidationError) else None
        return _envelope(request, exc.status_code, exc.code, exc.user_message, exc.retryable, details, headers)

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError):
        errors = _plain_errors(exc.errors())
        return _envelope(
            request, 422, ValidationError.code, "Request validation failed", False, errors
        )

    @app.exception_handler(SQLAlchemyError)
    async def _db_error(request: Request, exc: SQLAlchemyError):
        log.exception("database error")
        err = DatabaseError(exc)
        return _envelope(request, err.status_code, err.code, err.user_message, err.retryable)

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        log.exception("unhandled error on %s %s", request.method, request.url.path)
        return _envelope(request, 500, "internal_error", "internal server error", False, {"type": type(exc).__name__})

    # Health
    @app.get("/health")
    def health():
        try:
            healthcheck()
            db = "ok"
        except SQLAlchemyError:
            log.exception("health check: database unreachable")
            db = "error"
        return {"ok": db == "ok", "db": db}

    app.include_router(missions_router)
    app.include_router(quests_router)
    app.include_router(archive_router)
    app.include_router(analytics_router)
    app.include_router(feedback_router)
    app.include_router(onboarding_router)
    app.include_router(profile_router)

    return app


app = build_app()
