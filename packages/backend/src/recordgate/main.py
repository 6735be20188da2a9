"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. The auth configuration is frozen here, once: a TokenConfig
built from settings, the TokenCodec around it and the AuthGate around
that, all stored on app.state. Nothing rebuilds or mutates them later.

Domain errors (recordgate.errors) are rendered by one exception handler
as {"kind": ..., "message": ...} with the status code each kind maps to.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from recordgate import __version__
from recordgate.api import api_router
from recordgate.auth.dependencies import AuthGate
from recordgate.auth.jwt import TokenCodec, TokenConfig
from recordgate.config import Settings, settings
from recordgate.errors import (
    MissingCredential,
    RecordGateError,
    StoreError,
    ValidationError,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs
    at shutdown.
    """
    logger.info(
        "recordgate.starting",
        version=__version__,
        environment=app.state.environment,
    )

    yield

    logger.info("recordgate.shutdown")

    from recordgate.db.engine import engine
    await engine.dispose()


async def handle_domain_error(request: Request, exc: RecordGateError) -> JSONResponse:
    if isinstance(exc, StoreError):
        # Adapter detail is logged, never returned.
        logger.error("request.store_error", path=request.url.path, detail=exc.detail)
    else:
        logger.info("request.rejected", path=request.url.path, kind=exc.kind)

    headers = None
    if isinstance(exc, MissingCredential):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code, content=exc.to_dict(), headers=headers
    )


async def handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies are a plain validation_error (400)."""
    err = ValidationError("Malformed request body")
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    cfg = app_settings or settings

    app = FastAPI(
        title="RecordGate",
        description="Role-scoped record submission API",
        version=__version__,
        lifespan=lifespan,
    )

    codec = TokenCodec(TokenConfig.from_settings(cfg))
    app.state.token_codec = codec
    app.state.auth_gate = AuthGate(codec)
    app.state.bcrypt_rounds = cfg.bcrypt_rounds
    app.state.environment = cfg.environment

    app.add_exception_handler(RecordGateError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RequestId → Security → handler

    from recordgate.middleware.request_id import RequestIdMiddleware
    from recordgate.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: recordgate.main:app)
app = create_app()
