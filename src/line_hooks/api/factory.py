"""FastAPI application factory."""

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from line_hooks.config import APP_VERSION, AppConfig
from line_hooks.dispatch.dispatcher import EventDispatcher
from line_hooks.log import get_logger

from .routes import health, webhook

logger = get_logger(__name__)


def create_app(
    config: AppConfig,
    dispatcher: EventDispatcher,
    on_shutdown=None,
) -> FastAPI:
    """Create the HTTP app around an already wired dispatcher.

    Args:
        config: Application configuration.
        dispatcher: Event dispatcher the webhook route hands deliveries to.
        on_shutdown: Optional coroutine function run when the server stops,
            after in-flight workflows have drained.

    Returns:
        Configured FastAPI application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await dispatcher.wait_idle()
        if on_shutdown is not None:
            await on_shutdown()

    app = FastAPI(
        title="LINE Hooks",
        version=APP_VERSION,
        docs_url="/docs" if config.is_development else None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.dispatcher = dispatcher
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in config.server.cors_origin.split(",")],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={"error": "Route not found", "path": request.url.path},
            )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": "Invalid request", "details": exc.errors()})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_exception", path=request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Something went wrong!",
                "message": str(exc) if config.is_development else "Internal server error",
            },
        )

    @app.get("/")
    async def root() -> dict:
        return {
            "message": "Welcome to LINE Hooks API",
            "version": APP_VERSION,
            "status": "running",
            "endpoints": {
                "health": "/health",
                "lineWebhook": "/line-webhook",
            },
        }

    app.include_router(health.router)
    app.include_router(webhook.router)

    return app
