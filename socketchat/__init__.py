# Uvicorn application factory <https://www.uvicorn.org/#application-factories>
import os
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.middleware.gzip import GZipMiddleware

from socketchat.logging import logger
from socketchat.managers.broadcast_router import BroadcastRouter
from socketchat.managers.session_registry import SessionRegistry
from socketchat.managers.websocket_connection_manager import ConnectionManager
from socketchat.middlewares.correlation_id import CorrelationIDMiddleware
from socketchat.middlewares.rate_limit import RateLimitMiddleware
from socketchat.middlewares.security_headers import SecurityHeadersMiddleware
from socketchat.routing import collect_subrouters
from socketchat.settings import app_settings
from socketchat.utils.error_handler import (
    not_found_handler,
    unhandled_exception_handler,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application startup and shutdown.

    On shutdown every connected client receives `server-shutdown` and its
    connection is closed once the notice has been written.
    """
    logger.info(
        f"Server started (version {app_settings.APP_VERSION}, "
        f"environment {app_settings.ENVIRONMENT}, pid {os.getpid()})"
    )
    yield

    logger.info("Received shutdown signal, closing connections...")
    await app.state.broadcast_router.shutdown()
    logger.info("Application shutdown complete")


def application() -> FastAPI:
    """
    Initializes and configures the FastAPI application.

    Each call builds an independent chat room: a fresh session registry and
    connection manager are owned by the app's broadcast router
    (`app.state.broadcast_router`), so tests can run isolated instances.

    The function includes the routers collected by
    `socketchat.routing.collect_subrouters()`, mounts the client's static
    files, installs the 404 fallback and 500 handlers and adds the following
    middleware:
    - `CorrelationIDMiddleware`: Request correlation IDs.
    - `CORSMiddleware`: Cross-origin access for the configured origins.
    - `SecurityHeadersMiddleware`: Security response headers.
    - `RateLimitMiddleware`: Per-IP rate limit on the JSON API.
    - `GZipMiddleware`: Response compression.
    """
    app = FastAPI(
        title="SocketChat",
        description="Real-time chat room over WebSocket",
        version=app_settings.APP_VERSION,
        lifespan=lifespan,
    )

    app.state.started_at = time.monotonic()
    app.state.broadcast_router = BroadcastRouter(
        SessionRegistry(), ConnectionManager()
    )

    app.include_router(collect_subrouters())

    if os.path.isdir(app_settings.STATIC_DIR):
        app.mount(
            "/static",
            StaticFiles(directory=app_settings.STATIC_DIR),
            name="static",
        )

    app.add_exception_handler(404, not_found_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Middlewares (execute in REVERSE order of registration)
    # Execution flow: CorrelationIDMiddleware → CORSMiddleware → SecurityHeadersMiddleware → RateLimitMiddleware → GZipMiddleware
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_middleware(CorrelationIDMiddleware)

    return app


app = application()  # Need for fastapi cli
