#!/usr/bin/env python3
"""
Tidewise - FastAPI web application serving offline tide predictions

This module builds the FastAPI application: the durable stores are opened
and the tide calculation service is initialized in the lifespan handler.
"""

# Standard library imports
import contextlib
import logging
import os
import signal
from typing import Any, AsyncGenerator, Awaitable, Callable

# Third-party imports
import fastapi
import uvicorn
from fastapi import Request, Response

# Local imports
from tidewise import api
from tidewise.config import DEFAULT_CONFIG
from tidewise.logging_utils import setup_logging
from tidewise.stores.sql import (
    SqlCacheStore,
    SqlRegionStore,
    create_store_engine,
    create_tables,
)

DATABASE_URL_ENV = "TIDEWISE_DATABASE_URL"


@contextlib.asynccontextmanager
async def lifespan(app: fastapi.FastAPI) -> AsyncGenerator[None, None]:
    """Open the database and initialize the tide service during startup.

    Args:
        app: The FastAPI application instance

    Yields:
        None when setup is complete
    """
    database_url = os.environ.get(DATABASE_URL_ENV, DEFAULT_CONFIG.database_url)
    logging.info(f"[main] Using database {database_url}")
    engine = create_store_engine(database_url)
    create_tables(engine)

    await api.initialize_tide_service(
        app,
        region_store=SqlRegionStore(engine),
        cache_store=SqlCacheStore(engine),
        config=DEFAULT_CONFIG,
    )
    yield
    logging.info("[main] Shutting down, releasing database connections")
    engine.dispose()


app = fastapi.FastAPI(lifespan=lifespan)


# Sent with every /api/ response
NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@app.middleware("http")
async def add_cache_control_headers(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Mark API responses as uncacheable; predictions depend on the request time."""
    response = await call_next(request)
    if request.url.path.startswith("/api/"):
        response.headers.update(NO_CACHE_HEADERS)
    return response


# Register API routes
api.register_routes(app)


def setup_signal_handlers() -> None:
    """Log SIGTERM before delegating to the original handler.

    Note: SIGINT is left alone since uvicorn relies on the default Ctrl+C behavior.
    """
    original_sigterm_handler = signal.getsignal(signal.SIGTERM)

    def sigterm_handler(sig: int, frame: Any) -> None:
        logging.warning("Received SIGTERM signal, beginning shutdown")
        if callable(original_sigterm_handler):
            original_sigterm_handler(sig, frame)

    signal.signal(signal.SIGTERM, sigterm_handler)


def start_app() -> fastapi.FastAPI:
    """Configure logging and return the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    setup_logging()
    logging.info("[main] Starting tidewise")
    setup_signal_handlers()
    return app


if __name__ == "__main__":
    logging.info("Running uvicorn app")
    uvicorn.run(
        "tidewise.main:start_app",
        factory=True,
        host="0.0.0.0",
        port=int(os.environ.get("PORT", 8080)),
        log_level="info",
    )
