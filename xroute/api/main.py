"""FastAPI application for the route planner.

Note: Authentication and rate limiting are not implemented at the application
level. They belong to the infrastructure layer (reverse proxy / gateway).
"""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from xroute import __version__
from xroute.api.endpoints import get_default_oracle, router

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("XROUTE_HOST", "0.0.0.0")
PORT = int(os.environ.get("XROUTE_PORT", "8000"))
DEBUG = os.environ.get("XROUTE_DEBUG", "false").lower() in ("true", "1", "yes")
LOG_LEVEL = os.environ.get("XROUTE_LOG_LEVEL", "DEBUG" if DEBUG else "INFO").upper()

# Maximum request body size (1 MB); planning requests are small
MAX_REQUEST_SIZE = 1024 * 1024


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Configure structlog for the server process."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping().get(level, logging.INFO)
        ),
    )


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    yield
    # Release HTTP clients held by live providers, if the default oracle was built
    if get_default_oracle.cache_info().currsize:
        await get_default_oracle().aclose()


app = FastAPI(
    title="xroute",
    description="Cross-chain route planning and liquidity aggregation",
    version=__version__,
    lifespan=lifespan,
)


@app.middleware("http")
async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with body larger than MAX_REQUEST_SIZE."""
    content_length = request.headers.get("content-length")
    if content_length and int(content_length) > MAX_REQUEST_SIZE:
        return JSONResponse(status_code=413, content={"detail": "Request too large"})
    return await call_next(request)


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


def run() -> None:
    """Run the API server.

    Configuration via environment variables:
    - XROUTE_HOST: Host to bind to (default: 0.0.0.0)
    - XROUTE_PORT: Port to bind to (default: 8000)
    - XROUTE_DEBUG: Enable debug/reload mode (default: false)
    - XROUTE_LOG_LEVEL: Log level (default: INFO, DEBUG when XROUTE_DEBUG is set)
    """
    configure_logging(LOG_LEVEL)
    uvicorn.run(
        "xroute.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
