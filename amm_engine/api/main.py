"""FastAPI application for the AMM engine.

Note: authentication is out of scope here. The X-Caller header is
trusted as-is and must be set by an authenticating proxy in front of
the service.
"""

import logging
import os

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from amm_engine import __version__
from amm_engine.api.endpoints import router
from amm_engine.api.schemas import ErrorResponse
from amm_engine.errors import (
    AmmError,
    ArithmeticFault,
    AuthorizationError,
    NotFoundError,
    TemporalError,
)

logger = structlog.get_logger()

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("AMM_HOST", "0.0.0.0")
PORT = int(os.environ.get("AMM_PORT", "8000"))
DEBUG = os.environ.get("AMM_DEBUG", "false").lower() in ("true", "1", "yes")

# Maximum request body size (1 MB)
MAX_REQUEST_SIZE = 1024 * 1024

# First matching category wins; anything else is a client error
_STATUS_BY_CATEGORY: list[tuple[type[AmmError], int]] = [
    (NotFoundError, 404),
    (AuthorizationError, 403),
    (TemporalError, 409),
    (ArithmeticFault, 422),
]

app = FastAPI(
    title="AMM Engine",
    description="Constant-product AMM pool ledger and swap engine",
    version=__version__,
)


def status_for(error: AmmError) -> int:
    """HTTP status code for an engine error."""
    for category, status in _STATUS_BY_CATEGORY:
        if isinstance(error, category):
            return status
    return 400


@app.exception_handler(AmmError)
async def handle_amm_error(request: Request, exc: AmmError) -> JSONResponse:
    status = status_for(exc)
    logger.info(
        "request_rejected",
        path=request.url.path,
        status=status,
        error=exc.code.value,
    )
    return JSONResponse(
        status_code=status,
        content=ErrorResponse(error=exc.code.value, detail=exc.message).model_dump(),
    )


@app.middleware("http")
async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with body larger than MAX_REQUEST_SIZE."""
    content_length = request.headers.get("content-length")
    if content_length and int(content_length) > MAX_REQUEST_SIZE:
        return JSONResponse(status_code=413, content={"detail": "Request too large"})
    return await call_next(request)


# Engine errors share one body shape across every route
ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    status: {"model": ErrorResponse} for status in (400, 403, 404, 409)
}

app.include_router(router, responses=ERROR_RESPONSES)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog for console output at the given level."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
    )


def run() -> None:
    """Run the AMM API server.

    Configuration via environment variables:
    - AMM_HOST: Host to bind to (default: 0.0.0.0)
    - AMM_PORT: Port to bind to (default: 8000)
    - AMM_DEBUG: Enable debug logging and reload mode (default: false)
    - AMM_OWNER, AMM_FEE_BPS, ...: engine parameters, see EngineConfig.from_env
    """
    configure_logging("DEBUG" if DEBUG else "INFO")
    uvicorn.run(
        "amm_engine.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
