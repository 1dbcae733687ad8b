"""HTTP server entry point for wplookup."""

from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException

from wplookup.api import create_api_router
from wplookup.api.endpoints import error_response
from wplookup.config import Config, get_config
from wplookup.version import VERSION

RATE_LIMITED = "Too many requests from this IP, please try again later."
NOT_FOUND = "Endpoint not found"

_file_sink_id: int | None = None


def configure_logging(config: Config) -> Path:
    """Add the rotating file sink (10 MB per file, 5 old files kept).

    Calling it again replaces the previous file sink.

    Returns:
        Log file path
    """
    global _file_sink_id

    log_path = Path(config.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    if _file_sink_id is not None:
        logger.remove(_file_sink_id)

    _file_sink_id = logger.add(
        log_path,
        rotation="10 MB",
        retention=5,
        level=config.log_level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        backtrace=True,
        diagnose=False,
    )
    logger.info(f"Logging to file: {log_path}")
    return log_path


def create_app(config: Config | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Application configuration (defaults to the global one)
    """
    config = config or get_config()

    app = FastAPI(title="wplookup", version=VERSION)

    limiter = Limiter(key_func=get_remote_address, enabled=config.rate_limit_enabled)
    app.state.limiter = limiter

    # Open CORS, like the service this replaces
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        logger.warning(f"Rate limit exceeded for {get_remote_address(request)}: {exc.detail}")
        return error_response(429, RATE_LIMITED)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_response(404, NOT_FOUND)
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return error_response(400, str(exc))

    app.include_router(create_api_router(config, limiter))
    logger.info(f"REST API configured (rate limit on search: {config.rate_limit})")
    return app


def main() -> None:
    """Run the HTTP server."""
    config = get_config()
    configure_logging(config)

    logger.info(f"Starting wplookup server on {config.host}:{config.port}")
    app = create_app(config)
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
