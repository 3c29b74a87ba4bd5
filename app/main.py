"""FastAPI app factory for the speech relay."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .config.settings import ConfigurationError, settings
from .controllers import events, speech
from .middleware import StructuredLoggingMiddleware, TelemetryMiddleware

_FULL_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_SHORT_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
_QUIET_LOGGERS = ("botocore", "boto3", "urllib3", "pika", "s3transfer")


def _file_handler(path: str, *, max_bytes: int, fmt: str) -> RotatingFileHandler:
    log_path = Path(path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(log_path, maxBytes=max_bytes, backupCount=5, encoding="utf-8")
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _configure_logging() -> None:
    """Root logs go to stdout and app.log; each pipeline log also gets its own file."""

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(logging.Formatter(_FULL_FORMAT))
    root_logger.addHandler(console)
    root_logger.addHandler(_file_handler(settings.log_file, max_bytes=1_000_000, fmt=_FULL_FORMAT))
    root_logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)

    # Request lines are already formatted and colored by the middleware.
    request_logger = logging.getLogger("app.middleware.structured")
    request_logger.handlers.clear()
    request_console = logging.StreamHandler(sys.stdout)
    request_console.setFormatter(logging.Formatter("%(message)s"))
    request_logger.addHandler(request_console)
    request_logger.setLevel(logging.INFO)
    request_logger.propagate = False

    dedicated_files = {
        "app.services.speech_pipeline": settings.pipeline_log_file,
        "app.logs.transcript": settings.transcript_log_file,
    }
    for name, path in dedicated_files.items():
        stage_logger = logging.getLogger(name)
        stage_logger.handlers.clear()
        stage_logger.addHandler(_file_handler(path, max_bytes=500_000, fmt=_SHORT_FORMAT))
        stage_logger.setLevel(logging.INFO)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def create_app() -> FastAPI:
    """Build the application: middleware, routers, health and metrics endpoints, error handlers."""

    _configure_logging()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        description="Speech-to-speech translation relay",
    )

    app.add_middleware(TelemetryMiddleware)
    app.add_middleware(StructuredLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        expose_headers=["X-Transcription-Job"],
    )

    app.include_router(speech.router)
    app.include_router(events.router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.app_version,
            "status": "operational",
        }

    @app.get("/health", include_in_schema=False)
    async def health_check() -> dict[str, object]:
        """Report whether every required setting is present."""

        missing = settings.missing_runtime_settings()
        return {
            "status": "misconfigured" if missing else "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
            "missing_settings": missing,
        }

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
        logging.getLogger(__name__).error("Misconfigured on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logging.getLogger(__name__).exception("Unhandled error on %s", request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.on_event("startup")
    async def startup_event() -> None:
        settings.ensure_runtime_ready()

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("app.main:app", host=settings.host, port=settings.port, reload=settings.debug)
