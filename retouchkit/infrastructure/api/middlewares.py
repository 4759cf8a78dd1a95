from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from retouchkit.config import get_settings
from retouchkit.domain.errors import (
    CollaboratorError,
    ImageLoadError,
    LicenseError,
    ParameterError,
    SurfaceError,
    WorkerTimeoutError,
)

logger = logging.getLogger(__name__)


def add_default_middlewares(app: FastAPI) -> None:
    # CORS configuration
    # Development and staging allow the usual local frontends
    env = get_settings().env

    if env in ("development", "staging"):
        allowed_origins = [
            "http://localhost:3000",
            "http://localhost:5173",  # Vite default
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ]
    else:
        allowed_origins = ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=allowed_origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _status_for(exc: Exception) -> int:
    if isinstance(exc, (ParameterError, ImageLoadError)):
        return 400
    if isinstance(exc, LicenseError):
        return 402
    if isinstance(exc, WorkerTimeoutError):
        return 504
    # ExportError, ReplayError and other surface failures
    return 500


def add_exception_handlers(app: FastAPI) -> None:
    """Map the retouchkit error taxonomy onto HTTP status codes."""

    async def handle(request: Request, exc: Exception) -> JSONResponse:
        status_code = _status_for(exc)
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    for error in (ParameterError, SurfaceError, CollaboratorError):
        app.add_exception_handler(error, handle)
