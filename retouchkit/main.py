from __future__ import annotations

from fastapi import FastAPI

from retouchkit.application.dtos.common_dto import HealthResponse, RootResponse
from retouchkit.config import get_settings
from retouchkit.infrastructure.api.middlewares import add_default_middlewares, add_exception_handlers
from retouchkit.infrastructure.api.routes.history_routes import router as history_router
from retouchkit.infrastructure.api.routes.operation_routes import router as operation_router
from retouchkit.infrastructure.api.routes.render_routes import router as render_router
from retouchkit.infrastructure.api.routes.session_routes import router as session_router
from retouchkit.logging_config import configure_logging


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="RetouchKit",
        version="0.1.0",
        description="""
        ## RetouchKit API

        Non-destructive raster image editing over HTTP, built on NumPy and Pillow.

        ### Features
        - **Sessions**: Upload a source image once; it is never modified
        - **Operations**: Crop, resize, text and shape overlays, ten filters and
          five tonal adjustments, recorded in order
        - **History**: Linear undo/redo; appending after an undo drops the redo branch
        - **Rendering**: The active history is replayed over the source on every
          render and exported as PNG, JPEG or WEBP

        ### Error Responses
        - **400 Bad Request**: Invalid operation parameters or undecodable image
        - **404 Not Found**: Session does not exist
        - **422 Unprocessable Entity**: Validation error in request body
        - **500 Internal Server Error**: Render or export failure
        """,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )
    add_default_middlewares(app)
    add_exception_handlers(app)

    @app.get(
        "/",
        response_model=RootResponse,
        summary="API Root",
        description="Get basic information about the RetouchKit API",
    )
    def root():
        """Get API root information."""
        return {"status": "ok", "service": "retouchkit", "version": app.version}

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health Check",
        description="Check if the API service is running and healthy",
    )
    def health():
        """Check API health status."""
        return {"status": "healthy"}

    app.include_router(session_router)
    app.include_router(operation_router)
    app.include_router(history_router)
    app.include_router(render_router)
    return app


app = create_app()
