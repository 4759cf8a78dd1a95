from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from retouchkit.application.dtos.common_dto import ErrorResponse
from retouchkit.infrastructure.api.dependencies import get_session
from retouchkit.infrastructure.sessions.session_repository import EditingSession

router = APIRouter(
    prefix="/sessions/{session_id}",
    tags=["Rendering"],
    responses={
        400: {"description": "Bad Request - Unsupported format", "model": ErrorResponse},
        404: {"description": "Not Found - Session does not exist", "model": ErrorResponse},
        500: {"description": "Render or export failed", "model": ErrorResponse},
    },
)


@router.get(
    "/render",
    summary="Render",
    description="""
    Replay the active history over the source and return the encoded result.

    Without a valid license the output carries an "UNLICENSED" watermark;
    the `X-Watermarked` header reports whether it was applied.
    """,
    response_class=Response,
    responses={200: {"content": {"image/png": {}, "image/jpeg": {}, "image/webp": {}}}},
)
def render(
    session: EditingSession = Depends(get_session),
    format: str = Query("image/png", description="png, jpeg, webp or a full mime type"),
    quality: float | None = Query(None, gt=0, le=1, description="Lossy quality in (0, 1]"),
):
    with session.lock:
        result = session.editor.export(format, quality)
    return Response(
        content=result.data,
        media_type=result.mime_type,
        headers={
            "X-Image-Width": str(result.width),
            "X-Image-Height": str(result.height),
            "X-Watermarked": "1" if result.watermarked else "0",
        },
    )
