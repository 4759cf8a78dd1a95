from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import Response

from retouchkit.application.dtos.common_dto import ErrorResponse
from retouchkit.application.dtos.session_dto import (
    DeleteSessionResponse,
    SessionSummary,
    UploadSessionResponse,
)
from retouchkit.application.editor import PhotoEditor
from retouchkit.application.use_cases.export_image import ExportImageUseCase
from retouchkit.config import get_settings
from retouchkit.domain.entities.surface import Surface
from retouchkit.domain.services.replay_engine import ReplayEngine
from retouchkit.domain.services.validators import validate_dimensions
from retouchkit.infrastructure.api.dependencies import (
    get_exporter,
    get_image_loader,
    get_replay_engine,
    get_session,
    get_session_repo,
)
from retouchkit.infrastructure.imaging.image_encoder import ImageEncoder
from retouchkit.infrastructure.imaging.image_loader import ImageLoader
from retouchkit.infrastructure.sessions.session_repository import EditingSession, SessionRepository

router = APIRouter(
    prefix="/sessions",
    tags=["Editing Sessions"],
    responses={
        404: {"description": "Not Found - Session does not exist", "model": ErrorResponse},
        422: {"description": "Validation Error - Invalid request format"},
    },
)


def session_summary(session: EditingSession) -> SessionSummary:
    editor = session.editor
    width, height = editor.size
    history = editor.history
    return SessionSummary(
        id=session.id,
        original_filename=session.original_filename,
        format=editor.source.metadata.format,
        source_width=editor.source.width,
        source_height=editor.source.height,
        width=width,
        height=height,
        history_length=len(history),
        cursor=history.cursor,
        can_undo=history.can_undo(),
        can_redo=history.can_redo(),
        created_at=session.created_at,
    )


@router.post(
    "/upload",
    response_model=UploadSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload Source Image",
    description="""
    Upload an image and open an editing session on it.

    **Supported formats**: anything Pillow decodes (JPEG, PNG, GIF, BMP, TIFF, WEBP)

    The source is converted to RGBA once and never modified; every edit is
    recorded as an operation and replayed over it on render.
    """,
    response_description="Summary of the new editing session",
    responses={400: {"description": "Bad Request - Invalid image file or dimensions", "model": ErrorResponse}},
)
def upload_source(
    file: UploadFile = File(..., description="Image file to edit"),
    sessions: SessionRepository = Depends(get_session_repo),
    loader: ImageLoader = Depends(get_image_loader),
    engine: ReplayEngine = Depends(get_replay_engine),
    exporter: ExportImageUseCase = Depends(get_exporter),
):
    """Decode the upload and create a session."""
    source = loader.from_bytes(file.file.read())
    settings = get_settings()
    validate_dimensions(source.width, source.height, settings.max_dimension)
    editor = PhotoEditor(
        source,
        engine=engine,
        exporter=exporter,
        entitlement=exporter.entitlement,
        max_dimension=settings.max_dimension,
    )
    session = sessions.create(editor, original_filename=file.filename)
    return UploadSessionResponse(session=session_summary(session))


@router.get(
    "/{session_id}",
    response_model=SessionSummary,
    summary="Get Session",
    description="Current output size and undo/redo state of a session.",
)
def get_session_summary(session: EditingSession = Depends(get_session)):
    with session.lock:
        return session_summary(session)


@router.delete(
    "/{session_id}",
    response_model=DeleteSessionResponse,
    summary="Delete Session",
    description="Discard a session together with its source and history.",
)
def delete_session(session_id: str, sessions: SessionRepository = Depends(get_session_repo)):
    if not sessions.delete(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return DeleteSessionResponse(ok=True)


@router.get(
    "/{session_id}/original",
    summary="Download Original",
    description="The untouched source image as PNG.",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}},
)
def get_original(session: EditingSession = Depends(get_session)):
    surface = Surface.from_pixels(session.editor.original())
    return Response(content=ImageEncoder.encode(surface, "image/png"), media_type="image/png")
