from __future__ import annotations

from fastapi import APIRouter, Depends

from retouchkit.application.dtos.common_dto import ErrorResponse
from retouchkit.application.dtos.operation_dto import (
    AdjustmentRequest,
    CropRequest,
    FilterRequest,
    ResizeRequest,
    ShapeRequest,
    TextRequest,
)
from retouchkit.application.dtos.session_dto import SessionSummary
from retouchkit.domain.operations.operation import Operation
from retouchkit.infrastructure.api.dependencies import get_session
from retouchkit.infrastructure.api.routes.session_routes import session_summary
from retouchkit.infrastructure.sessions.session_repository import EditingSession

router = APIRouter(
    prefix="/sessions/{session_id}/operations",
    tags=["Operations"],
    responses={
        400: {"description": "Bad Request - Invalid operation parameters", "model": ErrorResponse},
        404: {"description": "Not Found - Session does not exist", "model": ErrorResponse},
        422: {"description": "Validation Error - Invalid request format"},
    },
)


def _record(session: EditingSession, op: Operation) -> SessionSummary:
    with session.lock:
        session.editor.append(op)
        return session_summary(session)


@router.post(
    "/crop",
    response_model=SessionSummary,
    summary="Crop",
    description="Crop the current output. The rectangle must fit the output of the active history.",
)
def add_crop(body: CropRequest, session: EditingSession = Depends(get_session)):
    return _record(session, Operation.crop(body.x, body.y, body.width, body.height))


@router.post(
    "/resize",
    response_model=SessionSummary,
    summary="Resize",
    description="Resize the current output; each side is limited to the configured maximum dimension.",
)
def add_resize(body: ResizeRequest, session: EditingSession = Depends(get_session)):
    return _record(
        session, Operation.resize(body.width, body.height, body.quality, body.maintain_aspect_ratio)
    )


@router.post(
    "/text",
    response_model=SessionSummary,
    summary="Add Text",
    description="""
    Draw a text overlay anchored at (x, y).

    Draw order is shadow, stroke, then fill; `rotation` turns the run clockwise
    about its anchor.
    """,
)
def add_text(body: TextRequest, session: EditingSession = Depends(get_session)):
    options = body.model_dump(exclude={"text", "x", "y", "stroke", "shadow"})
    op = Operation.text(
        body.text,
        body.x,
        body.y,
        stroke=body.stroke.model_dump() if body.stroke else None,
        shadow=body.shadow.model_dump() if body.shadow else None,
        **options,
    )
    return _record(session, op)


@router.post(
    "/shape",
    response_model=SessionSummary,
    summary="Add Shape",
    description="Draw a filled and/or stroked rectangle or ellipse.",
)
def add_shape(body: ShapeRequest, session: EditingSession = Depends(get_session)):
    op = Operation.shape(
        body.shape_type,
        body.x,
        body.y,
        body.width,
        body.height,
        fill=body.fill,
        stroke=body.stroke.model_dump() if body.stroke else None,
        rotation=body.rotation,
    )
    return _record(session, op)


@router.post(
    "/filter",
    response_model=SessionSummary,
    summary="Apply Filter",
    description="""
    Apply a filter blended in by `intensity`.

    **Supported filters:** `grayscale`, `sepia`, `invert`, `posterize` (levels),
    `vintage`, `vignette` (strength), `pixelate` (block_size), `blur` (radius),
    `sharpen`, `edgeDetection`
    """,
)
def add_filter(body: FilterRequest, session: EditingSession = Depends(get_session)):
    op = Operation.filter(
        body.filter_type,
        body.intensity,
        radius=body.radius,
        strength=body.strength,
        levels=body.levels,
        block_size=body.block_size,
    )
    return _record(session, op)


@router.post(
    "/adjustment",
    response_model=SessionSummary,
    summary="Apply Adjustment",
    description="""
    Apply a tonal adjustment; values are clamped to [-100, 100].

    **Supported adjustments:** `brightness`, `contrast`, `saturation`,
    `exposure`, `temperature`
    """,
)
def add_adjustment(body: AdjustmentRequest, session: EditingSession = Depends(get_session)):
    return _record(session, Operation.adjustment(body.adjustment_type, body.value))
