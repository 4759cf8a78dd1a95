from __future__ import annotations

from fastapi import APIRouter, Depends

from retouchkit.application.dtos.common_dto import ErrorResponse
from retouchkit.application.dtos.operation_dto import HistoryResponse, OperationItem
from retouchkit.application.dtos.session_dto import SessionSummary
from retouchkit.infrastructure.api.dependencies import get_session
from retouchkit.infrastructure.api.routes.session_routes import session_summary
from retouchkit.infrastructure.sessions.session_repository import EditingSession

router = APIRouter(
    prefix="/sessions/{session_id}",
    tags=["History"],
    responses={404: {"description": "Not Found - Session does not exist", "model": ErrorResponse}},
)


@router.get(
    "/history",
    response_model=HistoryResponse,
    summary="Get History",
    description="Every stored operation, marking which ones are active at the current cursor.",
)
def get_history(session: EditingSession = Depends(get_session)):
    with session.lock:
        history = session.editor.history
        items = [
            OperationItem(index=i, active=i <= history.cursor, **op.describe())
            for i, op in enumerate(history.all_operations())
        ]
        return HistoryResponse(
            operations=items,
            cursor=history.cursor,
            can_undo=history.can_undo(),
            can_redo=history.can_redo(),
        )


@router.post("/undo", response_model=SessionSummary, summary="Undo", description="Step the cursor back; no-op at the start.")
def undo(session: EditingSession = Depends(get_session)):
    with session.lock:
        session.editor.undo()
        return session_summary(session)


@router.post("/redo", response_model=SessionSummary, summary="Redo", description="Step the cursor forward; no-op at the end.")
def redo(session: EditingSession = Depends(get_session)):
    with session.lock:
        session.editor.redo()
        return session_summary(session)


@router.post(
    "/reset",
    response_model=SessionSummary,
    summary="Reset",
    description="Deactivate every operation. The history is kept, so redo walks forward again.",
)
def reset(session: EditingSession = Depends(get_session)):
    with session.lock:
        session.editor.reset()
        return session_summary(session)
