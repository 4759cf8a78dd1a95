from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class SessionSummary(BaseModel):
    """Current state of an editing session."""
    id: str = Field(..., description="Session identifier", examples=["6f1c2b0e9d7a4e3c"])
    original_filename: str | None = Field(None, description="Filename of the uploaded source", examples=["photo.jpg"])
    format: str = Field(..., description="Decoder format of the source", examples=["JPEG"])
    source_width: int = Field(..., description="Width of the source image in pixels", gt=0)
    source_height: int = Field(..., description="Height of the source image in pixels", gt=0)
    width: int = Field(..., description="Width of the current output in pixels", gt=0)
    height: int = Field(..., description="Height of the current output in pixels", gt=0)
    history_length: int = Field(..., description="Number of stored operations", ge=0)
    cursor: int = Field(..., description="Index of the last active operation", ge=-1)
    can_undo: bool
    can_redo: bool
    created_at: datetime = Field(..., description="When the session was created")


class UploadSessionResponse(BaseModel):
    """Response model for a successful upload."""
    session: SessionSummary


class DeleteSessionResponse(BaseModel):
    """Response model for session deletion."""
    ok: bool = Field(True, description="Indicates whether the deletion was successful")
