from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class StrokeStyleDTO(BaseModel):
    """Outline drawn around text or a shape."""
    color: str = Field(..., description="CSS color of the outline", examples=["#000000"])
    width: float = Field(1.0, description="Outline width in pixels", gt=0)


class ShadowStyleDTO(BaseModel):
    """Drop shadow drawn beneath text."""
    color: str = Field(..., description="CSS color of the shadow", examples=["rgba(0, 0, 0, 0.5)"])
    blur: float = Field(0.0, description="Shadow blur in pixels", ge=0)
    offset_x: float = Field(0.0, description="Horizontal shadow offset in pixels")
    offset_y: float = Field(0.0, description="Vertical shadow offset in pixels")


class CropRequest(BaseModel):
    """Request model for cropping the current output."""
    x: int = Field(..., description="Left edge of the crop rectangle", examples=[10])
    y: int = Field(..., description="Top edge of the crop rectangle", examples=[10])
    width: int = Field(..., description="Width of the crop rectangle", examples=[200])
    height: int = Field(..., description="Height of the crop rectangle", examples=[150])


class ResizeRequest(BaseModel):
    """Request model for resizing the current output."""
    width: int = Field(..., description="Target width in pixels", examples=[800])
    height: int = Field(..., description="Target height in pixels", examples=[600])
    quality: Literal["low", "medium", "high"] | None = Field(
        None, description="Resampling quality (low = nearest, medium = bilinear, high = lanczos)"
    )
    maintain_aspect_ratio: bool | None = Field(
        None, description="Fit the image inside width x height instead of stretching"
    )


class TextRequest(BaseModel):
    """Request model for drawing a text overlay."""
    text: str = Field(..., description="Text to draw", examples=["Hello"])
    x: float = Field(..., description="Anchor X coordinate", examples=[20])
    y: float = Field(..., description="Anchor Y coordinate", examples=[40])
    font_size: float | None = Field(None, description="Font size in pixels (default 24)")
    font_family: str | None = Field(None, description="Font family (default Arial)")
    color: str | None = Field(None, description="Fill color (default #000000)")
    align: Literal["left", "center", "right"] | None = Field(None, description="Horizontal alignment")
    baseline: Literal["top", "middle", "bottom", "alphabetic"] | None = Field(
        None, description="Vertical anchor of the text run"
    )
    max_width: float | None = Field(None, description="Shrink the text to fit this width")
    bold: bool | None = None
    italic: bool | None = None
    rotation: float | None = Field(None, description="Clockwise rotation in degrees about (x, y)")
    stroke: StrokeStyleDTO | None = None
    shadow: ShadowStyleDTO | None = None


class ShapeRequest(BaseModel):
    """Request model for drawing a rectangle or ellipse."""
    shape_type: str = Field(..., description="Shape to draw", examples=["rectangle"])
    x: float = Field(..., description="Left edge of the bounding box")
    y: float = Field(..., description="Top edge of the bounding box")
    width: float = Field(..., description="Bounding box width")
    height: float = Field(..., description="Bounding box height")
    fill: str | None = Field(None, description="Fill color; omitted means no fill")
    stroke: StrokeStyleDTO | None = None
    rotation: float | None = Field(None, description="Clockwise rotation in degrees about the box center")


class FilterRequest(BaseModel):
    """Request model for applying a filter."""
    filter_type: str = Field(..., description="Filter name", examples=["sepia"])
    intensity: float | None = Field(None, description="Blend factor in [0, 1] (default 1.0)", examples=[0.8])
    radius: int | None = Field(None, ge=1, le=10, description="Blur passes in [1, 10] (blur only)")
    strength: float | None = Field(None, description="Vignette strength in [0, 1] (vignette only)")
    levels: int | None = Field(None, description="Posterize levels in [2, 16] (posterize only)")
    block_size: int | None = Field(None, description="Pixelate block size (pixelate only)")


class AdjustmentRequest(BaseModel):
    """Request model for a tonal adjustment."""
    adjustment_type: str = Field(..., description="Adjustment name", examples=["brightness"])
    value: float = Field(..., description="Adjustment value, clamped to [-100, 100]", examples=[25])


class OperationItem(BaseModel):
    """A single recorded operation."""
    index: int = Field(..., description="Position in the history", ge=0)
    kind: str = Field(..., description="Operation kind", examples=["filter"])
    params: dict[str, Any] = Field(..., description="Normalized operation parameters")
    active: bool = Field(..., description="Whether the operation is part of the current output")


class HistoryResponse(BaseModel):
    """Undo/redo state of a session."""
    operations: list[OperationItem] = Field(..., description="Every stored operation in order")
    cursor: int = Field(..., description="Index of the last active operation, -1 when none", ge=-1)
    can_undo: bool
    can_redo: bool
