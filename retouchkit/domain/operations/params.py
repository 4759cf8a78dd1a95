from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class OperationKind(str, Enum):
    CROP = "crop"
    RESIZE = "resize"
    TEXT = "text"
    SHAPE = "shape"
    FILTER = "filter"
    ADJUSTMENT = "adjustment"


class FilterType(str, Enum):
    GRAYSCALE = "grayscale"
    SEPIA = "sepia"
    INVERT = "invert"
    POSTERIZE = "posterize"
    VINTAGE = "vintage"
    VIGNETTE = "vignette"
    PIXELATE = "pixelate"
    BLUR = "blur"
    SHARPEN = "sharpen"
    EDGE_DETECTION = "edgeDetection"


class AdjustmentType(str, Enum):
    BRIGHTNESS = "brightness"
    CONTRAST = "contrast"
    SATURATION = "saturation"
    EXPOSURE = "exposure"
    TEMPERATURE = "temperature"


SHAPE_TYPES = ("rectangle", "ellipse")
RESIZE_QUALITIES = ("low", "medium", "high")
TEXT_ALIGNS = ("left", "center", "right")
TEXT_BASELINES = ("top", "middle", "bottom", "alphabetic")
MAX_BLUR_RADIUS = 10


@dataclass(frozen=True)
class StrokeStyle:
    color: str
    width: float


@dataclass(frozen=True)
class ShadowStyle:
    color: str
    blur: float = 0.0
    offset_x: float = 0.0
    offset_y: float = 0.0


@dataclass(frozen=True)
class CropParams:
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class ResizeParams:
    width: int
    height: int
    quality: str = "high"
    maintain_aspect_ratio: bool = False


@dataclass(frozen=True)
class TextParams:
    text: str
    x: float
    y: float
    font_size: float = 24
    font_family: str = "Arial"
    color: str = "#000000"
    align: str = "left"
    baseline: str = "alphabetic"
    max_width: float = 0
    bold: bool = False
    italic: bool = False
    rotation: float = 0.0
    stroke: StrokeStyle | None = None
    shadow: ShadowStyle | None = None


@dataclass(frozen=True)
class ShapeParams:
    shape_type: str
    x: float
    y: float
    width: float
    height: float
    fill: str | None = None
    stroke: StrokeStyle | None = None
    rotation: float = 0.0


@dataclass(frozen=True)
class FilterParams:
    filter_type: FilterType
    intensity: float = 1.0
    # kind-specific extras; only the one matching filter_type is set
    radius: int | None = None
    strength: float | None = None
    levels: int | None = None
    block_size: int | None = None


@dataclass(frozen=True)
class AdjustmentParams:
    adjustment_type: AdjustmentType
    value: float


OperationParams = (
    CropParams | ResizeParams | TextParams | ShapeParams | FilterParams | AdjustmentParams
)
